"""
Typed failures raised while serving a capture request.

Every error carries the HTTP status the API answers with and renders its own
JSON body, so the web layer needs a single exception handler.
"""

from typing import Any, Dict, Iterable, List, Optional


class CaptureError(Exception):
    """Base class for all capture failures"""

    status_code: int = 500
    error: str = "Failed to capture screenshot"

    def __init__(self, message: Optional[str] = None, state: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        # Engine state the request was in when it failed
        self.state = state

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(CaptureError):
    """Malformed or out-of-range query parameters"""

    status_code = 400
    error = "Invalid query parameters"

    def __init__(self, field_errors: Dict[str, List[str]]):
        self.field_errors = field_errors
        fields = ", ".join(sorted(field_errors)) or "request"
        super().__init__(f"Invalid value for: {fields}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "details": self.field_errors}


class AuthError(CaptureError):
    """Missing, malformed or mismatched credentials"""

    status_code = 401

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class UnauthorizedError(AuthError):
    status_code = 401
    error = "Authorization header missing or invalid format"


class ForbiddenError(AuthError):
    status_code = 403
    error = "Invalid token"


class HostNotAllowedError(CaptureError):
    """Target hostname is outside the configured allow-list"""

    status_code = 403

    def __init__(self, hostname: Optional[str], allowed: Iterable[str]):
        self.hostname = hostname
        self.allowed = list(allowed)
        super().__init__(f"Hostname not allowed. Must be one of: {', '.join(self.allowed)}")

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class CaptureTimeoutError(CaptureError):
    status_code = 504
    error = "Timed out capturing screenshot"


class NavigationTimeoutError(CaptureTimeoutError):
    error = "Navigation timed out"


class SelectorTimeoutError(CaptureTimeoutError):
    error = "Timed out waiting for selector"


class ResourceExhaustionError(CaptureError):
    """No browser page became available within the admission bounds"""

    status_code = 503
    error = "Screenshot capacity exhausted"


class InternalError(CaptureError):
    """Unexpected browser or driver failure"""

    status_code = 500
