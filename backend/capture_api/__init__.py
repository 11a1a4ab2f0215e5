"""Render web pages to images over HTTP"""

from .errors import (
    CaptureError,
    ForbiddenError,
    HostNotAllowedError,
    InternalError,
    NavigationTimeoutError,
    ResourceExhaustionError,
    SelectorTimeoutError,
    UnauthorizedError,
    ValidationError,
)
from .models import CaptureOptions, CaptureResult, validate_query
from .pipeline import SCREENSHOT_CSS, USER_AGENT, capture_screenshot
from .security import SecurityConfig, is_hostname_allowed

__all__ = [
    "CaptureError",
    "CaptureOptions",
    "CaptureResult",
    "ForbiddenError",
    "HostNotAllowedError",
    "InternalError",
    "NavigationTimeoutError",
    "ResourceExhaustionError",
    "SCREENSHOT_CSS",
    "SecurityConfig",
    "SelectorTimeoutError",
    "USER_AGENT",
    "UnauthorizedError",
    "ValidationError",
    "capture_screenshot",
    "is_hostname_allowed",
    "validate_query",
]
