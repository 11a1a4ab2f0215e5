"""
Request gates evaluated before any browser work is done
"""

import hmac
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .config import Settings
from .errors import ForbiddenError, HostNotAllowedError, UnauthorizedError

BEARER_PREFIX = "Bearer "

_http_url = TypeAdapter(HttpUrl)


@dataclass(frozen=True)
class SecurityConfig:
    """Process-wide gate configuration; an unset value disables its gate"""

    auth_token: Optional[str] = None
    host_whitelist: Tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SecurityConfig":
        return cls(
            auth_token=settings.AUTH_TOKEN,
            host_whitelist=normalize_whitelist(settings.HOST_WHITELIST),
        )


def normalize_whitelist(hosts: Iterable[str]) -> Tuple[str, ...]:
    return tuple(host.strip().lower() for host in hosts if host and host.strip())


def check_bearer_token(authorization: Optional[str], expected_token: Optional[str]) -> None:
    """Raise UnauthorizedError/ForbiddenError unless the header carries the expected token."""
    if not expected_token:
        return
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError()
    token = authorization.split(" ")[1]
    if not hmac.compare_digest(token.encode(), expected_token.encode()):
        raise ForbiddenError()


def extract_hostname(url: str) -> Optional[str]:
    # WHATWG parsing, same host as the browser resolves
    try:
        return _http_url.validate_python(url).host
    except PydanticValidationError:
        return None


def is_hostname_allowed(url: str, whitelist: Sequence[str]) -> bool:
    """Exact match or strict subdomain of a whitelisted host.

    "sub.example.com" passes for "example.com", "evilexample.com" does not.
    """
    hostname = extract_hostname(url)
    if not hostname:
        return False
    if not whitelist:
        return True
    return any(hostname == allowed or hostname.endswith(f".{allowed}") for allowed in whitelist)


def check_hostname(url: str, whitelist: Sequence[str]) -> None:
    if not is_hostname_allowed(url, whitelist):
        raise HostNotAllowedError(extract_hostname(url), whitelist)
