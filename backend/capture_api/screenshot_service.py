"""
Screenshot service: validates, gates and captures one request at a time
against a shared page provider
"""

import logging
import time
from enum import Enum
from typing import Any, Mapping, Optional

from .errors import CaptureError, InternalError
from .models import CaptureResult, validate_query
from .pipeline import capture_screenshot
from .providers import PageProvider
from .security import SecurityConfig, check_bearer_token, check_hostname

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    VALIDATING = "validating"
    AUTHENTICATING = "authenticating"
    ALLOWLIST_CHECKING = "allowlist_checking"
    ACQUIRING_PAGE = "acquiring_page"
    CAPTURING = "capturing"
    RELEASING = "releasing"
    DONE = "done"
    FAILED = "failed"


class ScreenshotService:
    """Turns capture requests into image bytes.

    Validation and both security gates run before the provider is touched,
    so a rejected request never costs a browser page. A page that was
    acquired is released on every exit path.
    """

    def __init__(self, provider: PageProvider, security: Optional[SecurityConfig] = None):
        self.provider = provider
        self.security = security or SecurityConfig()

    async def capture(self, params: Mapping[str, Any], authorization: Optional[str] = None) -> CaptureResult:
        state = CaptureState.VALIDATING
        page = None
        start_time = time.time()
        try:
            options = validate_query(params)

            state = CaptureState.AUTHENTICATING
            check_bearer_token(authorization, self.security.auth_token)

            state = CaptureState.ALLOWLIST_CHECKING
            check_hostname(options.url, self.security.host_whitelist)

            logger.info("CAPTURE: %s", options.url)

            state = CaptureState.ACQUIRING_PAGE
            page = await self.provider.acquire()

            state = CaptureState.CAPTURING
            data = await capture_screenshot(page, options, self.security.auth_token)

        except CaptureError as e:
            e.state = state.value
            logger.warning("Capture %s while %s: %s", CaptureState.FAILED.value, state.value, e.message)
            raise
        except Exception as e:
            logger.exception("Capture %s while %s", CaptureState.FAILED.value, state.value)
            raise InternalError(str(e) or type(e).__name__, state=state.value) from e
        finally:
            if page is not None:
                logger.debug("Releasing page (%s)", CaptureState.RELEASING.value)
                await self.provider.release(page)

        processing_time = time.time() - start_time
        logger.debug(
            "Capture %s: %s (%d bytes, %.2fs)", CaptureState.DONE.value, options.url, len(data), processing_time
        )
        return CaptureResult(data=data, format=options.format)

    async def cleanup(self):
        """Clean up browser resources"""
        await self.provider.close()
