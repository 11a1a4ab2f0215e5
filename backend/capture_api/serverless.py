"""
Per-invocation deployment: the same HTTP surface backed by a warm,
cached browser with one page per request.

Point the serverless platform's ASGI entrypoint at `capture_api.serverless:app`.
"""

from .api import create_app
from .config import settings, setup_logging
from .providers import EphemeralPageProvider
from .screenshot_service import ScreenshotService
from .security import SecurityConfig

setup_logging(settings.DEBUG)

# Module scope so warm invocations reuse the browser
screenshot_service = ScreenshotService(
    EphemeralPageProvider.from_settings(settings),
    SecurityConfig.from_settings(settings),
)

app = create_app(screenshot_service, settings)
