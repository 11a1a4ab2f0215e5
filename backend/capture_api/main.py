"""
Long-running server: one shared Chromium behind a bounded page pool.

`capture-api` and `uvicorn capture_api.main:app` both serve this `app`.
"""

from fastapi import FastAPI

from .api import create_app
from .config import Settings, settings, setup_logging
from .providers import PooledPageProvider
from .screenshot_service import ScreenshotService
from .security import SecurityConfig


def create_pooled_app(app_settings: Settings = settings) -> FastAPI:
    setup_logging(app_settings.DEBUG)
    service = ScreenshotService(
        PooledPageProvider.from_settings(app_settings),
        SecurityConfig.from_settings(app_settings),
    )
    return create_app(service, app_settings)


app = create_pooled_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
