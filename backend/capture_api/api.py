"""
HTTP surface shared by the long-running server and the serverless shell
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response

from .config import Settings, settings
from .errors import AuthError, CaptureError
from .screenshot_service import ScreenshotService
from .security import check_bearer_token

logger = logging.getLogger(__name__)

HEALTH_PATH = "/"
SCREENSHOT_PATH = "/screenshot"


def create_app(screenshot_service: ScreenshotService, app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the HTTP surface around a screenshot service"""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # The browser starts lazily on the first capture
        yield
        # Shutdown
        await screenshot_service.cleanup()

    app = FastAPI(
        title="Page Capture API",
        description="Render web pages to PNG, JPEG or WebP images",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.screenshot_service = screenshot_service

    @app.exception_handler(CaptureError)
    async def capture_error_handler(request: Request, exc: CaptureError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.middleware("http")
    async def require_token(request: Request, call_next):
        # The capture route is gated inside the service, in its own order
        if request.url.path not in (HEALTH_PATH, SCREENSHOT_PATH):
            try:
                check_bearer_token(request.headers.get("Authorization"), screenshot_service.security.auth_token)
            except AuthError as exc:
                return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
        return await call_next(request)

    if app_settings.DEBUG:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            start_time = time.time()
            response = await call_next(request)
            logger.info(
                "%s %s %s %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                (time.time() - start_time) * 1000,
            )
            return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get(HEALTH_PATH)
    async def health_check():
        """Health check endpoint"""
        return {"online": True}

    @app.get(
        SCREENSHOT_PATH,
        responses={
            200: {
                "description": "Rendered image",
                "content": {"image/png": {}, "image/jpeg": {}, "image/webp": {}},
            },
            400: {"description": "Invalid query parameters"},
            401: {"description": "Missing or malformed Authorization header"},
            403: {"description": "Invalid token or hostname not allowed"},
            503: {"description": "Capture capacity exhausted"},
            504: {"description": "Navigation or selector wait timed out"},
        },
    )
    async def screenshot(request: Request):
        """Capture a screenshot of `url`"""
        result = await screenshot_service.capture(
            dict(request.query_params),
            authorization=request.headers.get("Authorization"),
        )
        return Response(content=result.data, media_type=result.content_type)

    return app
