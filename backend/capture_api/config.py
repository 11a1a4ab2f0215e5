"""
Application configuration
"""

import logging
import os
from typing import List, Optional


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


class Settings:
    """Application settings, read once from the environment"""

    def __init__(self):
        self.DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.PORT: int = int(os.getenv("PORT", "3000"))

        # Security settings - parse comma-separated values
        self.AUTH_TOKEN: Optional[str] = os.getenv("SCREENSHOT_AUTH_TOKEN") or None
        self.HOST_WHITELIST: List[str] = _split_csv(os.getenv("SCREENSHOT_HOST_WHITELIST", ""))
        self.CORS_ORIGINS: List[str] = _split_csv(os.getenv("CORS_ORIGINS", "*"))

        # Screenshot settings
        self.MAX_CONCURRENCY: int = int(os.getenv("MAX_CONCURRENCY", "10"))
        self.MAX_QUEUE_SIZE: int = int(os.getenv("MAX_QUEUE_SIZE", "100"))  # 0 = unbounded
        self.QUEUE_TIMEOUT_SECONDS: Optional[int] = _optional_int("QUEUE_TIMEOUT_SECONDS")
        self.NAVIGATION_TIMEOUT_MS: int = int(os.getenv("NAVIGATION_TIMEOUT_MS", "120000"))
        # Cold starts on a resource-bound host are slow
        self.BROWSER_LAUNCH_TIMEOUT_MS: int = int(os.getenv("BROWSER_LAUNCH_TIMEOUT_MS", "300000"))

        # Serverless hosts ship their own Chromium build
        self.CHROMIUM_EXECUTABLE_PATH: Optional[str] = os.getenv("CHROMIUM_EXECUTABLE_PATH") or None


def setup_logging(debug: bool = False) -> None:
    """Configure the root logger for the service process."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # asyncio logs slow callbacks and unretrieved futures at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)


settings = Settings()
