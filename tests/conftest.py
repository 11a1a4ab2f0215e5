"""Pytest configuration and fixtures."""

import asyncio
from typing import Dict, List, Optional

import pytest

from capture_api.providers import PageProvider, PooledPageProvider
from capture_api.screenshot_service import ScreenshotService
from capture_api.security import SecurityConfig


class StubPage:
    """In-memory BrowserPage that records every call made on it."""

    def __init__(self, failures: Optional[Dict[str, BaseException]] = None, gate: Optional[asyncio.Event] = None):
        self.calls: List[tuple] = []
        self.failures = failures or {}
        self.gate = gate
        self.closed = False

    async def _record(self, name: str, *args):
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    @property
    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def set_user_agent(self, user_agent):
        await self._record("set_user_agent", user_agent)

    async def set_extra_headers(self, headers):
        await self._record("set_extra_headers", headers)

    async def set_viewport(self, width, height):
        await self._record("set_viewport", width, height)

    async def emulate_media_feature(self, name, value):
        await self._record("emulate_media_feature", name, value)

    async def navigate(self, url, wait_until):
        await self._record("navigate", url, wait_until)

    async def add_style(self, css):
        await self._record("add_style", css)

    async def wait_for_selector(self, selector, timeout_ms):
        await self._record("wait_for_selector", selector, timeout_ms)

    async def wait_for_fonts(self):
        await self._record("wait_for_fonts")

    async def screenshot(self, image_type, full_page, quality=None):
        await self._record("screenshot", image_type, full_page, quality)
        if self.gate is not None:
            await self.gate.wait()
        return f"{image_type}-bytes".encode()

    async def close(self):
        self.closed = True


class StubProvider(PageProvider):
    """Provider that hands out StubPages and records every lease."""

    def __init__(self, failures: Optional[Dict[str, BaseException]] = None):
        self.failures = failures
        self.acquired: List[StubPage] = []
        self.released: List[StubPage] = []
        self.closed = False

    async def acquire(self):
        page = StubPage(self.failures)
        self.acquired.append(page)
        return page

    async def release(self, page):
        self.released.append(page)
        await self._close_page(page)

    async def close(self):
        self.closed = True


class StubPooledProvider(PooledPageProvider):
    """Real pool admission with browser pages replaced by gated StubPages."""

    def __init__(self, max_concurrency: int, **kwargs):
        super().__init__(max_concurrency=max_concurrency, **kwargs)
        self.opened: List[StubPage] = []

    async def _open_page(self):
        page = StubPage(gate=asyncio.Event())
        self.opened.append(page)
        return page


async def wait_until(predicate, attempts: int = 200):
    """Yield to the event loop until `predicate()` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def open_service(stub_provider):
    """Service with both gates disabled."""
    return ScreenshotService(stub_provider, SecurityConfig())


@pytest.fixture
def secured_service(stub_provider):
    return ScreenshotService(
        stub_provider,
        SecurityConfig(auth_token="s3cret", host_whitelist=("example.com",)),
    )
