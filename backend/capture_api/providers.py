"""
Browser resource providers: hand out exclusively leased pages.

`PooledPageProvider` backs the long-running server: one Chromium process and at
most `max_concurrency` isolated contexts at a time, with excess callers queued
FIFO. `EphemeralPageProvider` backs the serverless handler: one warm Chromium
reused across invocations, a fresh page per request.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Deque, Optional, Sequence

from playwright.async_api import Browser, Playwright, async_playwright

from .browser import SERVERLESS_CHROME_ARGS, BrowserPage, PlaywrightPage, launch_chromium
from .config import Settings
from .errors import ResourceExhaustionError

logger = logging.getLogger(__name__)


class AdmissionQueue:
    """FIFO admission into a bounded number of active slots.

    Callers beyond `max_active` wait in arrival order. When `max_waiting` is
    set, a caller arriving at a full waiting line is rejected immediately.
    """

    def __init__(self, max_active: int, max_waiting: Optional[int] = None):
        if max_active < 1:
            raise ValueError("max_active must be at least 1")
        self.max_active = max_active
        self.max_waiting = max_waiting
        self._active = 0
        self._waiters: Deque[asyncio.Future] = deque()

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self, timeout: Optional[float] = None) -> None:
        if self._active < self.max_active and not self.waiting:
            self._active += 1
            return

        if self.max_waiting is not None and self.waiting >= self.max_waiting:
            raise ResourceExhaustionError(
                f"{self._active} captures running and {self.waiting} queued; try again later"
            )

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            if timeout is None:
                await waiter
            else:
                await asyncio.wait_for(waiter, timeout)
        except (asyncio.CancelledError, asyncio.TimeoutError) as exc:
            if waiter.done() and not waiter.cancelled():
                # The slot was handed over just as we gave up; pass it on
                self.release()
            else:
                self._discard(waiter)
            if isinstance(exc, asyncio.TimeoutError):
                raise ResourceExhaustionError(
                    f"No capture slot became free within {timeout}s"
                ) from exc
            raise

    def release(self) -> None:
        # Hand the slot straight to the oldest live waiter so active stays put
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._active -= 1

    def _discard(self, waiter: asyncio.Future) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            pass


class PageProvider(ABC):
    """Source of leased browser pages"""

    @abstractmethod
    async def acquire(self) -> BrowserPage:
        """Return a page owned exclusively by the caller until `release`."""

    @abstractmethod
    async def release(self, page: BrowserPage) -> None:
        """Give a leased page back. Never raises."""

    async def close(self) -> None:
        """Tear down shared browser resources at process shutdown."""

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[BrowserPage]:
        page = await self.acquire()
        try:
            yield page
        finally:
            await self.release(page)

    async def _close_page(self, page: BrowserPage) -> None:
        try:
            await page.close()
        except Exception as e:
            # Crashed or hung pages may refuse to close; the lease ends regardless
            logger.warning("Error closing page: %s", e)


class _ChromiumLauncher:
    """Lazily started Playwright driver plus one Chromium process"""

    def __init__(self, executable_path: Optional[str] = None, extra_args: Sequence[str] = (),
                 launch_timeout_ms: int = 300_000):
        self.executable_path = executable_path
        self.extra_args = list(extra_args)
        self.launch_timeout_ms = launch_timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def get_browser(self) -> Browser:
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching")
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            self._browser = await launch_chromium(
                self._playwright,
                executable_path=self.executable_path,
                extra_args=self.extra_args,
                timeout_ms=self.launch_timeout_ms,
            )
            return self._browser

    async def shutdown(self) -> None:
        async with self._lock:
            try:
                if self._browser is not None:
                    await self._browser.close()
                if self._playwright is not None:
                    await self._playwright.stop()
                logger.info("Browser shut down")
            except Exception as e:
                logger.error("Error during browser shutdown: %s", e)
            finally:
                self._browser = None
                self._playwright = None


class PooledPageProvider(PageProvider):
    """Bounded pool of isolated browser contexts on one long-lived Chromium"""

    def __init__(
        self,
        max_concurrency: int = 10,
        max_queue_size: Optional[int] = None,
        queue_timeout: Optional[float] = None,
        navigation_timeout_ms: int = 120_000,
        launch_timeout_ms: int = 300_000,
    ):
        self.queue_timeout = queue_timeout
        self.navigation_timeout_ms = navigation_timeout_ms
        self.slots = AdmissionQueue(max_concurrency, max_queue_size)
        self._launcher = _ChromiumLauncher(launch_timeout_ms=launch_timeout_ms)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PooledPageProvider":
        return cls(
            max_concurrency=settings.MAX_CONCURRENCY,
            max_queue_size=settings.MAX_QUEUE_SIZE or None,
            queue_timeout=settings.QUEUE_TIMEOUT_SECONDS,
            navigation_timeout_ms=settings.NAVIGATION_TIMEOUT_MS,
            launch_timeout_ms=settings.BROWSER_LAUNCH_TIMEOUT_MS,
        )

    @property
    def max_concurrency(self) -> int:
        return self.slots.max_active

    async def acquire(self) -> BrowserPage:
        await self.slots.acquire(self.queue_timeout)
        try:
            return await self._open_page()
        except BaseException:
            self.slots.release()
            raise

    async def release(self, page: BrowserPage) -> None:
        try:
            await self._close_page(page)
        finally:
            self.slots.release()

    async def close(self) -> None:
        await self._launcher.shutdown()

    async def _open_page(self) -> BrowserPage:
        browser = await self._launcher.get_browser()
        context = await browser.new_context()
        try:
            page = await context.new_page()
        except BaseException:
            await context.close()
            raise
        return PlaywrightPage(page, context=context, navigation_timeout_ms=self.navigation_timeout_ms)


class EphemeralPageProvider(PageProvider):
    """One page per request on a Chromium kept warm between invocations"""

    def __init__(
        self,
        executable_path: Optional[str] = None,
        navigation_timeout_ms: int = 120_000,
        launch_timeout_ms: int = 300_000,
    ):
        self.navigation_timeout_ms = navigation_timeout_ms
        # Packaged serverless Chromium builds need the container flags
        extra_args = SERVERLESS_CHROME_ARGS if executable_path else ()
        self._launcher = _ChromiumLauncher(
            executable_path=executable_path,
            extra_args=extra_args,
            launch_timeout_ms=launch_timeout_ms,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "EphemeralPageProvider":
        return cls(
            executable_path=settings.CHROMIUM_EXECUTABLE_PATH,
            navigation_timeout_ms=settings.NAVIGATION_TIMEOUT_MS,
            launch_timeout_ms=settings.BROWSER_LAUNCH_TIMEOUT_MS,
        )

    async def acquire(self) -> BrowserPage:
        browser = await self._launcher.get_browser()
        # new_page() gives the page its own context, closed along with it
        page = await browser.new_page()
        return PlaywrightPage(page, navigation_timeout_ms=self.navigation_timeout_ms)

    async def release(self, page: BrowserPage) -> None:
        # Only ever the page; the warm browser must survive a bad page
        await self._close_page(page)

    async def close(self) -> None:
        await self._launcher.shutdown()
