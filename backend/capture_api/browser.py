"""
Browser page capability interface and its Playwright implementation.

The capture pipeline only talks to `BrowserPage`; everything Playwright
specific (launch flags, CDP overrides, timeout translation, WebP encoding)
stays in this module.
"""

import asyncio
import io
import logging
from typing import Dict, Optional, Protocol, Sequence, Set

from PIL import Image
from playwright.async_api import Browser, BrowserContext, Page, Playwright, Request
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

logger = logging.getLogger(__name__)

# Consistent rendering across hosts
CHROME_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--font-render-hinting=none',
    '--disable-font-subpixel-positioning',
    '--force-color-profile=srgb',
]

# Extra flags for container/serverless hosts
SERVERLESS_CHROME_ARGS = [
    '--single-process',
    '--no-zygote',
    '--disable-dev-shm-usage',
    '--disable-gpu',
]

NETWORK_QUIET_MS = 500
NETWORK_POLL_INTERVAL = 0.05

_MEDIA_FEATURES = {
    "prefers-color-scheme": "color_scheme",
    "prefers-reduced-motion": "reduced_motion",
    "forced-colors": "forced_colors",
}


class BrowserPage(Protocol):
    """What the capture pipeline needs from a leased browser page"""

    async def set_user_agent(self, user_agent: str) -> None: ...

    async def set_extra_headers(self, headers: Dict[str, str]) -> None: ...

    async def set_viewport(self, width: int, height: int) -> None: ...

    async def emulate_media_feature(self, name: str, value: str) -> None: ...

    async def navigate(self, url: str, wait_until: str) -> None: ...

    async def add_style(self, css: str) -> None: ...

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None: ...

    async def wait_for_fonts(self) -> None: ...

    async def screenshot(self, image_type: str, full_page: bool, quality: Optional[int] = None) -> bytes: ...

    async def close(self) -> None: ...


async def launch_chromium(
    playwright: Playwright,
    executable_path: Optional[str] = None,
    extra_args: Sequence[str] = (),
    timeout_ms: int = 300_000,
) -> Browser:
    """Launch headless Chromium with the rendering flags every deployment shares"""
    logger.info("Launching Chromium from %s", executable_path or "the bundled build")
    return await playwright.chromium.launch(
        headless=True,
        args=[*CHROME_ARGS, *extra_args],
        executable_path=executable_path,
        timeout=timeout_ms,
    )


def encode_webp(png_bytes: bytes, quality: Optional[int]) -> bytes:
    image = Image.open(io.BytesIO(png_bytes))
    buffered = io.BytesIO()
    if quality is None:
        image.save(buffered, format="WEBP", lossless=True)
    else:
        image.save(buffered, format="WEBP", quality=quality)
    return buffered.getvalue()


class PlaywrightPage:
    """BrowserPage backed by a Playwright page.

    When `context` is given the page owns it and closing the page closes the
    whole browser context, dropping cookies and storage with it.
    """

    def __init__(self, page: Page, context: Optional[BrowserContext] = None, navigation_timeout_ms: int = 120_000):
        self._page = page
        self._context = context
        self._navigation_timeout_ms = navigation_timeout_ms
        self._inflight: Set[Request] = set()

        page.set_default_navigation_timeout(navigation_timeout_ms)
        page.on("request", self._on_request)
        page.on("requestfinished", self._on_request_done)
        page.on("requestfailed", self._on_request_done)

    def _on_request(self, request: Request) -> None:
        self._inflight.add(request)

    def _on_request_done(self, request: Request) -> None:
        self._inflight.discard(request)

    async def set_user_agent(self, user_agent: str) -> None:
        # Playwright only exposes user agents per context; CDP overrides it per page
        session = await self._page.context.new_cdp_session(self._page)
        await session.send("Network.setUserAgentOverride", {"userAgent": user_agent})

    async def set_extra_headers(self, headers: Dict[str, str]) -> None:
        await self._page.set_extra_http_headers(headers)

    async def set_viewport(self, width: int, height: int) -> None:
        await self._page.set_viewport_size({"width": width, "height": height})

    async def emulate_media_feature(self, name: str, value: str) -> None:
        option = _MEDIA_FEATURES.get(name)
        if option is None:
            raise ValueError(f"Unsupported media feature: {name}")
        await self._page.emulate_media(**{option: value})

    async def navigate(self, url: str, wait_until: str) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            if wait_until == "networkidle0":
                await self._page.goto(url, wait_until="networkidle")
            elif wait_until == "networkidle2":
                await self._page.goto(url, wait_until="domcontentloaded")
                remaining_ms = self._navigation_timeout_ms - (loop.time() - started) * 1000
                await self._wait_for_network_quiet(max_inflight=2, timeout_ms=remaining_ms)
            else:
                await self._page.goto(url, wait_until=wait_until)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def _wait_for_network_quiet(self, max_inflight: int, timeout_ms: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(timeout_ms, 0) / 1000
        quiet_since = None
        while True:
            now = loop.time()
            if len(self._inflight) <= max_inflight:
                if quiet_since is None:
                    quiet_since = now
                elif (now - quiet_since) * 1000 >= NETWORK_QUIET_MS:
                    return
            else:
                quiet_since = None
            if now >= deadline:
                raise TimeoutError(
                    f"Network did not settle to {max_inflight} requests within {timeout_ms:.0f}ms"
                )
            await asyncio.sleep(NETWORK_POLL_INTERVAL)

    async def add_style(self, css: str) -> None:
        await self._page.add_style_tag(content=css)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        try:
            await self._page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise TimeoutError(str(exc)) from exc

    async def wait_for_fonts(self) -> None:
        await self._page.evaluate("() => document.fonts.ready.then(() => true)")

    async def screenshot(self, image_type: str, full_page: bool, quality: Optional[int] = None) -> bytes:
        if image_type == "webp":
            # Playwright has no WebP encoder; capture losslessly and re-encode
            png_bytes = await self._page.screenshot(type="png", full_page=full_page)
            return await asyncio.to_thread(encode_webp, png_bytes, quality)

        screenshot_args = {"type": image_type, "full_page": full_page}
        if quality is not None:
            screenshot_args["quality"] = quality
        return await self._page.screenshot(**screenshot_args)

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
        else:
            await self._page.close()
