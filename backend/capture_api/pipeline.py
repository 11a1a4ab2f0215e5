"""
The fixed rendering sequence run on one leased page.

Steps run strictly in order; a failing step aborts the rest and the caller
is responsible for releasing the page.
"""

import asyncio
import logging
from typing import Optional

from .browser import BrowserPage
from .errors import NavigationTimeoutError, SelectorTimeoutError
from .models import CaptureOptions

logger = logging.getLogger(__name__)

USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36'
)

# Consistent font rendering regardless of host fonts/GPU
SCREENSHOT_CSS = """
* {
    -webkit-print-color-adjust: exact !important;
    text-rendering: geometricprecision !important;
    -webkit-font-smoothing: antialiased !important;
    box-sizing: border-box;
}
"""

SELECTOR_TIMEOUT_MS = 30_000


async def capture_screenshot(page: BrowserPage, options: CaptureOptions, auth_token: Optional[str] = None) -> bytes:
    await page.set_user_agent(USER_AGENT)

    # Lets the target page sit behind the same bearer token
    if auth_token:
        await page.set_extra_headers({"Authorization": f"Bearer {auth_token}"})

    await page.set_viewport(options.width, options.height)

    if options.color_scheme:
        await page.emulate_media_feature("prefers-color-scheme", options.color_scheme)

    try:
        await page.navigate(options.url, options.wait_until)
    except TimeoutError as exc:
        raise NavigationTimeoutError(f"Navigation to {options.url} timed out ({options.wait_until})") from exc

    await page.add_style(SCREENSHOT_CSS)

    if options.wait_for_selector:
        try:
            await page.wait_for_selector(options.wait_for_selector, SELECTOR_TIMEOUT_MS)
        except TimeoutError as exc:
            raise SelectorTimeoutError(
                f"Selector {options.wait_for_selector!r} did not appear within {SELECTOR_TIMEOUT_MS // 1000}s"
            ) from exc

    # Avoid capturing mid font swap
    await page.wait_for_fonts()

    if options.delay_ms:
        logger.debug("Waiting %sms before capture", options.delay_ms)
        await asyncio.sleep(options.delay_ms / 1000)

    quality = None if options.is_lossless else options.quality
    return await page.screenshot(options.format, full_page=options.full_page, quality=quality)
