"""Page interaction helpers: scoped page lifetime, bounded waits, polling."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from playwright.async_api import BrowserContext, Page, TimeoutError as PlaywrightTimeout

from .errors import PageUnavailableError
from .models import ScrapeConfig

log = logging.getLogger(__name__)


@asynccontextmanager
async def scoped_page(session: BrowserContext) -> AsyncIterator[Page]:
    """Open a page for one operation and close it on every exit path.

    Raises PageUnavailableError when the context is closed or crashed.
    """
    try:
        page = await session.new_page()
    except Exception as exc:
        raise PageUnavailableError(f'Could not open a page: {exc}') from exc
    try:
        yield page
    finally:
        try:
            await page.close()
        except Exception as exc:
            log.debug('Page close failed: %s', exc)


async def goto(page: Page, url: str, config: ScrapeConfig, wait_until: str = 'domcontentloaded') -> None:
    """Navigate with the configured navigation timeout. Errors propagate."""
    log.debug('Navigating to %s', url)
    await page.goto(url, wait_until=wait_until, timeout=config.navigation_timeout_ms)


async def wait_for_network_idle(page: Page, timeout_ms: int) -> bool:
    """Wait for network quiescence; a timeout is reported, not raised."""
    try:
        await page.wait_for_load_state('networkidle', timeout=timeout_ms)
        return True
    except PlaywrightTimeout:
        log.warning('Network did not go idle within %d ms - proceeding anyway', timeout_ms)
        return False


async def wait_for_selector_quietly(page: Page, selector: str, timeout_ms: int) -> bool:
    """Wait for ``selector`` to appear; a timeout is reported, not raised."""
    try:
        await page.wait_for_selector(selector, timeout=timeout_ms)
        return True
    except PlaywrightTimeout:
        log.warning('Selector %s not found within %d ms - proceeding anyway', selector, timeout_ms)
        return False


async def has_element(page: Page, selector: str) -> bool:
    return await page.query_selector(selector) is not None


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    timeout_ms: int,
    interval_ms: int,
) -> bool:
    """Call ``check`` every ``interval_ms`` until it is truthy or time runs out.

    Returns True if the condition was met, False on timeout.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    while True:
        if await check():
            return True
        if loop.time() >= deadline:
            return False
        await asyncio.sleep(interval_ms / 1000)
