"""Session management: persistent browser profile, validity checks.

A session is a Playwright persistent BrowserContext. Cookies and local
storage live in the profile directory, so a later run against the same
directory is usually still logged in and never needs ``login``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import BrowserContext, async_playwright

from .diagnostics import ensure_dir
from .login import login
from .models import Credentials, ScrapeConfig
from .page_helpers import goto, has_element, scoped_page, wait_for_network_idle

log = logging.getLogger(__name__)


# Hides the most common automation fingerprint before any page script runs.
_STEALTH_JS = '''
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
'''

_LAUNCH_ARGS = [
    '--disable-blink-features=AutomationControlled',
]


@asynccontextmanager
async def open_session(config: ScrapeConfig) -> AsyncIterator[BrowserContext]:
    """Launch a persistent Chromium context and close it on exit."""
    profile_dir = ensure_dir(config.profile_path)
    context_kwargs = {
        'user_data_dir': str(profile_dir),
        'headless': config.headless,
        'args': _LAUNCH_ARGS,
        'viewport': {'width': config.viewport_width, 'height': config.viewport_height},
    }
    if config.user_agent:
        context_kwargs['user_agent'] = config.user_agent

    async with async_playwright() as p:
        log.info('Launching browser with profile %s', profile_dir)
        context = await p.chromium.launch_persistent_context(**context_kwargs)
        try:
            await context.add_init_script(_STEALTH_JS)
            yield context
        finally:
            await context.close()
            log.info('Browser session closed')


async def check_valid(session: BrowserContext, config: ScrapeConfig) -> bool:
    """Return True if the landing page shows no login form.

    Navigation errors and an unusable context count as an invalid session.
    """
    try:
        async with scoped_page(session) as page:
            await goto(page, config.landing_url, config)
            await wait_for_network_idle(page, config.network_idle_timeout_ms)
            if await has_element(page, config.login_form_selector):
                log.info('Session is not logged in')
                return False
    except Exception as exc:
        log.warning('Session check failed: %s', exc)
        return False
    log.info('Session is valid')
    return True


async def ensure_session(session: BrowserContext, credentials: Credentials, config: ScrapeConfig) -> bool:
    """Reuse a valid session, logging in only when it has expired.

    Raises MissingCredentialsError if a login is needed and credentials
    are incomplete.
    """
    if await check_valid(session, config):
        return True
    log.info('Logging in as %s', credentials.identifier or '<unset>')
    return await login(session, credentials, config)
