"""Credential login against the portal's login form."""

import logging
import re

from playwright.async_api import BrowserContext, Page, TimeoutError as PlaywrightTimeout

from .diagnostics import record_failure
from .errors import MissingCredentialsError, PageUnavailableError
from .models import Credentials, ScrapeConfig
from .page_helpers import goto, has_element, scoped_page, wait_for_network_idle

log = logging.getLogger(__name__)


def authenticated_url_matcher(config: ScrapeConfig):
    """Predicate for URLs inside the authenticated area."""
    patterns = [re.compile(p, re.IGNORECASE) for p in config.authenticated_url_patterns]

    def _matches(url: str) -> bool:
        return any(p.search(url) for p in patterns)

    return _matches


async def _submit_form(page: Page, credentials: Credentials, config: ScrapeConfig) -> None:
    await page.fill(config.identifier_selector, credentials.identifier)
    await page.fill(config.secret_selector, credentials.secret)
    submit = await page.query_selector(config.submit_selector)
    if submit:
        await submit.click()
    else:
        await page.keyboard.press('Enter')


async def login(session: BrowserContext, credentials: Credentials, config: ScrapeConfig) -> bool:
    """Log in with credentials and verify the login form is gone.

    Raises MissingCredentialsError before any navigation when either
    credential is blank. Every other failure returns False and leaves a
    'login-failed' screenshot.
    """
    if not credentials.complete:
        raise MissingCredentialsError()

    try:
        async with scoped_page(session) as page:
            try:
                await goto(page, config.landing_url, config)
                await wait_for_network_idle(page, config.network_idle_timeout_ms)
                await _submit_form(page, credentials, config)

                try:
                    await page.wait_for_url(
                        authenticated_url_matcher(config),
                        timeout=config.login_redirect_timeout_ms,
                    )
                except PlaywrightTimeout:
                    log.warning('No redirect after login within %d ms - re-checking page',
                                config.login_redirect_timeout_ms)
                await wait_for_network_idle(page, config.network_idle_timeout_ms)

                if await has_element(page, config.login_form_selector):
                    snapshot = await record_failure(page, 'login-failed', config)
                    log.error('Login failed: login form still present at %s (snapshot: %s)', page.url, snapshot)
                    return False
            except Exception as exc:
                snapshot = await record_failure(page, 'login-failed', config)
                log.error('Login failed: %s (snapshot: %s)', exc, snapshot)
                return False
    except PageUnavailableError as exc:
        log.error('Login failed: %s', exc)
        return False

    log.info('Login successful')
    return True
