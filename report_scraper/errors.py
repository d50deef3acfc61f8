"""Exceptions raised past the scraper boundary.

Only precondition failures are raised. Navigation, layout and content
problems degrade to boolean or empty results inside each component.
"""


class ScraperError(Exception):
    """Base class for scraper errors."""


class MissingCredentialsError(ScraperError, ValueError):
    """Login was attempted without an identifier or secret."""

    def __init__(self, message: str = 'BOUNTY_EMAIL and BOUNTY_PASSWORD must both be set'):
        super().__init__(message)


class PageUnavailableError(ScraperError):
    """The browser context could not hand out a new page."""
