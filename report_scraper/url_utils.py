"""URL helpers: listing/report address building, id normalisation, link resolution."""

import logging
from urllib.parse import urlencode, urljoin, urlparse

from .models import ScrapeConfig
from .patterns import REPORT_ID_IN_URL_RE

log = logging.getLogger(__name__)


def normalize_filter(status_filter: str) -> str:
    """Lower-case and trim a status filter; blank means 'all'."""
    token = (status_filter or '').strip().lower()
    return token or 'all'


def build_reports_url(config: ScrapeConfig, status_filter: str) -> str:
    """Listing address for a status filter. 'all' omits the query parameter."""
    url = urljoin(config.landing_url, config.reports_path.lstrip('/'))
    token = normalize_filter(status_filter)
    if token == 'all':
        return url
    return f'{url}?{urlencode({"status": token})}'


def normalize_report_id(raw_id: str) -> str:
    """Return the portal form of an id ('123' or '#123' -> '#123')."""
    value = (raw_id or '').strip()
    if not value:
        return ''
    return value if value.startswith('#') else f'#{value}'


def build_report_url(config: ScrapeConfig, raw_id: str) -> str:
    """Detail address for a report id, with or without a leading '#'."""
    digits = normalize_report_id(raw_id).lstrip('#')
    path = config.report_path_template.format(id=digits)
    return urljoin(config.landing_url, path.lstrip('/'))


def report_id_from_url(url: str) -> str:
    """Recover '#<digits>' from a report address, or '' if none."""
    match = REPORT_ID_IN_URL_RE.search(urlparse(url or '').path)
    return f'#{match.group(1)}' if match else ''


def absolute_link(base_url: str, href: str) -> str:
    """Resolve a possibly-relative href against the portal base."""
    if not href:
        return ''
    parsed = urlparse(href)
    if parsed.scheme and parsed.netloc:
        return href
    return urljoin(base_url.rstrip('/') + '/', href)
