"""Report listing extraction.

The listing table has shipped in two shapes:

* flat: one column per field, mapped positionally;
* composite: a single detail cell holding id, title, severity and type on
  separate lines, mixed with 'Unread' / 'Stale' badges, followed by the
  remaining fields one per column.

``classify_row_layout`` decides which shape a row has; both parsers emit
the same ReportSummary.
"""

import logging
import re
from typing import Optional

from playwright.async_api import BrowserContext, Page

from .diagnostics import record_failure
from .errors import PageUnavailableError
from .models import (
    ExtractionResult,
    ReportSummary,
    ScrapeConfig,
    STATUS_DEGRADED,
    STATUS_FAILED,
    STATUS_SUCCESS,
)
from .page_helpers import goto, poll_until, scoped_page
from .patterns import LOADING_TEXT_RE, REPORT_ID_TOKEN_RE, is_badge_token
from .url_utils import absolute_link, build_report_url, build_reports_url, normalize_report_id

log = logging.getLogger(__name__)

LAYOUT_FLAT = 'flat'
LAYOUT_COMPOSITE = 'composite'

FLAT_COLUMNS = (
    'id',
    'title',
    'submitted_date',
    'status',
    'severity',
    'type',
    'assignee_or_reporter',
    'whitehat_or_level',
    'sla_state',
    'last_update',
)

COMPOSITE_FIELDS = ('id', 'title', 'severity', 'type')

# Columns after the composite cell, in order.
COMPOSITE_TRAILING_COLUMNS = tuple(c for c in FLAT_COLUMNS if c not in COMPOSITE_FIELDS)

_EMBEDDED_ID_RE = re.compile(r'#\d+')


# ---------------------------------------------------------------------------
# Batched JS (single browser round-trip each)
# ---------------------------------------------------------------------------

_CELL_TEXTS_JS = '''
() => {
    const table = document.querySelector('table');
    if (!table) return null;
    return Array.from(table.querySelectorAll('td')).map(td => td.innerText || '');
}
'''

_READ_ROWS_JS = '''
() => {
    const table = document.querySelector('table');
    if (!table) return [];
    let rows = table.querySelectorAll('tbody tr');
    if (!rows.length) rows = table.querySelectorAll('tr');
    const results = [];
    for (const row of rows) {
        const cells = Array.from(row.querySelectorAll('td')).map(td => (td.innerText || '').trim());
        if (!cells.length) continue;
        const anchor = row.querySelector('a[href]');
        results.push({cells, href: anchor ? anchor.getAttribute('href') : ''});
    }
    return results;
}
'''


# ---------------------------------------------------------------------------
# Pure parsing
# ---------------------------------------------------------------------------

def _still_loading(cell_texts: list[str]) -> bool:
    return any(LOADING_TEXT_RE.search(text or '') for text in cell_texts)


def table_ready(cell_texts: Optional[list[str]]) -> bool:
    """More than one cell and none still showing a loading placeholder."""
    if not cell_texts or len(cell_texts) <= 1:
        return False
    return not _still_loading(cell_texts)


def table_settled_empty(cell_texts: Optional[list[str]]) -> bool:
    """The table is rendered and done loading but holds no data rows.

    None means no table element at all, which is not the same thing.
    """
    if cell_texts is None or len(cell_texts) > 1:
        return False
    return not _still_loading(cell_texts)


def _lines(text: str) -> list[str]:
    return [line.strip() for line in (text or '').split('\n') if line.strip()]


def _strip_badges(text: str) -> tuple[list[str], set]:
    """Split cell text into content lines and the badge tokens found."""
    content, badges = [], set()
    for line in _lines(text):
        if is_badge_token(line):
            badges.add(line.lower())
        else:
            content.append(line)
    return content, badges


def _clean_id(text: str) -> str:
    value = (text or '').strip()
    if not value:
        return ''
    if REPORT_ID_TOKEN_RE.match(value):
        return normalize_report_id(value)
    embedded = _EMBEDDED_ID_RE.search(value)
    return embedded.group(0) if embedded else ''


def detail_column_index(cells: list[str]) -> int:
    """Index of the id/detail column; skips a blank leading selection column."""
    if len(cells) > 1 and not cells[0].strip():
        content, _ = _strip_badges(cells[1])
        if content and REPORT_ID_TOKEN_RE.match(content[0]):
            return 1
    return 0


def classify_row_layout(cells: list[str]) -> str:
    """Return LAYOUT_COMPOSITE if the detail column stacks several fields
    under an id line, else LAYOUT_FLAT."""
    if not cells:
        return LAYOUT_FLAT
    content, _ = _strip_badges(cells[detail_column_index(cells)])
    if len(content) >= 2 and REPORT_ID_TOKEN_RE.match(content[0]):
        return LAYOUT_COMPOSITE
    return LAYOUT_FLAT


def parse_composite_cell(text: str) -> dict:
    """Parse a composite detail cell.

    Badge lines are removed and reported as flags; the remaining lines are
    assigned to id, title, severity and type in that order.
    """
    content, badges = _strip_badges(text)
    parsed = {name: '' for name in COMPOSITE_FIELDS}
    for name, value in zip(COMPOSITE_FIELDS, content):
        parsed[name] = value
    parsed['id'] = _clean_id(parsed['id'])
    parsed['unread'] = 'unread' in badges
    parsed['stale'] = 'stale' in badges
    return parsed


def _parse_flat(cells: list[str]) -> dict:
    parsed = {}
    badges = set()
    for name, text in zip(FLAT_COLUMNS, cells):
        content, found = _strip_badges(text)
        badges |= found
        parsed[name] = ' '.join(content)
    parsed['id'] = _clean_id(parsed.get('id', ''))
    parsed['unread'] = 'unread' in badges
    parsed['stale'] = 'stale' in badges
    return parsed


def _parse_composite_row(cells: list[str]) -> dict:
    parsed = parse_composite_cell(cells[0])
    for name, text in zip(COMPOSITE_TRAILING_COLUMNS, cells[1:]):
        content, badges = _strip_badges(text)
        parsed[name] = ' '.join(content)
        parsed['unread'] = parsed['unread'] or 'unread' in badges
        parsed['stale'] = parsed['stale'] or 'stale' in badges
    return parsed


def parse_row(cells: list[str], href: str, config: ScrapeConfig) -> ReportSummary:
    """Convert one table row into a ReportSummary."""
    cells = cells[detail_column_index(cells):]
    if classify_row_layout(cells) == LAYOUT_COMPOSITE:
        parsed = _parse_composite_row(cells)
    else:
        parsed = _parse_flat(cells)

    summary = ReportSummary(**parsed)
    if href:
        summary.link = absolute_link(config.base_url, href)
    elif summary.id:
        summary.link = build_report_url(config, summary.id)
    return summary


def is_placeholder_row(cells: list[str], href: str) -> bool:
    """Single-cell rows without a link ('No reports found', spinners)."""
    return len([c for c in cells if c.strip()]) <= 1 and not href


def parse_rows(rows: list[dict], config: ScrapeConfig) -> list[ReportSummary]:
    reports = []
    for row in rows:
        cells = row.get('cells') or []
        href = row.get('href') or ''
        if is_placeholder_row(cells, href):
            continue
        reports.append(parse_row(cells, href, config))
    return reports


# ---------------------------------------------------------------------------
# Browser side
# ---------------------------------------------------------------------------

async def wait_for_table(page: Page, config: ScrapeConfig) -> bool:
    """Poll until the table has real rows. False means the wait timed out."""
    async def _ready() -> bool:
        return table_ready(await page.evaluate(_CELL_TEXTS_JS))

    return await poll_until(_ready, config.table_timeout_ms, config.poll_interval_ms)


async def fetch_reports(session: BrowserContext, status_filter: str, config: ScrapeConfig) -> ExtractionResult:
    """List reports for a status filter, with an explicit outcome status."""
    url = build_reports_url(config, status_filter)
    try:
        async with scoped_page(session) as page:
            try:
                await goto(page, url, config)
                loaded = await wait_for_table(page, config)
                empty = False
                if not loaded:
                    empty = table_settled_empty(await page.evaluate(_CELL_TEXTS_JS))
                    if not empty:
                        log.warning('Report table still loading after %d ms - reading partial data',
                                    config.table_timeout_ms)
                rows = await page.evaluate(_READ_ROWS_JS)
                reports = parse_rows(rows or [], config)
            except Exception as exc:
                snapshot = await record_failure(page, 'list-failed', config)
                log.error('Failed to list reports (%s): %s (snapshot: %s)', status_filter, exc, snapshot)
                return ExtractionResult(STATUS_FAILED, [], reason=str(exc))
    except PageUnavailableError as exc:
        log.error('Failed to list reports (%s): %s', status_filter, exc)
        return ExtractionResult(STATUS_FAILED, [], reason=str(exc))

    log.info('Found %d report(s) for filter %s', len(reports), status_filter)
    if not loaded and not empty:
        return ExtractionResult(STATUS_DEGRADED, reports, reason='table did not finish loading')
    return ExtractionResult(STATUS_SUCCESS, reports)


async def list_reports(session: BrowserContext, status_filter: str, config: ScrapeConfig) -> list[ReportSummary]:
    """List reports; an empty list means none found or extraction failed."""
    result = await fetch_reports(session, status_filter, config)
    return result.value
