"""Report detail extraction: rendered report page -> markdown document.

The page is captured once as a content tree (see content_tree) and every
step below is a query over that tree:

1. title: first meaningful heading, skipping the generic wrapper label
2. subtitle: the short 'Submitted ... @user' line
3. metadata: label/value pairs found by label text and structural adjacency
4. body: the largest content-bearing block, converted section by section
   between the 'Details' heading and the 'Timeline'/'Attachments' heading
"""

import logging
from typing import Optional

from playwright.async_api import BrowserContext

from . import markdown
from .content_tree import (
    CODE_TAGS,
    HEADING_TAGS,
    ContentNode,
    find_all,
    find_first,
    largest_block,
    snapshot_page,
)
from .diagnostics import record_failure
from .errors import PageUnavailableError
from .models import (
    ExtractionResult,
    ScrapeConfig,
    STATUS_DEGRADED,
    STATUS_FAILED,
    STATUS_SUCCESS,
)
from .page_helpers import goto, scoped_page, wait_for_selector_quietly
from .patterns import (
    BODY_START_HEADING,
    BODY_STOP_HEADINGS,
    COPIED_SUFFIX_RE,
    IMPACTS_LABEL,
    MAX_SUBTITLE_CHILDREN,
    MAX_SUBTITLE_LENGTH,
    MIN_CONTAINER_TEXT,
    MIN_TITLE_LENGTH,
    SIBLING_VALUE_LABELS,
    SUBMITTED_RE,
    TARGET_LABEL,
    WRAPPER_TITLE_RE,
    is_reserved_heading,
)

log = logging.getLogger(__name__)

BODY_NOT_FOUND_NOTE = '_Report body could not be located._'

TITLE_TAGS = frozenset({'h1', 'h2', 'h3', 'h4'})
BODY_TAGS = frozenset({'h2', 'h3', 'p', 'pre', 'ul', 'ol', 'blockquote', 'table'})
# Elements whose full text is emitted at once; matches nested inside are skipped.
_ATOMIC_TAGS = frozenset({'li', 'blockquote', 'table', 'pre'})
# How far above a label to look for its container.
_CONTAINER_LEVELS = 2


# ---------------------------------------------------------------------------
# Header: title, subtitle, metadata
# ---------------------------------------------------------------------------

def resolve_title(root: ContentNode) -> str:
    """First heading that is not the wrapper label or a section name."""
    headings = find_all(root, tags=TITLE_TAGS)
    for node in headings:
        text = node.clean_text
        if WRAPPER_TITLE_RE.match(text) or is_reserved_heading(text):
            continue
        if len(text) > MIN_TITLE_LENGTH:
            return text
    return headings[0].clean_text if headings else ''


def find_subtitle(root: ContentNode) -> str:
    node = find_first(
        root,
        predicate=lambda n: (
            len(n.children) <= MAX_SUBTITLE_CHILDREN
            and 0 < n.text_length <= MAX_SUBTITLE_LENGTH
            and SUBMITTED_RE.match(n.clean_text) is not None
        ),
    )
    if node is None:
        return ''
    return ' '.join(node.clean_text.split())


def _label_nodes(root: ContentNode, label: str) -> list[ContentNode]:
    return find_all(root, predicate=lambda n: n.is_leaf and n.clean_text == label)


def _containers(label_node: ContentNode):
    node = label_node.parent
    for _ in range(_CONTAINER_LEVELS):
        if node is None:
            return
        yield node
        node = node.parent


def _is_code_like(node: ContentNode) -> bool:
    if node.tag in CODE_TAGS:
        return True
    classes = node.cls.lower()
    return 'code' in classes or 'block' in classes


def _sibling_value(root: ContentNode, label: str) -> str:
    for node in _label_nodes(root, label):
        sibling = node.next_sibling()
        if sibling is not None and sibling.clean_text:
            return ' '.join(sibling.clean_text.split())
    return ''


def _target_value(root: ContentNode) -> str:
    for node in _label_nodes(root, TARGET_LABEL):
        for container in _containers(node):
            code = find_first(container, tags=CODE_TAGS) or find_first(
                container, predicate=lambda n: n is not node and _is_code_like(n),
            )
            if code is not None:
                value = COPIED_SUFFIX_RE.sub('', code.clean_text).strip()
                if value:
                    return value
    return ''


def _impacts(root: ContentNode) -> list[str]:
    for node in _label_nodes(root, IMPACTS_LABEL):
        for container in _containers(node):
            items = [li.clean_text for li in find_all(container, tags={'li'}) if li.clean_text]
            if items:
                return items
    return []


def extract_metadata(root: ContentNode) -> list[str]:
    """Bullet lines for the fixed label set; missing labels are omitted."""
    lines = []
    for label in SIBLING_VALUE_LABELS:
        value = _sibling_value(root, label)
        if value:
            lines.append(markdown.metadata_line(label, value))

    target = _target_value(root)
    if target:
        lines.append(markdown.metadata_line(TARGET_LABEL, target))

    impacts = _impacts(root)
    if impacts:
        lines.append(f'- **{IMPACTS_LABEL}:**')
        lines.extend(f'  - {item}' for item in impacts)
    return lines


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------

def find_content_root(root: ContentNode) -> Optional[ContentNode]:
    """Largest block with real text that holds a heading or code."""
    return largest_block(root, MIN_CONTAINER_TEXT, HEADING_TAGS | CODE_TAGS)


def _table_rows(node: ContentNode) -> list[list[str]]:
    rows = []
    for row in find_all(node, tags={'tr'}):
        cells = [cell.text for cell in row.children if cell.tag in ('th', 'td')]
        if cells:
            rows.append(cells)
    return rows


def _convert_node(node: ContentNode) -> list[str]:
    text = node.clean_text
    if node.tag == 'h2':
        return markdown.heading(2, text)
    if node.tag == 'h3':
        return markdown.heading(3, text)
    if node.tag == 'p':
        return markdown.paragraph(text) if text else []
    if node.tag == 'pre':
        return markdown.fenced_code(node.text)
    if node.tag in ('ul', 'ol'):
        items = [child.text for child in node.children if child.tag == 'li']
        return markdown.list_lines(items, ordered=node.tag == 'ol') if items else []
    if node.tag == 'blockquote':
        return markdown.blockquote(node.text) if text else []
    if node.tag == 'table':
        return markdown.table(_table_rows(node))
    return []


def convert_body(content_root: ContentNode) -> list[str]:
    """Markdown lines for the section between 'Details' and 'Timeline'.

    Nothing is emitted before the level-2 'Details' heading, which is
    written once as '## Details'. A level-2 'Timeline' or 'Attachments'
    heading ends the body.
    """
    lines: list[str] = []
    emitting = False
    for node in find_all(content_root, tags=BODY_TAGS):
        if node.has_ancestor(_ATOMIC_TAGS, stop=content_root):
            continue
        if node.tag == 'h2':
            key = node.clean_text.lower()
            if key in BODY_STOP_HEADINGS:
                break
            if key == BODY_START_HEADING:
                if not emitting:
                    emitting = True
                    lines.extend(markdown.heading(2, node.clean_text))
                continue
        if emitting:
            lines.extend(_convert_node(node))
    return lines


def render_document(root: ContentNode) -> str:
    """Assemble the full markdown document from a captured page."""
    parts: list[str] = []

    title = resolve_title(root)
    if title:
        parts.extend([f'# {title}', ''])

    subtitle = find_subtitle(root)
    if subtitle:
        parts.extend([f'> {subtitle}', ''])

    metadata = extract_metadata(root)
    if metadata:
        parts.extend(metadata + [''])

    content_root = find_content_root(root)
    if content_root is None:
        log.warning('No report body container found')
        parts.append(BODY_NOT_FOUND_NOTE)
    else:
        parts.extend(convert_body(content_root))

    return markdown.collapse_blank_lines('\n'.join(parts)).strip()


# ---------------------------------------------------------------------------
# Browser side
# ---------------------------------------------------------------------------

async def fetch_report_detail(session: BrowserContext, report_url: str, config: ScrapeConfig) -> ExtractionResult:
    """Convert one report page to markdown, with an explicit outcome status."""
    try:
        async with scoped_page(session) as page:
            try:
                await goto(page, report_url, config)
                loaded = await wait_for_selector_quietly(
                    page, config.content_ready_selector, config.content_timeout_ms,
                )
                root = await snapshot_page(page)
                if root is None:
                    raise ValueError('page has no document body')
                document = render_document(root)
            except Exception as exc:
                snapshot = await record_failure(page, 'detail-failed', config)
                log.error('Failed to extract report %s: %s (snapshot: %s)', report_url, exc, snapshot)
                return ExtractionResult(STATUS_FAILED, '', reason=str(exc))
    except PageUnavailableError as exc:
        log.error('Failed to extract report %s: %s', report_url, exc)
        return ExtractionResult(STATUS_FAILED, '', reason=str(exc))

    if not loaded:
        return ExtractionResult(STATUS_DEGRADED, document, reason='rich-text content did not mount')
    return ExtractionResult(STATUS_SUCCESS, document)


async def get_report_detail(session: BrowserContext, report_url: str, config: ScrapeConfig) -> str:
    """Markdown for a report, or '' if extraction failed."""
    result = await fetch_report_detail(session, report_url, config)
    return result.value
