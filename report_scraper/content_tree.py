"""Content-tree snapshot and query layer.

The detail page is captured in a single browser round-trip as a tree of
plain dicts (tag, rendered text, class, children) and then inspected in
Python. All structural lookups used by the detail extractor (label
adjacency, largest qualifying block, heading scans) are expressed as
queries over this tree rather than as per-field DOM traversals.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional

from playwright.async_api import Page

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Batched JS snapshot (single browser round-trip)
# ---------------------------------------------------------------------------

_SNAPSHOT_JS = '''
() => {
    const SKIP = new Set(['SCRIPT', 'STYLE', 'NOSCRIPT', 'SVG', 'TEMPLATE', 'LINK', 'META', 'IFRAME']);
    const walk = (el) => {
        const children = [];
        for (const child of el.children) {
            if (!SKIP.has(child.tagName.toUpperCase())) {
                children.push(walk(child));
            }
        }
        const text = el.innerText !== undefined ? el.innerText : (el.textContent || '');
        const cls = typeof el.className === 'string' ? el.className : '';
        return {tag: el.tagName.toLowerCase(), text: text || '', cls, children};
    };
    return document.body ? walk(document.body) : null;
}
'''

HEADING_TAGS = frozenset({'h1', 'h2', 'h3', 'h4', 'h5', 'h6'})
BLOCK_TAGS = frozenset({'div', 'section', 'article', 'main'})
CODE_TAGS = frozenset({'pre', 'code'})
LIST_TAGS = frozenset({'ul', 'ol'})


@dataclass
class ContentNode:
    """One element of a captured page."""
    tag: str
    text: str = ''
    cls: str = ''
    children: list = field(default_factory=list)
    parent: Optional['ContentNode'] = field(default=None, repr=False, compare=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def clean_text(self) -> str:
        return self.text.strip()

    @property
    def text_length(self) -> int:
        return len(self.clean_text)

    def next_sibling(self) -> Optional['ContentNode']:
        """Next element sibling, or None."""
        if self.parent is None:
            return None
        siblings = self.parent.children
        for idx, sibling in enumerate(siblings):
            if sibling is self:
                return siblings[idx + 1] if idx + 1 < len(siblings) else None
        return None

    def has_ancestor(self, tags: Iterable[str], stop: Optional['ContentNode'] = None) -> bool:
        """True if any ancestor below ``stop`` has one of ``tags``."""
        wanted = frozenset(tags)
        node = self.parent
        while node is not None and node is not stop:
            if node.tag in wanted:
                return True
            node = node.parent
        return False


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def node_from_dict(data: dict, parent: Optional[ContentNode] = None) -> ContentNode:
    """Build a ContentNode tree from the snapshot JS output."""
    node = ContentNode(
        tag=(data.get('tag') or '').lower(),
        text=data.get('text') or '',
        cls=data.get('cls') or '',
        parent=parent,
    )
    node.children = [node_from_dict(child, node) for child in data.get('children') or []]
    return node


def build_node(tag: str, *children: ContentNode, text: Optional[str] = None, cls: str = '') -> ContentNode:
    """Assemble a node by hand; text defaults to the children's joined text."""
    if text is None:
        text = '\n'.join(child.text for child in children if child.text)
    node = ContentNode(tag=tag, text=text, cls=cls, children=list(children))
    for child in children:
        child.parent = node
    return node


async def snapshot_page(page: Page) -> Optional[ContentNode]:
    """Capture the rendered body of ``page`` as a ContentNode tree."""
    data = await page.evaluate(_SNAPSHOT_JS)
    if not data:
        log.debug('Snapshot returned no body')
        return None
    return node_from_dict(data)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def iter_descendants(root: ContentNode) -> Iterator[ContentNode]:
    """Yield every descendant of ``root`` in document order."""
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_all(
    root: ContentNode,
    tags: Optional[Iterable[str]] = None,
    predicate: Optional[Callable[[ContentNode], bool]] = None,
) -> list[ContentNode]:
    """Descendants matching a tag set and/or predicate, in document order."""
    wanted = frozenset(tags) if tags is not None else None
    matches = []
    for node in iter_descendants(root):
        if wanted is not None and node.tag not in wanted:
            continue
        if predicate is not None and not predicate(node):
            continue
        matches.append(node)
    return matches


def find_first(
    root: ContentNode,
    tags: Optional[Iterable[str]] = None,
    predicate: Optional[Callable[[ContentNode], bool]] = None,
) -> Optional[ContentNode]:
    wanted = frozenset(tags) if tags is not None else None
    for node in iter_descendants(root):
        if wanted is not None and node.tag not in wanted:
            continue
        if predicate is None or predicate(node):
            return node
    return None


def find_leaf_with_text(root: ContentNode, label: str) -> Optional[ContentNode]:
    """First element with no element children whose exact text is ``label``."""
    return find_first(root, predicate=lambda n: n.is_leaf and n.clean_text == label)


def contains_any(root: ContentNode, tags: Iterable[str]) -> bool:
    return find_first(root, tags=tags) is not None


def largest_block(
    root: ContentNode,
    min_text: int,
    required_tags: Iterable[str],
    block_tags: Iterable[str] = BLOCK_TAGS,
) -> Optional[ContentNode]:
    """Block element with the most text among those above ``min_text``
    that contain at least one of ``required_tags``.

    Ties keep the first in document order.
    """
    required = frozenset(required_tags)
    best = None
    for node in find_all(root, tags=block_tags, predicate=lambda n: n.text_length > min_text):
        if not contains_any(node, required):
            continue
        if best is None or node.text_length > best.text_length:
            best = node
    return best
