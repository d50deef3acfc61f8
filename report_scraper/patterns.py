"""Pre-compiled pattern tables for the report portal.

Holds the regexes and label sets shared by the list and detail extractors:
report id shapes, badge tokens, reserved section headings and the metadata
label table.
"""

import re


# ---------------------------------------------------------------------------
# Report identifiers
# ---------------------------------------------------------------------------

# Leading line of a composite listing cell, with or without the hash.
REPORT_ID_TOKEN_RE = re.compile(r'^#?\d+$')
# Trailing numeric segment of a report address.
REPORT_ID_IN_URL_RE = re.compile(r'/(\d+)/?(?:[?#].*)?$')


# ---------------------------------------------------------------------------
# Listing table
# ---------------------------------------------------------------------------

# Short status labels rendered inside the composite detail cell.
BADGE_TOKENS = frozenset({'unread', 'stale'})

LOADING_TEXT_RE = re.compile(r'\bloading\b', re.IGNORECASE)


# ---------------------------------------------------------------------------
# Detail page
# ---------------------------------------------------------------------------

# Generic page wrapper heading, never the real title.
WRAPPER_TITLE_RE = re.compile(r'^Bug Bounty Report\s*#', re.IGNORECASE)

RESERVED_HEADINGS = frozenset({'details', 'description', 'timeline'})

MIN_TITLE_LENGTH = 5
MIN_CONTAINER_TEXT = 200
MAX_SUBTITLE_LENGTH = 200
MAX_SUBTITLE_CHILDREN = 3

BODY_START_HEADING = 'details'
BODY_STOP_HEADINGS = frozenset({'timeline', 'attachments'})

# Labels whose value sits in the next sibling element.
SIBLING_VALUE_LABELS = ('Report ID', 'Report type', 'Has PoC?')
TARGET_LABEL = 'Target'
IMPACTS_LABEL = 'Impacts'

COPIED_SUFFIX_RE = re.compile(r'\s*Copied!\s*$')
SUBMITTED_RE = re.compile(r'^Submitted\b.*@\S+', re.DOTALL)

BLANK_RUN_RE = re.compile(r'\n{3,}')


def is_badge_token(line: str) -> bool:
    """Return True if a composite-cell line is a badge like 'Unread'."""
    return line.strip().lower() in BADGE_TOKENS


def is_reserved_heading(text: str) -> bool:
    return text.strip().lower() in RESERVED_HEADINGS
