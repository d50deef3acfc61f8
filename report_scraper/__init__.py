"""Bounty Report Scraper – core package.

Re-exports all public symbols so consumers can do:
    from report_scraper import open_session, list_reports, ScrapeConfig
"""

# Models
from .models import (  # noqa: F401
    Credentials,
    ReportSummary,
    ExtractionResult,
    ScrapeConfig,
    STATUS_SUCCESS,
    STATUS_DEGRADED,
    STATUS_FAILED,
)

# Errors
from .errors import ScraperError, MissingCredentialsError, PageUnavailableError  # noqa: F401

# URL utilities
from .url_utils import (  # noqa: F401
    build_reports_url,
    build_report_url,
    normalize_report_id,
    report_id_from_url,
    absolute_link,
)

# Content tree
from .content_tree import ContentNode, build_node, node_from_dict  # noqa: F401

# Session
from .session import open_session, check_valid, ensure_session  # noqa: F401
from .login import login  # noqa: F401

# Diagnostics
from .diagnostics import record_failure  # noqa: F401

# Listing
from .listing import (  # noqa: F401
    LAYOUT_FLAT,
    LAYOUT_COMPOSITE,
    classify_row_layout,
    parse_composite_cell,
    parse_row,
    parse_rows,
    fetch_reports,
    list_reports,
)

# Detail
from .detail import (  # noqa: F401
    render_document,
    convert_body,
    fetch_report_detail,
    get_report_detail,
)
