"""Data classes used throughout the scraper.

All structured types for report records, credentials, configuration and
extraction outcomes live here so they can be imported cleanly by every
other module.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


# ---------------------------------------------------------------------------
# Extraction outcome statuses
# ---------------------------------------------------------------------------

STATUS_SUCCESS = 'success'
STATUS_DEGRADED = 'degraded'   # A wait timed out; value holds partial data.
STATUS_FAILED = 'failed'       # Extraction raised; value is the empty sentinel.


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class Credentials:
    """Portal login pair."""
    identifier: str = ''
    secret: str = ''

    @property
    def complete(self) -> bool:
        return bool(self.identifier and self.secret)

    @classmethod
    def from_env(cls) -> 'Credentials':
        return cls(
            identifier=os.getenv('BOUNTY_EMAIL', ''),
            secret=os.getenv('BOUNTY_PASSWORD', ''),
        )


@dataclass
class ReportSummary:
    """One row of the report listing."""
    id: str = ''
    title: str = ''
    submitted_date: str = ''
    status: str = ''
    severity: str = ''
    type: str = ''
    assignee_or_reporter: str = ''
    whitehat_or_level: str = ''
    sla_state: str = ''
    last_update: str = ''
    unread: bool = False
    stale: bool = False
    link: str = ''

    def to_dict(self) -> dict:
        """Serialise with the camelCase keys exposed over HTTP."""
        return {
            'id': self.id,
            'title': self.title,
            'submittedDate': self.submitted_date,
            'status': self.status,
            'severity': self.severity,
            'type': self.type,
            'assigneeOrReporter': self.assignee_or_reporter,
            'whitehatOrLevel': self.whitehat_or_level,
            'slaState': self.sla_state,
            'lastUpdate': self.last_update,
            'unread': self.unread,
            'stale': self.stale,
            'link': self.link,
        }


@dataclass
class ExtractionResult:
    """Outcome of a list or detail extraction.

    ``value`` is always usable: a list of ReportSummary or a markdown string.
    On failure it is the empty sentinel, so callers that only look at the
    value keep the old ambiguous-empty behaviour.
    """
    status: str
    value: Any
    reason: str = ''

    @property
    def ok(self) -> bool:
        return self.status != STATUS_FAILED

    @property
    def degraded(self) -> bool:
        return self.status == STATUS_DEGRADED


@dataclass
class ScrapeConfig:
    """Config for a scraping session."""
    base_url: str = 'https://bugs.immunefi.com'
    reports_path: str = '/dashboard/reports'
    report_path_template: str = '/dashboard/submission/{id}'
    profile_dir: str = '.auth/profile'
    diagnostics_dir: str = '.auth'
    headless: bool = True
    viewport_width: int = 1440
    viewport_height: int = 900
    navigation_timeout_ms: int = 30000
    network_idle_timeout_ms: int = 15000
    login_redirect_timeout_ms: int = 20000
    table_timeout_ms: int = 20000
    poll_interval_ms: int = 500
    content_timeout_ms: int = 15000
    identifier_selector: str = 'input[type="email"], input[name="email"]'
    secret_selector: str = 'input[type="password"]'
    submit_selector: str = 'button[type="submit"]'
    login_form_selector: str = 'input[type="password"]'
    content_ready_selector: str = 'h2:has-text("Details")'
    authenticated_url_patterns: list = field(default_factory=lambda: [
        r'/dashboard',
        r'/reports',
        r'/submission',
    ])
    user_agent: str = ''

    @property
    def landing_url(self) -> str:
        return self.base_url.rstrip('/') + '/'

    @property
    def profile_path(self) -> Path:
        return Path(self.profile_dir)

    @property
    def diagnostics_path(self) -> Path:
        return Path(self.diagnostics_dir)

    @classmethod
    def from_env(cls, **overrides) -> 'ScrapeConfig':
        """Build a config from BOUNTY_* environment variables."""
        defaults = cls()
        config = cls(
            base_url=os.getenv('BOUNTY_BASE_URL', defaults.base_url),
            reports_path=os.getenv('BOUNTY_REPORTS_PATH', defaults.reports_path),
            report_path_template=os.getenv('BOUNTY_REPORT_PATH_TEMPLATE', defaults.report_path_template),
            profile_dir=os.getenv('BOUNTY_PROFILE_DIR', defaults.profile_dir),
            diagnostics_dir=os.getenv('BOUNTY_DIAGNOSTICS_DIR', defaults.diagnostics_dir),
            headless=_env_bool('BOUNTY_HEADLESS', defaults.headless),
            user_agent=os.getenv('BOUNTY_USER_AGENT', defaults.user_agent),
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config
