"""Failure snapshots.

Best-effort full-page screenshots written to the diagnostics directory
when a login, list or detail extraction fails. Nothing here ever raises.
"""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from playwright.async_api import Page

from .models import ScrapeConfig

log = logging.getLogger(__name__)

_UNSAFE_TAG_CHARS = re.compile(r'[^A-Za-z0-9_.-]+')


def ensure_dir(path: Path) -> Path:
    """Create ``path`` (and parents) if missing."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def snapshot_path(config: ScrapeConfig, tag: str) -> Path:
    """Screenshot file name for a tag, e.g. .auth/login-failed-20240101_120000_123456.png."""
    safe_tag = _UNSAFE_TAG_CHARS.sub('_', tag).strip('_') or 'failure'
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
    return config.diagnostics_path / f'{safe_tag}-{timestamp}.png'


async def record_failure(page: Optional[Page], tag: str, config: ScrapeConfig) -> Optional[Path]:
    """Capture a full-page screenshot named by ``tag``.

    Returns the written path, or None when capture was not possible.
    """
    if page is None:
        return None
    try:
        ensure_dir(config.diagnostics_path)
        path = snapshot_path(config, tag)
        await page.screenshot(path=str(path), full_page=True)
        log.info('Saved diagnostic screenshot: %s', path)
        return path
    except Exception as exc:
        log.debug('Diagnostic screenshot %s failed: %s', tag, exc)
        return None
