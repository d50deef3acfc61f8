#!/usr/bin/env python3
"""
Bounty Report Scraper
Lists bug-bounty reports by status and prints a report as markdown.
Requires: pip install -e . && playwright install chromium

Configuration comes from the environment (or a .env file):
    BOUNTY_EMAIL / BOUNTY_PASSWORD   portal credentials (required)
    REPORT_FILTER                    status filter, default "Escalated"
    REPORT_ID                        optional report to convert to markdown
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from report_scraper import (
    Credentials,
    ReportSummary,
    ScrapeConfig,
    ensure_session,
    fetch_report_detail,
    fetch_reports,
    normalize_report_id,
    open_session,
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='[%(levelname)s] %(message)s',
)
log = logging.getLogger(__name__)

DEFAULT_FILTER = 'Escalated'
RULE = '=' * 60


def format_report(index: int, report: ReportSummary) -> str:
    """One console block per listed report."""
    badges = ', '.join(b for b in ('Unread' if report.unread else 'Read', 'Stale' if report.stale else '') if b)
    return '\n'.join([
        f'[{index}] {report.id} {report.title} [{badges}]',
        f'    Severity: {report.severity} | Type: {report.type} | Status: {report.status}',
        f'    Whitehat: {report.whitehat_or_level} | SLA: {report.sla_state}',
        f'    Date: {report.submitted_date}',
        f'    Link: {report.link}',
        '',
    ])


async def run(status_filter: str, report_id: str, config: ScrapeConfig, credentials: Credentials) -> int:
    """List reports and optionally print one as markdown. Returns an exit code."""
    async with open_session(config) as session:
        if not await ensure_session(session, credentials, config):
            print(f'Login failed. Check screenshots in {config.diagnostics_dir}/ for debugging.',
                  file=sys.stderr)
            return 1

        result = await fetch_reports(session, status_filter, config)
        reports = result.value
        if result.degraded:
            log.warning('Listing may be incomplete: %s', result.reason)

        if reports:
            print(f'\n{RULE}')
            print(f'Found {len(reports)} "{status_filter}" Reports:')
            print(f'{RULE}\n')
            for idx, report in enumerate(reports, start=1):
                print(format_report(idx, report))
        else:
            print(f'\nNo "{status_filter}" reports found.')
            print(f'Check screenshots in {config.diagnostics_dir}/ directory for debugging.')

        if not report_id or not reports:
            return 0

        target_id = normalize_report_id(report_id)
        match = next((r for r in reports if r.id == target_id), None)
        if match is None:
            print(f'\nReport {target_id} not found in "{status_filter}" list.', file=sys.stderr)
            print(f'Available IDs: {", ".join(r.id for r in reports)}', file=sys.stderr)
            return 1

        print(f'\nFetching detail for {match.id} {match.title}...')
        detail = await fetch_report_detail(session, match.link, config)
        if not detail.value:
            print('\nFailed to fetch report detail.')
            print(f'Check screenshots in {config.diagnostics_dir}/ directory for debugging.')
            return 0

        print(f'\n{RULE}')
        print('Report Detail (Markdown):')
        print(f'{RULE}\n')
        print(detail.value)
    return 0


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='List bug-bounty reports and convert one to markdown.')
    parser.add_argument('--filter', default=os.getenv('REPORT_FILTER') or DEFAULT_FILTER,
                        help='Status filter, or "all" (default: %(default)s)')
    parser.add_argument('--report-id', default=os.getenv('REPORT_ID', ''),
                        help='Report id to print as markdown, with or without "#"')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """CLI entry point."""
    load_dotenv()
    args = parse_args(argv)

    credentials = Credentials.from_env()
    if not credentials.complete:
        print('Error: BOUNTY_EMAIL and BOUNTY_PASSWORD must be set (environment or .env).',
              file=sys.stderr)
        return 1

    config = ScrapeConfig.from_env()
    if args.headed:
        config.headless = False

    print(f'Report filter: {args.filter}')
    return asyncio.run(run(args.filter, args.report_id, config, credentials))


if __name__ == '__main__':
    sys.exit(main())
