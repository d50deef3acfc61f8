"""Tests for report listing parsing and extraction.

The listing table has shipped in both a flat and a composite layout, so
most of these tests pin down that both shapes produce the same records.
"""

import asyncio
import re

import pytest
from report_scraper import (
    LAYOUT_COMPOSITE,
    LAYOUT_FLAT,
    STATUS_DEGRADED,
    STATUS_FAILED,
    STATUS_SUCCESS,
    classify_row_layout,
    fetch_reports,
    list_reports,
    parse_composite_cell,
    parse_row,
    parse_rows,
)
from report_scraper import listing
from report_scraper.listing import (
    detail_column_index,
    is_placeholder_row,
    table_ready,
    table_settled_empty,
)


COMPOSITE_ROW = [
    '#123\nMy Title\nUnread\nCritical\nSmart Contract',
    'Jan 5, 2025',
    'Escalated',
    'alice',
    'whitehat_01',
    'On track',
    '2h ago',
]

FLAT_ROW = [
    '#456',
    'Oracle manipulation',
    'Feb 1, 2025',
    'Escalated',
    'High',
    'Blockchain/DLT',
    'bob',
    'Level 3',
    'Breached',
    '1d ago',
]


def _evaluate_for(cell_texts, rows):
    """page.evaluate side effect answering the two listing scripts."""
    async def _evaluate(script, *args):
        if script is listing._READ_ROWS_JS:
            return rows
        return cell_texts
    return _evaluate


class TestTableReady:
    """Tests for the table loading predicate."""

    def test_empty_table_not_ready(self):
        assert table_ready([]) is False

    def test_single_cell_not_ready(self):
        """A single spanning cell is a placeholder, not data."""
        assert table_ready(['No reports']) is False

    def test_loading_text_not_ready(self):
        assert table_ready(['#1', 'Loading...', 'x']) is False

    def test_loading_is_case_insensitive(self):
        assert table_ready(['#1', 'LOADING', 'x']) is False

    def test_real_rows_ready(self):
        assert table_ready(['#1', 'Title', 'High']) is True

    def test_missing_table_not_ready(self):
        assert table_ready(None) is False


class TestTableSettledEmpty:
    """Tests for telling an empty table apart from one still loading."""

    def test_no_cells(self):
        assert table_settled_empty([]) is True

    def test_placeholder_cell(self):
        assert table_settled_empty(['No reports found']) is True

    def test_loading_placeholder(self):
        assert table_settled_empty(['Loading...']) is False

    def test_no_table_element(self):
        assert table_settled_empty(None) is False

    def test_rows_present(self):
        assert table_settled_empty(['#1', 'Title']) is False


class TestClassifyRowLayout:
    """Tests for the layout classifier."""

    def test_composite_cell(self):
        assert classify_row_layout(COMPOSITE_ROW) == LAYOUT_COMPOSITE

    def test_flat_row(self):
        assert classify_row_layout(FLAT_ROW) == LAYOUT_FLAT

    def test_empty_row_is_flat(self):
        assert classify_row_layout([]) == LAYOUT_FLAT

    def test_id_with_badges_only_is_flat(self):
        """An id cell carrying only badges is still one field."""
        assert classify_row_layout(['#9\nUnread', 'Title']) == LAYOUT_FLAT

    def test_multiline_without_id_is_flat(self):
        """Several lines that do not start with an id are not composite."""
        assert classify_row_layout(['Some title\nsecond line', 'x']) == LAYOUT_FLAT

    def test_composite_after_selection_column(self):
        """A blank checkbox column before the composite cell is skipped."""
        row = [''] + COMPOSITE_ROW
        assert detail_column_index(row) == 1
        assert classify_row_layout(row) == LAYOUT_COMPOSITE

    def test_blank_id_cell_stays_at_zero(self):
        """A genuinely blank id cell is not mistaken for a checkbox column."""
        assert detail_column_index(['', 'Some title', 'High']) == 0


class TestParseCompositeCell:
    """Tests for composite cell parsing."""

    def test_badges_removed_before_positional_assignment(self):
        parsed = parse_composite_cell('#123\nMy Title\nUnread\nCritical\nSmart Contract')
        assert parsed['id'] == '#123'
        assert parsed['title'] == 'My Title'
        assert parsed['severity'] == 'Critical'
        assert parsed['type'] == 'Smart Contract'
        assert parsed['unread'] is True
        assert parsed['stale'] is False
        assert 'Unread' not in parsed.values()

    def test_both_badges(self):
        parsed = parse_composite_cell('#7\nStale\nTitle\nUnread\nLow\nWebsite')
        assert parsed['unread'] is True
        assert parsed['stale'] is True
        assert (parsed['title'], parsed['severity'], parsed['type']) == ('Title', 'Low', 'Website')

    def test_blank_lines_ignored(self):
        parsed = parse_composite_cell('\n#8\n\n  Title  \n\nMedium\n')
        assert parsed['id'] == '#8'
        assert parsed['title'] == 'Title'
        assert parsed['severity'] == 'Medium'
        assert parsed['type'] == ''

    def test_bare_digits_gain_hash(self):
        assert parse_composite_cell('55\nTitle')['id'] == '#55'


class TestParseRow:
    """Tests for full row parsing in both layouts."""

    def test_composite_row(self, scrape_config):
        report = parse_row(COMPOSITE_ROW, '/dashboard/submission/123', scrape_config)
        assert report.id == '#123'
        assert report.title == 'My Title'
        assert report.severity == 'Critical'
        assert report.type == 'Smart Contract'
        assert report.submitted_date == 'Jan 5, 2025'
        assert report.status == 'Escalated'
        assert report.assignee_or_reporter == 'alice'
        assert report.whitehat_or_level == 'whitehat_01'
        assert report.sla_state == 'On track'
        assert report.last_update == '2h ago'
        assert report.unread is True
        assert report.link == 'https://portal.example.com/dashboard/submission/123'

    def test_flat_row(self, scrape_config):
        report = parse_row(FLAT_ROW, 'https://portal.example.com/dashboard/submission/456', scrape_config)
        assert report.id == '#456'
        assert report.title == 'Oracle manipulation'
        assert report.submitted_date == 'Feb 1, 2025'
        assert report.severity == 'High'
        assert report.type == 'Blockchain/DLT'
        assert report.whitehat_or_level == 'Level 3'
        assert report.sla_state == 'Breached'
        assert report.unread is False

    def test_flat_row_badges_in_title_cell(self, scrape_config):
        """Badges in flat layouts set flags and are dropped from the text."""
        row = ['#10', 'Title\nStale', 'Mar 1']
        report = parse_row(row, '', scrape_config)
        assert report.title == 'Title'
        assert report.stale is True

    def test_missing_href_builds_link_from_id(self, scrape_config):
        report = parse_row(FLAT_ROW, '', scrape_config)
        assert report.link == 'https://portal.example.com/dashboard/submission/456'

    def test_blank_id_cell(self, scrape_config):
        report = parse_row(['', 'Untitled', 'Mar 1'], '', scrape_config)
        assert report.id == ''
        assert report.title == 'Untitled'
        assert report.link == ''

    def test_non_id_first_cell_gives_blank_id(self, scrape_config):
        """A title shifted into the id column never becomes the id."""
        report = parse_row(['Oracle manipulation', 'Feb 1, 2025', 'Escalated'], '', scrape_config)
        assert report.id == ''
        assert report.link == ''

    def test_id_embedded_in_text(self, scrape_config):
        report = parse_row(['Report #77 (dup)', 'Title', 'Mar 1'], '', scrape_config)
        assert report.id == '#77'

    def test_short_row_leaves_defaults(self, scrape_config):
        report = parse_row(['#1', 'Only two'], '', scrape_config)
        assert report.status == ''
        assert report.last_update == ''


class TestParseRows:
    """Tests for parsing a list of raw rows."""

    def test_zero_rows(self, scrape_config):
        assert parse_rows([], scrape_config) == []

    def test_placeholder_row_skipped(self, scrape_config):
        rows = [{'cells': ['No reports found'], 'href': ''}]
        assert parse_rows(rows, scrape_config) == []
        assert is_placeholder_row(['No reports found'], '') is True

    def test_order_preserved(self, scrape_config):
        rows = [
            {'cells': FLAT_ROW, 'href': '/dashboard/submission/456'},
            {'cells': COMPOSITE_ROW, 'href': '/dashboard/submission/123'},
        ]
        assert [r.id for r in parse_rows(rows, scrape_config)] == ['#456', '#123']

    def test_ids_match_report_pattern(self, scrape_config):
        """Every parsed id is '#<digits>' or empty."""
        rows = [
            {'cells': FLAT_ROW, 'href': ''},
            {'cells': COMPOSITE_ROW, 'href': ''},
            {'cells': ['789', 'Bare id', 'x'], 'href': ''},
            {'cells': ['', 'Blank id', 'x'], 'href': ''},
            {'cells': ['Oracle manipulation', 'Shifted', 'x'], 'href': ''},
        ]
        for report in parse_rows(rows, scrape_config):
            assert report.id == '' or re.fullmatch(r'#\d+', report.id)

    def test_to_dict_uses_camel_case(self, scrape_config):
        data = parse_rows([{'cells': COMPOSITE_ROW, 'href': ''}], scrape_config)[0].to_dict()
        assert data['submittedDate'] == 'Jan 5, 2025'
        assert data['whitehatOrLevel'] == 'whitehat_01'
        assert data['slaState'] == 'On track'


class TestFetchReports:
    """Tests for the browser-side listing flow with a mocked page."""

    def test_success(self, mock_session, mock_page, scrape_config):
        rows = [{'cells': COMPOSITE_ROW, 'href': '/dashboard/submission/123'}]
        mock_page.evaluate.side_effect = _evaluate_for(COMPOSITE_ROW, rows)

        result = asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        assert result.status == STATUS_SUCCESS
        assert [r.id for r in result.value] == ['#123']
        mock_page.goto.assert_awaited_once()
        assert mock_page.goto.call_args.args[0].endswith('?status=escalated')
        mock_page.close.assert_awaited_once()

    def test_all_filter_navigates_without_parameter(self, mock_session, mock_page, scrape_config):
        mock_page.evaluate.side_effect = _evaluate_for(['a', 'b'], [])
        asyncio.run(fetch_reports(mock_session, 'all', scrape_config))
        assert '?' not in mock_page.goto.call_args.args[0]

    def test_timeout_degrades_with_partial_data(self, mock_session, mock_page, scrape_config):
        """A table stuck on 'Loading' still yields whatever rows exist."""
        rows = [{'cells': FLAT_ROW, 'href': ''}]
        mock_page.evaluate.side_effect = _evaluate_for(['Loading...', 'x'], rows)

        result = asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        assert result.status == STATUS_DEGRADED
        assert result.reason
        assert [r.id for r in result.value] == ['#456']
        mock_page.screenshot.assert_not_awaited()

    def test_zero_rows_is_success(self, mock_session, mock_page, scrape_config):
        """A table that finished loading with no rows is a real empty result."""
        mock_page.evaluate.side_effect = _evaluate_for([], [])

        result = asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        assert result.value == []
        assert result.status == STATUS_SUCCESS
        mock_page.screenshot.assert_not_awaited()

    def test_no_reports_placeholder_is_success(self, mock_session, mock_page, scrape_config):
        rows = [{'cells': ['No reports found'], 'href': ''}]
        mock_page.evaluate.side_effect = _evaluate_for(['No reports found'], rows)

        result = asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        assert result.value == []
        assert result.status == STATUS_SUCCESS

    def test_missing_table_degrades(self, mock_session, mock_page, scrape_config):
        mock_page.evaluate.side_effect = _evaluate_for(None, [])

        result = asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        assert result.value == []
        assert result.status == STATUS_DEGRADED
        mock_page.screenshot.assert_not_awaited()

    def test_navigation_error_returns_empty_and_snapshots(self, mock_session, mock_page, scrape_config):
        mock_page.goto.side_effect = RuntimeError('net::ERR_CONNECTION_REFUSED')

        result = asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        assert result.status == STATUS_FAILED
        assert result.value == []
        assert 'ERR_CONNECTION_REFUSED' in result.reason
        mock_page.screenshot.assert_awaited_once()
        mock_page.close.assert_awaited_once()

    def test_list_reports_returns_plain_list(self, mock_session, mock_page, scrape_config):
        mock_page.goto.side_effect = RuntimeError('boom')
        assert asyncio.run(list_reports(mock_session, 'Escalated', scrape_config)) == []

    def test_failure_log_names_snapshot(self, mock_session, mock_page, scrape_config, caplog):
        mock_page.goto.side_effect = RuntimeError('boom')

        with caplog.at_level('ERROR', logger='report_scraper.listing'):
            asyncio.run(fetch_reports(mock_session, 'Escalated', scrape_config))

        path = mock_page.screenshot.call_args.kwargs['path']
        assert path in caplog.text

    def test_closed_context_returns_failed(self, closed_session, scrape_config):
        """A crashed browser context is reported, not raised."""
        result = asyncio.run(fetch_reports(closed_session, 'Escalated', scrape_config))

        assert result.status == STATUS_FAILED
        assert result.value == []
        assert 'has been closed' in result.reason

    def test_closed_context_list_reports_is_empty(self, closed_session, scrape_config):
        assert asyncio.run(list_reports(closed_session, 'Escalated', scrape_config)) == []
