"""Shared test fixtures and configuration."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from report_scraper import ScrapeConfig, build_node


@pytest.fixture
def scrape_config(tmp_path):
    """Config pointing at a fake portal with short waits."""
    return ScrapeConfig(
        base_url='https://portal.example.com',
        profile_dir=str(tmp_path / 'profile'),
        diagnostics_dir=str(tmp_path / 'diagnostics'),
        navigation_timeout_ms=1000,
        network_idle_timeout_ms=100,
        login_redirect_timeout_ms=100,
        table_timeout_ms=50,
        poll_interval_ms=10,
        content_timeout_ms=100,
    )


@pytest.fixture
def mock_page():
    """A Playwright page stand-in with every awaited method mocked."""
    page = MagicMock()
    page.url = 'https://portal.example.com/'
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_url = AsyncMock()
    page.query_selector = AsyncMock(return_value=None)
    page.evaluate = AsyncMock(return_value=None)
    page.fill = AsyncMock()
    page.screenshot = AsyncMock()
    page.close = AsyncMock()
    page.keyboard = MagicMock()
    page.keyboard.press = AsyncMock()
    return page


@pytest.fixture
def mock_session(mock_page):
    """A browser context that hands out ``mock_page``."""
    session = MagicMock()
    session.new_page = AsyncMock(return_value=mock_page)
    return session


@pytest.fixture
def report_tree():
    """A captured report page with header, metadata and a full body."""
    h = build_node
    metadata = h(
        'div',
        h('div', h('span', text='Report ID'), h('span', text='#4521')),
        h('div', h('span', text='Report type'), h('span', text='Smart Contract')),
        h('div', h('span', text='Has PoC?'), h('span', text='Yes')),
        h('div', h('span', text='Target'),
          h('div', h('code', text='https://github.com/acme/vault/blob/main/Vault.sol Copied!'),
            text='https://github.com/acme/vault/blob/main/Vault.sol\nCopied!')),
        h('div', h('span', text='Impacts'),
          h('ul', h('li', text='Direct theft of user funds'), h('li', text='Protocol insolvency'))),
    )
    body = h(
        'div',
        h('h2', text='Description'),
        h('p', text='Summary shown before details.'),
        h('h2', text='Details'),
        h('p', text='The withdraw function does not update balances before the external call, '
                    'which allows a reentrant caller to drain the vault.'),
        h('h3', text='Proof of Concept'),
        h('pre', text='function attack() external {\n    vault.withdraw(1 ether);\n}\n'),
        h('ol', h('li', text='Deposit 1 ETH'), h('li', text='Call attack()')),
        h('blockquote', text='Note:\nfunds at risk'),
        h('table',
          h('tr', h('th', text='Contract'), h('th', text='Impact')),
          h('tr', h('td', text='Vault'), h('td', text='a|b'))),
        h('h2', text='Timeline'),
        h('p', text='Report submitted by whitehat.'),
        h('h2', text='Attachments'),
        h('p', text='poc.zip'),
    )
    return h(
        'body',
        h('h1', text='Bug Bounty Report #4521'),
        h('h1', text='Reentrancy in Vault.withdraw drains funds'),
        h('div', h('span', text='Submitted 3 days ago by'), h('a', text='@whitehat'),
          text='Submitted 3 days ago by @whitehat'),
        metadata,
        body,
    )


@pytest.fixture
def closed_session():
    """A browser context that has crashed or been closed."""
    session = MagicMock()
    session.new_page = AsyncMock(side_effect=RuntimeError('Target page, context or browser has been closed'))
    return session
