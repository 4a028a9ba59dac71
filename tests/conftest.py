"""Shared fixtures for browser-session tests."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from browser_session.config import SessionConfig
from browser_session.state import SessionState, SessionStatus


@pytest.fixture
def base_dir(tmp_path, monkeypatch):
    """Patch Path.home() so the default output dirs live under tmp_path."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    return tmp_path / ".browser-session"


@pytest.fixture
def default_config(base_dir):
    """Return a default SessionConfig rooted under tmp_path."""
    return SessionConfig()


@pytest.fixture
def config_file(tmp_path):
    """Write a config JSON file and return its path."""
    config = {
        "visible": True,
        "slow_mo": 250,
        "timeouts": {"action": 1500},
        "limits": {"text_max_length": 10},
    }
    path = tmp_path / "test-config.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


@pytest.fixture
def mock_page():
    """A MagicMock standing in for a Playwright Page."""
    page = MagicMock()
    page.url = "https://example.com/"
    page.title = AsyncMock(return_value="Example Domain")
    page.goto = AsyncMock()
    page.click = AsyncMock()
    page.fill = AsyncMock()
    page.select_option = AsyncMock()
    page.check = AsyncMock()
    page.uncheck = AsyncMock()
    page.hover = AsyncMock()
    page.press = AsyncMock()
    page.content = AsyncMock(return_value="<html><body>Example</body></html>")
    page.inner_text = AsyncMock(return_value="Example body text")
    page.evaluate = AsyncMock(return_value="Example Domain")
    page.wait_for_selector = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.wait_for_url = AsyncMock()
    page.on = MagicMock()
    page.video = None

    async def _screenshot(path=None, full_page=False):
        if path:
            Path(path).write_bytes(b"\x89PNG\r\n\x1a\n")
        return b"\x89PNG\r\n\x1a\n"

    page.screenshot = AsyncMock(side_effect=_screenshot)
    return page


@pytest.fixture
def mock_context(mock_page):
    """A MagicMock standing in for a Playwright BrowserContext."""
    ctx = MagicMock()
    ctx.new_page = AsyncMock(return_value=mock_page)
    ctx.cookies = AsyncMock(return_value=[])
    ctx.close = AsyncMock()
    return ctx


@pytest.fixture
def mock_browser(mock_context):
    """A MagicMock standing in for a Playwright Browser."""
    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def mock_playwright(mock_browser):
    """A MagicMock standing in for the started Playwright driver."""
    pw = MagicMock()
    pw.chromium.launch = AsyncMock(return_value=mock_browser)
    pw.stop = AsyncMock()
    return pw


@pytest.fixture
def ready_state(default_config, mock_playwright, mock_browser, mock_context, mock_page):
    """A SessionState in the READY status with mocked Playwright objects."""
    return SessionState(
        config=default_config,
        status=SessionStatus.READY,
        playwright=mock_playwright,
        browser=mock_browser,
        context=mock_context,
        page=mock_page,
    )
