"""Shared fixtures for browser-session integration tests.

These fixtures launch a real headless Chromium browser via Patchright.
Every test gets a fresh browser instance (function-scoped) for isolation.
"""

from __future__ import annotations

import urllib.parse
from pathlib import Path

import pytest

from browser_session.config import SessionConfig
from browser_session.lifecycle import initialize, shutdown
from browser_session.state import SessionState

# ---------------------------------------------------------------------------
# Test HTML page served via data: URL (no external HTTP server needed)
# ---------------------------------------------------------------------------

TEST_HTML = "data:text/html," + urllib.parse.quote(
    """<html><head><title>Test Page</title></head><body>
<h1>Test Page</h1>
<p id="para">Some text</p>
<form onsubmit="return false">
  <input type="text" name="username" id="username" placeholder="Enter username">
  <input type="checkbox" name="agree" id="agree-cb">
  <button type="button" id="submit-btn"
          onclick="document.getElementById('para').textContent='clicked'">Submit</button>
</form>
<select id="color"><option value="red">Red</option><option value="blue">Blue</option></select>
<script>console.log("page loaded")</script>
</body></html>"""
)


@pytest.fixture
def integration_config(tmp_path: Path) -> SessionConfig:
    """Headless config with output dirs under tmp_path."""
    return SessionConfig(base_dir=tmp_path / "browser-session")


@pytest.fixture
async def session_real(integration_config: SessionConfig) -> SessionState:
    """Launch a real headless browser, yield its SessionState, then shut down."""
    try:
        state = await initialize(integration_config)
    except Exception as e:
        pytest.skip(f"Chromium is not available: {e}")
    try:
        yield state  # type: ignore[misc]
    finally:
        await shutdown(state)


@pytest.fixture
def html_url() -> str:
    """data: URL of the shared test page."""
    return TEST_HTML
