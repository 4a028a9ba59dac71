"""Output directory management for browser-session.

Screenshots and recorded videos are written below a per-user base directory
(``~/.browser-session/`` unless configured otherwise):

    ~/.browser-session/
      screenshots/
        screenshot-1760877762123.png
      videos/
        3f1c0e...webm

Directories are created lazily, the first time something asks for them.
"""

from __future__ import annotations

import time
from pathlib import Path

from browser_session.config import SessionConfig


def get_screenshot_dir(config: SessionConfig) -> Path:
    """Return the screenshot directory, creating it if it does not exist."""
    screenshot_dir = config.resolved_screenshot_dir
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    return screenshot_dir


def get_video_dir(config: SessionConfig) -> Path:
    """Return the video directory, creating it if it does not exist."""
    video_dir = config.resolved_video_dir
    video_dir.mkdir(parents=True, exist_ok=True)
    return video_dir


def generate_screenshot_path(config: SessionConfig) -> Path:
    """Generate a timestamped screenshot path inside the screenshot directory.

    Returns a ``Path`` of the form::

        <screenshot_dir>/screenshot-{epoch milliseconds}.png

    Millisecond resolution keeps consecutive screenshots from colliding.
    """
    timestamp = int(time.time() * 1000)
    return get_screenshot_dir(config) / f"screenshot-{timestamp}.png"
