"""Argparse-based CLI for browser-session.

Starts one browser session that reads JSON commands from stdin::

    browser-session                 # headless
    browser-session --visible       # visible browser, slowed down
    browser-session --video         # record a video of the session

    {"action": "navigate", "url": "https://example.com"}
    {"action": "click", "selector": "#button"}
    {"action": "fill", "selector": "#input", "value": "text"}
    {"action": "screenshot", "path": "/tmp/shot.png"}
    {"action": "content"}
    {"action": "eval", "js": "document.title"}
    {"action": "close"}
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from browser_session.config import get_version, load_config
from browser_session.server import run_session

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="browser-session",
        description=(
            "Persistent browser session driven by line-delimited JSON "
            "commands on stdin"
        ),
    )
    parser.add_argument(
        "--visible",
        action="store_true",
        default=False,
        help="Show the browser window (default: headless)",
    )
    parser.add_argument(
        "--video",
        action="store_true",
        default=False,
        help="Record a video of the session",
    )
    parser.add_argument("--config", default=None, help="Path to a JSON config file")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Diagnostic log level (default: INFO)",
    )
    parser.add_argument(
        "--version", action="store_true", default=False, help="Print version"
    )
    return parser


def _setup_logging(level: str) -> None:
    """Send diagnostics to stderr; stdout is reserved for results."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments, run the session and exit with its status."""
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if args.version:
        print(get_version())
        return

    config = load_config(
        args.config,
        visible=args.visible,
        record_video=args.video,
        log_level=args.log_level,
    )
    _setup_logging(config.log_level)

    try:
        status = asyncio.run(run_session(config))
    except Exception:
        logger.exception("Browser session crashed")
        raise
    sys.exit(status)


if __name__ == "__main__":
    main()
