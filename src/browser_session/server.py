"""Line-delimited JSON I/O loop for browser-session.

The session process reads one JSON command per line from stdin and writes one
JSON result per line to stdout, strictly in input order.  All diagnostics go
through ``logging`` (stderr), so stdout carries nothing but results.

``run_session`` owns the whole process lifetime: it initializes the browser,
runs ``serve`` until a close command or end of input, and funnels SIGINT and
SIGTERM into the same shutdown path.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
import signal
import sys
import time
from typing import Any, TextIO

from browser_session.commands import ACTIONS, Result, decode_command, dispatch
from browser_session.config import SessionConfig
from browser_session.lifecycle import initialize, shutdown
from browser_session.state import SessionState

logger = logging.getLogger(__name__)

# Page HTML and eval payloads can be large; asyncio's default is 64 KiB.
_LINE_LIMIT = 16 * 1024 * 1024


# ---------------------------------------------------------------------------
# Stream helpers
# ---------------------------------------------------------------------------


async def open_stdin_reader() -> asyncio.StreamReader:
    """Wrap ``sys.stdin`` in an ``asyncio.StreamReader``."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=_LINE_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    try:
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    except ValueError:
        # Regular files (``< commands.jsonl``) cannot be watched by the event
        # loop, but they never block either.
        reader.feed_data(sys.stdin.buffer.read())
        reader.feed_eof()
    return reader


def _finite(value: Any) -> Any:
    """Replace NaN and infinities with ``None``, as ``JSON.stringify`` does."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite(v) for v in value]
    return value


def write_result(out: TextIO, result: Result) -> None:
    out.write(json.dumps(_finite(result), default=str, allow_nan=False) + "\n")
    out.flush()


# ---------------------------------------------------------------------------
# Protocol loop
# ---------------------------------------------------------------------------


async def handle_line(state: SessionState, line: str) -> Result:
    """Decode and dispatch one non-blank line, stamping the elapsed time."""
    start = time.monotonic()
    try:
        command = decode_command(line)
    except ValueError as e:
        logger.warning(f"Rejected input line: {e}")
        result: Result = {"success": False, "error": f"Parse error: {e}"}
    else:
        logger.info(f"→ {command.describe()}")
        result = await dispatch(state, command)
    result["duration"] = int((time.monotonic() - start) * 1000)
    return result


async def serve(
    state: SessionState, reader: asyncio.StreamReader, out: TextIO
) -> None:
    """Process commands from *reader* until end of input or a close command.

    The next line is not read until the current result has been written.
    """
    while True:
        try:
            raw = await reader.readline()
        except ValueError as e:
            # Line longer than the reader limit; the reader has discarded it.
            write_result(
                out, {"success": False, "error": f"Parse error: {e}", "duration": 0}
            )
            continue

        if not raw:
            logger.info("Input stream closed")
            return

        line = raw.decode("utf-8", errors="replace").strip()
        if not line:
            continue

        result = await handle_line(state, line)
        write_result(out, result)

        if state.is_closed:
            logger.info("Close command processed, stopping")
            return


# ---------------------------------------------------------------------------
# Session entry point
# ---------------------------------------------------------------------------


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event
) -> list[int]:
    installed: list[int] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops and non-main threads cannot install handlers.
            continue
        installed.append(sig)
    return installed


def _remove_signal_handlers(
    loop: asyncio.AbstractEventLoop, installed: list[int]
) -> None:
    for sig in installed:
        loop.remove_signal_handler(sig)


async def run_session(
    config: SessionConfig,
    reader: asyncio.StreamReader | None = None,
    out: TextIO | None = None,
    stop_event: asyncio.Event | None = None,
) -> int:
    """Run one browser session to completion and return the exit status.

    Returns ``1`` if the browser could not be started (no command is read in
    that case) and ``0`` after a close command, end of input, or *stop_event*
    being set (which is what SIGINT/SIGTERM do).  Shutdown runs exactly once
    on every path that got past startup.
    """
    if out is None:
        out = sys.stdout
    if stop_event is None:
        stop_event = asyncio.Event()

    # A signal during launch must set stop_event, not raise KeyboardInterrupt.
    loop = asyncio.get_running_loop()
    installed = _install_signal_handlers(loop, stop_event)

    try:
        state = await initialize(config)
    except Exception:
        logger.exception("Failed to start browser session")
        _remove_signal_handlers(loop, installed)
        return 1

    logger.info(f"Commands: {', '.join(ACTIONS)}")

    try:
        if stop_event.is_set():
            logger.info("Termination signal received during startup, shutting down")
            return 0
        if reader is None:
            reader = await open_stdin_reader()

        serve_task = asyncio.create_task(serve(state, reader, out))
        stop_task = asyncio.create_task(stop_event.wait())
        tasks: set[asyncio.Task[Any]] = {serve_task, stop_task}
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if serve_task in done:
            # Re-raise anything unexpected from the loop itself (e.g. stdout gone).
            serve_task.result()
        else:
            logger.info("Termination signal received, shutting down")
    finally:
        await shutdown(state)
        _remove_signal_handlers(loop, installed)

    return 0
