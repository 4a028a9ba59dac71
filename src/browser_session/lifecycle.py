"""Startup and shutdown of the browser, context and page owned by a session."""

from __future__ import annotations

import logging
from typing import Any

from patchright.async_api import async_playwright

from browser_session.config import SessionConfig
from browser_session.paths import get_video_dir
from browser_session.state import SessionState, SessionStatus

logger = logging.getLogger(__name__)
page_logger = logging.getLogger("browser_session.page")


async def initialize(config: SessionConfig) -> SessionState:
    """Launch the browser and open the session's single context and page.

    Any failure is fatal to the session: handles acquired so far are
    released and the original exception propagates to the caller.
    """
    state = SessionState(config=config)
    mode = "visible" if config.visible else "headless"
    logger.info(f"Starting browser session ({mode})...")

    try:
        state.playwright = await async_playwright().start()
        state.browser = await state.playwright.chromium.launch(
            headless=not config.visible,
            slow_mo=config.effective_slow_mo,
        )

        context_opts: dict[str, Any] = {}
        if config.record_video:
            context_opts["record_video_dir"] = str(get_video_dir(config))
            context_opts["record_video_size"] = {
                "width": config.video_size.width,
                "height": config.video_size.height,
            }
        state.context = await state.browser.new_context(**context_opts)
        state.page = await state.context.new_page()
    except BaseException:
        # Also covers cancellation and KeyboardInterrupt mid-launch.
        await _release(state)
        raise

    _setup_page_listeners(state.page)
    state.status = SessionStatus.READY
    if config.record_video:
        logger.info(f"Recording video to {config.resolved_video_dir}")
    logger.info("Browser ready. Send JSON commands via stdin.")
    return state


def _setup_page_listeners(page: Any) -> None:
    """Forward in-page console output to the diagnostic log."""

    def _on_console(msg: Any) -> None:
        page_logger.info(f"[browser] {msg.type}: {msg.text}")

    page.on("console", _on_console)


async def shutdown(state: SessionState) -> None:
    """Close the context, then the browser, then the driver.

    Safe to call any number of times; once the session is closed further
    calls do nothing.  Errors from individual close steps are logged and
    suppressed so that shutdown always completes.
    """
    if state.is_closed:
        return
    logger.info("Closing browser...")
    await _release(state)
    state.status = SessionStatus.CLOSED
    logger.info("Browser session closed")


async def _release(state: SessionState) -> None:
    video = getattr(state.page, "video", None) if state.page is not None else None

    if state.context is not None:
        try:
            await state.context.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing context: {e}")

    # The video file is only complete once its context has closed.
    if video is not None:
        try:
            logger.info(f"Video saved to {await video.path()}")
        except Exception as e:
            logger.debug(f"Could not resolve video path: {e}")

    if state.browser is not None:
        try:
            await state.browser.close()
        except Exception as e:
            logger.debug(f"Ignoring error while closing browser: {e}")

    if state.playwright is not None:
        try:
            await state.playwright.stop()
        except Exception as e:
            logger.debug(f"Ignoring error while stopping driver: {e}")

    state.clear_handles()
