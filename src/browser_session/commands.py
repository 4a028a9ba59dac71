"""Command decoding and dispatch for browser-session.

Every input line decodes into an immutable :class:`Command`.  ``dispatch``
looks the command's action up in :data:`ACTIONS`, a fixed table mapping each
action name (aliases included) to a handler coroutine with the uniform
signature ``(state, command) -> fields``, and wraps whatever the handler
returns into a Result dict::

    {"success": true, "url": "https://example.com/", "title": "Example"}
    {"success": false, "error": "Unknown action: teleport"}

Handlers raise on failure (``ValueError`` for missing parameters, Patchright
errors for everything the browser rejects); ``dispatch`` is the only place
where exceptions become failed Results, so one bad command never ends the
session.  ``duration`` is stamped by the I/O loop, not here.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from browser_session.lifecycle import shutdown
from browser_session.paths import generate_screenshot_path
from browser_session.state import SessionState

logger = logging.getLogger(__name__)

Result = dict[str, Any]


# ---------------------------------------------------------------------------
# Command model
# ---------------------------------------------------------------------------


class Command(BaseModel):
    """One decoded request.  Fields not listed here are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    action: str
    url: str | None = None
    selector: str | None = None
    value: str | list[str] | None = None
    path: str | None = None
    js: str | None = None
    timeout: int | float | None = None
    ms: int | float | None = None
    key: str | None = None
    max_length: int | None = Field(default=None, alias="maxLength", ge=0)
    full_page: bool | None = Field(default=None, alias="fullPage")

    def describe(self) -> str:
        """Short ``action target`` summary used for the diagnostic echo."""
        target = self.url or self.selector or self.js or ""
        return f"{self.action} {target}".rstrip()


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "command"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def decode_command(line: str) -> Command:
    """Decode one input line into a :class:`Command`.

    Raises ``ValueError`` with a one-line message for malformed JSON, JSON
    that is not an object (or is nested too deeply to decode), and objects
    with a missing or mistyped field.
    """
    try:
        data = json.loads(line)
    except RecursionError:
        raise ValueError("JSON nesting too deep") from None
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    try:
        return Command.model_validate(data)
    except ValidationError as exc:
        raise ValueError(_format_validation_error(exc)) from None


Handler = Callable[[SessionState, Command], Awaitable[Result]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require(command: Command, *names: str) -> None:
    for name in names:
        if getattr(command, name) is None:
            raise ValueError(
                f"Missing required parameter '{name}' for action '{command.action}'"
            )


def _page(state: SessionState) -> Any:
    if not state.is_ready:
        raise RuntimeError(f"Browser session is not ready (status: {state.status.value})")
    return state.page


def _timeout(command: Command, default: int) -> int | float:
    return command.timeout if command.timeout is not None else default


def _error_message(exc: Exception) -> str:
    # Patchright errors carry the bare message separately from the call log.
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


# ---------------------------------------------------------------------------
# Handlers -- navigation & inspection
# ---------------------------------------------------------------------------


async def _navigate(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "url")
    await page.goto(command.url, wait_until="domcontentloaded")
    return {"url": page.url, "title": await page.title()}


async def _url(state: SessionState, command: Command) -> Result:
    return {"url": _page(state).url}


async def _title(state: SessionState, command: Command) -> Result:
    return {"title": await _page(state).title()}


async def _content(state: SessionState, command: Command) -> Result:
    """Return the page HTML, truncated, along with its full length."""
    page = _page(state)
    html = await page.content()
    limit = (
        command.max_length
        if command.max_length is not None
        else state.config.limits.content_max_length
    )
    return {"content": html[:limit], "length": len(html)}


async def _text(state: SessionState, command: Command) -> Result:
    page = _page(state)
    kwargs: dict[str, Any] = {}
    if command.timeout is not None:
        kwargs["timeout"] = command.timeout
    text = await page.inner_text(command.selector or "body", **kwargs)
    limit = (
        command.max_length
        if command.max_length is not None
        else state.config.limits.text_max_length
    )
    return {"text": text[:limit], "length": len(text)}


async def _screenshot(state: SessionState, command: Command) -> Result:
    """Capture the page; full page unless ``fullPage`` is explicitly false."""
    page = _page(state)
    if command.path:
        path = command.path
    else:
        path = str(generate_screenshot_path(state.config))
    await page.screenshot(path=path, full_page=command.full_page is not False)
    return {"path": path}


async def _eval(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "js")
    return {"result": await page.evaluate(command.js)}


async def _cookies(state: SessionState, command: Command) -> Result:
    _page(state)
    return {"cookies": await state.context.cookies()}


async def _wait(state: SessionState, command: Command) -> Result:
    """Wait for a selector, a fixed delay, or a URL, in that order of priority."""
    page = _page(state)
    timeout = _timeout(command, state.config.timeouts.wait)
    if command.selector:
        await page.wait_for_selector(command.selector, timeout=timeout)
        return {"found": command.selector}
    if command.ms:
        await page.wait_for_timeout(command.ms)
        return {"waited": command.ms}
    if command.url:
        await page.wait_for_url(command.url, timeout=timeout)
        return {"url": page.url}
    raise ValueError("Action 'wait' requires one of 'selector', 'ms' or 'url'")


# ---------------------------------------------------------------------------
# Handlers -- interaction
# ---------------------------------------------------------------------------


async def _click(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "selector")
    await page.click(
        command.selector, timeout=_timeout(command, state.config.timeouts.action)
    )
    return {"clicked": command.selector}


async def _fill(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "selector", "value")
    if not isinstance(command.value, str):
        raise ValueError("Parameter 'value' for action 'fill' must be a string")
    await page.fill(
        command.selector,
        command.value,
        timeout=_timeout(command, state.config.timeouts.action),
    )
    return {"filled": command.selector}


async def _select(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "selector", "value")
    await page.select_option(
        command.selector,
        command.value,
        timeout=_timeout(command, state.config.timeouts.action),
    )
    return {"selected": command.value}


async def _check(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "selector")
    await page.check(
        command.selector, timeout=_timeout(command, state.config.timeouts.action)
    )
    return {"checked": command.selector}


async def _uncheck(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "selector")
    await page.uncheck(
        command.selector, timeout=_timeout(command, state.config.timeouts.action)
    )
    return {"unchecked": command.selector}


async def _hover(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "selector")
    await page.hover(
        command.selector, timeout=_timeout(command, state.config.timeouts.action)
    )
    return {"hovered": command.selector}


async def _press(state: SessionState, command: Command) -> Result:
    page = _page(state)
    _require(command, "key")
    await page.press(
        command.selector or "body",
        command.key,
        timeout=_timeout(command, state.config.timeouts.action),
    )
    return {"pressed": command.key}


# ---------------------------------------------------------------------------
# Handlers -- lifecycle
# ---------------------------------------------------------------------------


async def _close(state: SessionState, command: Command) -> Result:
    """Shut the session down; the I/O loop stops once this result is written."""
    await shutdown(state)
    return {"closed": True}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

ACTIONS: dict[str, Handler] = {
    "navigate": _navigate,
    "goto": _navigate,
    "click": _click,
    "fill": _fill,
    "type": _fill,
    "screenshot": _screenshot,
    "ss": _screenshot,
    "content": _content,
    "html": _content,
    "text": _text,
    "eval": _eval,
    "evaluate": _eval,
    "wait": _wait,
    "select": _select,
    "check": _check,
    "uncheck": _uncheck,
    "hover": _hover,
    "press": _press,
    "url": _url,
    "title": _title,
    "cookies": _cookies,
    "close": _close,
    "quit": _close,
    "exit": _close,
}


async def dispatch(state: SessionState, command: Command) -> Result:
    """Run *command* against *state* and return its Result (without duration)."""
    handler = ACTIONS.get(command.action)
    if handler is None:
        return {"success": False, "error": f"Unknown action: {command.action}"}
    try:
        fields = await handler(state, command)
    except Exception as exc:
        logger.warning(f"Action {command.action!r} failed: {exc}")
        return {"success": False, "error": _error_message(exc)}
    return {"success": True, **fields}
