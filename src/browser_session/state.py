from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from browser_session.config import SessionConfig


class SessionStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class SessionState:
    """Everything one session owns: the Patchright handles and their status.

    ``context`` and ``page`` are set whenever ``status`` is ``READY``; every
    handle is ``None`` before startup and after shutdown.  ``CLOSED`` is
    terminal.
    """

    config: SessionConfig
    status: SessionStatus = SessionStatus.UNINITIALIZED
    playwright: Any = None
    browser: Any = None
    context: Any = None
    page: Any = None

    @property
    def is_ready(self) -> bool:
        return self.status is SessionStatus.READY

    @property
    def is_closed(self) -> bool:
        return self.status is SessionStatus.CLOSED

    def clear_handles(self) -> None:
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None
