"""
GymPro Notice Board

Transient user-facing notices: the terminal's equivalent of toast
popups. Screens post a notice for every user-visible outcome (saved,
deleted, failed, exported) and the terminal drains and prints them after
each command.

Usage:
    from core.notices import NoticeBoard

    board = NoticeBoard()
    board.success("Member Added", "Rahul Sharma has been added successfully.")
    for notice in board.drain():
        print(notice.title, notice.message)
"""

import logging
from collections import deque
from dataclasses import dataclass

logger = logging.getLogger("gympro.notices")


# ---------------------------------------------------------------------------
# Notice model
# ---------------------------------------------------------------------------

SEVERITY_INFO = "info"
SEVERITY_SUCCESS = "success"
SEVERITY_ERROR = "error"


@dataclass
class Notice:
    """A single user-facing notice.

    Attributes:
        title:     Short headline ("Member Deleted").
        message:   Longer description.
        severity:  info, success, or error.
        read:      Whether the interface has already shown it.
    """
    title: str
    message: str = ""
    severity: str = SEVERITY_INFO
    read: bool = False

    @property
    def is_error(self) -> bool:
        return self.severity == SEVERITY_ERROR


# ---------------------------------------------------------------------------
# NoticeBoard
# ---------------------------------------------------------------------------

class NoticeBoard:
    """Bounded history of notices.

    Args:
        max_history: Maximum notices to keep; oldest are dropped first.
    """

    def __init__(self, max_history: int = 100):
        self._notices: deque[Notice] = deque(maxlen=max_history)

    def post(self, title: str, message: str = "", severity: str = SEVERITY_INFO) -> Notice:
        notice = Notice(title=title, message=message, severity=severity)
        self._notices.append(notice)
        if notice.is_error:
            logger.warning("Notice [%s] %s: %s", severity, title, message)
        else:
            logger.info("Notice [%s] %s: %s", severity, title, message)
        return notice

    def info(self, title: str, message: str = "") -> Notice:
        return self.post(title, message, SEVERITY_INFO)

    def success(self, title: str, message: str = "") -> Notice:
        return self.post(title, message, SEVERITY_SUCCESS)

    def error(self, title: str, message: str = "") -> Notice:
        return self.post(title, message, SEVERITY_ERROR)

    def drain(self) -> list[Notice]:
        """Return unread notices in posting order and mark them read."""
        unread = [n for n in self._notices if not n.read]
        for notice in unread:
            notice.read = True
        return unread

    @property
    def latest(self) -> Notice | None:
        return self._notices[-1] if self._notices else None
