"""
Result: explicit success/failure value returned by screen actions.

Screen actions never let an exception escape to the caller. They return
a Result instead, so the terminal (or a test) has to look at .ok before
using .value. The notice posted for the outcome rides along.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from core.errors import GymProError
from core.notices import Notice

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: T | None = None
    error: GymProError | None = None
    notice: Notice | None = None

    @classmethod
    def success(cls, value: Any = None, notice: Notice | None = None) -> "Result":
        return cls(ok=True, value=value, notice=notice)

    @classmethod
    def failure(cls, error: GymProError, notice: Notice | None = None) -> "Result":
        return cls(ok=False, error=error, notice=notice)

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.message
        return self.notice.message if self.notice else ""

    def __bool__(self) -> bool:
        return self.ok
