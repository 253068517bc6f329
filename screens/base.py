"""
Screen base class.

A screen is the controller behind one page: it owns that page's state
(lists, filters, selections, forms) for as long as it is open, and every
user action on the page is an async method returning a Result.

Lifecycle:
    open()   role gate → redirect, or navigate here and load()
    load()   subclass hook: fetch what the page shows (usually one
             fetch_all batch, so any failure discards the whole batch)
    close()  cancel every in-flight request; late results never land

Errors never escape an action. ApiError / ValidationError / PaymentError
become a failed Result plus an error notice; UnauthorizedError becomes a
failed Result with no notice, because the client has already wiped the
session and sent the navigator to /login.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from core.batch import fetch_all
from core.errors import ApiError, GymProError, UnauthorizedError
from core.notices import NoticeBoard
from core.result import Result
from core.session import SessionContext
from payments.flows import OUTCOME_DISMISSED, PaymentOutcome

logger = logging.getLogger("gympro.screens")

Confirm = Callable[[Any], bool]


class ScreenClosed(GymProError):
    """A request was abandoned because its screen was closed."""


# What a screen action may hit while talking to the backend
REQUEST_ERRORS = (ApiError, ScreenClosed)


class Screen:
    """Base controller.

    Args:
        session: The live SessionContext.
        notices: Board every user-visible outcome is posted to.
    """

    route = "/"
    required_role: str | None = None
    title = ""
    load_error = "Failed to load data"

    def __init__(self, session: SessionContext, notices: NoticeBoard):
        self.session = session
        self.notices = notices
        self.client = session.client
        self.navigator = session.navigator
        self.active = False
        self.loading = False
        self._tasks: set[asyncio.Task] = set()

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------

    async def open(self) -> Result:
        """Gate, navigate, load. A redirect is a failed Result whose value is the route."""
        if self.required_role is not None:
            redirect = self.session.gate(self.required_role)
            if redirect is not None:
                logger.info("%s: redirecting to %s", self.route, redirect)
                self.navigator.go(redirect)
                return Result(ok=False, value=redirect, error=GymProError(f"Redirected to {redirect}"))
        self.navigator.go(self.route)
        self.active = True
        return await self.refresh()

    async def refresh(self) -> Result:
        """Run load() again (after a mutation, a date change...)."""
        self.loading = True
        try:
            await self._track(self.load())
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", self.load_error)
        finally:
            self.loading = False
        return Result.success()

    async def load(self):
        """Fetch page data. Subclasses override."""

    def close(self):
        """Leave the page: cancel in-flight work so nothing applies afterwards."""
        self.active = False
        pending = [t for t in self._tasks if not t.done()]
        for task in pending:
            task.cancel()
        self._tasks.clear()
        if pending:
            logger.debug("%s: cancelled %d in-flight request(s)", self.route, len(pending))

    @property
    def in_flight(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    # -------------------------------------------------------------------
    # Request helpers
    # -------------------------------------------------------------------

    async def _track(self, awaitable: Awaitable) -> Any:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if task.cancelled() and not (current and current.cancelling()):
                raise ScreenClosed(f"{self.route} closed") from None
            raise
        finally:
            self._tasks.discard(task)

    async def _request(self, method: str, endpoint: str, data: Any = None, params: dict | None = None) -> Any:
        return await self._track(asyncio.to_thread(self.client.request, method, endpoint, data, params))

    async def _fetch_all(self, endpoints: dict) -> dict[str, Any]:
        return await self._track(fetch_all(self.client, endpoints))

    async def _blocking(self, func: Callable, *args) -> Any:
        """Run a blocking session call off the event loop, tracked like a request."""
        return await self._track(asyncio.to_thread(func, *args))

    # -------------------------------------------------------------------
    # Outcome helpers
    # -------------------------------------------------------------------

    def _ok(self, title: str, message: str = "", value: Any = None) -> Result:
        return Result.success(value, self.notices.success(title, message))

    def _fail(self, error: GymProError, title: str = "Error", fallback: str = "") -> Result:
        if isinstance(error, (UnauthorizedError, ScreenClosed)):
            return Result.failure(error)
        notice = self.notices.error(title, error.message or fallback)
        return Result.failure(error, notice)

    def _payment_result(self, outcome: PaymentOutcome) -> Result:
        """Post the notice matching a gateway outcome and wrap it in a Result."""
        if outcome.paid:
            return Result.success(outcome, self.notices.success(outcome.title, outcome.message))
        if isinstance(outcome.error, UnauthorizedError):
            return Result(ok=False, value=outcome, error=outcome.error)
        if outcome.status == OUTCOME_DISMISSED:
            notice = self.notices.info(outcome.title, outcome.message)
        else:
            notice = self.notices.error(outcome.title, outcome.message)
        return Result(ok=False, value=outcome, error=outcome.error, notice=notice)

    @staticmethod
    def _confirmed(confirm: Confirm | None, subject: Any) -> bool:
        return confirm is None or bool(confirm(subject))
