"""
Reminders screen (owner).

Lists members due a reminder (membership ending within a week, already
expired, or money owed) and sends email reminders to a selection. An
empty selection is refused before any request goes out.
"""

import logging
from datetime import date

from core.errors import ValidationError
from core.models import PendingReminder
from core.navigation import ROLE_OWNER, ROUTE_REMINDERS
from core.result import Result
from screens.base import REQUEST_ERRORS, Screen

logger = logging.getLogger("gympro.screens.reminders")

NOTHING_SELECTED = "Please select at least one member to send reminders."


class RemindersScreen(Screen):
    route = ROUTE_REMINDERS
    required_role = ROLE_OWNER
    title = "Reminders"
    load_error = "Failed to load reminders"

    def __init__(self, session, notices, today: date | None = None):
        super().__init__(session, notices)
        self.today = today
        self.pending: list[PendingReminder] = []
        self.selected: list[str] = []
        self.query = ""

    async def load(self):
        data = await self._request("GET", "/reminders/pending")
        self.pending = [PendingReminder.from_dict(r, self.today) for r in data or []]
        known = {r.member_id for r in self.pending}
        self.selected = [i for i in self.selected if i in known]

    @property
    def visible(self) -> list[PendingReminder]:
        q = self.query.strip().lower()
        return [
            r for r in self.pending
            if not q or q in r.name.lower() or q in r.email.lower()
        ]

    @property
    def expired_count(self) -> int:
        return sum(1 for r in self.pending if r.days_until_expiry is not None and r.days_until_expiry < 0)

    @property
    def expiring_count(self) -> int:
        return sum(1 for r in self.pending if r.days_until_expiry is not None and 0 <= r.days_until_expiry <= 7)

    @property
    def pending_payment_count(self) -> int:
        return sum(1 for r in self.pending if r.payment_status == "pending")

    # -------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------

    def toggle(self, member_id: str):
        if member_id in self.selected:
            self.selected.remove(member_id)
        else:
            self.selected.append(member_id)

    def toggle_all(self):
        """Select every visible member, or clear when they all already are."""
        visible = [r.member_id for r in self.visible]
        if visible and len(self.selected) == len(visible) and set(self.selected) == set(visible):
            self.selected = []
        else:
            self.selected = visible

    # -------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------

    async def send_email(self, member_ids: list[str] | None = None) -> Result:
        """Email the given members (default: the current selection)."""
        ids = list(self.selected if member_ids is None else member_ids)
        if not ids:
            return self._fail(ValidationError(NOTHING_SELECTED), "No Members Selected")
        try:
            await self._request("POST", "/reminders/email", {"memberIds": ids})
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to send reminders")
        logger.info("Email reminders sent to %d member(s)", len(ids))
        if member_ids is None:
            self.selected = []
        if len(ids) == 1 and member_ids is not None:
            reminder = next((r for r in self.pending if r.member_id == ids[0]), None)
            name = reminder.name if reminder else ids[0]
            return self._ok("Email Sent", f"Reminder sent to {name}.", ids)
        return self._ok("Email Reminders Sent", f"Sent reminders to {len(ids)} member(s).", ids)
