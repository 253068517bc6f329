"""
Attendance screens.

AttendanceScreen        owner register for one date: every active member,
                        present or absent, with check-in / check-out
MemberAttendanceScreen  a member's own visits by month and self check-in
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from core.models import Attendance, Member, parse_date
from core.navigation import ROLE_MEMBER, ROLE_OWNER, ROUTE_ATTENDANCE, ROUTE_MEMBER_ATTENDANCE
from core.result import Result
from reports.layout import presence_rate, round_half_up
from screens.base import REQUEST_ERRORS, Screen

logger = logging.getLogger("gympro.screens.attendance")


@dataclass
class AttendanceRow:
    member: Member
    record: Attendance | None = None

    @property
    def checked_in(self) -> bool:
        return self.record is not None

    @property
    def checked_out(self) -> bool:
        return self.record is not None and self.record.checked_out


class AttendanceScreen(Screen):
    route = ROUTE_ATTENDANCE
    required_role = ROLE_OWNER
    title = "Attendance"
    load_error = "Failed to load attendance"

    def __init__(self, session, notices, selected_date: date | None = None):
        super().__init__(session, notices)
        self.selected_date = selected_date or date.today()
        self.members: list[Member] = []
        self.records: list[Attendance] = []
        self.query = ""

    async def load(self):
        data = await self._fetch_all({
            "members": "/members",
            "attendance": ("/attendance", {"date": self.selected_date.isoformat()}),
        })
        self.members = [Member.from_dict(m) for m in data["members"] or []]
        day = self.selected_date.isoformat()
        self.records = [
            a for a in (Attendance.from_dict(r) for r in data["attendance"] or [])
            if a.date == day
        ]

    async def set_date(self, selected: date) -> Result:
        self.selected_date = selected
        return await self.refresh()

    async def shift_date(self, days: int) -> Result:
        return await self.set_date(self.selected_date + timedelta(days=days))

    # -------------------------------------------------------------------
    # Register
    # -------------------------------------------------------------------

    @property
    def active_members(self) -> list[Member]:
        return [m for m in self.members if m.status == "active"]

    @property
    def rows(self) -> list[AttendanceRow]:
        by_member = {r.member_id: r for r in self.records}
        return [AttendanceRow(m, by_member.get(m.id)) for m in self.active_members]

    @property
    def visible(self) -> list[AttendanceRow]:
        return [row for row in self.rows if row.member.matches(self.query)]

    @property
    def present_count(self) -> int:
        return sum(1 for row in self.rows if row.checked_in)

    @property
    def absent_count(self) -> int:
        return len(self.active_members) - self.present_count

    @property
    def presence_rate(self) -> int:
        """Whole-number percentage of active members present; 0 with no members."""
        return presence_rate(self.present_count, len(self.active_members))

    # -------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------

    async def check_in(self, member_id: str) -> Result:
        member = next((m for m in self.members if m.id == member_id), None)
        name = member.name if member else member_id
        try:
            await self._request("POST", "/attendance/checkin", {"memberId": member_id})
        except REQUEST_ERRORS as e:
            return self._fail(e, "Check-In Failed", f"Could not check in {name}.")
        await self.refresh()
        return self._ok("Check-In Recorded", f"{name} has been checked in.")

    async def check_out(self, attendance_id: str) -> Result:
        record = next((r for r in self.records if r.id == attendance_id), None)
        member = None
        if record is not None:
            member = next((m for m in self.members if m.id == record.member_id), None)
        name = member.name if member else (record.member_name if record and record.member_name else "Member")
        try:
            await self._request("POST", f"/attendance/{attendance_id}/checkout")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Check-Out Failed", f"Could not check out {name}.")
        await self.refresh()
        return self._ok("Check-Out Recorded", f"{name} has been checked out.")


def format_duration(minutes: int | None) -> str:
    """95 → "1h 35m"; None → "-"."""
    if minutes is None:
        return "-"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if hours else f"{mins}m"


class MemberAttendanceScreen(Screen):
    route = ROUTE_MEMBER_ATTENDANCE
    required_role = ROLE_MEMBER
    title = "My Attendance"
    load_error = "Failed to load your attendance"

    def __init__(self, session, notices, month: date | None = None):
        super().__init__(session, notices)
        self.month = (month or date.today()).replace(day=1)
        self.records: list[Attendance] = []

    async def load(self):
        data = await self._request("GET", "/attendance/me")
        self.records = [Attendance.from_dict(r) for r in data or []]

    def change_month(self, delta: int):
        """Move the month view; history is already loaded, nothing is fetched."""
        index = self.month.year * 12 + (self.month.month - 1) + delta
        self.month = date(index // 12, index % 12 + 1, 1)

    @property
    def month_records(self) -> list[Attendance]:
        out = []
        for record in self.records:
            day = parse_date(record.date)
            if day and day.year == self.month.year and day.month == self.month.month:
                out.append(record)
        return sorted(out, key=lambda r: r.date)

    @property
    def visits_this_month(self) -> int:
        return len({r.date for r in self.month_records})

    @property
    def average_session_minutes(self) -> int | None:
        durations = [r.duration_minutes for r in self.month_records if r.duration_minutes is not None]
        if not durations:
            return None
        return round_half_up(sum(durations) / len(durations))

    @property
    def average_session(self) -> str:
        return format_duration(self.average_session_minutes)

    def checked_in_today(self, today: date | None = None) -> bool:
        day = (today or date.today()).isoformat()
        return any(r.date == day and not r.checked_out for r in self.records)

    async def check_in(self) -> Result:
        try:
            await self._request("POST", "/attendance/checkin", {})
        except REQUEST_ERRORS as e:
            return self._fail(e, "Check-In Failed", "Could not record your check-in.")
        await self.refresh()
        return self._ok("Checked In!", "Your attendance has been recorded. Have a great workout!")
