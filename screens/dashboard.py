"""
Owner and member home screens.
"""

from datetime import date

from core.models import Attendance, DashboardStats, Member, MembershipPlan, Payment, parse_date
from core.navigation import ROLE_MEMBER, ROLE_OWNER, ROUTE_MEMBER_HOME, ROUTE_OWNER_HOME
from screens.base import Screen

EXPIRY_WINDOW_DAYS = 7


class OwnerDashboardScreen(Screen):
    """Headline stats plus the member table and who expires soon."""

    route = ROUTE_OWNER_HOME
    required_role = ROLE_OWNER
    title = "Owner Dashboard"
    load_error = "Failed to load dashboard"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.stats = DashboardStats()
        self.members: list[Member] = []
        self.plans: list[MembershipPlan] = []

    async def load(self):
        data = await self._fetch_all({
            "stats": "/dashboard/stats",
            "members": "/members",
            "plans": "/plans",
        })
        self.stats = DashboardStats.from_dict(data["stats"])
        self.members = [Member.from_dict(m) for m in data["members"] or []]
        self.plans = [MembershipPlan.from_dict(p) for p in data["plans"] or []]

    def plan_name(self, plan_id: str) -> str:
        for plan in self.plans:
            if plan.id == plan_id:
                return plan.name
        return "-"

    def expiring_soon(self, today: date | None = None, within: int = EXPIRY_WINDOW_DAYS) -> list[Member]:
        """Members whose membership ends in the next `within` days, soonest first."""
        today = today or date.today()
        upcoming = []
        for member in self.members:
            days = member.days_until_expiry(today)
            if days is not None and 0 <= days <= within:
                upcoming.append((days, member))
        upcoming.sort(key=lambda pair: pair[0])
        return [member for _, member in upcoming]


class MemberDashboardScreen(Screen):
    """A member's own overview: plan, dues, recent payments and visits."""

    route = ROUTE_MEMBER_HOME
    required_role = ROLE_MEMBER
    title = "Member Dashboard"
    load_error = "Failed to load your dashboard"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.member: Member | None = None
        self.plans: list[MembershipPlan] = []
        self.payments: list[Payment] = []
        self.attendance: list[Attendance] = []

    async def load(self):
        data = await self._fetch_all({
            "member": "/members/me",
            "plans": "/plans",
            "payments": "/payments/me",
            "attendance": "/attendance/me",
        })
        self.member = Member.from_dict(data["member"] or {})
        self.plans = [MembershipPlan.from_dict(p) for p in data["plans"] or []]
        self.payments = [Payment.from_dict(p) for p in data["payments"] or []]
        self.attendance = [Attendance.from_dict(a) for a in data["attendance"] or []]

    @property
    def plan(self) -> MembershipPlan | None:
        if self.member is None:
            return None
        return next((p for p in self.plans if p.id == self.member.plan_id), None)

    def days_left(self, today: date | None = None) -> int | None:
        return self.member.days_until_expiry(today) if self.member else None

    def visits_this_month(self, today: date | None = None) -> int:
        today = today or date.today()
        count = 0
        for record in self.attendance:
            day = parse_date(record.date)
            if day and day.year == today.year and day.month == today.month:
                count += 1
        return count

    def recent_payments(self, limit: int = 3) -> list[Payment]:
        return sorted(self.payments, key=lambda p: p.date, reverse=True)[:limit]
