"""
Payment screens.

PaymentsScreen        owner ledger: every payment, per-member dues with a
                      paid / pending filter, and counter payments
                      (cash, card, UPI) recorded via POST /payments
MemberPaymentsScreen  a member's own history and "pay dues now" through
                      the gateway
"""

import logging
from datetime import date

from core.errors import ValidationError
from core.models import Member, MembershipPlan, Payment
from core.navigation import ROLE_MEMBER, ROLE_OWNER, ROUTE_MEMBER_PAYMENTS, ROUTE_PAYMENTS
from core.result import Result
from payments.flows import MembershipPaymentFlow
from screens.base import REQUEST_ERRORS, Screen

logger = logging.getLogger("gympro.screens.payments")

STATUS_FILTERS = ("all", "paid", "pending")
COUNTER_METHODS = ("cash", "card", "upi")


class PaymentsScreen(Screen):
    route = ROUTE_PAYMENTS
    required_role = ROLE_OWNER
    title = "Payments"
    load_error = "Failed to load payments"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.payments: list[Payment] = []
        self.members: list[Member] = []
        self.plans: list[MembershipPlan] = []
        self.query = ""
        self.status_filter = "all"

    async def load(self):
        data = await self._fetch_all({"payments": "/payments", "members": "/members", "plans": "/plans"})
        self.payments = [Payment.from_dict(p) for p in data["payments"] or []]
        self.members = [Member.from_dict(m) for m in data["members"] or []]
        self.plans = [MembershipPlan.from_dict(p) for p in data["plans"] or []]

    def set_filter(self, status: str):
        if status not in STATUS_FILTERS:
            raise ValueError(f"status filter must be one of {STATUS_FILTERS}")
        self.status_filter = status

    @property
    def visible_members(self) -> list[Member]:
        return [
            m for m in self.members
            if m.matches(self.query) and self.status_filter in ("all", m.payment_status)
        ]

    @property
    def pending_count(self) -> int:
        return sum(1 for m in self.members if m.payment_status == "pending")

    @property
    def total_pending(self) -> float:
        return sum(m.due_amount for m in self.members if m.payment_status == "pending")

    @property
    def total_collected(self) -> float:
        return sum(p.amount for p in self.payments if p.status == "paid")

    def payments_for(self, member_id: str) -> list[Payment]:
        return [p for p in self.payments if p.member_id == member_id]

    async def record_payment(self, member_id: str, amount: float, method: str = "cash",
                             today: date | None = None) -> Result:
        """Record a payment taken at the counter, then re-fetch."""
        member = next((m for m in self.members if m.id == member_id), None)
        errors = []
        if member is None:
            errors.append(f"No member with id {member_id}")
        if amount is None or amount <= 0:
            errors.append("Amount must be greater than zero.")
        if method not in COUNTER_METHODS:
            errors.append(f"Method must be one of: {', '.join(COUNTER_METHODS)}.")
        if errors:
            return self._fail(ValidationError(errors), "Error")

        payload = {
            "memberId": member_id,
            "amount": amount,
            "method": method,
            "planId": member.plan_id,
            "date": (today or date.today()).isoformat(),
            "status": "paid",
        }
        try:
            await self._request("POST", "/payments", payload)
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to record payment")

        await self.refresh()
        return self._ok("Payment Collected", f"Payment recorded for {member.name}.")


class MemberPaymentsScreen(Screen):
    """Own payment history plus gateway checkout for outstanding dues.

    Args:
        session, notices: as for every screen.
        flow:             MembershipPaymentFlow used by pay_dues().
    """

    route = ROUTE_MEMBER_PAYMENTS
    required_role = ROLE_MEMBER
    title = "My Payments"
    load_error = "Failed to load your payments"

    def __init__(self, session, notices, flow: MembershipPaymentFlow):
        super().__init__(session, notices)
        self.flow = flow
        self.member: Member | None = None
        self.payments: list[Payment] = []
        self.plans: list[MembershipPlan] = []
        self.paying = False

    async def load(self):
        data = await self._fetch_all({"member": "/members/me", "payments": "/payments/me", "plans": "/plans"})
        self.member = Member.from_dict(data["member"] or {})
        self.payments = sorted(
            (Payment.from_dict(p) for p in data["payments"] or []),
            key=lambda p: p.date, reverse=True,
        )
        self.plans = [MembershipPlan.from_dict(p) for p in data["plans"] or []]

    @property
    def plan(self) -> MembershipPlan | None:
        if self.member is None:
            return None
        return next((p for p in self.plans if p.id == self.member.plan_id), None)

    @property
    def due_amount(self) -> float:
        return self.member.due_amount if self.member else 0

    def days_until_due(self, today: date | None = None) -> int | None:
        return self.member.days_until_expiry(today) if self.member else None

    async def pay_dues(self) -> Result:
        """Open the gateway for the outstanding amount; re-fetch only once paid."""
        if self.member is None or self.paying:
            return Result(ok=False)
        self.paying = True
        try:
            outcome = await self._track(self.flow.pay(self.member))
        except (ValidationError, *REQUEST_ERRORS) as e:
            return self._fail(e, "Checkout Failed")
        finally:
            self.paying = False

        result = self._payment_result(outcome)
        if outcome.paid:
            await self.refresh()
        return result
