"""
Member profile screen: view and edit your own contact details.
"""

from dataclasses import replace

from core.errors import ValidationError
from core.models import Member, MembershipPlan
from core.navigation import ROLE_MEMBER, ROUTE_MEMBER_PROFILE
from core.result import Result
from screens.base import REQUEST_ERRORS, Screen

EDITABLE = ("name", "phone", "address")


class MemberProfileScreen(Screen):
    route = ROUTE_MEMBER_PROFILE
    required_role = ROLE_MEMBER
    title = "My Profile"
    load_error = "Failed to load your profile"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.member: Member | None = None
        self.plans: list[MembershipPlan] = []

    async def load(self):
        data = await self._fetch_all({"member": "/members/me", "plans": "/plans"})
        self.member = Member.from_dict(data["member"] or {})
        self.plans = [MembershipPlan.from_dict(p) for p in data["plans"] or []]

    @property
    def plan(self) -> MembershipPlan | None:
        if self.member is None:
            return None
        return next((p for p in self.plans if p.id == self.member.plan_id), None)

    async def save(self, form: dict) -> Result:
        """Update name / phone / address, re-fetch, and refresh the session identity."""
        if self.member is None:
            return Result(ok=False)
        payload = {key: str(form[key]).strip() for key in EDITABLE if key in form}
        if "name" in payload and not payload["name"]:
            return self._fail(ValidationError("Name is required."), "Error")
        try:
            await self._request("PUT", "/members/me", payload)
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to update profile")

        await self.refresh()
        user = self.session.user
        if user is not None and self.member is not None:
            self.session.refresh_user(replace(user, name=self.member.name, phone=self.member.phone or None))
        return self._ok("Profile Updated", "Your profile has been updated successfully.", self.member)
