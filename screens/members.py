"""
Members screen (owner).

Searchable member table with add / edit / delete. Create and update
re-fetch the list afterwards; delete removes the row locally once the
single DELETE succeeds.
"""

import logging

from core.errors import ValidationError
from core.models import Member, MembershipPlan
from core.navigation import ROLE_OWNER, ROUTE_MEMBERS
from core.result import Result
from screens.base import REQUEST_ERRORS, Confirm, Screen

logger = logging.getLogger("gympro.screens.members")

MEMBER_FORM_FIELDS = ("name", "email", "phone", "address", "planId")


def validate_member_form(form: dict) -> dict:
    """Trim and check a member form. Returns the cleaned payload.

    Raises:
        ValidationError: listing every missing or malformed field.
    """
    cleaned = {key: str(form.get(key) or "").strip() for key in MEMBER_FORM_FIELDS}
    errors = []
    if not cleaned["name"]:
        errors.append("Name is required.")
    if not cleaned["email"]:
        errors.append("Email is required.")
    elif "@" not in cleaned["email"]:
        errors.append("Email address is not valid.")
    if not cleaned["phone"]:
        errors.append("Phone is required.")
    if not cleaned["planId"]:
        errors.append("Select a membership plan.")
    if errors:
        raise ValidationError(errors)
    return cleaned


class MembersScreen(Screen):
    route = ROUTE_MEMBERS
    required_role = ROLE_OWNER
    title = "Members"
    load_error = "Failed to load members"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.members: list[Member] = []
        self.plans: list[MembershipPlan] = []
        self.query = ""

    async def load(self):
        data = await self._fetch_all({"members": "/members", "plans": "/plans"})
        self.members = [Member.from_dict(m) for m in data["members"] or []]
        self.plans = [MembershipPlan.from_dict(p) for p in data["plans"] or []]

    @property
    def visible(self) -> list[Member]:
        return [m for m in self.members if m.matches(self.query)]

    def search(self, query: str) -> list[Member]:
        self.query = query
        return self.visible

    def find(self, member_id: str) -> Member | None:
        return next((m for m in self.members if m.id == member_id), None)

    def plan_name(self, plan_id: str) -> str:
        plan = next((p for p in self.plans if p.id == plan_id), None)
        return plan.name if plan else "-"

    async def save(self, form: dict, member_id: str | None = None) -> Result:
        """Create (member_id None) or update a member, then re-fetch."""
        try:
            payload = validate_member_form(form)
        except ValidationError as e:
            return self._fail(e, "Error")

        try:
            if member_id:
                await self._request("PUT", f"/members/{member_id}", payload)
            else:
                await self._request("POST", "/members", payload)
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to save member")

        await self.refresh()
        if member_id:
            return self._ok("Member Updated", f"{payload['name']} has been updated successfully.")
        return self._ok("Member Added", f"{payload['name']} has been added successfully.")

    async def delete(self, member_id: str, confirm: Confirm | None = None) -> Result:
        """Ask confirm(member); on yes send one DELETE and drop the row."""
        member = self.find(member_id)
        if member is None:
            return self._fail(ValidationError(f"No member with id {member_id}"), "Error")
        if not self._confirmed(confirm, member):
            return Result(ok=False)

        try:
            await self._request("DELETE", f"/members/{member_id}")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to delete member")

        self.members = [m for m in self.members if m.id != member_id]
        logger.info("Deleted member %s", member_id)
        return self._ok("Member Deleted", f"{member.name} has been removed.", member)
