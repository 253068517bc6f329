"""
Membership plans screen (owner).
"""

import math

from core.errors import ValidationError
from core.models import MembershipPlan
from core.navigation import ROLE_OWNER, ROUTE_PLANS
from core.result import Result
from screens.base import REQUEST_ERRORS, Confirm, Screen

DELETE_PLAN_WARNING = (
    "Are you sure you want to delete this plan? Members using this plan will not be "
    "affected, but you won't be able to assign this plan to new members."
)


def _as_number(value, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def validate_plan_form(form: dict) -> dict:
    """Features may arrive as a list or as one comma-separated string."""
    name = str(form.get("name") or "").strip()
    duration = _as_number(form.get("duration"), 0)
    price = _as_number(form.get("price"), -1)
    features = form.get("features") or []
    if isinstance(features, str):
        features = features.split(",")
    features = [str(f).strip() for f in features if str(f).strip()]

    errors = []
    if not name:
        errors.append("Plan name is required.")
    if duration <= 0 or int(duration) != duration:
        errors.append("Duration must be a whole number of months.")
    if price < 0:
        errors.append("Price must be zero or more.")
    if errors:
        raise ValidationError(errors)
    if price.is_integer():
        price = int(price)
    return {"name": name, "duration": int(duration), "price": price, "features": features}


class PlansScreen(Screen):
    route = ROUTE_PLANS
    required_role = ROLE_OWNER
    title = "Membership Plans"
    load_error = "Failed to load plans"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.plans: list[MembershipPlan] = []

    async def load(self):
        data = await self._request("GET", "/plans")
        self.plans = [MembershipPlan.from_dict(p) for p in data or []]

    def find(self, plan_id: str) -> MembershipPlan | None:
        return next((p for p in self.plans if p.id == plan_id), None)

    async def save(self, form: dict, plan_id: str | None = None) -> Result:
        try:
            payload = validate_plan_form(form)
        except ValidationError as e:
            return self._fail(e, "Error")
        try:
            if plan_id:
                await self._request("PUT", f"/plans/{plan_id}", payload)
            else:
                await self._request("POST", "/plans", payload)
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to save plan")

        await self.refresh()
        if plan_id:
            return self._ok("Plan Updated", f"{payload['name']} has been updated.")
        return self._ok("Plan Added", f"{payload['name']} has been added.")

    async def delete(self, plan_id: str, confirm: Confirm | None = None) -> Result:
        plan = self.find(plan_id)
        if plan is None:
            return self._fail(ValidationError(f"No plan with id {plan_id}"), "Error")
        if not self._confirmed(confirm, plan):
            return Result(ok=False)
        try:
            await self._request("DELETE", f"/plans/{plan_id}")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to delete plan")
        self.plans = [p for p in self.plans if p.id != plan_id]
        return self._ok("Plan Deleted", "The membership plan has been removed.", plan)
