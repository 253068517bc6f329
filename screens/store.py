"""
Supplement store screens.

SupplementsScreen   owner catalogue management (add / edit / delete,
                    stock counters)
MemberStoreScreen   member catalogue with category filter, a cart, and
                    gateway checkout; supplements are re-fetched after a
                    confirmed order so stock is current
"""

import logging
import math

from core.cart import Cart
from core.errors import ValidationError
from core.models import GymSettings, Supplement
from core.navigation import ROLE_MEMBER, ROLE_OWNER, ROUTE_MEMBER_STORE, ROUTE_STORE
from core.result import Result
from payments.flows import StorePaymentFlow
from screens.base import REQUEST_ERRORS, Confirm, Screen

logger = logging.getLogger("gympro.screens.store")

LOW_STOCK_THRESHOLD = 10
ALL_CATEGORIES = "All"


def validate_supplement_form(form: dict) -> dict:
    name = str(form.get("name") or "").strip()
    category = str(form.get("category") or "").strip()
    description = str(form.get("description") or "").strip()
    errors = []
    try:
        price = float(form.get("price"))
    except (TypeError, ValueError):
        price = -1.0
    if not math.isfinite(price):
        price = -1.0
    try:
        stock = int(form.get("stock"))
    except (TypeError, ValueError):
        stock = -1
    if not name:
        errors.append("Name is required.")
    if not category:
        errors.append("Category is required.")
    if price < 0:
        errors.append("Price must be zero or more.")
    if stock < 0:
        errors.append("Stock must be a whole number, zero or more.")
    if errors:
        raise ValidationError(errors)
    return {
        "name": name,
        "description": description,
        "price": int(price) if price.is_integer() else price,
        "stock": stock,
        "category": category,
    }


class SupplementsScreen(Screen):
    route = ROUTE_STORE
    required_role = ROLE_OWNER
    title = "Supplement Store"
    load_error = "Failed to load supplements"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.supplements: list[Supplement] = []
        self.query = ""

    async def load(self):
        data = await self._request("GET", "/supplements")
        self.supplements = [Supplement.from_dict(s) for s in data or []]

    @property
    def visible(self) -> list[Supplement]:
        return [s for s in self.supplements if s.matches(self.query)]

    @property
    def low_stock_count(self) -> int:
        return sum(1 for s in self.supplements if 0 < s.stock < LOW_STOCK_THRESHOLD)

    @property
    def out_of_stock_count(self) -> int:
        return sum(1 for s in self.supplements if s.stock == 0)

    def find(self, supplement_id: str) -> Supplement | None:
        return next((s for s in self.supplements if s.id == supplement_id), None)

    async def save(self, form: dict, supplement_id: str | None = None) -> Result:
        try:
            payload = validate_supplement_form(form)
        except ValidationError as e:
            return self._fail(e, "Error")
        try:
            if supplement_id:
                await self._request("PUT", f"/supplements/{supplement_id}", payload)
            else:
                await self._request("POST", "/supplements", payload)
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to save supplement")

        await self.refresh()
        if supplement_id:
            return self._ok("Supplement Updated", f"{payload['name']} has been updated.")
        return self._ok("Supplement Added", f"{payload['name']} has been added to the store.")

    async def delete(self, supplement_id: str, confirm: Confirm | None = None) -> Result:
        supplement = self.find(supplement_id)
        if supplement is None:
            return self._fail(ValidationError(f"No supplement with id {supplement_id}"), "Error")
        if not self._confirmed(confirm, supplement):
            return Result(ok=False)
        try:
            await self._request("DELETE", f"/supplements/{supplement_id}")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to delete supplement")
        self.supplements = [s for s in self.supplements if s.id != supplement_id]
        return self._ok("Supplement Deleted", f"{supplement.name} has been removed from the store.", supplement)


class MemberStoreScreen(Screen):
    """Member-facing store.

    Args:
        session, notices: as for every screen.
        flow:             StorePaymentFlow used at checkout.
    """

    route = ROUTE_MEMBER_STORE
    required_role = ROLE_MEMBER
    title = "Store"
    load_error = "Failed to load the store"

    def __init__(self, session, notices, flow: StorePaymentFlow):
        super().__init__(session, notices)
        self.flow = flow
        self.supplements: list[Supplement] = []
        self.settings = GymSettings()
        self.cart = Cart()
        self.query = ""
        self.category = ALL_CATEGORIES
        self.checking_out = False

    async def load(self):
        data = await self._fetch_all({"supplements": "/supplements", "settings": "/settings"})
        self.supplements = [Supplement.from_dict(s) for s in data["supplements"] or []]
        self.settings = GymSettings.from_dict(data["settings"])

    async def reload_supplements(self):
        data = await self._request("GET", "/supplements")
        self.supplements = [Supplement.from_dict(s) for s in data or []]

    @property
    def categories(self) -> list[str]:
        seen = []
        for s in self.supplements:
            if s.category and s.category not in seen:
                seen.append(s.category)
        return [ALL_CATEGORIES] + seen

    @property
    def visible(self) -> list[Supplement]:
        return [
            s for s in self.supplements
            if s.matches(self.query) and self.category in (ALL_CATEGORIES, s.category)
        ]

    def find(self, supplement_id: str) -> Supplement | None:
        return next((s for s in self.supplements if s.id == supplement_id), None)

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------

    def add_to_cart(self, supplement_id: str) -> Result:
        supplement = self.find(supplement_id)
        if supplement is None:
            return self._fail(ValidationError(f"No supplement with id {supplement_id}"), "Error")
        try:
            self.cart.add(supplement)
        except ValidationError as e:
            return self._fail(e, "Out of Stock")
        return self._ok("Added to Cart", f"{supplement.name} added to your cart.", self.cart.item_count)

    def update_quantity(self, supplement_id: str, delta: int):
        self.cart.update_quantity(supplement_id, delta)

    def remove_from_cart(self, supplement_id: str):
        self.cart.remove(supplement_id)

    async def checkout(self) -> Result:
        """Pay for the cart through the gateway. No-op while one is running."""
        if self.cart.is_empty or self.checking_out:
            return Result(ok=False)
        self.checking_out = True
        try:
            outcome = await self._track(
                self.flow.pay(self.cart, merchant_name=self.settings.gym_name or "GymPro Store")
            )
        except (ValidationError, *REQUEST_ERRORS) as e:
            return self._fail(e, "Checkout Failed")
        finally:
            self.checking_out = False

        result = self._payment_result(outcome)
        if outcome.paid:
            try:
                await self.reload_supplements()
            except REQUEST_ERRORS as e:
                logger.warning("Stock refresh after order failed: %s", e.message)
        return result
