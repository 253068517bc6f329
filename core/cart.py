"""
Supplement cart: ephemeral client state until an order is submitted.

Adding a supplement that is already in the cart bumps its quantity
instead of adding a second line; a line whose quantity reaches zero is
dropped. The total is always recomputed from the lines.
"""

import logging
from dataclasses import dataclass

from core.errors import ValidationError
from core.models import OrderItem, Supplement

logger = logging.getLogger("gympro.cart")


@dataclass
class CartLine:
    supplement: Supplement
    quantity: int = 1

    @property
    def line_total(self) -> float:
        return self.supplement.price * self.quantity


class Cart:
    """Ordered list of cart lines, one per supplement."""

    def __init__(self):
        self._lines: list[CartLine] = []

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines)

    def _find(self, supplement_id: str) -> CartLine | None:
        for line in self._lines:
            if line.supplement.id == supplement_id:
                return line
        return None

    def add(self, supplement: Supplement) -> CartLine:
        """Add one unit.

        Raises:
            ValidationError: the supplement is out of stock.
        """
        if not supplement.in_stock:
            raise ValidationError("This item is currently unavailable.")
        line = self._find(supplement.id)
        if line is not None:
            line.quantity += 1
        else:
            line = CartLine(supplement=supplement)
            self._lines.append(line)
        logger.debug("Cart: %s x%d", supplement.name, line.quantity)
        return line

    def update_quantity(self, supplement_id: str, delta: int):
        """Change a line's quantity by delta; the line goes at zero."""
        line = self._find(supplement_id)
        if line is None:
            return
        line.quantity += delta
        if line.quantity <= 0:
            self._lines.remove(line)

    def remove(self, supplement_id: str):
        self._lines = [l for l in self._lines if l.supplement.id != supplement_id]

    def clear(self):
        self._lines.clear()

    @property
    def total(self) -> float:
        return sum(line.line_total for line in self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def to_order_items(self) -> list[OrderItem]:
        return [
            OrderItem(supplement_id=l.supplement.id, quantity=l.quantity, price=l.supplement.price)
            for l in self._lines
        ]

    def __len__(self) -> int:
        return len(self._lines)
