"""StockUnit: the shop-scoped view of one inventory item.

Each item has a global quantity shared by every shop and, per shop, a
shop quantity.  A reservation line draws on both at confirmation time.
"""

from __future__ import annotations

from dataclasses import dataclass

from rms.domain.exceptions import InsufficientStockError, ValidationError


@dataclass
class StockUnit:
    """Quantities of one item as seen from one shop.

    Invariants:
    - neither quantity ever goes below zero
    - ``available_quantity`` is bounded by both quantities
    """

    item_id: str
    item_name: str
    shop_id: str
    shop_quantity: int
    global_quantity: int

    @property
    def available_quantity(self) -> int:
        return min(self.shop_quantity, self.global_quantity)

    def can_supply(self, quantity: int) -> bool:
        return quantity <= self.available_quantity

    def deduct(self, quantity: int) -> None:
        """Remove sold units from both the shop and the global stock."""
        if quantity <= 0:
            raise ValidationError("Deduction quantity must be positive")
        if not self.can_supply(quantity):
            raise InsufficientStockError(
                f"Insufficient stock for {self.item_name} "
                f"(need {quantity}, have {self.available_quantity} available)",
                shortages=[(self.item_name, quantity, self.available_quantity)],
            )
        self.shop_quantity -= quantity
        self.global_quantity -= quantity


@dataclass(frozen=True)
class StockDeduction:
    """Before/after quantities of one deduction made at confirmation."""

    item_id: str
    item_name: str
    quantity: int
    old_shop_quantity: int
    new_shop_quantity: int
    old_global_quantity: int
    new_global_quantity: int
