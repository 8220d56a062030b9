"""StockDeficit value object and stock-alert priority.

A StockDeficit describes the shortfall for one reservation line at the
moment it was computed.  It is never persisted: it drives the initial
reservation status and the payload of stock alerts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from rms.domain.exceptions import InvalidInputError

GLOBAL_SHOP_ID = "global"


@dataclass(frozen=True)
class StockDeficit:

    item_name: str
    quantity_requested: int
    quantity_available: int
    shop_id: str

    def __post_init__(self) -> None:
        if not self.item_name:
            raise InvalidInputError("Item name cannot be empty")
        for name in ("quantity_requested", "quantity_available"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidInputError(
                    f"{name.replace('_', ' ').capitalize()} must be an integer, "
                    f"got {type(value).__name__}"
                )
        if self.quantity_requested < 0:
            raise InvalidInputError("Requested quantity cannot be negative")
        if self.quantity_available < 0:
            raise InvalidInputError("Available quantity cannot be negative")
        if not self.shop_id:
            raise InvalidInputError("Shop ID cannot be empty")

    @staticmethod
    def compute(
        item_name: str,
        quantity_requested: int,
        quantity_available: int,
        shop_id: str,
    ) -> StockDeficit:
        return StockDeficit(item_name, quantity_requested, quantity_available, shop_id)

    # --- Derived metrics ------------------------------------------------------

    @property
    def deficit(self) -> int:
        return max(0, self.quantity_requested - self.quantity_available)

    @property
    def has_deficit(self) -> bool:
        return self.deficit > 0

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity_available == 0

    @property
    def deficit_percentage(self) -> float:
        if self.quantity_requested == 0:
            return 0.0
        pct = self.deficit / self.quantity_requested * 100
        return min(100.0, max(0.0, pct))

    @property
    def description(self) -> str:
        if not self.has_deficit:
            return "Sufficient stock"
        return (
            f"Deficit: requested {self.quantity_requested}, "
            f"available {self.quantity_available}"
        )

    def to_dict(self) -> dict:
        return {
            "item_name": self.item_name,
            "quantity_requested": self.quantity_requested,
            "quantity_available": self.quantity_available,
            "deficit": self.deficit,
            "shop_id": self.shop_id,
            "has_deficit": self.has_deficit,
            "deficit_percentage": self.deficit_percentage,
            "is_out_of_stock": self.is_out_of_stock,
            "description": self.description,
        }


# ---------------------------------------------------------------------------
# Alert priority
# ---------------------------------------------------------------------------


class AlertPriority(Enum):
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


CRITICAL_ITEM_COUNT = 5
CRITICAL_TOTAL_DEFICIT = 50
HIGH_ITEM_COUNT = 3
HIGH_TOTAL_DEFICIT = 20


def total_deficit(deficits: list[StockDeficit]) -> int:
    return sum(d.deficit for d in deficits)


def determine_priority(deficits: list[StockDeficit]) -> AlertPriority:
    """Rank an alert by how many items are short and by how much."""
    item_count = len(deficits)
    missing = total_deficit(deficits)
    if item_count >= CRITICAL_ITEM_COUNT or missing >= CRITICAL_TOTAL_DEFICIT:
        return AlertPriority.CRITICAL
    if item_count >= HIGH_ITEM_COUNT or missing >= HIGH_TOTAL_DEFICIT:
        return AlertPriority.HIGH
    return AlertPriority.NORMAL
