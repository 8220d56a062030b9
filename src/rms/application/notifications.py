"""Stock alerts raised when a reservation is created short of stock.

The application layer only builds the alert and hands it to a
``StockAlertNotifier``; delivery (push, e-mail, outbox...) lives in the
infrastructure layer.  Alerts are sent after the creating transaction has
committed, so a delivery failure never undoes the reservation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from rms.domain.model.reservation import Reservation
from rms.domain.model.stock_deficit import (
    AlertPriority,
    StockDeficit,
    determine_priority,
    total_deficit,
)


@dataclass(frozen=True)
class StockAlert:

    reservation_id: int
    shop_id: str
    shop_name: str
    client_id: str
    total: int
    deposit: int
    remaining: int
    currency: str
    pickup_date: str
    created_by: str | None
    created_at: datetime
    deficits: tuple[dict, ...]
    item_count: int
    total_deficit: int
    priority: AlertPriority

    @staticmethod
    def build(
        reservation: Reservation,
        shop_name: str,
        deficits: list[StockDeficit],
    ) -> StockAlert:
        return StockAlert(
            reservation_id=reservation.id,  # type: ignore[arg-type]
            shop_id=reservation.shop_id,
            shop_name=shop_name,
            client_id=reservation.client_id,
            total=reservation.total,
            deposit=reservation.deposit,
            remaining=reservation.remaining,
            currency=reservation.amounts.currency,
            pickup_date=reservation.pickup_date.isoformat(),
            created_by=reservation.created_by,
            created_at=reservation.created_at,
            deficits=tuple(d.to_dict() for d in deficits),
            item_count=len(deficits),
            total_deficit=total_deficit(deficits),
            priority=determine_priority(deficits),
        )

    @property
    def title(self) -> str:
        return f"Stock alert - {self.shop_name}"

    @property
    def message(self) -> str:
        noun = "item" if self.item_count == 1 else "items"
        return (
            f"Reservation #{self.reservation_id} for client {self.client_id} "
            f"has {self.item_count} {noun} short of stock "
            f"({self.total_deficit} units missing)."
        )

    def to_dict(self) -> dict:
        return {
            "type": "stock_alert",
            "title": self.title,
            "message": self.message,
            "reservation_id": self.reservation_id,
            "shop_id": self.shop_id,
            "shop_name": self.shop_name,
            "client_id": self.client_id,
            "total_amount": self.total,
            "deposit_amount": self.deposit,
            "remaining_amount": self.remaining,
            "currency": self.currency,
            "pickup_date": self.pickup_date,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "items_count": self.item_count,
            "total_deficit": self.total_deficit,
            "priority": self.priority.value,
            "deficits": list(self.deficits),
            "action_required": True,
        }


class StockAlertNotifier(ABC):

    @abstractmethod
    def notify(self, alert: StockAlert) -> None:
        """Deliver *alert*.  May raise; callers log and carry on."""
