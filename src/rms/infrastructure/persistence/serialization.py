"""Mapping between domain objects and their JSON records."""

from __future__ import annotations

from datetime import date, datetime

from rms.domain.model.inventory import StockUnit
from rms.domain.model.reservation import (
    Reservation,
    ReservationLine,
    StatusHistoryEntry,
)
from rms.domain.model.status import ReservationStatus
from rms.domain.model.value_objects import PaymentBreakdown, Quantity


def _iso(moment: datetime | None) -> str | None:
    return moment.isoformat() if moment is not None else None


def _parse(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw is not None else None


def reservation_to_raw(reservation: Reservation, reservation_id: int) -> dict:
    return {
        "id": reservation_id,
        "client_id": reservation.client_id,
        "shop_id": reservation.shop_id,
        "status": reservation.status.value,
        "pickup_date": reservation.pickup_date.isoformat(),
        "total": reservation.total,
        "deposit": reservation.deposit,
        "remaining": reservation.remaining,
        "currency": reservation.amounts.currency,
        "created_by": reservation.created_by,
        "created_at": reservation.created_at.isoformat(),
        "confirmed_at": _iso(reservation.confirmed_at),
        "confirmed_by": reservation.confirmed_by,
        "cancelled_at": _iso(reservation.cancelled_at),
        "cancelled_by": reservation.cancelled_by,
        "cancellation_reason": reservation.cancellation_reason,
        "lines": [
            {
                "item_id": line.item_id,
                "item_name": line.item_name,
                "quantity": line.quantity.value,
                "deposit_allocation": line.deposit_allocation,
            }
            for line in reservation.lines
        ],
    }


def reservation_from_raw(raw: dict, history: list[StatusHistoryEntry]) -> Reservation:
    lines = [
        ReservationLine(
            item_id=i["item_id"],
            item_name=i["item_name"],
            quantity=Quantity(i["quantity"]),
            deposit_allocation=i.get("deposit_allocation", 0),
        )
        for i in raw["lines"]
    ]
    return Reservation(
        id=raw["id"],
        client_id=raw["client_id"],
        shop_id=raw["shop_id"],
        lines=lines,
        pickup_date=date.fromisoformat(raw["pickup_date"]),
        amounts=PaymentBreakdown(
            total=raw["total"],
            deposit=raw["deposit"],
            remaining=raw["remaining"],
            currency=raw.get("currency", "XOF"),
        ),
        status=ReservationStatus.parse(raw["status"]),
        created_by=raw.get("created_by"),
        created_at=datetime.fromisoformat(raw["created_at"]),
        confirmed_at=_parse(raw.get("confirmed_at")),
        confirmed_by=raw.get("confirmed_by"),
        cancelled_at=_parse(raw.get("cancelled_at")),
        cancelled_by=raw.get("cancelled_by"),
        cancellation_reason=raw.get("cancellation_reason"),
        history=list(history),
    )


def history_to_raw(entry: StatusHistoryEntry) -> dict:
    return {
        "reservation_id": entry.reservation_id,
        "old_status": entry.old_status.value,
        "new_status": entry.new_status.value,
        "changed_by": entry.changed_by,
        "changed_at": entry.changed_at.isoformat(),
        "reason": entry.reason,
    }


def history_from_raw(raw: dict) -> StatusHistoryEntry:
    return StatusHistoryEntry(
        reservation_id=raw["reservation_id"],
        old_status=ReservationStatus.parse(raw["old_status"]),
        new_status=ReservationStatus.parse(raw["new_status"]),
        changed_by=raw["changed_by"],
        changed_at=datetime.fromisoformat(raw["changed_at"]),
        reason=raw.get("reason"),
    )


def stock_unit_from_raw(raw_item: dict, shop_id: str) -> StockUnit | None:
    shops = raw_item.get("shops", {})
    if shop_id not in shops:
        return None
    return StockUnit(
        item_id=raw_item["item_id"],
        item_name=raw_item["name"],
        shop_id=shop_id,
        shop_quantity=shops[shop_id],
        global_quantity=raw_item["global_quantity"],
    )
