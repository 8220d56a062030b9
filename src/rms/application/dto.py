"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rms.domain.model.inventory import StockDeduction
from rms.domain.model.reservation import Reservation, StatusHistoryEntry
from rms.domain.model.stock_deficit import StockDeficit

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class ReservationLineSpec:
    """Input: one requested item (shop-scoped item ID + quantity)."""

    item_id: str
    quantity: int
    deposit_allocation: int = 0


@dataclass(frozen=True)
class ReservationLineDTO:
    item_id: str
    item_name: str
    quantity: int
    deposit_allocation: int


@dataclass(frozen=True)
class StatusHistoryDTO:
    old_status: str
    new_status: str
    changed_by: str
    changed_at: str
    reason: str | None


@dataclass(frozen=True)
class ReservationDTO:
    """Output: a complete reservation as displayed to the user."""

    id: int
    client_id: str
    shop_id: str
    status: str
    status_label: str
    total: int
    deposit: int
    remaining: int
    currency: str
    pickup_date: str
    created_by: str | None
    created_at: str
    items: list[ReservationLineDTO]
    confirmed_at: str | None = None
    confirmed_by: str | None = None
    cancelled_at: str | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    history: list[StatusHistoryDTO] = field(default_factory=list)


@dataclass(frozen=True)
class CreationResult:
    reservation: ReservationDTO
    deficits: list[StockDeficit]

    @property
    def has_stock_issue(self) -> bool:
        return bool(self.deficits)


@dataclass(frozen=True)
class ConfirmationResult:
    reservation: ReservationDTO
    deductions: list[StockDeduction]


@dataclass(frozen=True)
class StockRefreshResult:
    reservation: ReservationDTO
    remaining_deficits: list[StockDeficit]

    @property
    def became_ready(self) -> bool:
        return not self.remaining_deficits


# --- Mapping ------------------------------------------------------------------


def _fmt(moment: datetime | None) -> str | None:
    return moment.strftime(TIMESTAMP_FORMAT) if moment is not None else None


def to_history_dto(entry: StatusHistoryEntry) -> StatusHistoryDTO:
    return StatusHistoryDTO(
        old_status=entry.old_status.value,
        new_status=entry.new_status.value,
        changed_by=entry.changed_by,
        changed_at=entry.changed_at.strftime(TIMESTAMP_FORMAT),
        reason=entry.reason,
    )


def to_reservation_dto(
    reservation: Reservation,
    history: list[StatusHistoryEntry] | None = None,
) -> ReservationDTO:
    entries = reservation.history if history is None else history
    return ReservationDTO(
        id=reservation.id,  # type: ignore[arg-type]
        client_id=reservation.client_id,
        shop_id=reservation.shop_id,
        status=reservation.status.value,
        status_label=reservation.status.label,
        total=reservation.total,
        deposit=reservation.deposit,
        remaining=reservation.remaining,
        currency=reservation.amounts.currency,
        pickup_date=reservation.pickup_date.isoformat(),
        created_by=reservation.created_by,
        created_at=reservation.created_at.strftime(TIMESTAMP_FORMAT),
        items=[
            ReservationLineDTO(
                item_id=line.item_id,
                item_name=line.item_name,
                quantity=line.quantity.value,
                deposit_allocation=line.deposit_allocation,
            )
            for line in reservation.lines
        ],
        confirmed_at=_fmt(reservation.confirmed_at),
        confirmed_by=reservation.confirmed_by,
        cancelled_at=_fmt(reservation.cancelled_at),
        cancelled_by=reservation.cancelled_by,
        cancellation_reason=reservation.cancellation_reason,
        history=[to_history_dto(e) for e in entries],
    )
