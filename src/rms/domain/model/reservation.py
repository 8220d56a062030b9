"""Reservation aggregate, the core of the domain.

The Reservation is an aggregate root that owns its lines and its status
history.  All business invariants are enforced here; the workflow
handlers decide *when* a transition happens, the aggregate decides
*whether* it may.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from rms.domain.exceptions import InvalidTransitionError, ValidationError
from rms.domain.model.status import ReservationStatus, is_valid_transition
from rms.domain.model.value_objects import PaymentBreakdown, Quantity


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReservationLine:
    """One item requested at the reservation's shop.

    ``deposit_allocation`` is the share of the deposit paid against this
    line.  Lines are fixed once the reservation is created.
    """

    item_id: str
    item_name: str
    quantity: Quantity
    deposit_allocation: int = 0

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValidationError("Line item ID is required")
        if self.deposit_allocation < 0:
            raise ValidationError("Deposit allocation cannot be negative")


@dataclass(frozen=True)
class StatusHistoryEntry:
    """Immutable audit record of one accepted status change."""

    reservation_id: int
    old_status: ReservationStatus
    new_status: ReservationStatus
    changed_by: str
    changed_at: datetime = field(default_factory=utcnow)
    reason: str | None = None

    def __post_init__(self) -> None:
        if not self.changed_by:
            raise ValidationError("A status change needs an actor")


@dataclass
class Reservation:
    """Aggregate root for customer reservations.

    Use the ``Reservation.create()`` factory for new reservations; it
    enforces all creation rules.  The plain ``__init__`` lets the repository
    reconstitute persisted reservations without re-checking the pickup date.
    """

    id: int | None
    client_id: str
    shop_id: str
    lines: list[ReservationLine]
    pickup_date: date
    amounts: PaymentBreakdown
    status: ReservationStatus = ReservationStatus.PENDING
    created_by: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    confirmed_at: datetime | None = None
    confirmed_by: str | None = None
    cancelled_at: datetime | None = None
    cancelled_by: str | None = None
    cancellation_reason: str | None = None
    history: list[StatusHistoryEntry] = field(default_factory=list)

    # --- Factory (used for NEW reservations only) -----------------------------

    @staticmethod
    def create(
        client_id: str,
        shop_id: str,
        lines: list[ReservationLine],
        pickup_date: date,
        amounts: PaymentBreakdown,
        created_by: str,
        has_stock_issue: bool = False,
        now: datetime | None = None,
    ) -> Reservation:
        """Create a new reservation, enforcing all invariants."""
        now = now or utcnow()

        if not client_id:
            raise ValidationError("Client is required")
        if not shop_id:
            raise ValidationError("Shop is required")
        if not lines:
            raise ValidationError("Reservation must contain at least one line")
        if pickup_date < now.date():
            raise ValidationError("Pickup date cannot be in the past")

        status = (
            ReservationStatus.PENDING_STOCK if has_stock_issue
            else ReservationStatus.PENDING
        )
        return Reservation(
            id=None,
            client_id=client_id,
            shop_id=shop_id,
            lines=list(lines),
            pickup_date=pickup_date,
            amounts=amounts,
            status=status,
            created_by=created_by,
            created_at=now,
        )

    # --- Money ----------------------------------------------------------------

    @property
    def total(self) -> int:
        return self.amounts.total

    @property
    def deposit(self) -> int:
        return self.amounts.deposit

    @property
    def remaining(self) -> int:
        return self.amounts.remaining

    def update_amounts(
        self,
        total: int | None = None,
        deposit: int | None = None,
        remaining: int | None = None,
    ) -> None:
        """Change one or more amounts; the result must still balance."""
        self.amounts = self.amounts.replace(total, deposit, remaining)

    def apply_payment(self, amount: int) -> None:
        if not self.is_pending():
            raise InvalidTransitionError(
                f"cannot record a payment on reservation in status {self.status.value}"
            )
        self.amounts = self.amounts.apply_payment(amount)

    # --- Queries --------------------------------------------------------------

    def is_pending(self) -> bool:
        return self.status in (
            ReservationStatus.PENDING,
            ReservationStatus.PENDING_STOCK,
        )

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity.value for line in self.lines)

    # --- State transitions ----------------------------------------------------
    # Called by the workflow handlers through StatusHistoryRecorder only.

    def mark_confirmed(
        self, actor: str, at: datetime, note: str | None = None
    ) -> StatusHistoryEntry:
        """Transition PENDING|PENDING_STOCK -> CONFIRMED.

        Stock deduction must happen in the same unit of work, before the
        caller commits.
        """
        if not self.status.is_confirmable:
            raise InvalidTransitionError(
                f"cannot confirm reservation in status {self.status.value}"
            )
        entry = self._transition(ReservationStatus.CONFIRMED, actor, at, note)
        self.confirmed_at = at
        self.confirmed_by = actor
        return entry

    def mark_cancelled(
        self, actor: str, at: datetime, reason: str | None = None
    ) -> StatusHistoryEntry:
        """Transition PENDING|PENDING_STOCK -> CANCELLED.  No stock is touched."""
        if not self.status.is_cancellable:
            raise InvalidTransitionError(
                f"cannot cancel reservation in status {self.status.value}"
            )
        entry = self._transition(ReservationStatus.CANCELLED, actor, at, reason)
        self.cancelled_at = at
        self.cancelled_by = actor
        self.cancellation_reason = reason
        return entry

    def mark_ready(
        self, actor: str, at: datetime, reason: str | None = None
    ) -> StatusHistoryEntry:
        """Transition PENDING_STOCK -> PENDING once stock covers every line."""
        return self._transition(ReservationStatus.PENDING, actor, at, reason)

    # --- Internal helpers -----------------------------------------------------

    def _transition(
        self,
        target: ReservationStatus,
        actor: str,
        at: datetime,
        reason: str | None,
    ) -> StatusHistoryEntry:
        if self.id is None:
            raise ValidationError("Reservation must be persisted before it changes status")
        if not is_valid_transition(self.status, target):
            raise InvalidTransitionError(
                f"cannot move reservation from {self.status.value} to {target.value}"
            )
        entry = StatusHistoryEntry(
            reservation_id=self.id,
            old_status=self.status,
            new_status=target,
            changed_by=actor,
            changed_at=at,
            reason=reason,
        )
        self.status = target
        self.history.append(entry)
        return entry
