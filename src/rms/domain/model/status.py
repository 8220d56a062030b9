"""Reservation status state machine.

The status enum is a closed set of tokens.  Every capability query and the
transition graph are plain lookup tables keyed by status, so the rules can
be read (and tested) in one place.
"""

from __future__ import annotations

from enum import Enum

from rms.domain.exceptions import InvalidStatusError


class ReservationStatus(Enum):
    PENDING = "pending"
    PENDING_STOCK = "pending_stock"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, token: str) -> ReservationStatus:
        """Accept either the wire token (``pending_stock``) or the name."""
        if isinstance(token, str):
            cleaned = token.strip()
            for status in cls:
                if cleaned == status.value or cleaned.upper() == status.name:
                    return status
        raise InvalidStatusError(f"Unknown reservation status: {token!r}")

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def is_confirmable(self) -> bool:
        return is_confirmable(self)

    @property
    def is_cancellable(self) -> bool:
        return is_cancellable(self)

    @property
    def has_stock_issue(self) -> bool:
        return has_stock_issue(self)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    @staticmethod
    def stock_alert_statuses() -> list[ReservationStatus]:
        """Statuses for which shop administrators get a stock alert."""
        return [s for s in ReservationStatus if _CAPABILITIES[s][2]]


# (confirmable, cancellable, stock issue, can transition to ready)
_CAPABILITIES: dict[ReservationStatus, tuple[bool, bool, bool, bool]] = {
    ReservationStatus.PENDING: (True, True, False, False),
    ReservationStatus.PENDING_STOCK: (True, True, True, True),
    ReservationStatus.CONFIRMED: (False, False, False, False),
    ReservationStatus.CANCELLED: (False, False, False, False),
}

_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.PENDING_STOCK: frozenset(
        {
            ReservationStatus.CONFIRMED,
            ReservationStatus.CANCELLED,
            ReservationStatus.PENDING,  # restocked
        }
    ),
    ReservationStatus.CONFIRMED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}

_LABELS = {
    ReservationStatus.PENDING: "Pending",
    ReservationStatus.PENDING_STOCK: "Pending stock",
    ReservationStatus.CONFIRMED: "Confirmed",
    ReservationStatus.CANCELLED: "Cancelled",
}


def is_confirmable(status: ReservationStatus) -> bool:
    return _CAPABILITIES[status][0]


def is_cancellable(status: ReservationStatus) -> bool:
    return _CAPABILITIES[status][1]


def has_stock_issue(status: ReservationStatus) -> bool:
    return _CAPABILITIES[status][2]


def can_transition_to_ready(status: ReservationStatus) -> bool:
    return _CAPABILITIES[status][3]


def is_valid_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    """True only for the edges of the transition graph; never for self-loops."""
    return target in _TRANSITIONS[current]
