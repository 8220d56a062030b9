"""Abstract repository for the Reservation aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rms.domain.model.reservation import Reservation


class ReservationRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique reservation ID."""

    @abstractmethod
    def get_by_id(self, reservation_id: int) -> Reservation | None:
        """Return a reservation (with lines and history), or None."""

    @abstractmethod
    def get_for_update(self, reservation_id: int) -> Reservation | None:
        """Like ``get_by_id`` but locks the row until the unit of work ends."""

    @abstractmethod
    def save(self, reservation: Reservation) -> None:
        """Stage a new or updated reservation and its lines.

        Assigns ``reservation.id`` when it is None.  History entries are
        written separately through ``StatusHistoryRepository``.
        """
