"""JSON-document implementation of ReservationRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rms.domain.model.reservation import Reservation
from rms.domain.repository.reservation_repository import ReservationRepository
from rms.infrastructure.persistence import serialization

if TYPE_CHECKING:
    from rms.infrastructure.persistence.json_store import JsonUnitOfWork


class JsonReservationRepository(ReservationRepository):

    def __init__(self, uow: JsonUnitOfWork) -> None:
        self._uow = uow

    # --- ReservationRepository interface --------------------------------------

    def next_id(self) -> int:
        """Advisory only; the store assigns the real ID when it commits."""
        reservations = self._uow.document()["reservations"]
        if not reservations:
            return 1
        return max(r["id"] for r in reservations) + 1

    def get_by_id(self, reservation_id: int) -> Reservation | None:
        if reservation_id in self._uow.staged_reservations:
            return self._uow.staged_reservations[reservation_id]
        for raw in self._uow.document()["reservations"]:
            if raw["id"] == reservation_id:
                history = self._uow.history.list_for_reservation(reservation_id)
                return serialization.reservation_from_raw(raw, history)
        return None

    def get_for_update(self, reservation_id: int) -> Reservation | None:
        self._uow.lock("reservation", str(reservation_id))
        return self.get_by_id(reservation_id)

    def save(self, reservation: Reservation) -> None:
        """Stage *reservation*; new ones get their ID when the unit commits."""
        if reservation.id is None:
            if all(r is not reservation for r in self._uow.new_reservations):
                self._uow.new_reservations.append(reservation)
        else:
            self._uow.staged_reservations[reservation.id] = reservation
