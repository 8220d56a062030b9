"""Application service: Show Reservation use case (query)."""

from __future__ import annotations

from typing import Callable

from rms.application.dto import ReservationDTO, to_reservation_dto
from rms.domain.exceptions import EntityNotFoundError
from rms.domain.repository.unit_of_work import UnitOfWork


class ShowReservationHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, reservation_id: int) -> ReservationDTO:
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_by_id(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation #{reservation_id} not found")
            history = uow.history.list_for_reservation(reservation_id)
        return to_reservation_dto(reservation, history)
