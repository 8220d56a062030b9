"""Application service: Record Payment use case.

Customers may pay more of the balance before pickup.  The payment moves
money from ``remaining`` to ``deposit``; the total never changes.
"""

from __future__ import annotations

from typing import Callable

import structlog

from rms.application.dto import ReservationDTO, to_reservation_dto
from rms.domain.exceptions import EntityNotFoundError
from rms.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class RecordPaymentHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, reservation_id: int, amount: int, actor: str) -> ReservationDTO:
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_for_update(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation #{reservation_id} not found")

            reservation.apply_payment(amount)
            uow.reservations.save(reservation)
            uow.commit()

        logger.info(
            "Payment recorded",
            reservation_id=reservation_id,
            amount=amount,
            remaining=reservation.remaining,
            actor=actor,
        )
        return to_reservation_dto(reservation)
