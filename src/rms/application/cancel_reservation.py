"""Application service: Cancel Reservation use case.

Stock is only ever deducted at confirmation, and confirmed reservations
cannot be cancelled, so cancelling never gives stock back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from rms.application.dto import ReservationDTO, to_reservation_dto
from rms.domain.exceptions import EntityNotFoundError, InvalidTransitionError
from rms.domain.model.reservation import utcnow
from rms.domain.repository.unit_of_work import UnitOfWork
from rms.domain.service.status_history_recorder import StatusHistoryRecorder

logger = structlog.get_logger()


class CancelReservationHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        reservation_id: int,
        actor: str,
        reason: str | None = None,
    ) -> ReservationDTO:
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_for_update(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation #{reservation_id} not found")

            if not reservation.status.is_cancellable:
                raise InvalidTransitionError(
                    f"cannot cancel reservation in status {reservation.status.value}"
                )

            StatusHistoryRecorder(uow.history).cancel(
                reservation, actor, self._clock(), reason
            )
            uow.reservations.save(reservation)
            uow.commit()

        logger.info(
            "Reservation cancelled",
            reservation_id=reservation_id,
            actor=actor,
            reason=reason,
        )
        return to_reservation_dto(reservation)
