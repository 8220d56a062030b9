"""Application service: Confirm Reservation use case.

Orchestrates the domain service (stock deduction) and the Reservation
aggregate (state transition) inside one unit of work: the reservation
row and every stock row it draws on stay locked from the status check to
the commit, so concurrent confirmations can never oversell.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from rms.application.dto import ConfirmationResult, to_reservation_dto
from rms.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    InvalidTransitionError,
    StorageError,
)
from rms.domain.model.reservation import utcnow
from rms.domain.repository.unit_of_work import UnitOfWork
from rms.domain.service.status_history_recorder import StatusHistoryRecorder
from rms.domain.service.stock_allocation_service import StockAllocationService

logger = structlog.get_logger()


class ConfirmReservationHandler:

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
        note: str | None = None,
    ) -> ConfirmationResult:
        log = logger.bind(reservation_id=reservation_id, actor=actor)
        log.info("Confirming reservation")

        try:
            with self._uow_factory() as uow:
                reservation = uow.reservations.get_for_update(reservation_id)
                if reservation is None:
                    raise EntityNotFoundError(f"Reservation #{reservation_id} not found")

                # Checked under the row lock, so a retry re-evaluates it.
                if not reservation.status.is_confirmable:
                    raise InvalidTransitionError(
                        f"cannot confirm reservation in status {reservation.status.value}"
                    )

                deductions = StockAllocationService(uow.stock).deduct_for_reservation(
                    reservation
                )
                StatusHistoryRecorder(uow.history).confirm(
                    reservation, actor, self._clock(), note
                )
                uow.reservations.save(reservation)
                uow.commit()
        except InsufficientStockError as exc:
            log.info("Reservation not confirmed, stock too low", shortages=exc.shortages)
            raise
        except StorageError:
            log.error("Confirmation rolled back after a storage failure")
            raise

        log.info(
            "Reservation confirmed",
            deductions=[(d.item_id, d.quantity) for d in deductions],
        )
        return ConfirmationResult(
            reservation=to_reservation_dto(reservation),
            deductions=deductions,
        )
