"""Application service: Refresh Stock Status use case.

A reservation created short of stock stays PENDING_STOCK until someone
asks for a re-check after restocking.  If current stock now covers every
line, it moves to PENDING; otherwise it is left alone and the remaining
deficits are reported.  Stock is only read, never changed.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from rms.application.dto import StockRefreshResult, to_reservation_dto
from rms.domain.exceptions import EntityNotFoundError, InvalidTransitionError
from rms.domain.model.reservation import utcnow
from rms.domain.model.status import can_transition_to_ready
from rms.domain.repository.unit_of_work import UnitOfWork
from rms.domain.service.status_history_recorder import StatusHistoryRecorder
from rms.domain.service.stock_allocation_service import StockAllocationService

logger = structlog.get_logger()

RESTOCKED_REASON = "stock replenished"


class RefreshStockStatusHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(self, reservation_id: int, actor: str) -> StockRefreshResult:
        with self._uow_factory() as uow:
            reservation = uow.reservations.get_for_update(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation #{reservation_id} not found")

            if not can_transition_to_ready(reservation.status):
                raise InvalidTransitionError(
                    f"cannot refresh stock status of reservation in status "
                    f"{reservation.status.value}"
                )

            svc = StockAllocationService(uow.stock)
            units = svc.load_units(
                reservation.shop_id, [line.item_id for line in reservation.lines]
            )
            deficits = svc.assess(units, reservation.lines)
            if deficits:
                logger.info(
                    "Reservation still short of stock",
                    reservation_id=reservation_id,
                    deficits=len(deficits),
                )
                return StockRefreshResult(to_reservation_dto(reservation), deficits)

            StatusHistoryRecorder(uow.history).mark_ready(
                reservation, actor, self._clock(), RESTOCKED_REASON
            )
            uow.reservations.save(reservation)
            uow.commit()

        logger.info("Reservation ready after restock", reservation_id=reservation_id)
        return StockRefreshResult(to_reservation_dto(reservation), [])
