"""Application service: Create Reservation use case.

Reads current stock to classify the reservation (PENDING or
PENDING_STOCK) but never changes it: a reservation is never refused for
lack of stock.  When lines are short, a stock alert goes out *after* the
transaction has committed.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable

import structlog

from rms.application.dto import CreationResult, ReservationLineSpec, to_reservation_dto
from rms.application.notifications import StockAlert, StockAlertNotifier
from rms.domain.exceptions import EntityNotFoundError, ValidationError
from rms.domain.model.reservation import Reservation, ReservationLine, utcnow
from rms.domain.model.stock_deficit import StockDeficit
from rms.domain.model.value_objects import PaymentBreakdown, Quantity
from rms.domain.repository.unit_of_work import UnitOfWork
from rms.domain.service.stock_allocation_service import StockAllocationService

logger = structlog.get_logger()


class CreateReservationHandler:

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        notifier: StockAlertNotifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._clock = clock

    def handle(
        self,
        client_id: str,
        shop_id: str,
        line_specs: list[ReservationLineSpec],
        pickup_date: date,
        total: int,
        deposit: int,
        remaining: int,
        actor: str,
    ) -> CreationResult:
        """Create a reservation.

        Steps:
        1. Validate amounts and lines (fail before touching the store).
        2. Snapshot-read stock for every line and compute deficits.
        3. Let the Reservation aggregate validate the remaining rules and
           pick the initial status.
        4. Persist, commit, then alert if anything was short.
        """
        amounts = PaymentBreakdown(total=total, deposit=deposit, remaining=remaining)
        if not line_specs:
            raise ValidationError("Reservation must contain at least one line")
        now = self._clock()

        with self._uow_factory() as uow:
            shop_name = uow.shops.get_name(shop_id)
            if shop_name is None:
                raise EntityNotFoundError(f"Shop '{shop_id}' not found")

            svc = StockAllocationService(uow.stock)
            units = svc.load_units(shop_id, [spec.item_id for spec in line_specs])
            lines = [
                ReservationLine(
                    item_id=spec.item_id,
                    item_name=units[spec.item_id].item_name,
                    quantity=Quantity(spec.quantity),
                    deposit_allocation=spec.deposit_allocation,
                )
                for spec in line_specs
            ]
            deficits = svc.assess(units, lines)

            reservation = Reservation.create(
                client_id=client_id,
                shop_id=shop_id,
                lines=lines,
                pickup_date=pickup_date,
                amounts=amounts,
                created_by=actor,
                has_stock_issue=bool(deficits),
                now=now,
            )
            uow.reservations.save(reservation)
            uow.commit()

        logger.info(
            "Reservation created",
            reservation_id=reservation.id,
            shop_id=shop_id,
            status=reservation.status.value,
            deficits=len(deficits),
            created_by=actor,
        )

        if deficits:
            self._send_stock_alert(reservation, shop_name, deficits)

        return CreationResult(
            reservation=to_reservation_dto(reservation),
            deficits=deficits,
        )

    def _send_stock_alert(
        self,
        reservation: Reservation,
        shop_name: str,
        deficits: list[StockDeficit],
    ) -> None:
        if self._notifier is None:
            logger.warning("No notifier configured, stock alert dropped",
                           reservation_id=reservation.id)
            return
        alert = StockAlert.build(reservation, shop_name, deficits)
        try:
            self._notifier.notify(alert)
        except Exception:
            # Already committed, the alert cannot undo it.
            logger.exception("Stock alert delivery failed",
                             reservation_id=reservation.id)
