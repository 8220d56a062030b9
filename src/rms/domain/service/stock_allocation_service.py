"""Domain service: Stock Allocation.

Coordinates the cross-aggregate work between a reservation and the stock
it draws on: the read-only deficit assessment done at creation, and the
check-then-deduct done at confirmation.

Deduction uses a two-phase approach (lock-and-validate, then mutate) so
stock is never left partially deducted when one line comes up short.
"""

from __future__ import annotations

import structlog

from rms.domain.exceptions import EntityNotFoundError, InsufficientStockError
from rms.domain.model.inventory import StockDeduction, StockUnit
from rms.domain.model.reservation import Reservation, ReservationLine
from rms.domain.model.stock_deficit import GLOBAL_SHOP_ID, StockDeficit
from rms.domain.repository.stock_repository import StockRepository

logger = structlog.get_logger()


class StockAllocationService:

    def __init__(self, stock_repo: StockRepository) -> None:
        self._stock_repo = stock_repo

    # --- Creation: read-only assessment ---------------------------------------

    def load_units(self, shop_id: str, item_ids: list[str]) -> dict[str, StockUnit]:
        """Snapshot-read every referenced item at the shop."""
        units: dict[str, StockUnit] = {}
        for item_id in item_ids:
            if item_id in units:
                continue
            unit = self._stock_repo.read_quantities(item_id, shop_id)
            if unit is None:
                raise EntityNotFoundError(
                    f"Item '{item_id}' is not stocked at shop '{shop_id}'"
                )
            units[item_id] = unit
        return units

    @staticmethod
    def deficit_for(unit: StockUnit, quantity: int) -> StockDeficit | None:
        """Deficit for one line, or None when stock covers it.

        The shop stock is checked first.  When the shop has enough but the
        item's global stock does not, a separate global deficit is
        reported against the pseudo shop ``"global"``.
        """
        if unit.shop_quantity < quantity:
            return StockDeficit.compute(
                unit.item_name, quantity, unit.shop_quantity, unit.shop_id
            )
        if unit.global_quantity < quantity:
            return StockDeficit.compute(
                f"{unit.item_name} (global stock)",
                quantity,
                unit.global_quantity,
                GLOBAL_SHOP_ID,
            )
        return None

    def assess(
        self, units: dict[str, StockUnit], lines: list[ReservationLine]
    ) -> list[StockDeficit]:
        """Return the deficits of *lines* against the loaded *units*.  Never mutates.

        Each line is checked on its own, so two lines for the same item can
        both pass here and still fail together at confirmation, where
        quantities are summed per item.
        """
        deficits: list[StockDeficit] = []
        for line in lines:
            deficit = self.deficit_for(units[line.item_id], line.quantity.value)
            if deficit is not None:
                deficits.append(deficit)
        return deficits

    # --- Confirmation: lock, check, deduct ------------------------------------

    def deduct_for_reservation(self, reservation: Reservation) -> list[StockDeduction]:
        """Permanently deduct every line of *reservation* from stock.

        Phase 1 locks and validates.  Row locks are taken in item order and
        every item is checked against the *sum* of its lines.  Fails before
        any mutation.
        Phase 2 deducts each item once through the repository.
        """
        requested: dict[str, int] = {}
        for line in reservation.lines:
            requested[line.item_id] = requested.get(line.item_id, 0) + line.quantity.value

        # Phase 1: lock all stock rows and validate
        locked: dict[str, StockUnit] = {}
        for item_id in sorted(requested):
            unit = self._stock_repo.lock_for_update(item_id, reservation.shop_id)
            if unit is None:
                raise EntityNotFoundError(
                    f"Item '{item_id}' is no longer stocked at shop "
                    f"'{reservation.shop_id}'"
                )
            locked[item_id] = unit

        shortages = [
            (locked[item_id].item_name, qty, locked[item_id].available_quantity)
            for item_id, qty in requested.items()
            if not locked[item_id].can_supply(qty)
        ]
        if shortages:
            logger.info(
                "Stock check failed",
                reservation_id=reservation.id,
                shortages=shortages,
            )
            raise InsufficientStockError(shortages=shortages)

        # Phase 2: mutate
        deductions: list[StockDeduction] = []
        for item_id, qty in requested.items():
            before = locked[item_id]
            after = self._stock_repo.deduct(item_id, reservation.shop_id, qty)
            deductions.append(
                StockDeduction(
                    item_id=item_id,
                    item_name=before.item_name,
                    quantity=qty,
                    old_shop_quantity=before.shop_quantity,
                    new_shop_quantity=after.shop_quantity,
                    old_global_quantity=before.global_quantity,
                    new_global_quantity=after.global_quantity,
                )
            )
        return deductions
