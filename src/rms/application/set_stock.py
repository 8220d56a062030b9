"""Application service: Set Stock use case."""

from __future__ import annotations

from typing import Callable

import structlog

from rms.domain.exceptions import EntityNotFoundError, ValidationError
from rms.domain.model.inventory import StockUnit
from rms.domain.repository.unit_of_work import UnitOfWork

logger = structlog.get_logger()


class SetStockHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(
        self,
        item_id: str,
        item_name: str,
        shop_id: str,
        shop_quantity: int,
        global_quantity: int | None = None,
    ) -> StockUnit:
        """Set an item's quantity at a shop, and optionally its global quantity.

        Locks the item so a restock cannot interleave with a confirmation.
        """
        if not item_id or not item_name:
            raise ValidationError("Item ID and name are required")
        if shop_quantity < 0 or (global_quantity is not None and global_quantity < 0):
            raise ValidationError("Stock quantities cannot be negative")

        with self._uow_factory() as uow:
            if uow.shops.get_name(shop_id) is None:
                raise EntityNotFoundError(f"Shop '{shop_id}' not found")
            uow.stock.lock_for_update(item_id, shop_id)
            unit = uow.stock.set_quantities(
                item_id, item_name, shop_id, shop_quantity, global_quantity
            )
            uow.commit()

        logger.info(
            "Stock set",
            item_id=item_id,
            shop_id=shop_id,
            shop_quantity=unit.shop_quantity,
            global_quantity=unit.global_quantity,
        )
        return unit
