"""Application service: Show Stock use case (query)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from rms.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class StockLineDTO:
    item_id: str
    item_name: str
    shop_id: str
    shop_quantity: int
    global_quantity: int
    available: int


class ShowStockHandler:

    def __init__(self, uow_factory: Callable[[], UnitOfWork]) -> None:
        self._uow_factory = uow_factory

    def handle(self, shop_id: str | None = None) -> list[StockLineDTO]:
        with self._uow_factory() as uow:
            units = uow.stock.list_all()
        return [
            StockLineDTO(
                item_id=unit.item_id,
                item_name=unit.item_name,
                shop_id=unit.shop_id,
                shop_quantity=unit.shop_quantity,
                global_quantity=unit.global_quantity,
                available=unit.available_quantity,
            )
            for unit in units
            if shop_id is None or unit.shop_id == shop_id
        ]
