"""JSON-document implementation of StockRepository.

Items are stored once with their global quantity and a per-shop map, so
the row lock for an item covers its global quantity in every shop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rms.domain.exceptions import ValidationError
from rms.domain.model.inventory import StockUnit
from rms.domain.repository.stock_repository import StockRepository
from rms.infrastructure.persistence import serialization

if TYPE_CHECKING:
    from rms.infrastructure.persistence.json_store import JsonUnitOfWork


class JsonStockRepository(StockRepository):

    def __init__(self, uow: JsonUnitOfWork) -> None:
        self._uow = uow

    # --- StockRepository interface --------------------------------------------

    def read_quantities(self, item_id: str, shop_id: str) -> StockUnit | None:
        raw_item = self._raw_item(item_id)
        if raw_item is None:
            return None
        return serialization.stock_unit_from_raw(raw_item, shop_id)

    def lock_for_update(self, item_id: str, shop_id: str) -> StockUnit | None:
        self._uow.lock("item", item_id)
        return self.read_quantities(item_id, shop_id)

    def deduct(self, item_id: str, shop_id: str, amount: int) -> StockUnit:
        if not self._uow.holds("item", item_id):
            self._uow.lock("item", item_id)
        unit = self.read_quantities(item_id, shop_id)
        if unit is None:
            raise ValidationError(f"Item '{item_id}' is not stocked at shop '{shop_id}'")
        unit.deduct(amount)

        raw_item = self._uow.copy_of(self._raw_item(item_id))
        raw_item["shops"][shop_id] = unit.shop_quantity
        raw_item["global_quantity"] = unit.global_quantity
        self._uow.staged_items[item_id] = raw_item
        return unit

    def set_quantities(
        self,
        item_id: str,
        item_name: str,
        shop_id: str,
        shop_quantity: int,
        global_quantity: int | None = None,
    ) -> StockUnit:
        existing = self._raw_item(item_id)
        if existing is None:
            raw_item = {
                "item_id": item_id,
                "name": item_name,
                "global_quantity": shop_quantity,
                "shops": {},
            }
        else:
            raw_item = self._uow.copy_of(existing)
            raw_item["name"] = item_name

        raw_item["shops"][shop_id] = shop_quantity
        if global_quantity is not None:
            raw_item["global_quantity"] = global_quantity

        allocated = sum(raw_item["shops"].values())
        if allocated > raw_item["global_quantity"]:
            raise ValidationError(
                f"Shop quantities of '{item_name}' ({allocated}) exceed its "
                f"global quantity ({raw_item['global_quantity']})"
            )

        self._uow.staged_items[item_id] = raw_item
        return serialization.stock_unit_from_raw(raw_item, shop_id)  # type: ignore[return-value]

    def list_all(self) -> list[StockUnit]:
        items = {r["item_id"]: r for r in self._uow.document()["items"]}
        items.update(self._uow.staged_items)
        units: list[StockUnit] = []
        for raw_item in items.values():
            for shop_id in raw_item.get("shops", {}):
                units.append(serialization.stock_unit_from_raw(raw_item, shop_id))  # type: ignore[arg-type]
        return units

    # --- Internal helpers -----------------------------------------------------

    def _raw_item(self, item_id: str) -> dict | None:
        if item_id in self._uow.staged_items:
            return self._uow.staged_items[item_id]
        for raw in self._uow.document()["items"]:
            if raw["item_id"] == item_id:
                return raw
        return None
