"""JSON-document implementation of ShopRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rms.domain.repository.shop_repository import ShopRepository

if TYPE_CHECKING:
    from rms.infrastructure.persistence.json_store import JsonUnitOfWork


class JsonShopRepository(ShopRepository):

    def __init__(self, uow: JsonUnitOfWork) -> None:
        self._uow = uow

    def get_name(self, shop_id: str) -> str | None:
        if shop_id in self._uow.staged_shops:
            return self._uow.staged_shops[shop_id]
        for raw in self._uow.document()["shops"]:
            if raw["id"] == shop_id:
                return raw["name"]
        return None

    def save(self, shop_id: str, name: str) -> None:
        self._uow.staged_shops[shop_id] = name
