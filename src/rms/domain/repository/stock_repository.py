"""Abstract repository for shop-scoped stock.

Defined in the domain layer so the domain never depends on
infrastructure.  The cross-shop invariant (the shop quantities of an item
never add up to more than its global quantity) is the repository's job.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from rms.domain.model.inventory import StockUnit


class StockRepository(ABC):

    @abstractmethod
    def read_quantities(self, item_id: str, shop_id: str) -> StockUnit | None:
        """Snapshot read of an item at a shop, or None if it is not stocked there."""

    @abstractmethod
    def lock_for_update(self, item_id: str, shop_id: str) -> StockUnit | None:
        """Read with a row lock held until the unit of work ends."""

    @abstractmethod
    def deduct(self, item_id: str, shop_id: str, amount: int) -> StockUnit:
        """Deduct *amount* from shop and global stock.

        Raises InsufficientStockError without changing anything when the
        current quantities cannot cover it.  Callers must hold the lock.
        """

    @abstractmethod
    def set_quantities(
        self,
        item_id: str,
        item_name: str,
        shop_id: str,
        shop_quantity: int,
        global_quantity: int | None = None,
    ) -> StockUnit:
        """Administrative restock / correction of an item at a shop."""

    @abstractmethod
    def list_all(self) -> list[StockUnit]:
        """Return every (item, shop) stock record."""
