"""Abstract repository for shop names.

Shops themselves are managed elsewhere; the workflow only needs a
display name for stock alerts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ShopRepository(ABC):

    @abstractmethod
    def get_name(self, shop_id: str) -> str | None:
        """Return the shop's display name, or None if the shop is unknown."""

    @abstractmethod
    def save(self, shop_id: str, name: str) -> None:
        """Register or rename a shop."""
