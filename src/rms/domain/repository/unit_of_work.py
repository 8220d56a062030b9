"""Unit of Work: the transactional boundary of every workflow operation.

A unit of work groups the repositories that one operation touches.  Writes
are staged and only become visible on ``commit()``; leaving the ``with``
block without committing, or through an exception, rolls everything back
and releases any row locks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from rms.domain.repository.reservation_repository import ReservationRepository
from rms.domain.repository.shop_repository import ShopRepository
from rms.domain.repository.status_history_repository import StatusHistoryRepository
from rms.domain.repository.stock_repository import StockRepository


class UnitOfWork(ABC):

    reservations: ReservationRepository
    history: StatusHistoryRepository
    stock: StockRepository
    shops: ShopRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Apply every staged write atomically.

        Raises StorageError (after rolling back) if the store fails.
        """

    @abstractmethod
    def rollback(self) -> None:
        """Discard staged writes and release locks.  Safe to call twice."""
