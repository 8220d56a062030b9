"""Abstract, append-only repository for status history entries."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rms.domain.model.reservation import StatusHistoryEntry


class StatusHistoryRepository(ABC):

    @abstractmethod
    def add(self, entry: StatusHistoryEntry) -> None:
        """Stage a new entry.  Entries are never updated or removed."""

    @abstractmethod
    def list_for_reservation(self, reservation_id: int) -> list[StatusHistoryEntry]:
        """Return the entries of one reservation in creation order."""
