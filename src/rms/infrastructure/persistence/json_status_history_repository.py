"""JSON-document implementation of StatusHistoryRepository (append-only)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rms.domain.model.reservation import StatusHistoryEntry
from rms.domain.repository.status_history_repository import StatusHistoryRepository
from rms.infrastructure.persistence import serialization

if TYPE_CHECKING:
    from rms.infrastructure.persistence.json_store import JsonUnitOfWork


class JsonStatusHistoryRepository(StatusHistoryRepository):

    def __init__(self, uow: JsonUnitOfWork) -> None:
        self._uow = uow

    def add(self, entry: StatusHistoryEntry) -> None:
        self._uow.staged_history.append(entry)

    def list_for_reservation(self, reservation_id: int) -> list[StatusHistoryEntry]:
        committed = [
            serialization.history_from_raw(raw)
            for raw in self._uow.document()["status_history"]
            if raw["reservation_id"] == reservation_id
        ]
        staged = [e for e in self._uow.staged_history if e.reservation_id == reservation_id]
        return committed + staged
