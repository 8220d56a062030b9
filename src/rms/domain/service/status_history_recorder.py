"""Domain service: Status History Recorder.

Every accepted status change produces exactly one StatusHistoryEntry,
written through the same unit of work as the status change itself.  A
rejected transition raises before anything is staged, so it leaves no
trace in the history.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

import structlog

from rms.domain.model.reservation import Reservation, StatusHistoryEntry
from rms.domain.repository.status_history_repository import StatusHistoryRepository

logger = structlog.get_logger()


class StatusHistoryRecorder:

    def __init__(self, history_repo: StatusHistoryRepository) -> None:
        self._history_repo = history_repo

    def confirm(
        self, reservation: Reservation, actor: str, at: datetime, note: str | None = None
    ) -> StatusHistoryEntry:
        return self._record(reservation, lambda: reservation.mark_confirmed(actor, at, note))

    def cancel(
        self, reservation: Reservation, actor: str, at: datetime, reason: str | None = None
    ) -> StatusHistoryEntry:
        return self._record(reservation, lambda: reservation.mark_cancelled(actor, at, reason))

    def mark_ready(
        self, reservation: Reservation, actor: str, at: datetime, reason: str | None = None
    ) -> StatusHistoryEntry:
        return self._record(reservation, lambda: reservation.mark_ready(actor, at, reason))

    def _record(
        self,
        reservation: Reservation,
        transition: Callable[[], StatusHistoryEntry],
    ) -> StatusHistoryEntry:
        entry = transition()
        self._history_repo.add(entry)
        logger.debug(
            "Status change recorded",
            reservation_id=reservation.id,
            old_status=entry.old_status.value,
            new_status=entry.new_status.value,
            changed_by=entry.changed_by,
        )
        return entry
