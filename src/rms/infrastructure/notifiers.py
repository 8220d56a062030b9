"""Stock alert delivery channels.

Real push and e-mail delivery are handled outside this system; alerts are
logged and written to a JSON outbox that a delivery worker drains.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path

import structlog

from rms.application.notifications import StockAlert, StockAlertNotifier
from rms.infrastructure.persistence.files import (
    exclusive_lock,
    sidecar_lock_path,
    write_json_atomic,
)

logger = structlog.get_logger()


class LoggingStockAlertNotifier(StockAlertNotifier):

    def notify(self, alert: StockAlert) -> None:
        logger.warning(
            alert.title,
            reservation_id=alert.reservation_id,
            priority=alert.priority.value,
            items_count=alert.item_count,
            total_deficit=alert.total_deficit,
        )


class JsonOutboxNotifier(StockAlertNotifier):
    """Append alerts to a JSON list file.

    The read-append-replace runs under a file lock shared with every other
    process writing the same outbox.
    """

    def __init__(self, file_path: Path, lock_timeout: float = 10.0) -> None:
        self._file_path = file_path
        self._lock_path = sidecar_lock_path(file_path)
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._ensure_file()

    def notify(self, alert: StockAlert) -> None:
        with self._lock, exclusive_lock(self._lock_path, self._lock_timeout):
            records = json.loads(self._file_path.read_text(encoding="utf-8"))
            records.append(alert.to_dict())
            write_json_atomic(self._file_path, records)

    def pending(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _ensure_file(self) -> None:
        if self._file_path.exists():
            return
        with exclusive_lock(self._lock_path, self._lock_timeout):
            if not self._file_path.exists():
                write_json_atomic(self._file_path, [])


class FanOutNotifier(StockAlertNotifier):
    """Deliver to every channel; one failing channel does not stop the others."""

    def __init__(self, channels: list[StockAlertNotifier]) -> None:
        self._channels = list(channels)

    def notify(self, alert: StockAlert) -> None:
        for channel in self._channels:
            try:
                channel.notify(alert)
            except Exception:
                logger.exception(
                    "Stock alert channel failed",
                    channel=type(channel).__name__,
                    reservation_id=alert.reservation_id,
                )
