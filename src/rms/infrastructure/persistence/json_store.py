"""JSON-document store with a transactional Unit of Work.

The whole state lives in one JSON document::

    {
      "reservations":   [ {... embedded "lines": [...] ...} ],
      "status_history": [ {...}, ... ],   # append-only
      "items":          [ {"item_id", "name", "global_quantity",
                           "shops": {shop_id: quantity}} ],
      "shops":          [ {"id", "name"} ]
    }

A unit of work reads the committed document, stages its writes in
memory, and on commit re-reads the latest document, applies the staged
writes and swaps the file in with a single ``os.replace``, so a commit is
all or nothing.  Row locks (one per reservation, one per item) are held
from ``get_for_update``/``lock_for_update`` until commit or rollback.

Every CLI command is its own process, so both the row locks and the
commit lock are file locks (see ``files``) shared by every process using
the same store file.
"""

from __future__ import annotations

import copy
import hashlib
import json
import re
import threading
import time
from pathlib import Path
from typing import IO

import structlog

from rms.domain.exceptions import StorageError
from rms.domain.model.reservation import Reservation, StatusHistoryEntry
from rms.domain.repository.unit_of_work import UnitOfWork
from rms.infrastructure.persistence import serialization
from rms.infrastructure.persistence.files import (
    exclusive_lock,
    lock_handle,
    sidecar_lock_path,
    unlock_handle,
    write_json_atomic,
)
from rms.infrastructure.persistence.json_reservation_repository import (
    JsonReservationRepository,
)
from rms.infrastructure.persistence.json_shop_repository import JsonShopRepository
from rms.infrastructure.persistence.json_status_history_repository import (
    JsonStatusHistoryRepository,
)
from rms.infrastructure.persistence.json_stock_repository import JsonStockRepository

logger = structlog.get_logger()

EMPTY_DOCUMENT = {"reservations": [], "status_history": [], "items": [], "shops": []}


class RowLocks:
    """One lock per row key, exclusive across threads and processes.

    A thread first takes the in-process mutex for the row, then an
    ``flock`` on the row's file under *lock_dir*.  Both waits share one
    deadline of *timeout* seconds.
    """

    def __init__(self, lock_dir: Path, timeout: float) -> None:
        self._lock_dir = lock_dir
        self._timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._handles: dict[tuple[str, str], IO[str]] = {}

    def acquire(self, key: tuple[str, str]) -> None:
        what = f"{key[0]} '{key[1]}'"
        deadline = time.monotonic() + self._timeout
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        if not lock.acquire(timeout=self._timeout):
            raise StorageError(f"Timed out waiting for lock on {what}")
        try:
            self._lock_dir.mkdir(parents=True, exist_ok=True)
            handle = self._lock_dir.joinpath(_lock_file_name(key)).open("a")
        except OSError as exc:
            lock.release()
            raise StorageError(f"Cannot open lock file for {what}: {exc}") from exc
        try:
            lock_handle(handle, max(0.0, deadline - time.monotonic()), what)
        except StorageError:
            handle.close()
            lock.release()
            raise
        with self._guard:
            self._handles[key] = handle

    def release(self, key: tuple[str, str]) -> None:
        with self._guard:
            handle = self._handles.pop(key)
        try:
            unlock_handle(handle)
            handle.close()
        finally:
            self._locks[key].release()


def _lock_file_name(key: tuple[str, str]) -> str:
    readable = re.sub(r"[^A-Za-z0-9_.-]", "_", f"{key[0]}-{key[1]}")[:64]
    digest = hashlib.sha1("\0".join(key).encode("utf-8")).hexdigest()[:12]
    return f"{readable}-{digest}.lock"


class JsonStore:

    def __init__(self, file_path: Path, lock_timeout: float = 10.0) -> None:
        self._file_path = file_path
        self._lock_timeout = lock_timeout
        self._commit_lock_path = sidecar_lock_path(file_path)
        self._write_lock = threading.Lock()
        self.row_locks = RowLocks(
            file_path.parent / f".{file_path.name}.locks", lock_timeout
        )
        self._ensure_file()

    def unit_of_work(self) -> JsonUnitOfWork:
        return JsonUnitOfWork(self)

    # --- Document I/O ---------------------------------------------------------

    def load(self) -> dict:
        try:
            raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Cannot read store {self._file_path}: {exc}") from exc
        for key, empty in EMPTY_DOCUMENT.items():
            raw.setdefault(key, list(empty))
        return raw

    def apply(self, uow: JsonUnitOfWork) -> None:
        """Merge *uow*'s staged writes into the latest document and persist.

        The commit lock keeps other processes from writing between the
        re-read and the replace.
        """
        with self._write_lock, exclusive_lock(self._commit_lock_path, self._lock_timeout):
            doc = self.load()

            new_ids: list[tuple[Reservation, int]] = []
            next_id = max((r["id"] for r in doc["reservations"]), default=0) + 1
            for reservation in uow.new_reservations:
                new_ids.append((reservation, next_id))
                doc["reservations"].append(
                    serialization.reservation_to_raw(reservation, next_id)
                )
                next_id += 1

            by_id = {r["id"]: i for i, r in enumerate(doc["reservations"])}
            for reservation_id, reservation in uow.staged_reservations.items():
                raw = serialization.reservation_to_raw(reservation, reservation_id)
                if reservation_id in by_id:
                    doc["reservations"][by_id[reservation_id]] = raw
                else:
                    doc["reservations"].append(raw)

            doc["status_history"].extend(
                serialization.history_to_raw(e) for e in uow.staged_history
            )

            items_by_id = {r["item_id"]: i for i, r in enumerate(doc["items"])}
            for item_id, raw_item in uow.staged_items.items():
                if item_id in items_by_id:
                    doc["items"][items_by_id[item_id]] = raw_item
                else:
                    doc["items"].append(raw_item)

            shops_by_id = {s["id"]: i for i, s in enumerate(doc["shops"])}
            for shop_id, name in uow.staged_shops.items():
                raw_shop = {"id": shop_id, "name": name}
                if shop_id in shops_by_id:
                    doc["shops"][shops_by_id[shop_id]] = raw_shop
                else:
                    doc["shops"].append(raw_shop)

            self._persist(doc)

        # Only visible once the document is on disk.
        for reservation, reservation_id in new_ids:
            reservation.id = reservation_id

    # --- File helpers ---------------------------------------------------------

    def _persist(self, doc: dict) -> None:
        try:
            write_json_atomic(self._file_path, doc)
        except OSError as exc:
            raise StorageError(f"Cannot write store {self._file_path}: {exc}") from exc

    def _ensure_file(self) -> None:
        if self._file_path.exists():
            return
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        with exclusive_lock(self._commit_lock_path, self._lock_timeout):
            if not self._file_path.exists():
                self._persist(copy.deepcopy(EMPTY_DOCUMENT))


class JsonUnitOfWork(UnitOfWork):

    def __init__(self, store: JsonStore) -> None:
        self._store = store
        self._document: dict | None = None
        self._held: list[tuple[str, str]] = []

        self.new_reservations: list[Reservation] = []
        self.staged_reservations: dict[int, Reservation] = {}
        self.staged_history: list[StatusHistoryEntry] = []
        self.staged_items: dict[str, dict] = {}
        self.staged_shops: dict[str, str] = {}

        self.reservations = JsonReservationRepository(self)
        self.history = JsonStatusHistoryRepository(self)
        self.stock = JsonStockRepository(self)
        self.shops = JsonShopRepository(self)

    # --- UnitOfWork interface -------------------------------------------------

    def commit(self) -> None:
        try:
            self._store.apply(self)
        except StorageError:
            logger.error("Commit failed, rolling back")
            self.rollback()
            raise
        self._clear()
        self._release_locks()

    def rollback(self) -> None:
        self._clear()
        self._release_locks()

    # --- Session helpers used by the JSON repositories ------------------------

    def document(self) -> dict:
        """The committed state as last read by this unit of work."""
        if self._document is None:
            self._document = self._store.load()
        return self._document

    def lock(self, kind: str, key: str) -> None:
        """Take a row lock (once per unit of work) and re-read committed state."""
        row = (kind, str(key))
        if row not in self._held:
            self._store.row_locks.acquire(row)
            self._held.append(row)
        self._document = self._store.load()

    def holds(self, kind: str, key: str) -> bool:
        return (kind, str(key)) in self._held

    def copy_of(self, raw: dict) -> dict:
        return copy.deepcopy(raw)

    # --- Internal helpers -----------------------------------------------------

    def _clear(self) -> None:
        self.new_reservations.clear()
        self.staged_reservations.clear()
        self.staged_history.clear()
        self.staged_items.clear()
        self.staged_shops.clear()
        self._document = None

    def _release_locks(self) -> None:
        while self._held:
            self._store.row_locks.release(self._held.pop())
