"""Cross-process file locking and atomic JSON writes.

Every CLI command runs in its own process, so in-process mutexes alone
cannot serialize access to the data files.  Locks here are advisory
``fcntl.flock`` locks on sidecar files; each ``open()`` gets its own lock
owner, so they also exclude other threads of the same process.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import time
from pathlib import Path
from typing import IO, Any, Iterator

from rms.domain.exceptions import StorageError

try:  # pragma: no cover - Windows fallback
    import fcntl
except ImportError:  # pragma: no cover
    fcntl = None

_POLL_INTERVAL = 0.01


def lock_handle(handle: IO[str], timeout: float | None, what: str) -> None:
    """Take an exclusive lock on *handle*, waiting at most *timeout* seconds."""
    if fcntl is None:
        return
    if timeout is None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        return
    deadline = time.monotonic() + timeout
    while True:
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            return
        except BlockingIOError:
            if time.monotonic() >= deadline:
                raise StorageError(f"Timed out waiting for lock on {what}")
            time.sleep(_POLL_INTERVAL)


def unlock_handle(handle: IO[str]) -> None:
    if fcntl is not None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextlib.contextmanager
def exclusive_lock(lock_path: Path, timeout: float | None = None) -> Iterator[None]:
    """Hold an exclusive lock on *lock_path* for the duration of the block."""
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        handle = lock_path.open("a")
    except OSError as exc:
        raise StorageError(f"Cannot open lock file {lock_path}: {exc}") from exc
    with handle:
        lock_handle(handle, timeout, str(lock_path))
        try:
            yield
        finally:
            unlock_handle(handle)


def sidecar_lock_path(file_path: Path) -> Path:
    return file_path.with_suffix(file_path.suffix + ".lock")


def write_json_atomic(file_path: Path, data: Any) -> None:
    """Write *data* to a temp file next to *file_path*, then swap it in.

    Raises OSError; readers see either the old or the new document.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=str(file_path.parent), prefix=f".{file_path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(json.dumps(data, indent=2) + "\n")
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, file_path)
    finally:
        if tmp_path.exists():
            with contextlib.suppress(FileNotFoundError):
                tmp_path.unlink()
