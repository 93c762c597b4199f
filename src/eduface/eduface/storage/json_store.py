from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Optional, Tuple

from ..core.exceptions import StoreUnavailableError
from .repository import DocumentStore, Writer

logger = logging.getLogger(__name__)

_PARTITION_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class JsonFileStore(DocumentStore):
    """Embedded local store: one ``<partition>.json`` file per partition.

    Writes go to a temp file and are moved into place, so a crash never leaves
    a half-written document. One re-entrant lock per partition serialises
    writers inside this process.
    """

    def __init__(self, root: str | Path):
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _path(self, partition: str) -> Path:
        if not _PARTITION_RE.match(partition or ""):
            raise ValueError(f"Invalid partition key: {partition!r}")
        return self._root / f"{partition}.json"

    def _lock_for(self, partition: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(partition)
            if lock is None:
                lock = threading.RLock()
                self._locks[partition] = lock
            return lock

    def read(self, partition: str) -> Optional[Any]:
        path = self._path(partition)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read local store: {e}") from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse %s: %s", path, e)
            return None

    def write(self, partition: str, blob: dict) -> None:
        path = self._path(partition)
        with self._lock_for(partition):
            fd, tmp_name = tempfile.mkstemp(prefix=f".{partition}.", suffix=".tmp", dir=self._root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(blob, fh, ensure_ascii=False)
                os.replace(tmp_name, path)
            except OSError as e:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise StoreUnavailableError(f"Cannot write local store: {e}") from e

    @contextmanager
    def locked(self, partition: str) -> Iterator[Tuple[Optional[Any], Writer]]:
        with self._lock_for(partition):
            blob = self.read(partition)

            def write(new_blob: dict) -> None:
                self.write(partition, new_blob)

            yield blob, write
