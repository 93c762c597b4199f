from __future__ import annotations

from typing import Any, Callable, ContextManager, Optional, Protocol, Tuple

Writer = Callable[[dict], None]


class DocumentStore(Protocol):
    """Backend interface: one JSON document per partition.

    Note (DIP): RecordStore depends on this interface, not on a concrete backend.
    Both the embedded file store and the remote MySQL store implement it; every
    call may block on I/O.
    """

    def read(self, partition: str) -> Optional[Any]:
        """Return the stored JSON value, or None when the partition was never written."""

        raise NotImplementedError

    def write(self, partition: str, blob: dict) -> None:
        raise NotImplementedError

    def locked(self, partition: str) -> ContextManager[Tuple[Optional[Any], Writer]]:
        """Hold the partition's single-writer lock.

        Yields ``(blob, write)``; ``write`` persists inside the same lock. If the
        block raises, nothing written through ``write`` may become visible on
        backends that support rollback.
        """

        raise NotImplementedError
