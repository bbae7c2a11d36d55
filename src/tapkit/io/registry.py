"""
Process-wide in-memory dataset registry.

Backs InMemoryTap: a completed in-memory output step publishes its records under
an opaque RegistryId, and later stages in the same process read them back without
a round trip through storage.

Lifecycle
- new_id() hands out a uuid4 token that is never reused in the process.
- put() inserts a snapshot exactly once, before the id is published in a tap.
- get() may be called any number of times, from any thread; entries are immutable tuples.
- remove()/clear() are teardown operations.

Concurrency
- Inserts and removals take a lock (single writer, write-before-publish).
- Reads are lock-free: a published entry is an immutable tuple referenced from a dict,
  and a dict lookup never observes a half-inserted value.

Notes
- Unknown ids and double inserts are programming defects and raise RegistryError
  subclasses immediately.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterable
from typing import Any

from tapkit.core.typing import RegistryId

from .errors import RegistryDuplicateError, RegistryKeyError

logger = logging.getLogger(__name__)


class InMemoryRegistry:
    """
    Thread-safe `RegistryId -> tuple of records` store.

    Notes:
        Tests should build their own instance; production code shares the one returned
        by default_registry(). Taps receive a registry explicitly at construction.
    """

    def __init__(self) -> None:
        self._entries: dict[RegistryId, tuple[Any, ...]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def new_id() -> RegistryId:
        """Return a fresh, globally unique registry id."""
        return RegistryId(uuid.uuid4().hex)

    def put(self, registry_id: RegistryId, records: Iterable[Any]) -> None:
        """
        Publish records under an id.

        Args:
            registry_id (RegistryId): Id obtained from new_id().
            records (Iterable[Any]): Records to store. The iterable is consumed and
                snapshotted before the entry becomes visible.

        Raises:
            RegistryDuplicateError: If the id was already inserted.
        """
        snapshot = tuple(records)
        with self._lock:
            if registry_id in self._entries:
                raise RegistryDuplicateError(f"registry id {registry_id!r} already inserted")
            self._entries[registry_id] = snapshot
        logger.debug("registry put %s (%d records)", registry_id, len(snapshot))

    def get(self, registry_id: RegistryId) -> tuple[Any, ...]:
        """
        Look up the records published under an id.

        Returns:
            tuple[Any, ...]: Records in insertion order.

        Raises:
            RegistryKeyError: If the id was never inserted (or was removed). This usually
                means the producing step never ran in this process.
        """
        try:
            return self._entries[registry_id]
        except KeyError:
            raise RegistryKeyError(f"unknown registry id {registry_id!r}") from None

    def remove(self, registry_id: RegistryId) -> None:
        """
        Drop an entry at teardown.

        Raises:
            RegistryKeyError: If the id is unknown.
        """
        with self._lock:
            if self._entries.pop(registry_id, None) is None:
                raise RegistryKeyError(f"unknown registry id {registry_id!r}")
        logger.debug("registry removed %s", registry_id)

    def clear(self) -> None:
        """Drop every entry."""
        with self._lock:
            self._entries.clear()

    def __contains__(self, registry_id: object) -> bool:
        return registry_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


_DEFAULT_REGISTRY = InMemoryRegistry()


def default_registry() -> InMemoryRegistry:
    """Return the process-wide registry."""
    return _DEFAULT_REGISTRY
