"""In-memory resource cache fed by watch streams.

Objects are stored as raw Kubernetes dicts, keyed by kind and then by
``(namespace, name)``.  Cluster-scoped objects use an empty namespace.
Readers always receive deep copies so no caller can mutate cached state.
"""

from __future__ import annotations

import copy
import threading
from typing import Any

from albingress.errors import CacheNotSyncedError
from albingress.observability.logging import get_logger

_logger = get_logger("cache")


def _object_key(obj: dict[str, Any]) -> tuple[str, str]:
    metadata = obj.get("metadata", {})
    return (str(metadata.get("namespace") or ""), str(metadata.get("name") or ""))


class ResourceCache:
    """Thread-safe store of the latest known state of each watched object."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._store: dict[str, dict[tuple[str, str], dict[str, Any]]] = {}
        self._synced_kinds: set[str] = set()

    def replace(self, kind: str, items: list[dict[str, Any]]) -> None:
        """Replace every object of *kind* with *items* and mark the kind synced.

        Called with the result of an initial list or a relist after a watch
        stream expired.
        """
        fresh = {_object_key(item): copy.deepcopy(item) for item in items}
        with self._lock:
            self._store[kind] = fresh
            self._synced_kinds.add(kind)
        _logger.debug("cache_replaced", kind=kind, count=len(fresh))

    def update(self, kind: str, obj: dict[str, Any]) -> None:
        key = _object_key(obj)
        with self._lock:
            self._store.setdefault(kind, {})[key] = copy.deepcopy(obj)

    def remove(self, kind: str, namespace: str, name: str) -> None:
        with self._lock:
            self._store.get(kind, {}).pop((namespace, name), None)

    def get(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        with self._lock:
            obj = self._store.get(kind, {}).get((namespace, name))
            return copy.deepcopy(obj) if obj is not None else None

    def list(self, kind: str) -> list[dict[str, Any]]:
        """Return every cached object of *kind*.

        Raises:
            CacheNotSyncedError: *kind* has never been populated by ``replace``.
        """
        with self._lock:
            if kind not in self._synced_kinds:
                raise CacheNotSyncedError(kind)
            return [copy.deepcopy(obj) for obj in self._store.get(kind, {}).values()]

    def is_synced(self, kind: str) -> bool:
        with self._lock:
            return kind in self._synced_kinds

    def count(self, kind: str) -> int:
        with self._lock:
            return len(self._store.get(kind, {}))
