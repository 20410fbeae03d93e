"""Ingress watcher: mirrors networking.k8s.io/v1 Ingresses into the cache."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from albingress.collector.watcher import BaseWatcher
from albingress.ingress.group import INGRESS_KIND

if TYPE_CHECKING:
    from albingress.cache import ResourceCache


class IngressWatcher(BaseWatcher):
    kind = INGRESS_KIND

    def __init__(self, networking_v1: Any, cache: ResourceCache, api_client: Any = None) -> None:
        super().__init__(api_client)
        self._networking_v1 = networking_v1
        self._cache = cache

    def _list_fn(self) -> Callable[..., Awaitable[Any]]:
        return self._networking_v1.list_ingress_for_all_namespaces  # type: ignore[no-any-return]

    def _on_relist(self, items: list[dict[str, Any]]) -> None:
        self._cache.replace(INGRESS_KIND, items)

    def _handle_event(self, event_type: str, raw: dict[str, Any]) -> None:
        if event_type in ("ADDED", "MODIFIED"):
            self._cache.update(INGRESS_KIND, raw)
        elif event_type == "DELETED":
            metadata = raw.get("metadata", {})
            self._cache.remove(INGRESS_KIND, str(metadata.get("namespace") or ""), str(metadata.get("name") or ""))
