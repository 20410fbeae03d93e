"""Node watcher: translates node watch events into typed node events."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from albingress.collector.watcher import BaseWatcher
from albingress.models.events import (
    NodeCreateEvent,
    NodeDeleteEvent,
    NodeEvent,
    NodeUpdateEvent,
)

NodeEventSink = Callable[[NodeEvent], None]


def _node_name(raw: dict[str, Any]) -> str:
    return str(raw.get("metadata", {}).get("name") or "")


class NodeWatcher(BaseWatcher):
    """Keeps the last seen state of every node so updates carry old and new."""

    kind = "Node"

    def __init__(self, v1: Any, sink: NodeEventSink, api_client: Any = None) -> None:
        super().__init__(api_client)
        self._v1 = v1
        self._sink = sink
        self._nodes: dict[str, dict[str, Any]] = {}

    def _list_fn(self) -> Callable[..., Awaitable[Any]]:
        return self._v1.list_node  # type: ignore[no-any-return]

    def _on_relist(self, items: list[dict[str, Any]]) -> None:
        # Diff against the previous view so changes missed while disconnected
        # are still delivered.
        previous = self._nodes
        current = {_node_name(item): item for item in items if _node_name(item)}
        self._nodes = current
        for name, node in current.items():
            old = previous.get(name)
            if old is None:
                self._sink(NodeCreateEvent(node=node))
            elif old.get("metadata", {}).get("resourceVersion") != node.get("metadata", {}).get("resourceVersion"):
                self._sink(NodeUpdateEvent(old_node=old, new_node=node))
        for name, node in previous.items():
            if name not in current:
                self._sink(NodeDeleteEvent(node=node))

    def _handle_event(self, event_type: str, raw: dict[str, Any]) -> None:
        name = _node_name(raw)
        if not name:
            return
        if event_type in ("ADDED", "MODIFIED"):
            old = self._nodes.get(name)
            self._nodes[name] = raw
            if old is None:
                self._sink(NodeCreateEvent(node=raw))
            else:
                self._sink(NodeUpdateEvent(old_node=old, new_node=raw))
        elif event_type == "DELETED":
            self._nodes.pop(name, None)
            self._sink(NodeDeleteEvent(node=raw))
