"""Node event types delivered to the node event handler.

Each event kind is its own frozen dataclass so handlers can dispatch on the
type without inspecting payload shapes.  Node payloads are raw Kubernetes
objects (``metadata`` / ``spec`` / ``status`` dicts) and are never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class NodeEventKind(StrEnum):
    """Kind of a node event."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    GENERIC = "generic"


@dataclass(frozen=True)
class NodeCreateEvent:
    """A node appeared in the cluster."""

    node: dict[str, Any]

    @property
    def kind(self) -> NodeEventKind:
        return NodeEventKind.CREATE


@dataclass(frozen=True)
class NodeUpdateEvent:
    """A node changed; carries both the previous and the current snapshot."""

    old_node: dict[str, Any]
    new_node: dict[str, Any]

    @property
    def kind(self) -> NodeEventKind:
        return NodeEventKind.UPDATE


@dataclass(frozen=True)
class NodeDeleteEvent:
    """A node was removed; carries its last known state."""

    node: dict[str, Any]

    @property
    def kind(self) -> NodeEventKind:
        return NodeEventKind.DELETE


@dataclass(frozen=True)
class NodeGenericEvent:
    """Synthetic trigger such as a periodic resync.  Carries no node."""

    trigger: str = ""

    @property
    def kind(self) -> NodeEventKind:
        return NodeEventKind.GENERIC


NodeEvent = NodeCreateEvent | NodeUpdateEvent | NodeDeleteEvent | NodeGenericEvent
