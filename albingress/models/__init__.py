"""Core data structures for albingress."""

from albingress.models.config import AlbIngressConfig
from albingress.models.events import (
    NodeCreateEvent,
    NodeDeleteEvent,
    NodeEvent,
    NodeEventKind,
    NodeGenericEvent,
    NodeUpdateEvent,
)
from albingress.models.ingress import (
    Group,
    GroupID,
    GroupMember,
    ReconcileRequest,
    decode_group_id_from_reconcile_request,
)

__all__ = [
    "AlbIngressConfig",
    "Group",
    "GroupID",
    "GroupMember",
    "NodeCreateEvent",
    "NodeDeleteEvent",
    "NodeEvent",
    "NodeEventKind",
    "NodeGenericEvent",
    "NodeUpdateEvent",
    "ReconcileRequest",
    "decode_group_id_from_reconcile_request",
]
