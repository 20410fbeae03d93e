"""Ingress group identity and reconcile request data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class GroupID:
    """Identifies a set of Ingresses reconciled together as one unit.

    Explicit groups (named through the group annotation) have an empty
    namespace; implicit groups wrap a single Ingress and use its own
    namespace and name.
    """

    namespace: str
    name: str

    @classmethod
    def explicit(cls, group_name: str) -> GroupID:
        return cls(namespace="", name=group_name)

    @classmethod
    def implicit(cls, namespace: str, name: str) -> GroupID:
        return cls(namespace=namespace, name=name)

    @property
    def is_explicit(self) -> bool:
        return self.namespace == ""

    def encode_to_reconcile_request(self) -> ReconcileRequest:
        """Encode this group as a queue item.  Inverse of ``decode_group_id_from_reconcile_request``."""
        return ReconcileRequest(namespace=self.namespace, name=self.name)

    def __str__(self) -> str:
        if self.is_explicit:
            return self.name
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ReconcileRequest:
    """Unit of work placed on the queue, one per distinct group."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def decode_group_id_from_reconcile_request(request: ReconcileRequest) -> GroupID:
    """Recover the GroupID encoded by ``GroupID.encode_to_reconcile_request``."""
    return GroupID(namespace=request.namespace, name=request.name)


@dataclass(frozen=True)
class GroupMember:
    """One Ingress in a group, with its resolved ordering key."""

    namespace: str
    name: str
    order: int
    ingress: dict[str, Any] = field(compare=False, hash=False, repr=False)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class Group:
    """A materialised ingress group: its identity plus its ordered members."""

    group_id: GroupID
    members: list[GroupMember] = field(default_factory=list)
