"""Ingress group identity.

Ingresses annotated with ``alb.ingress.kubernetes.io/group.name`` share one
load balancer with every other Ingress carrying the same name, across
namespaces.  Ingresses without the annotation form an implicit group of one.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from albingress.errors import (
    GroupIDError,
    InvalidGroupNameError,
    InvalidGroupOrderError,
    MalformedIngressError,
)
from albingress.ingress.class_filter import matches_ingress_class
from albingress.models.ingress import Group, GroupID, GroupMember

if TYPE_CHECKING:
    from albingress.cache import ResourceCache

ANNOTATION_GROUP_NAME = "alb.ingress.kubernetes.io/group.name"
ANNOTATION_GROUP_ORDER = "alb.ingress.kubernetes.io/group.order"

INGRESS_KIND = "Ingress"

_MAX_GROUP_NAME_LENGTH = 63
_RE_GROUP_NAME = re.compile(r"^[a-z0-9]([-.a-z0-9]*[a-z0-9])?$")
_MIN_GROUP_ORDER = -1000
_MAX_GROUP_ORDER = 1000


def namespaced_name(ingress: dict[str, Any]) -> str:
    """Return ``namespace/name`` for log attribution.  Never raises."""
    metadata = ingress.get("metadata", {})
    return f"{metadata.get('namespace', '')}/{metadata.get('name', '')}"


def _validate_group_name(group_name: str) -> None:
    if not group_name:
        raise InvalidGroupNameError(group_name, "must not be empty")
    if len(group_name) > _MAX_GROUP_NAME_LENGTH:
        raise InvalidGroupNameError(group_name, f"must be no more than {_MAX_GROUP_NAME_LENGTH} characters")
    if not _RE_GROUP_NAME.match(group_name):
        raise InvalidGroupNameError(
            group_name,
            "must consist of lower case alphanumeric characters, '-' or '.', "
            "and must start and end with an alphanumeric character",
        )


def _group_order(ingress: dict[str, Any]) -> int:
    annotations = ingress.get("metadata", {}).get("annotations") or {}
    raw = annotations.get(ANNOTATION_GROUP_ORDER)
    if raw is None:
        return 0
    try:
        order = int(str(raw).strip())
    except ValueError:
        raise InvalidGroupOrderError(namespaced_name(ingress), str(raw)) from None
    if not _MIN_GROUP_ORDER <= order <= _MAX_GROUP_ORDER:
        raise InvalidGroupOrderError(namespaced_name(ingress), str(raw))
    return order


class GroupBuilder:
    """Derives group identifiers and assembles groups from the cache."""

    def __init__(self, cache: ResourceCache, ingress_class: str = "") -> None:
        self._cache = cache
        self._ingress_class = ingress_class

    def build_group_id(self, ingress: dict[str, Any]) -> GroupID:
        """Return the GroupID *ingress* belongs to.

        Raises:
            MalformedIngressError: the Ingress has no name or namespace.
            InvalidGroupNameError: the group annotation is not a valid name.
        """
        metadata = ingress.get("metadata", {})
        namespace = metadata.get("namespace")
        name = metadata.get("name")
        if not namespace or not name:
            raise MalformedIngressError(f"ingress {namespaced_name(ingress)} is missing namespace or name")

        annotations = metadata.get("annotations") or {}
        if ANNOTATION_GROUP_NAME in annotations:
            group_name = str(annotations[ANNOTATION_GROUP_NAME]).strip()
            _validate_group_name(group_name)
            return GroupID.explicit(group_name)
        return GroupID.implicit(str(namespace), str(name))

    def build_group(self, group_id: GroupID) -> Group:
        """Collect the cached Ingresses that belong to *group_id*.

        Members are ordered by group order, then ``namespace/name``.  An empty
        member list means the group no longer exists and its load balancer
        should be torn down.
        """
        members: list[GroupMember] = []
        if group_id.is_explicit:
            candidates = self._cache.list(INGRESS_KIND)
        else:
            ingress = self._cache.get(INGRESS_KIND, group_id.namespace, group_id.name)
            candidates = [ingress] if ingress is not None else []

        for ingress in candidates:
            if not matches_ingress_class(self._ingress_class, ingress):
                continue
            try:
                member_group = self.build_group_id(ingress)
            except GroupIDError:
                continue
            if member_group != group_id:
                continue
            metadata = ingress["metadata"]
            members.append(
                GroupMember(
                    namespace=metadata["namespace"],
                    name=metadata["name"],
                    order=_group_order(ingress),
                    ingress=ingress,
                )
            )

        members.sort(key=lambda m: (m.order, m.key))
        return Group(group_id=group_id, members=members)
