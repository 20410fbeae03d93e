"""Node event handler.

A node becoming (or ceasing to be) a valid traffic proxy changes the target
set of every ALB-managed Ingress group, so a relevant node event triggers a
reconcile of each group exactly once.  Nothing is carried between events:
the dedup set lives for a single pass and cross-event coalescing is left to
the work queue.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from albingress.backend.node import is_node_suitable_as_traffic_proxy
from albingress.ingress.class_filter import matches_ingress_class
from albingress.ingress.group import INGRESS_KIND, namespaced_name
from albingress.models.events import (
    NodeCreateEvent,
    NodeDeleteEvent,
    NodeEvent,
    NodeGenericEvent,
    NodeUpdateEvent,
)
from albingress.models.ingress import GroupID, ReconcileRequest
from albingress.observability.logging import get_logger
from albingress.observability.metrics import (
    group_id_errors_total,
    ingress_list_errors_total,
    node_events_total,
    reconcile_requests_enqueued_total,
)

if TYPE_CHECKING:
    import structlog

NodePredicate = Callable[[dict[str, Any]], bool]


class IngressLister(Protocol):
    def list(self, kind: str) -> list[dict[str, Any]]: ...


class GroupIDBuilder(Protocol):
    def build_group_id(self, ingress: dict[str, Any]) -> GroupID: ...


class RequestQueue(Protocol):
    def add(self, item: ReconcileRequest) -> None: ...


def is_relevant(event: NodeEvent, is_eligible: NodePredicate = is_node_suitable_as_traffic_proxy) -> bool:
    """Return True if *event* may change the proxy targets of any Ingress group.

    Creations and deletions count only for eligible nodes; updates count only
    when eligibility flips.  Generic events are always relevant.
    """
    if isinstance(event, (NodeCreateEvent, NodeDeleteEvent)):
        return is_eligible(event.node)
    if isinstance(event, NodeUpdateEvent):
        return is_eligible(event.old_node) != is_eligible(event.new_node)
    return True


class EnqueueRequestsForNodeEvent:
    """Enqueues one reconcile request per Ingress group affected by a node event."""

    def __init__(
        self,
        group_builder: GroupIDBuilder,
        ingress_class: str,
        cache: IngressLister,
        is_eligible: NodePredicate = is_node_suitable_as_traffic_proxy,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._group_builder = group_builder
        self._ingress_class = ingress_class
        self._cache = cache
        self._is_eligible = is_eligible
        self._log = logger or get_logger("eventhandlers.node")

    def handle(self, event: NodeEvent, queue: RequestQueue) -> None:
        relevant = is_relevant(event, self._is_eligible)
        node_events_total.labels(event=event.kind.value, relevant=str(relevant).lower()).inc()
        if relevant:
            self.enqueue_impacted_ingresses(queue)

    def create(self, event: NodeCreateEvent, queue: RequestQueue) -> None:
        self.handle(event, queue)

    def update(self, event: NodeUpdateEvent, queue: RequestQueue) -> None:
        self.handle(event, queue)

    def delete(self, event: NodeDeleteEvent, queue: RequestQueue) -> None:
        self.handle(event, queue)

    def generic(self, event: NodeGenericEvent, queue: RequestQueue) -> None:
        self.handle(event, queue)

    def enqueue_impacted_ingresses(self, queue: RequestQueue) -> int:
        """Run one listing pass and enqueue each distinct group once.

        Returns the number of requests enqueued.  A listing failure aborts
        the pass before anything is enqueued; a bad Ingress is skipped.
        """
        try:
            ingresses = self._cache.list(INGRESS_KIND)
        except Exception as exc:
            ingress_list_errors_total.inc()
            self._log.error("ingress_list_failed", error=str(exc))
            return 0

        seen: set[str] = set()
        enqueued = 0
        for ingress in ingresses:
            if not matches_ingress_class(self._ingress_class, ingress):
                continue
            try:
                group_id = self._group_builder.build_group_id(ingress)
            except Exception as exc:
                group_id_errors_total.inc()
                self._log.error(
                    "ingress_group_id_build_failed",
                    ingress=namespaced_name(ingress),
                    error=str(exc),
                )
                continue
            key = str(group_id)
            if key in seen:
                continue
            seen.add(key)
            queue.add(group_id.encode_to_reconcile_request())
            enqueued += 1
            self._log.debug("reconcile_enqueued", group=key)

        reconcile_requests_enqueued_total.inc(enqueued)
        return enqueued
