"""Prometheus metrics for albingress.

All collectors live on the default registry so ``/metrics`` exposes them
without extra wiring.
"""

from __future__ import annotations

from prometheus_client import Counter

node_events_total = Counter(
    "albingress_node_events_total",
    "Node events received by the node event handler",
    ["event", "relevant"],
)

reconcile_requests_enqueued_total = Counter(
    "albingress_reconcile_requests_enqueued_total",
    "Reconcile requests submitted to the work queue",
)

ingress_list_errors_total = Counter(
    "albingress_ingress_list_errors_total",
    "Failed attempts to list Ingresses from the cache",
)

group_id_errors_total = Counter(
    "albingress_group_id_errors_total",
    "Ingresses whose group identifier could not be built",
)

reconciles_total = Counter(
    "albingress_reconciles_total",
    "Reconcile attempts processed by workers",
    ["result"],
)
