"""Traffic-proxy eligibility for cluster nodes."""

from __future__ import annotations

from typing import Any

LABEL_NODE_ROLE_MASTER = "node-role.kubernetes.io/master"
LABEL_EXCLUDE_BALANCER = "alpha.service-controller.kubernetes.io/exclude-balancer"


def _is_node_ready(node: dict[str, Any]) -> bool:
    conditions = node.get("status", {}).get("conditions") or []
    for condition in conditions:
        if condition.get("type") == "Ready":
            return condition.get("status") == "True"
    return False


def is_node_suitable_as_traffic_proxy(node: dict[str, Any]) -> bool:
    """Return True if *node* may act as a target for proxied ingress traffic.

    A node qualifies when it is Ready, schedulable, not a control-plane
    master and not explicitly excluded from load balancers.
    """
    labels = node.get("metadata", {}).get("labels") or {}
    if LABEL_NODE_ROLE_MASTER in labels:
        return False
    if LABEL_EXCLUDE_BALANCER in labels:
        return False
    if node.get("spec", {}).get("unschedulable"):
        return False
    return _is_node_ready(node)
