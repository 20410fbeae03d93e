"""Shared fixtures for albingress integration tests.

Provides a cache populated with a realistic mix of Ingresses (explicit
groups spanning namespaces, implicit groups, foreign classes and one
malformed group name) wired to a real queue and node handler.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import pytest

from albingress.cache import ResourceCache
from albingress.controller.queue import RateLimitingQueue
from albingress.eventhandlers.node import EnqueueRequestsForNodeEvent
from albingress.ingress.group import GroupBuilder
from albingress.models.ingress import ReconcileRequest


def make_node(name: str = "ip-10-0-3-12", ready: bool = True, rv: str = "1") -> dict[str, Any]:
    return {
        "metadata": {"name": name, "resourceVersion": rv, "labels": {"kubernetes.io/os": "linux"}},
        "spec": {},
        "status": {"conditions": [{"type": "Ready", "status": "True" if ready else "False"}]},
    }


def make_ingress(
    name: str,
    namespace: str = "default",
    group: str | None = None,
    ingress_class: str | None = "alb",
    order: int | None = None,
) -> dict[str, Any]:
    annotations: dict[str, str] = {}
    if ingress_class is not None:
        annotations["kubernetes.io/ingress.class"] = ingress_class
    if group is not None:
        annotations["alb.ingress.kubernetes.io/group.name"] = group
    if order is not None:
        annotations["alb.ingress.kubernetes.io/group.order"] = str(order)
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {"name": name, "namespace": namespace, "annotations": annotations, "resourceVersion": "1"},
        "spec": {"rules": [{"host": f"{name}.example.com"}]},
    }


@pytest.fixture
def populated_cache() -> ResourceCache:
    cache = ResourceCache()
    cache.replace(
        "Ingress",
        [
            make_ingress("storefront", namespace="shop", group="public", order=10),
            make_ingress("checkout", namespace="shop", group="public"),
            make_ingress("blog", namespace="content", group="public", order=-1),
            make_ingress("admin", namespace="ops", group="internal"),
            make_ingress("grafana", namespace="ops"),
            make_ingress("legacy", namespace="ops", ingress_class="nginx"),
            make_ingress("broken", namespace="sandbox", group="Has Spaces"),
        ],
    )
    return cache


@pytest.fixture
def queue() -> Iterator[RateLimitingQueue[ReconcileRequest]]:
    q: RateLimitingQueue[ReconcileRequest] = RateLimitingQueue(base_delay=0.01, max_delay=0.1)
    yield q
    q.shut_down()


@pytest.fixture
def handler_logger() -> MagicMock:
    return MagicMock()


@pytest.fixture
def node_handler(populated_cache: ResourceCache, handler_logger: MagicMock) -> EnqueueRequestsForNodeEvent:
    return EnqueueRequestsForNodeEvent(
        group_builder=GroupBuilder(populated_cache),
        ingress_class="",
        cache=populated_cache,
        logger=handler_logger,
    )
