"""Tests for the node event handler.

Covers relevance classification for every event kind and the listing pass:
class filtering, per-pass group dedup, listing failures and per-Ingress
group-build failures.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

from hypothesis import given, settings
from hypothesis import strategies as st

from albingress.errors import CacheNotSyncedError
from albingress.eventhandlers.node import EnqueueRequestsForNodeEvent, is_relevant
from albingress.ingress.group import GroupBuilder
from albingress.models.events import (
    NodeCreateEvent,
    NodeDeleteEvent,
    NodeGenericEvent,
    NodeUpdateEvent,
)
from albingress.models.ingress import ReconcileRequest

# ---------------------------------------------------------------------------
# Helper factories
# ---------------------------------------------------------------------------


def _make_node(name: str = "ip-10-0-1-17", ready: bool = True, labels: dict[str, str] | None = None) -> dict[str, Any]:
    return {
        "metadata": {"name": name, "labels": labels or {}, "resourceVersion": "1"},
        "spec": {},
        "status": {"conditions": [{"type": "Ready", "status": "True" if ready else "False"}]},
    }


def _make_ingress(
    name: str,
    namespace: str = "default",
    group: str | None = None,
    ingress_class: str | None = "alb",
) -> dict[str, Any]:
    annotations: dict[str, str] = {}
    if ingress_class is not None:
        annotations["kubernetes.io/ingress.class"] = ingress_class
    if group is not None:
        annotations["alb.ingress.kubernetes.io/group.name"] = group
    return {"metadata": {"name": name, "namespace": namespace, "annotations": annotations}, "spec": {}}


class _RecordingQueue:
    def __init__(self) -> None:
        self.items: list[ReconcileRequest] = []

    def add(self, item: ReconcileRequest) -> None:
        self.items.append(item)


def _make_handler(
    ingresses: list[dict[str, Any]] | None = None,
    ingress_class: str = "",
    logger: MagicMock | None = None,
) -> tuple[EnqueueRequestsForNodeEvent, MagicMock]:
    lister = MagicMock()
    lister.list.return_value = ingresses or []
    handler = EnqueueRequestsForNodeEvent(
        group_builder=GroupBuilder(cache=MagicMock(), ingress_class=ingress_class),
        ingress_class=ingress_class,
        cache=lister,
        logger=logger or MagicMock(),
    )
    return handler, lister


_THREE_INGRESSES = [
    _make_ingress("a", group="g1"),
    _make_ingress("b", group="g1"),
    _make_ingress("c", group="g2"),
]


# ---------------------------------------------------------------------------
# Relevance classification
# ---------------------------------------------------------------------------


class TestIsRelevant:
    def test_create_of_eligible_node_is_relevant(self) -> None:
        assert is_relevant(NodeCreateEvent(node=_make_node(ready=True))) is True

    def test_create_of_ineligible_node_is_not_relevant(self) -> None:
        assert is_relevant(NodeCreateEvent(node=_make_node(ready=False))) is False

    def test_delete_of_eligible_node_is_relevant(self) -> None:
        assert is_relevant(NodeDeleteEvent(node=_make_node(ready=True))) is True

    def test_delete_of_ineligible_node_is_not_relevant(self) -> None:
        node = _make_node(labels={"node-role.kubernetes.io/master": ""})
        assert is_relevant(NodeDeleteEvent(node=node)) is False

    def test_update_flipping_to_eligible_is_relevant(self) -> None:
        event = NodeUpdateEvent(old_node=_make_node(ready=False), new_node=_make_node(ready=True))
        assert is_relevant(event) is True

    def test_update_flipping_to_ineligible_is_relevant(self) -> None:
        event = NodeUpdateEvent(old_node=_make_node(ready=True), new_node=_make_node(ready=False))
        assert is_relevant(event) is True

    def test_label_churn_on_eligible_node_is_not_relevant(self) -> None:
        event = NodeUpdateEvent(
            old_node=_make_node(labels={"team": "a"}),
            new_node=_make_node(labels={"team": "b"}),
        )
        assert is_relevant(event) is False

    def test_update_between_ineligible_states_is_not_relevant(self) -> None:
        event = NodeUpdateEvent(
            old_node=_make_node(ready=False),
            new_node=_make_node(ready=False, labels={"x": "y"}),
        )
        assert is_relevant(event) is False

    def test_generic_event_is_always_relevant(self) -> None:
        predicate = MagicMock(return_value=False)
        assert is_relevant(NodeGenericEvent(trigger="resync"), predicate) is True
        predicate.assert_not_called()

    def test_update_calls_predicate_twice(self) -> None:
        predicate = MagicMock(side_effect=[True, True])
        is_relevant(NodeUpdateEvent(old_node=_make_node(), new_node=_make_node()), predicate)
        assert predicate.call_count == 2

    def test_create_calls_predicate_once(self) -> None:
        predicate = MagicMock(return_value=True)
        node = _make_node()
        is_relevant(NodeCreateEvent(node=node), predicate)
        predicate.assert_called_once_with(node)


# ---------------------------------------------------------------------------
# Event dispatch
# ---------------------------------------------------------------------------


class TestHandle:
    def test_irrelevant_update_does_not_list(self) -> None:
        handler, lister = _make_handler(_THREE_INGRESSES)
        queue = _RecordingQueue()
        handler.update(
            NodeUpdateEvent(old_node=_make_node(labels={"a": "1"}), new_node=_make_node(labels={"a": "2"})),
            queue,
        )
        lister.list.assert_not_called()
        assert queue.items == []

    def test_eligibility_flip_enqueues_each_group_once(self) -> None:
        handler, _ = _make_handler(_THREE_INGRESSES)
        queue = _RecordingQueue()
        handler.update(NodeUpdateEvent(old_node=_make_node(ready=False), new_node=_make_node(ready=True)), queue)
        assert queue.items == [ReconcileRequest("", "g1"), ReconcileRequest("", "g2")]

    def test_create_of_ineligible_node_enqueues_nothing(self) -> None:
        handler, lister = _make_handler(_THREE_INGRESSES)
        queue = _RecordingQueue()
        handler.create(NodeCreateEvent(node=_make_node(ready=False)), queue)
        lister.list.assert_not_called()
        assert queue.items == []

    def test_delete_of_eligible_node_enqueues(self) -> None:
        handler, _ = _make_handler(_THREE_INGRESSES)
        queue = _RecordingQueue()
        handler.delete(NodeDeleteEvent(node=_make_node()), queue)
        assert len(queue.items) == 2

    def test_generic_event_matches_full_pass(self) -> None:
        handler, _ = _make_handler(_THREE_INGRESSES)
        generic_queue = _RecordingQueue()
        pass_queue = _RecordingQueue()
        handler.generic(NodeGenericEvent(trigger="resync"), generic_queue)
        handler.enqueue_impacted_ingresses(pass_queue)
        assert generic_queue.items == pass_queue.items

    def test_custom_predicate_is_used(self) -> None:
        lister = MagicMock()
        lister.list.return_value = _THREE_INGRESSES
        handler = EnqueueRequestsForNodeEvent(
            group_builder=GroupBuilder(cache=MagicMock()),
            ingress_class="",
            cache=lister,
            is_eligible=lambda node: node["metadata"]["name"].startswith("edge-"),
            logger=MagicMock(),
        )
        queue = _RecordingQueue()
        handler.create(NodeCreateEvent(node=_make_node(name="core-1")), queue)
        assert queue.items == []
        handler.create(NodeCreateEvent(node=_make_node(name="edge-1")), queue)
        assert len(queue.items) == 2


# ---------------------------------------------------------------------------
# Listing pass
# ---------------------------------------------------------------------------


class TestEnqueueImpactedIngresses:
    def test_two_groups_from_three_ingresses(self) -> None:
        handler, _ = _make_handler(_THREE_INGRESSES)
        queue = _RecordingQueue()
        assert handler.enqueue_impacted_ingresses(queue) == 2
        assert [str(r) for r in queue.items] == ["/g1", "/g2"]

    def test_listing_order_does_not_change_group_set(self) -> None:
        handler, _ = _make_handler(list(reversed(_THREE_INGRESSES)))
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        assert queue.items == [ReconcileRequest("", "g2"), ReconcileRequest("", "g1")]

    def test_implicit_groups_are_per_ingress(self) -> None:
        handler, _ = _make_handler([_make_ingress("web", namespace="shop"), _make_ingress("api", namespace="shop")])
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        assert queue.items == [ReconcileRequest("shop", "web"), ReconcileRequest("shop", "api")]

    def test_explicit_group_spanning_namespaces_enqueued_once(self) -> None:
        handler, _ = _make_handler(
            [
                _make_ingress("web", namespace="shop", group="public"),
                _make_ingress("web", namespace="blog", group="public"),
            ]
        )
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        assert queue.items == [ReconcileRequest("", "public")]

    def test_class_mismatch_is_skipped_silently(self) -> None:
        logger = MagicMock()
        handler, _ = _make_handler(
            [_make_ingress("a", ingress_class="nginx"), _make_ingress("b", ingress_class="alb")],
            logger=logger,
        )
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        assert queue.items == [ReconcileRequest("default", "b")]
        logger.error.assert_not_called()

    def test_configured_class_filters_exactly(self) -> None:
        handler, _ = _make_handler(
            [_make_ingress("a", ingress_class="internal"), _make_ingress("b", ingress_class="alb")],
            ingress_class="internal",
        )
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        assert queue.items == [ReconcileRequest("default", "a")]

    def test_listing_failure_enqueues_nothing_and_reports_once(self) -> None:
        logger = MagicMock()
        handler, lister = _make_handler(logger=logger)
        lister.list.side_effect = CacheNotSyncedError("Ingress")
        queue = _RecordingQueue()

        assert handler.enqueue_impacted_ingresses(queue) == 0
        assert queue.items == []
        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "ingress_list_failed"

    def test_group_build_failure_is_attributed_and_isolated(self) -> None:
        logger = MagicMock()
        handler, _ = _make_handler(
            [
                _make_ingress("good-1", group="g1"),
                _make_ingress("bad", namespace="team-x", group="Not_Valid!"),
                _make_ingress("good-2", group="g2"),
            ],
            logger=logger,
        )
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)

        assert queue.items == [ReconcileRequest("", "g1"), ReconcileRequest("", "g2")]
        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "ingress_group_id_build_failed"
        assert logger.error.call_args.kwargs["ingress"] == "team-x/bad"

    def test_builder_exception_of_any_type_is_contained(self) -> None:
        lister = MagicMock()
        lister.list.return_value = [_make_ingress("a"), _make_ingress("b")]
        builder = MagicMock()
        good = GroupBuilder(cache=MagicMock()).build_group_id(_make_ingress("b"))
        builder.build_group_id.side_effect = [RuntimeError("boom"), good]
        logger = MagicMock()
        handler = EnqueueRequestsForNodeEvent(builder, "", lister, logger=logger)

        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        assert queue.items == [ReconcileRequest("default", "b")]
        assert logger.error.call_args.kwargs["ingress"] == "default/a"

    def test_empty_listing_enqueues_nothing(self) -> None:
        handler, _ = _make_handler([])
        queue = _RecordingQueue()
        assert handler.enqueue_impacted_ingresses(queue) == 0

    def test_each_pass_starts_with_fresh_dedup(self) -> None:
        handler, _ = _make_handler(_THREE_INGRESSES)
        queue = _RecordingQueue()
        handler.enqueue_impacted_ingresses(queue)
        handler.enqueue_impacted_ingresses(queue)
        assert len(queue.items) == 4


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


_GROUP_NAMES = ["g1", "g2", "g3", "g4", "g5"]


@settings(max_examples=100, deadline=None)
@given(groups=st.lists(st.sampled_from(_GROUP_NAMES), max_size=25))
def test_one_enqueue_per_distinct_group(groups: list[str]) -> None:
    ingresses = [_make_ingress(f"ing-{i}", group=g) for i, g in enumerate(groups)]
    handler, _ = _make_handler(ingresses)
    queue = _RecordingQueue()

    handler.enqueue_impacted_ingresses(queue)

    assert [r.name for r in queue.items] == list(dict.fromkeys(groups))


@settings(max_examples=50, deadline=None)
@given(order=st.permutations(list(range(6))))
def test_group_set_independent_of_listing_order(order: list[int]) -> None:
    base = [
        _make_ingress("a", group="g1"),
        _make_ingress("b", group="g1"),
        _make_ingress("c", group="g2"),
        _make_ingress("d", namespace="other"),
        _make_ingress("e", group="g2"),
        _make_ingress("f", ingress_class="nginx", group="g3"),
    ]
    handler, _ = _make_handler([base[i] for i in order])
    queue = _RecordingQueue()

    handler.enqueue_impacted_ingresses(queue)

    assert len(queue.items) == 3
    assert set(queue.items) == {
        ReconcileRequest("", "g1"),
        ReconcileRequest("", "g2"),
        ReconcileRequest("other", "d"),
    }
