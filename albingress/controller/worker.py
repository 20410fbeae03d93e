"""Reconcile workers draining the work queue.

Each worker thread takes one request at a time, turns it back into a
GroupID, materialises the group from the cache and hands it to the
configured reconcile callable.  Failures are retried with back-off.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from albingress.models.ingress import (
    Group,
    ReconcileRequest,
    decode_group_id_from_reconcile_request,
)
from albingress.observability.logging import get_logger
from albingress.observability.metrics import reconciles_total

if TYPE_CHECKING:
    import structlog

    from albingress.controller.queue import RateLimitingQueue
    from albingress.ingress.group import GroupBuilder

ReconcileFn = Callable[[Group], None]

_GET_TIMEOUT_SECONDS = 1.0


def log_group_reconcile(group: Group) -> None:
    """Default reconcile callable: records what a reconcile would converge."""
    get_logger("controller.reconcile").info(
        "group_reconcile",
        group=str(group.group_id),
        members=[m.key for m in group.members],
    )


class ReconcileWorker:
    """Pool of threads processing reconcile requests from a queue."""

    def __init__(
        self,
        queue: RateLimitingQueue[ReconcileRequest],
        group_builder: GroupBuilder,
        reconcile: ReconcileFn = log_group_reconcile,
        workers: int = 2,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._queue = queue
        self._group_builder = group_builder
        self._reconcile = reconcile
        self._workers = workers
        self._threads: list[threading.Thread] = []
        self._log = logger or get_logger("controller.worker")

    def start(self) -> None:
        for i in range(self._workers):
            thread = threading.Thread(target=self._run, name=f"reconcile-worker-{i}", daemon=True)
            thread.start()
            self._threads.append(thread)
        self._log.info("reconcile workers started", workers=self._workers)

    def stop(self, timeout: float = 5.0) -> None:
        self._queue.shut_down()
        for thread in self._threads:
            thread.join(timeout)
        self._threads.clear()

    def _run(self) -> None:
        while True:
            request, shutdown = self._queue.get(timeout=_GET_TIMEOUT_SECONDS)
            if shutdown:
                return
            if request is None:
                continue
            self.process(request)

    def process(self, request: ReconcileRequest) -> bool:
        """Reconcile one request and settle it on the queue.

        Returns True on success.  On failure the request is re-added with
        rate limiting.
        """
        try:
            group = self._group_builder.build_group(decode_group_id_from_reconcile_request(request))
            self._reconcile(group)
        except Exception as exc:
            reconciles_total.labels(result="error").inc()
            self._log.error(
                "group_reconcile_failed",
                request=str(request),
                requeues=self._queue.num_requeues(request),
                error=str(exc),
            )
            self._queue.add_rate_limited(request)
            return False
        else:
            reconciles_total.labels(result="success").inc()
            self._queue.forget(request)
            return True
        finally:
            self._queue.done(request)
