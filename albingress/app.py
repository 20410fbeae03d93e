"""Application bootstrap for albingress.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → cache → queue → node handler
              → ingress watcher → node watcher → workers → resync → REST

Shutdown is graceful: components are stopped in reverse startup order and a
failure stopping one component does not prevent the rest from stopping.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Any

from albingress.config import load_config
from albingress.models.config import AlbIngressConfig
from albingress.models.events import NodeEvent, NodeGenericEvent
from albingress.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from albingress.cache import ResourceCache
    from albingress.controller.queue import RateLimitingQueue
    from albingress.eventhandlers.node import EnqueueRequestsForNodeEvent
    from albingress.ingress.group import GroupBuilder
    from albingress.models.ingress import ReconcileRequest

_SHUTDOWN_GRACE_SECONDS = 15
_CACHE_SYNC_TIMEOUT_SECONDS = 120.0
_CACHE_SYNC_POLL_SECONDS = 0.1


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class AlbIngressApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self) -> None:
        self.config: AlbIngressConfig | None = None

        self._k8s_client: object | None = None
        self._cache: ResourceCache | None = None
        self._queue: RateLimitingQueue[ReconcileRequest] | None = None
        self._group_builder: GroupBuilder | None = None
        self._node_handler: EnqueueRequestsForNodeEvent | None = None
        self._ingress_watcher: object | None = None
        self._node_watcher: object | None = None
        self._workers: object | None = None
        self._rest_server: object | None = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        self.config = load_config()

        setup_logging(self.config.log.level, ingress_class=self.config.controller.ingress_class)
        self._log = get_logger("app")
        self._log.info(
            "albingress starting",
            version=_albingress_version(),
            ingress_class=self.config.controller.ingress_class,
        )

        await self._start_k8s_client()
        self._start_cache_and_queue()
        self._start_node_handler()
        await self._start_ingress_watcher()
        await self._start_node_watcher()
        self._start_workers()
        self._start_resync()
        await self._start_rest()

        self._running = True
        self._log.info("albingress started", port=self.config.api.port)

    async def _start_k8s_client(self) -> None:
        """Initialise the kubernetes-asyncio client from in-cluster config or kubeconfig."""
        assert self._log is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]

            try:
                k8s_config.load_incluster_config()
                self._log.info("k8s client configured from in-cluster service account")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s client configured from kubeconfig")

            self._k8s_client = True
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    def _start_cache_and_queue(self) -> None:
        assert self.config is not None
        from albingress.cache import ResourceCache
        from albingress.controller.queue import RateLimitingQueue

        self._cache = ResourceCache()
        self._queue = RateLimitingQueue(
            base_delay=self.config.queue.base_delay_seconds,
            max_delay=self.config.queue.max_delay_seconds,
        )

    def _start_node_handler(self) -> None:
        assert self.config is not None
        assert self._cache is not None
        from albingress.eventhandlers.node import EnqueueRequestsForNodeEvent
        from albingress.ingress.group import GroupBuilder

        ingress_class = self.config.controller.ingress_class
        self._group_builder = GroupBuilder(self._cache, ingress_class)
        self._node_handler = EnqueueRequestsForNodeEvent(
            group_builder=self._group_builder,
            ingress_class=ingress_class,
            cache=self._cache,
        )

    def _on_node_event(self, event: NodeEvent) -> None:
        assert self._node_handler is not None
        assert self._queue is not None
        self._node_handler.handle(event, self._queue)

    async def _start_ingress_watcher(self, networking_v1: Any = None, api_client: Any = None) -> None:
        """Start the Ingress watcher and block until the Ingress cache has synced.

        Node events are only meaningful against a synced Ingress view, so the
        node watcher must not start before this returns.
        """
        assert self._log is not None
        assert self._cache is not None
        self._log.debug("starting ingress watcher")
        try:
            from albingress.collector import IngressWatcher
            from albingress.ingress.group import INGRESS_KIND

            if networking_v1 is None:
                from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

                networking_v1 = k8s_client.NetworkingV1Api()

            watcher = IngressWatcher(networking_v1, self._cache, api_client=api_client)
            await watcher.start()
            self._ingress_watcher = watcher
            await self._wait_for_cache_sync(INGRESS_KIND)
            self._log.info("ingress watcher started", ingresses=self._cache.count(INGRESS_KIND))
        except Exception as exc:
            raise _ComponentError("ingress_watcher", exc) from exc

    async def _wait_for_cache_sync(self, kind: str) -> None:
        """Poll until *kind* is synced.  Raises TimeoutError after the sync timeout."""
        assert self._cache is not None
        loop = asyncio.get_running_loop()
        deadline = loop.time() + _CACHE_SYNC_TIMEOUT_SECONDS
        while not self._cache.is_synced(kind):
            if loop.time() >= deadline:
                raise TimeoutError(f"cache for kind '{kind}' did not sync within {_CACHE_SYNC_TIMEOUT_SECONDS}s")
            await asyncio.sleep(_CACHE_SYNC_POLL_SECONDS)

    async def _start_node_watcher(self, v1: Any = None, api_client: Any = None) -> None:
        assert self._log is not None
        self._log.debug("starting node watcher")
        try:
            from albingress.collector import NodeWatcher

            if v1 is None:
                from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

                v1 = k8s_client.CoreV1Api()

            watcher = NodeWatcher(v1, sink=self._on_node_event, api_client=api_client)
            await watcher.start()
            self._node_watcher = watcher
            self._log.info("node watcher started")
        except Exception as exc:
            raise _ComponentError("node_watcher", exc) from exc

    def _start_workers(self) -> None:
        assert self.config is not None
        assert self._queue is not None
        assert self._group_builder is not None
        from albingress.controller.worker import ReconcileWorker

        workers = ReconcileWorker(
            queue=self._queue,
            group_builder=self._group_builder,
            workers=self.config.controller.workers,
        )
        workers.start()
        self._workers = workers

    def _start_resync(self) -> None:
        """Emit a generic node event every resync period."""
        assert self.config is not None
        assert self._log is not None
        period = self.config.controller.resync_period_seconds

        async def _resync() -> None:
            while True:
                await asyncio.sleep(period)
                self._on_node_event(NodeGenericEvent(trigger="resync"))

        task = asyncio.create_task(_resync(), name="node-resync")
        self._background_tasks.append(task)
        self._log.info("periodic resync started", period_seconds=period)

    async def _start_rest(self) -> None:
        """Start the uvicorn health/metrics server.  Non-fatal on failure."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn  # type: ignore[import-untyped]

            from albingress.api import create_app

            fastapi_app = create_app(cache=self._cache, queue=self._queue)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", port=self.config.api.port)
        except Exception as exc:
            self._log.warning("rest api failed to start; health endpoints unavailable", error=str(exc))
            self._rest_server = None

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("albingress shutting down")

        self._running = False

        for task in reversed(self._background_tasks):
            if not task.done():
                task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._stop_component("workers", self._workers)
        await self._stop_component("node_watcher", self._node_watcher)
        await self._stop_component("ingress_watcher", self._ingress_watcher)
        await self._stop_k8s_client()

        log.info("albingress stopped")

    async def _stop_component(self, name: str, component: object | None) -> None:
        """Call stop() on a component if it has that method, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, "stop", None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component stop timed out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:
            log.error("component stop raised an error", component=name, error=str(exc))

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self._k8s_client is None:
            return
        log = self._log or get_logger("app")
        try:
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            api_client = k8s_client.ApiClient()
            await api_client.close()
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))


def _albingress_version() -> str:
    from albingress import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = AlbIngressApp()
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app._running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()
