"""Base class for watch-stream collectors.

Every (re)connect starts with a full list so the watcher's view is rebuilt
from scratch after an expired resource version or a dropped connection.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]
from kubernetes_asyncio import watch  # type: ignore[import-untyped]

from albingress.observability.logging import get_logger

_INITIAL_BACKOFF_SECONDS = 1.0
_MAX_BACKOFF_SECONDS = 60.0
_WATCH_TIMEOUT_SECONDS = 300


class WatchExpiredError(Exception):
    """The watch stream reported an error event; the caller must relist."""


class BaseWatcher(ABC):
    """Runs list+watch for one resource kind until stopped."""

    kind: str = ""

    def __init__(self, api_client: Any = None) -> None:
        self._api_client = api_client
        self._task: asyncio.Task[None] | None = None
        self._resource_version = ""
        self._log = get_logger(f"collector.{self.kind.lower()}")

    @abstractmethod
    def _list_fn(self) -> Callable[..., Awaitable[Any]]:
        """Return the kubernetes-asyncio list call for this kind."""

    @abstractmethod
    def _on_relist(self, items: list[dict[str, Any]]) -> None:
        """Replace the watcher's view with a freshly listed set of objects."""

    @abstractmethod
    def _handle_event(self, event_type: str, raw: dict[str, Any]) -> None:
        """Apply a single ADDED / MODIFIED / DELETED event."""

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name=f"watch-{self.kind.lower()}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    def _serialize(self, obj: Any) -> Any:
        if self._api_client is None:
            self._api_client = k8s_client.ApiClient()
        return self._api_client.sanitize_for_serialization(obj)

    async def _relist(self) -> None:
        result = self._serialize(await self._list_fn()())
        items = result.get("items") or []
        self._resource_version = str(result.get("metadata", {}).get("resourceVersion") or "")
        self._on_relist(items)
        self._log.info("relisted", kind=self.kind, count=len(items), resource_version=self._resource_version)

    async def _watch(self) -> None:
        w = watch.Watch()
        async with w.stream(
            self._list_fn(),
            resource_version=self._resource_version,
            timeout_seconds=_WATCH_TIMEOUT_SECONDS,
        ) as stream:
            async for event in stream:
                self.dispatch(event["type"], event.get("raw_object") or self._serialize(event["object"]))

    def dispatch(self, event_type: str, raw: dict[str, Any]) -> None:
        """Route a raw watch event, tracking the latest resource version."""
        if event_type == "ERROR":
            raise WatchExpiredError(str(raw.get("message", "watch error")))
        version = raw.get("metadata", {}).get("resourceVersion")
        if version:
            self._resource_version = str(version)
        if event_type == "BOOKMARK":
            return
        self._handle_event(event_type, raw)

    async def _run(self) -> None:
        backoff = _INITIAL_BACKOFF_SECONDS
        while True:
            try:
                await self._relist()
                backoff = _INITIAL_BACKOFF_SECONDS
                while True:
                    await self._watch()
            except asyncio.CancelledError:
                raise
            except WatchExpiredError as exc:
                self._log.info("watch expired; relisting", kind=self.kind, reason=str(exc))
                continue
            except Exception as exc:
                self._log.warning("watch failed; backing off", kind=self.kind, error=str(exc), backoff=backoff)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _MAX_BACKOFF_SECONDS)
