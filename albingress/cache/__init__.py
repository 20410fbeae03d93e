"""Cache layer for albingress.

Provides the in-memory, thread-safe view of cluster objects that event
handlers and reconcile workers list from, kept current by the watchers in
``albingress.collector``.
"""

from albingress.cache.resource_cache import ResourceCache

__all__ = ["ResourceCache"]
