"""Collector package for albingress.

Kubernetes watch-stream collectors feeding the controller.

Submodules
----------
watcher         -- BaseWatcher: reconnect logic, exponential back-off, relist recovery.
node_watcher    -- NodeWatcher: turns node changes into typed node events.
ingress_watcher -- IngressWatcher: keeps Ingresses in the ResourceCache current.
"""

from albingress.collector.ingress_watcher import IngressWatcher
from albingress.collector.node_watcher import NodeWatcher

__all__ = ["IngressWatcher", "NodeWatcher"]
