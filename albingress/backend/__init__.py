"""Backend helpers deciding which cluster nodes may receive load balancer traffic."""

from albingress.backend.node import is_node_suitable_as_traffic_proxy

__all__ = ["is_node_suitable_as_traffic_proxy"]
