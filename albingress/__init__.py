"""albingress: node-event driven reconciliation of ALB ingress groups."""

__version__ = "0.1.0"
