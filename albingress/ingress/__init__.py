"""Ingress classification and grouping.

Submodules:
    class_filter -- Decides whether an Ingress belongs to this controller.
    group        -- Derives group identifiers and materialises groups.
"""

from albingress.ingress.class_filter import matches_ingress_class
from albingress.ingress.group import GroupBuilder, namespaced_name

__all__ = ["GroupBuilder", "matches_ingress_class", "namespaced_name"]
