"""Ingress class matching."""

from __future__ import annotations

from typing import Any

ANNOTATION_INGRESS_CLASS = "kubernetes.io/ingress.class"
DEFAULT_INGRESS_CLASS = "alb"


def ingress_class_of(ingress: dict[str, Any]) -> str:
    """Return the class an Ingress asks for, or "" when it names none."""
    annotations = ingress.get("metadata", {}).get("annotations") or {}
    if ANNOTATION_INGRESS_CLASS in annotations:
        return str(annotations[ANNOTATION_INGRESS_CLASS])
    return str(ingress.get("spec", {}).get("ingressClassName") or "")


def matches_ingress_class(ingress_class: str, ingress: dict[str, Any]) -> bool:
    """Return True if *ingress* should be handled by a controller for *ingress_class*.

    With no configured class the controller claims unclassified Ingresses and
    those asking for ``alb``; otherwise the classes must be equal.
    """
    actual = ingress_class_of(ingress)
    if ingress_class == "":
        return actual in ("", DEFAULT_INGRESS_CLASS)
    return actual == ingress_class
