"""Event handlers translating watched object changes into reconcile requests."""

from albingress.eventhandlers.node import EnqueueRequestsForNodeEvent, is_relevant

__all__ = ["EnqueueRequestsForNodeEvent", "is_relevant"]
