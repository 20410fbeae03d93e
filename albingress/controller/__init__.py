"""Reconciliation plumbing: the rate-limited work queue and its workers."""

from albingress.controller.queue import RateLimitingQueue

__all__ = ["RateLimitingQueue"]
