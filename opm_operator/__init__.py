"""Release reconciliation helpers: inventory, pruning, backoff, rate limiting and metrics."""

__version__ = "0.1.0"

__all__ = [
    "controller",
    "failures",
    "impersonation",
    "inventory",
    "metrics",
    "outcome",
    "ratelimit",
    "reconcile",
]