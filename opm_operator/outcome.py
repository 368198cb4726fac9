"""Reconcile outcome classification and retry backoff."""

from __future__ import annotations

from datetime import timedelta
from enum import IntEnum

BACKOFF_BASE_DELAY = timedelta(seconds=5)
"""Initial retry delay after the first transient failure."""

BACKOFF_MAX_DELAY = timedelta(minutes=5)
"""Cap for exponential backoff growth."""

STALLED_RECHECK_INTERVAL = timedelta(minutes=30)
"""Periodic safety recheck for stalled failures."""


class Outcome(IntEnum):
    """Result of a reconcile attempt; drives requeue behaviour and conditions."""

    NO_OP = 0
    APPLIED = 1
    APPLIED_AND_PRUNED = 2
    FAILED_TRANSIENT = 3
    FAILED_STALLED = 4

    def metric_label(self) -> str:
        """Snake-case label value used for metrics."""
        return _METRIC_LABELS[self]

    def __str__(self) -> str:
        return _DISPLAY_NAMES[self]


_METRIC_LABELS = {
    Outcome.NO_OP: "no_op",
    Outcome.APPLIED: "applied",
    Outcome.APPLIED_AND_PRUNED: "applied_and_pruned",
    Outcome.FAILED_TRANSIENT: "failed_transient",
    Outcome.FAILED_STALLED: "failed_stalled",
}

_DISPLAY_NAMES = {
    Outcome.NO_OP: "NoOp",
    Outcome.APPLIED: "Applied",
    Outcome.APPLIED_AND_PRUNED: "AppliedAndPruned",
    Outcome.FAILED_TRANSIENT: "FailedTransient",
    Outcome.FAILED_STALLED: "FailedStalled",
}


def compute_backoff(failure_count: int) -> timedelta:
    """Exponential backoff: min(base * 2**(failures - 1), max).

    Returns the base delay when ``failure_count`` is 0 or 1.
    """
    if failure_count <= 1:
        return BACKOFF_BASE_DELAY
    exponent = failure_count - 1
    # Beyond this the doubling has long exceeded the cap.
    if exponent >= 64:
        return BACKOFF_MAX_DELAY
    delay = BACKOFF_BASE_DELAY * (1 << exponent) if exponent < 32 else BACKOFF_MAX_DELAY
    return min(delay, BACKOFF_MAX_DELAY)