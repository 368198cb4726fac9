"""Per-phase failure counters updated at the end of each reconcile attempt."""

from __future__ import annotations

from dataclasses import dataclass

from opm_operator.outcome import Outcome

_FAILED_OUTCOMES = frozenset({Outcome.FAILED_TRANSIENT, Outcome.FAILED_STALLED})
_SUCCESS_OUTCOMES = frozenset({Outcome.APPLIED, Outcome.APPLIED_AND_PRUNED, Outcome.NO_OP})


@dataclass
class FailureCounters:
    """Consecutive failure counts for the reconcile loop and its phases."""

    reconcile: int = 0
    drift: int = 0
    apply: int = 0
    prune: int = 0

    def increment(self, counter: str) -> None:
        """Add one to the named counter."""
        self._check(counter)
        setattr(self, counter, getattr(self, counter) + 1)

    def reset(self, counter: str) -> None:
        """Set the named counter back to zero."""
        self._check(counter)
        setattr(self, counter, 0)

    @staticmethod
    def _check(counter: str) -> None:
        if counter not in ("reconcile", "drift", "apply", "prune"):
            raise ValueError(f"unknown failure counter: {counter!r}")


@dataclass
class PhaseOutcomes:
    """Which phases ran during a reconcile attempt and whether they failed."""

    drift_ran: bool = False
    drift_failed: bool = False
    apply_ran: bool = False
    apply_failed: bool = False
    prune_ran: bool = False
    prune_failed: bool = False


def _update_phase(counters: FailureCounters, counter: str, ran: bool, failed: bool) -> None:
    if not ran:
        return
    if failed:
        counters.increment(counter)
    else:
        counters.reset(counter)


def update_failure_counters(
    counters: FailureCounters | None,
    outcome: Outcome,
    phases: PhaseOutcomes,
) -> FailureCounters:
    """Increment or reset counters from phase results and the overall outcome.

    Phases that did not run leave their counter untouched. A missing counter
    set is created. Returns the updated counters.
    """
    if counters is None:
        counters = FailureCounters()

    _update_phase(counters, "drift", phases.drift_ran, phases.drift_failed)
    _update_phase(counters, "apply", phases.apply_ran, phases.apply_failed)
    _update_phase(counters, "prune", phases.prune_ran, phases.prune_failed)

    if outcome in _FAILED_OUTCOMES:
        counters.increment("reconcile")
    elif outcome in _SUCCESS_OUTCOMES:
        counters.reset("reconcile")
    return counters


def reconcile_failure_count(counters: FailureCounters | None) -> int:
    """Current reconcile failure count, or 0 when there are no counters."""
    if counters is None:
        return 0
    return counters.reconcile