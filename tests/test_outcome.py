from datetime import timedelta

import pytest

from opm_operator.outcome import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_DELAY,
    STALLED_RECHECK_INTERVAL,
    Outcome,
    compute_backoff,
)


@pytest.mark.parametrize(
    "failure_count, expected",
    [
        (0, timedelta(seconds=5)),
        (1, timedelta(seconds=5)),
        (2, timedelta(seconds=10)),
        (3, timedelta(seconds=20)),
        (4, timedelta(seconds=40)),
        (5, timedelta(seconds=80)),
        (6, timedelta(seconds=160)),
        (7, timedelta(minutes=5)),
        (10, timedelta(minutes=5)),
        (100, timedelta(minutes=5)),
    ],
)
def test_compute_backoff(failure_count, expected):
    assert compute_backoff(failure_count) == expected


def test_compute_backoff_negative_returns_base():
    assert compute_backoff(-3) == BACKOFF_BASE_DELAY


def test_compute_backoff_never_exceeds_max():
    assert all(compute_backoff(n) <= BACKOFF_MAX_DELAY for n in range(0, 200))


def test_stalled_recheck_is_thirty_minutes():
    assert STALLED_RECHECK_INTERVAL.total_seconds() == 1800


@pytest.mark.parametrize(
    "outcome, label, name",
    [
        (Outcome.NO_OP, "no_op", "NoOp"),
        (Outcome.APPLIED, "applied", "Applied"),
        (Outcome.APPLIED_AND_PRUNED, "applied_and_pruned", "AppliedAndPruned"),
        (Outcome.FAILED_TRANSIENT, "failed_transient", "FailedTransient"),
        (Outcome.FAILED_STALLED, "failed_stalled", "FailedStalled"),
    ],
)
def test_outcome_labels(outcome, label, name):
    assert outcome.metric_label() == label
    assert str(outcome) == name


def test_outcome_ordering_matches_declaration():
    assert [int(o) for o in Outcome] == [0, 1, 2, 3, 4]
    assert Outcome(0) is Outcome.NO_OP