from datetime import timedelta

import pytest

from opm_operator import metrics
from opm_operator.metrics import (
    APPLY_RESOURCES_TOTAL,
    INVENTORY_SIZE,
    PRUNE_RESOURCES_TOTAL,
    RECONCILE_DURATION,
    RECONCILE_TOTAL,
    REGISTRY,
    CounterVec,
    GaugeVec,
    HistogramVec,
    record_apply,
    record_duration,
    record_prune,
    record_reconcile,
    set_inventory_size,
)


@pytest.mark.parametrize(
    "metric_name, labels, record, read, expected",
    [
        (
            "opm_controller_reconcile_total",
            ("name", "namespace", "outcome"),
            lambda: record_reconcile("reg", "ns", "applied", timedelta(seconds=1)),
            lambda: RECONCILE_TOTAL.value("reg", "ns", "applied"),
            1.0,
        ),
        (
            "opm_controller_reconcile_duration_seconds",
            ("name", "namespace"),
            lambda: record_duration("reg", "ns", timedelta(seconds=1)),
            lambda: RECONCILE_DURATION.count("reg", "ns"),
            1,
        ),
        (
            "opm_controller_apply_resources_total",
            ("name", "namespace", "action"),
            lambda: record_apply("reg", "ns", 2, 0, 0),
            lambda: APPLY_RESOURCES_TOTAL.value("reg", "ns", "created"),
            2.0,
        ),
        (
            "opm_controller_prune_resources_total",
            ("name", "namespace"),
            lambda: record_prune("reg", "ns", 4),
            lambda: PRUNE_RESOURCES_TOTAL.value("reg", "ns"),
            4.0,
        ),
        (
            "opm_controller_inventory_size",
            ("name", "namespace"),
            lambda: set_inventory_size("reg", "ns", 7),
            lambda: INVENTORY_SIZE.value("reg", "ns"),
            7.0,
        ),
    ],
)
def test_metrics_registered(metric_name, labels, record, read, expected):
    metric = REGISTRY[metric_name]
    assert metric.label_names == labels
    values = ["registered-check"] * len(labels)
    assert metric.labels(*values) is metric.labels(*values)
    with pytest.raises(ValueError):
        metric.labels(*values, "extra")
    metric.reset()
    record()
    assert read() == expected
    metric.reset()


def test_record_reconcile():
    RECONCILE_TOTAL.reset()
    RECONCILE_DURATION.reset()
    record_reconcile("test-release", "default", "applied", timedelta(milliseconds=2500))
    assert RECONCILE_TOTAL.value("test-release", "default", "applied") == 1.0
    assert RECONCILE_DURATION.count("test-release", "default") == 1
    assert RECONCILE_DURATION.labels("test-release", "default").sum == pytest.approx(2.5)


def test_record_apply():
    APPLY_RESOURCES_TOTAL.reset()
    record_apply("test-release", "default", 3, 2, 1)
    assert APPLY_RESOURCES_TOTAL.value("test-release", "default", "created") == 3.0
    assert APPLY_RESOURCES_TOTAL.value("test-release", "default", "updated") == 2.0
    assert APPLY_RESOURCES_TOTAL.value("test-release", "default", "unchanged") == 1.0


def test_record_prune():
    PRUNE_RESOURCES_TOTAL.reset()
    record_prune("test-release", "default", 5)
    assert PRUNE_RESOURCES_TOTAL.value("test-release", "default") == 5.0


def test_record_duration():
    RECONCILE_DURATION.reset()
    record_duration("test-release", "default", timedelta(milliseconds=500))
    assert RECONCILE_DURATION.count("test-release", "default") == 1


def test_set_inventory_size():
    INVENTORY_SIZE.reset()
    set_inventory_size("test-release", "default", 15)
    assert INVENTORY_SIZE.value("test-release", "default") == 15.0
    set_inventory_size("test-release", "default", 10)
    assert INVENTORY_SIZE.value("test-release", "default") == 10.0


def test_counter_vec_rejects_wrong_label_count():
    vec = CounterVec("c", "help", ["a", "b"])
    with pytest.raises(ValueError):
        vec.labels("only-one")


def test_counter_rejects_negative_add():
    vec = CounterVec("c", "help", ["a"])
    with pytest.raises(ValueError):
        vec.labels("x").add(-1)


def test_counter_vec_reset_clears_values():
    vec = CounterVec("c", "help", ["a"])
    vec.labels("x").inc()
    vec.reset()
    assert vec.value("x") == 0.0


def test_gauge_vec_add_and_reset():
    vec = GaugeVec("g", "help", ["a"])
    vec.labels("x").add(4)
    vec.labels("x").add(-1)
    assert vec.value("x") == 3.0
    vec.reset()
    assert vec.value("x") == 0.0


def test_histogram_buckets_are_cumulative():
    vec = HistogramVec("h", "help", ["a"], buckets=(1.0, 5.0))
    vec.labels("x").observe(0.5)
    vec.labels("x").observe(3.0)
    vec.labels("x").observe(10.0)
    child = vec.labels("x")
    assert child.bucket_counts == [1, 2]
    assert vec.count("x") == 3
    vec.reset()
    assert vec.count("x") == 0


def test_record_reconcile_accepts_seconds():
    RECONCILE_DURATION.reset()
    metrics.record_duration("r", "ns", 1.5)
    assert RECONCILE_DURATION.labels("r", "ns").sum == pytest.approx(1.5)