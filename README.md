# opm-operator

Building blocks for a release controller. Such a controller applies rendered
resources to a cluster, tracks what it owns and prunes what it no longer
renders. The package is pure Python and has no runtime dependencies.

## Installation

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Modules

### `opm_operator.inventory`

- `InventoryEntry` is a frozen dataclass with the fields `group`, `kind`,
  `namespace`, `name`, `version` and `component`.
- `Inventory` is a dataclass with the fields `revision`, `digest`, `count` and
  `entries`.
- `compute_digest(entries)` returns `"sha256:<hex>"`. It sorts the entries by
  group, kind, namespace, name, component and version before hashing, so
  input order does not matter. With no entries it returns the SHA-256 of
  empty input.
- `new_entry_from_resource(resource, component_label)` builds an entry from
  an unstructured object given as a mapping. It reads `apiVersion`, `kind`,
  `metadata.namespace`, `metadata.name` and the given label.
- `identity_equal(a, b)` compares group, kind, namespace, name and component.
- `k8s_identity_equal(a, b)` compares group, kind, namespace and name.
- `compute_stale_set(previous, current)` returns the previous entries that
  have no `k8s_identity_equal` match in the current ones. A version change or
  a component rename therefore never marks an entry as stale.

### `opm_operator.outcome`

- `Outcome` is an `IntEnum` with the members `NO_OP`, `APPLIED`,
  `APPLIED_AND_PRUNED`, `FAILED_TRANSIENT` and `FAILED_STALLED`.
  `metric_label()` gives snake-case labels such as `"applied_and_pruned"`.
  `str()` gives names such as `"AppliedAndPruned"`.
- `compute_backoff(failure_count)` returns a `timedelta`. It is 5 seconds for
  0 or 1 failures, then doubles with each further failure, capped at 5
  minutes.
- The module also has the constants `BACKOFF_BASE_DELAY`,
  `BACKOFF_MAX_DELAY` and `STALLED_RECHECK_INTERVAL` (30 minutes).

### `opm_operator.metrics`

- `CounterVec`, `GaugeVec` and `HistogramVec` are in-process, thread-safe
  metric families keyed by label values. Each has `labels(*values)` and
  `reset()`. `CounterVec` and `GaugeVec` have `value(*values)`.
  `HistogramVec` has `count(*values)`.
- The module-level families are `RECONCILE_TOTAL`, `RECONCILE_DURATION`,
  `APPLY_RESOURCES_TOTAL`, `PRUNE_RESOURCES_TOTAL` and `INVENTORY_SIZE`.
  They are collected in `REGISTRY` by metric name.
- The recording helpers are `record_reconcile`, `record_apply`,
  `record_prune`, `record_duration` and `set_inventory_size`. Durations may
  be given as a `timedelta` or as a number of seconds.

### `opm_operator.failures`

- `FailureCounters` holds the counters `reconcile`, `drift`, `apply` and
  `prune`. It has `increment(name)` and `reset(name)`.
- `PhaseOutcomes` records whether each phase ran and whether it failed.
- `update_failure_counters(counters, outcome, phases)` increments the counter
  of each phase that ran and failed, and resets it if the phase ran and
  succeeded. Failed outcomes increment the reconcile counter and successful
  ones reset it. If `counters` is `None`, a new set is created. The function
  returns the counters.
- `reconcile_failure_count(counters)` returns the reconcile count, or 0 when
  `counters` is `None`.

### `opm_operator.ratelimit`

- `ItemExponentialFailureRateLimiter(base_delay, max_delay)` gives a per-item
  delay of `base * 2**failures`, capped at `max_delay`.
- `BucketRateLimiter(rate, burst)` is a shared token bucket.
- `MaxOfRateLimiter(*limiters)` returns the longest delay of the limiters it
  wraps.
- Each limiter has `when(item)`, `forget(item)` and `num_requeues(item)`.
- `default_controller_rate_limiter()` combines a 1 s to 5 min per-item
  backoff with a bucket of 10 tokens per second and a burst of 100.

### `opm_operator.impersonation`

- `resolve_effective_sa(spec_sa, default_sa)` returns `(name, source)`. The
  spec value wins over the default, and the default wins over none. The
  source is `"spec"`, `"default"` or `""`.
- `ApiStatusError(message, code, reason)` represents an API error.
  `is_forbidden(err)` walks the exception chain and checks whether the first
  `ApiStatusError` in it is a 403 Forbidden.
- `deletion_sa_missing_message(namespace, sa_name, orphan_annotation)`
  formats the stall message used when the service account is missing at
  deletion time.
- `Condition` is a status condition.
  `ready_already_stalled_with(conditions, reason)` tells whether the `Ready`
  condition is already `False` with that reason.

### `opm_operator.controller`

- `SourceKind` has the members `OCIRepository`, `GitRepository` and `Bucket`.
- `SourceReference`, `ReleaseRef` and `Artifact` are small frozen
  dataclasses.
- `SourceArtifactPredicate` decides which source events trigger a reconcile.
  `update(old, new)` is true when the artifact appears or disappears, or when
  its revision or digest changes. By default, creation triggers and deletion
  does not.
- `map_source_to_releases(kind, source_name, source_namespace, releases)`
  returns `(name, namespace)` for every release in the source's namespace
  that references that source. An empty source namespace on a release means
  the release's own namespace.

### `opm_operator.reconcile`

- `FINALIZER_NAME` is `"releases.opmodel.dev/cleanup"`.
- `contains_finalizer`, `add_finalizer` and `remove_finalizer` work on a list
  of finalizer names and return new lists.
- `is_resolution_error(err)` tells module-resolution failures apart from
  render failures.
- `extract_release_uuid(resources, uuid_label)` returns the first non-empty
  release UUID label found on the resources.
- `inventory_digest(inventory)` returns the inventory's digest, or `""` when
  there is no inventory.
- `BundleRelease` is an empty placeholder type.

## Example

```python
from opm_operator.inventory import InventoryEntry, compute_stale_set, compute_digest
from opm_operator.outcome import compute_backoff

previous = [
    InventoryEntry(group="apps", kind="Deployment", namespace="ns", name="app", version="v1"),
    InventoryEntry(group="", kind="Service", namespace="ns", name="svc", version="v1"),
]
current = [
    InventoryEntry(group="apps", kind="Deployment", namespace="ns", name="app", version="v2"),
]

stale = compute_stale_set(previous, current)   # only the Service
digest = compute_digest(current)               # "sha256:..."
delay = compute_backoff(3)                     # timedelta(seconds=20)
```

## What this package does not do

This package is a library of decision and bookkeeping helpers. It does not
include:

- a Kubernetes client or any connection to a cluster;
- a running controller, work queue or reconcile loop;
- rendering of modules;
- server-side apply, drift detection or deletion of resources;
- a metrics HTTP endpoint or exporter.

It provides no command-line program. The calling code has to supply these
pieces and use the helpers to decide what to apply, what to prune, when to
retry and what to record.