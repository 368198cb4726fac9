"""Release reconciliation helpers: finalizers, error classification and release identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from opm_operator.inventory import Inventory

FINALIZER_NAME = "releases.opmodel.dev/cleanup"
"""Finalizer that keeps a release until its owned resources are cleaned up."""

MODULE_RELEASE_UUID_LABEL = "module-release.opmodel.dev/uuid"
"""Label carrying the release UUID on every rendered resource."""

_RESOLUTION_MARKERS = ("loading synthesized release", "synthesizing release")


@dataclass
class BundleRelease:
    """A release made of several modules; its reconciliation carries no state yet."""


def is_resolution_error(err: BaseException | str) -> bool:
    """True if the error means the module could not be resolved from the registry.

    Anything else is treated as a render or evaluation failure.
    """
    message = str(err)
    return any(marker in message for marker in _RESOLUTION_MARKERS)


def extract_release_uuid(
    resources: Iterable[Mapping[str, Any]],
    uuid_label: str = MODULE_RELEASE_UUID_LABEL,
) -> str:
    """Return the first non-empty release UUID label among the resources, or ``""``.

    All rendered resources carry the same UUID, so the first one found wins.
    """
    for resource in resources:
        metadata = resource.get("metadata") or {}
        labels = metadata.get("labels") or {}
        uuid = labels.get(uuid_label, "")
        if uuid:
            return uuid
    return ""


def inventory_digest(inventory: Inventory | None) -> str:
    """Digest of the inventory, or ``""`` when there is none."""
    if inventory is None:
        return ""
    return inventory.digest


def contains_finalizer(finalizers: Iterable[str] | None) -> bool:
    """True if the cleanup finalizer is present."""
    return FINALIZER_NAME in (finalizers or ())


def add_finalizer(finalizers: Iterable[str] | None) -> list[str]:
    """Return the finalizers with the cleanup finalizer appended if it is missing."""
    result = list(finalizers or ())
    if FINALIZER_NAME not in result:
        result.append(FINALIZER_NAME)
    return result


def remove_finalizer(finalizers: Iterable[str] | None) -> list[str]:
    """Return the finalizers with every occurrence of the cleanup finalizer removed."""
    return [name for name in finalizers or () if name != FINALIZER_NAME]