"""Ownership inventory helpers: entries, digests and stale-set computation."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping


@dataclass(frozen=True)
class InventoryEntry:
    """One Kubernetes resource owned by a release."""

    group: str = ""
    kind: str = ""
    namespace: str = ""
    name: str = ""
    version: str = ""
    component: str = ""

    def sort_key(self) -> tuple[str, str, str, str, str, str]:
        """Ordering used for digests: group, kind, namespace, name, component, version."""
        return (
            self.group,
            self.kind,
            self.namespace,
            self.name,
            self.component,
            self.version,
        )


@dataclass
class Inventory:
    """The controller's current ownership inventory view."""

    revision: int = 0
    digest: str = ""
    count: int = 0
    entries: list[InventoryEntry] = field(default_factory=list)


def compute_digest(entries: Iterable[InventoryEntry] | None) -> str:
    """Return a deterministic ``sha256:<hex>`` digest of the entries.

    Entries are sorted by group, kind, namespace, name, component and version
    before hashing, so input order does not matter.
    """
    ordered = sorted(entries or (), key=InventoryEntry.sort_key)
    if not ordered:
        return "sha256:" + hashlib.sha256(b"").hexdigest()
    payload = json.dumps(
        [asdict(entry) for entry in ordered],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")
    return "sha256:" + hashlib.sha256(payload).hexdigest()


def _split_api_version(api_version: str) -> tuple[str, str]:
    group, sep, version = api_version.rpartition("/")
    if not sep:
        return "", api_version
    return group, version


def new_entry_from_resource(
    resource: Mapping[str, Any], component_label: str
) -> InventoryEntry:
    """Build an inventory entry from an unstructured Kubernetes object.

    Extracts group, version, kind, namespace, name and the value of the
    ``component_label`` label.
    """
    group, version = _split_api_version(resource.get("apiVersion") or "")
    metadata = resource.get("metadata") or {}
    labels = metadata.get("labels") or {}
    return InventoryEntry(
        group=group,
        kind=resource.get("kind") or "",
        namespace=metadata.get("namespace") or "",
        name=metadata.get("name") or "",
        version=version,
        component=labels.get(component_label, ""),
    )


def identity_equal(a: InventoryEntry, b: InventoryEntry) -> bool:
    """Component-aware identity: group, kind, namespace, name and component.

    The version is excluded so API version migrations do not look like new
    resources.
    """
    return k8s_identity_equal(a, b) and a.component == b.component


def k8s_identity_equal(a: InventoryEntry, b: InventoryEntry) -> bool:
    """Identity as the API server sees it: group, kind, namespace and name."""
    return (
        a.group == b.group
        and a.kind == b.kind
        and a.namespace == b.namespace
        and a.name == b.name
    )


def compute_stale_set(
    previous: Iterable[InventoryEntry] | None,
    current: Iterable[InventoryEntry] | None,
) -> list[InventoryEntry]:
    """Return entries of ``previous`` that have no Kubernetes identity match in ``current``.

    Version and component are ignored, so API migrations and component
    renames never mark a live object as stale.
    """
    current_list = list(current or ())
    return [
        prev
        for prev in previous or ()
        if not any(k8s_identity_equal(prev, cur) for cur in current_list)
    ]