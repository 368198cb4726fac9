"""Release controller wiring: source-to-release mapping and artifact predicates."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class SourceKind(str, Enum):
    """Flux source kinds a release may reference."""

    OCI_REPOSITORY = "OCIRepository"
    GIT_REPOSITORY = "GitRepository"
    BUCKET = "Bucket"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceReference:
    """A release's reference to its source; an empty namespace means the release's own."""

    kind: str
    name: str
    namespace: str = ""


@dataclass(frozen=True)
class ReleaseRef:
    """The identity of a release and the source it points at."""

    name: str
    namespace: str
    source_ref: SourceReference = field(default_factory=lambda: SourceReference("", ""))

    @property
    def source_namespace(self) -> str:
        """Namespace of the referenced source, defaulting to the release's."""
        return self.source_ref.namespace or self.namespace


@dataclass(frozen=True)
class Artifact:
    """The fields of a source artifact that trigger reconciliation."""

    revision: str
    digest: str


@dataclass(frozen=True)
class SourceArtifactPredicate:
    """Let through only source events that change the artifact revision or digest.

    Creation events trigger reconciliation and deletion events do not,
    unless configured otherwise.
    """

    trigger_on_create: bool = True
    trigger_on_delete: bool = False

    def update(self, old: Artifact | None, new: Artifact | None) -> bool:
        """True when the artifact appeared, disappeared or changed."""
        if old is None and new is None:
            return False
        if old is None or new is None:
            return True
        return old.revision != new.revision or old.digest != new.digest

    def create(self, obj: object) -> bool:
        """Whether the creation of a source triggers reconciliation."""
        return self.trigger_on_create

    def delete(self, obj: object) -> bool:
        """Whether the deletion of a source triggers reconciliation."""
        return self.trigger_on_delete


def map_source_to_releases(
    kind: str,
    source_name: str,
    source_namespace: str,
    releases: Iterable[ReleaseRef],
) -> list[tuple[str, str]]:
    """Return (name, namespace) of every release referencing this source.

    Only releases in the source's namespace are considered, matching the
    namespaced list performed when a source changes.
    """
    return [
        (rel.name, rel.namespace)
        for rel in releases
        if rel.namespace == source_namespace
        and rel.source_ref.kind == kind
        and rel.source_ref.name == source_name
        and rel.source_namespace == source_namespace
    ]