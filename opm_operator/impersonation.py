"""Service-account impersonation helpers for apply, prune and deletion."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable

READY_CONDITION = "Ready"
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"
CONDITION_UNKNOWN = "Unknown"

FORBIDDEN_CODE = 403
FORBIDDEN_REASON = "Forbidden"


@dataclass
class Condition:
    """A status condition on a release."""

    type: str
    status: str = CONDITION_UNKNOWN
    reason: str = ""
    message: str = ""


class ApiStatusError(Exception):
    """An error reported by the Kubernetes API server."""

    def __init__(self, message: str, code: int = 0, reason: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.reason = reason

    @property
    def forbidden(self) -> bool:
        """True for a 403 Forbidden status."""
        return self.reason == FORBIDDEN_REASON or (
            not self.reason and self.code == FORBIDDEN_CODE
        )


def resolve_effective_sa(spec_sa: str, default_sa: str) -> tuple[str, str]:
    """Apply spec > default > empty precedence.

    Returns the effective service account name and where it came from:
    ``"spec"``, ``"default"`` or ``""``.
    """
    if spec_sa:
        return spec_sa, "spec"
    if default_sa:
        return default_sa, "default"
    return "", ""


def _error_chain(err: BaseException | None) -> Iterable[BaseException]:
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        yield err
        err = err.__cause__ or err.__context__


def is_forbidden(err: BaseException | None) -> bool:
    """True if the first API status error in the exception chain is Forbidden."""
    for link in _error_chain(err):
        if isinstance(link, ApiStatusError):
            return link.forbidden
    return False


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def deletion_sa_missing_message(namespace: str, sa_name: str, orphan_annotation: str) -> str:
    """Stall message shown when the impersonation service account is missing on delete."""
    return (
        f"ServiceAccount {_quote(namespace + '/' + sa_name)} not found; "
        "cannot prune owned resources during deletion. "
        "Recovery options: "
        "(1) Restore the ServiceAccount and its RBAC; "
        "(2) Set spec.prune=false on the release and delete again to orphan resources without prune; "
        f"(3) Add annotation {_quote(orphan_annotation)}={_quote('true')} to the release "
        "to remove the finalizer and leave resources behind "
        "(operator is responsible for cleanup)."
    )


def ready_already_stalled_with(conditions: Iterable[Condition] | None, reason: str) -> bool:
    """True if the Ready condition is already False with ``reason``.

    Used to suppress duplicate events across requeues of the same stall.
    """
    ready = next(
        (cond for cond in conditions or () if cond.type == READY_CONDITION), None
    )
    return ready is not None and ready.status == CONDITION_FALSE and ready.reason == reason