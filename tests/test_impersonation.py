import pytest

from opm_operator.impersonation import (
    ApiStatusError,
    Condition,
    deletion_sa_missing_message,
    is_forbidden,
    ready_already_stalled_with,
    resolve_effective_sa,
)


@pytest.mark.parametrize(
    "spec_sa, default_sa, want_sa, want_source",
    [
        ("", "", "", ""),
        ("custom", "opm-deployer", "custom", "spec"),
        ("", "opm-deployer", "opm-deployer", "default"),
        ("custom", "", "custom", "spec"),
    ],
)
def test_resolve_effective_sa(spec_sa, default_sa, want_sa, want_source):
    assert resolve_effective_sa(spec_sa, default_sa) == (want_sa, want_source)


def test_deletion_flag_resolution():
    sa, source = resolve_effective_sa("", "opm-deployer")
    assert sa == "opm-deployer"
    assert source == "default"


def test_is_forbidden_direct():
    err = ApiStatusError("denied", code=403, reason="Forbidden")
    assert is_forbidden(err) is True


def test_is_forbidden_wrapped():
    inner = ApiStatusError("denied", code=403, reason="Forbidden")
    try:
        try:
            raise inner
        except ApiStatusError as exc:
            raise RuntimeError("applying resources") from exc
    except RuntimeError as outer:
        assert is_forbidden(outer) is True


def test_is_forbidden_other_status():
    assert is_forbidden(ApiStatusError("missing", code=404, reason="NotFound")) is False


def test_is_forbidden_plain_error():
    assert is_forbidden(ValueError("forbidden")) is False
    assert is_forbidden(None) is False


def test_deletion_sa_missing_message_mentions_identity():
    msg = deletion_sa_missing_message("team-a", "opm-deployer", "example.dev/orphan")
    assert '"team-a/opm-deployer"' in msg
    assert '"example.dev/orphan"="true"' in msg
    assert msg.startswith("ServiceAccount ")


def test_ready_already_stalled_with_matching():
    conds = [Condition(type="Ready", status="False", reason="DeletionSAMissing")]
    assert ready_already_stalled_with(conds, "DeletionSAMissing") is True


def test_ready_already_stalled_with_other_reason():
    conds = [Condition(type="Ready", status="False", reason="ApplyFailed")]
    assert ready_already_stalled_with(conds, "DeletionSAMissing") is False


def test_ready_already_stalled_with_true_status():
    conds = [Condition(type="Ready", status="True", reason="DeletionSAMissing")]
    assert ready_already_stalled_with(conds, "DeletionSAMissing") is False


def test_ready_already_stalled_without_ready():
    conds = [Condition(type="Stalled", status="False", reason="DeletionSAMissing")]
    assert ready_already_stalled_with(conds, "DeletionSAMissing") is False
    assert ready_already_stalled_with(None, "DeletionSAMissing") is False