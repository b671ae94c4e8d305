"""Tests for ApprovalEvidenceCollector and ApprovalEvidenceSnapshot."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from aumos_codeowners.approval.evidence import ApprovalEvidenceCollector, ApprovalEvidenceSnapshot
from aumos_codeowners.changes.repository import Commit, InMemoryRepository
from aumos_codeowners.config.schema import ConfigLoader
from aumos_codeowners.errors import DestinationBranchNotFoundError, PatchSetNotFoundError
from aumos_codeowners.resolution.identities import OwnerIdentityResolver
from aumos_codeowners.review.accounts import Account, InMemoryAccountDirectory
from aumos_codeowners.review.history import ChangeVotingHistory
from aumos_codeowners.review.model import Change, PatchSet, PatchSetApproval, ReviewerState

ADMIN = 1000
ALICE = 1001
BOB = 1002
DAVE = 1004

_T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)

_SELF_IGNORING_LABELS = [{"name": "Code-Review", "min_value": -2, "max_value": 2, "ignore_self_approval": True}]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _change(owner: int = DAVE, uploaders: tuple[int, ...] = (DAVE,)) -> Change:
    return Change(
        change_id="I1",
        project="demo",
        branch="main",
        owner=owner,
        patch_sets=[
            PatchSet(patch_set_id=index + 1, uploader=uploader, revision=f"ps{index + 1}")
            for index, uploader in enumerate(uploaders)
        ],
        reviewers={ADMIN: ReviewerState.REVIEWER, ALICE: ReviewerState.CC, BOB: ReviewerState.REMOVED},
    )


def _vote(change: Change, account_id: int, value: int, patch_set_id: int, minute: int = 0, label: str = "Code-Review") -> None:
    change.approvals.append(
        PatchSetApproval(
            account_id=account_id,
            label=label,
            value=value,
            patch_set_id=patch_set_id,
            granted=_T0 + timedelta(minutes=minute),
        )
    )


def _collector(config: dict[str, Any] | None = None, with_branch: bool = True) -> ApprovalEvidenceCollector:
    repository = InMemoryRepository()
    repository.add_commit(Commit("base"))
    if with_branch:
        repository.set_branch("demo", "main", "base")
    accounts = InMemoryAccountDirectory(
        [
            Account(ADMIN, ("admin@example.com",)),
            Account(ALICE, ("alice@example.com",)),
            Account(BOB, ("bob@example.com",)),
            Account(DAVE, ("dave@example.com",)),
        ]
    )
    snapshot = ConfigLoader().load_dict(config or {}).snapshot()
    return ApprovalEvidenceCollector(ChangeVotingHistory(), repository, OwnerIdentityResolver(accounts), snapshot)


# ---------------------------------------------------------------------------
# Basic evidence
# ---------------------------------------------------------------------------


class TestEvidenceBasics:
    def test_identifies_target_and_destination(self) -> None:
        evidence = _collector().collect(_change(uploaders=(DAVE, DAVE)))
        assert evidence.patch_set_id == 2
        assert evidence.revision == "ps2"
        assert evidence.destination_revision == "base"
        assert evidence.uploader == DAVE
        assert evidence.change_owner == DAVE

    def test_explicit_patch_set(self) -> None:
        evidence = _collector().collect(_change(uploaders=(DAVE, ALICE)), patch_set_id=1)
        assert evidence.patch_set_id == 1
        assert evidence.uploader == DAVE

    def test_reviewers_exclude_cc_and_removed(self) -> None:
        assert _collector().collect(_change()).reviewers == frozenset({ADMIN})

    def test_missing_branch_raises(self) -> None:
        with pytest.raises(DestinationBranchNotFoundError):
            _collector(with_branch=False).collect(_change())

    def test_missing_patch_set_raises(self) -> None:
        with pytest.raises(PatchSetNotFoundError):
            _collector().collect(_change(), patch_set_id=7)

    def test_change_without_patch_sets_raises(self) -> None:
        change = _change(uploaders=())
        with pytest.raises(PatchSetNotFoundError, match="has no patch sets") as excinfo:
            _collector().collect(change)
        assert excinfo.value.patch_set_id is None

    def test_pure_revert_flag(self) -> None:
        change = _change()
        change.is_pure_revert = True
        assert _collector().collect(change).is_pure_revert is True

    def test_exempted_uploader(self) -> None:
        evidence = _collector({"exempted_users": ["DAVE@example.com"]}).collect(_change())
        assert evidence.uploader_exempted is True
        assert _collector().collect(_change()).uploader_exempted is False


# ---------------------------------------------------------------------------
# Approvers and overrides
# ---------------------------------------------------------------------------


class TestApprovers:
    def test_sufficient_votes_on_target_patch_set(self) -> None:
        change = _change(uploaders=(DAVE, DAVE))
        _vote(change, ADMIN, 1, 2)
        _vote(change, ALICE, 0, 2)
        _vote(change, BOB, 1, 1)
        assert _collector().collect(change).approvers == frozenset({ADMIN})

    def test_required_value_respected(self) -> None:
        change = _change()
        _vote(change, ADMIN, 1, 1)
        assert _collector({"required_approval": "Code-Review+2"}).collect(change).approvers == frozenset()

    def test_uploader_counts_unless_label_ignores_self_approval(self) -> None:
        change = _change()
        _vote(change, DAVE, 2, 1)
        assert _collector().collect(change).approvers == frozenset({DAVE})
        ignoring = _collector({"labels": _SELF_IGNORING_LABELS})
        assert ignoring.collect(change).approvers == frozenset()

    def test_later_weaker_vote_replaces_approval(self) -> None:
        change = _change()
        _vote(change, ADMIN, 1, 1, minute=0)
        _vote(change, ADMIN, -1, 1, minute=5)
        _vote(change, ALICE, 0, 1, minute=0)
        _vote(change, ALICE, 1, 1, minute=5)
        assert _collector().collect(change).approvers == frozenset({ALICE})

    def test_revoked_override_is_dropped(self) -> None:
        config = {
            "labels": [{"name": "Code-Review"}, {"name": "Owners-Override", "min_value": 0, "max_value": 1}],
            "override_approvals": ["Owners-Override+1"],
        }
        change = _change()
        _vote(change, ADMIN, 1, 1, minute=0, label="Owners-Override")
        _vote(change, ADMIN, 0, 1, minute=5, label="Owners-Override")
        assert _collector(config).collect(change).has_overrides is False

    def test_votes_on_other_labels_do_not_revoke(self) -> None:
        change = _change()
        _vote(change, ADMIN, 1, 1, minute=0)
        _vote(change, ADMIN, 0, 1, minute=5, label="Verified")
        assert _collector().collect(change).approvers == frozenset({ADMIN})

    def test_overrides(self) -> None:
        config = {
            "labels": [
                {"name": "Code-Review"},
                {"name": "Owners-Override", "min_value": 0, "max_value": 1, "ignore_self_approval": True},
            ],
            "override_approvals": ["Owners-Override+1"],
        }
        change = _change()
        _vote(change, DAVE, 1, 1, label="Owners-Override")
        assert _collector(config).collect(change).has_overrides is False
        _vote(change, ADMIN, 1, 1, label="Owners-Override")
        overrides = _collector(config).collect(change).overrides
        assert [o.account_id for o in overrides] == [ADMIN]


# ---------------------------------------------------------------------------
# Implicit approvals
# ---------------------------------------------------------------------------


class TestImplicitApprovals:
    @pytest.mark.parametrize(
        ("mode", "labels", "owner", "expected"),
        [
            ("false", None, DAVE, None),
            ("true", None, DAVE, DAVE),
            ("true", None, ADMIN, None),
            ("true", _SELF_IGNORING_LABELS, DAVE, None),
            ("forced", None, ADMIN, DAVE),
            ("forced", _SELF_IGNORING_LABELS, DAVE, DAVE),
        ],
    )
    def test_implicit_approver(self, mode: str, labels: list | None, owner: int, expected: int | None) -> None:
        config: dict[str, Any] = {"enable_implicit_approvals": mode}
        if labels is not None:
            config["labels"] = labels
        evidence = _collector(config).collect(_change(owner=owner))
        assert evidence.implicit_approver == expected


# ---------------------------------------------------------------------------
# Sticky approvals
# ---------------------------------------------------------------------------


class TestStickyApprovals:
    _STICKY = {"enable_sticky_approvals": True}

    def test_disabled_by_default(self) -> None:
        change = _change(uploaders=(DAVE, DAVE))
        _vote(change, ADMIN, 1, 1)
        assert dict(_collector().collect(change).approvers_from_previous_patch_sets) == {}

    def test_earlier_approval_sticks(self) -> None:
        change = _change(uploaders=(DAVE, DAVE, DAVE))
        _vote(change, ADMIN, 1, 1)
        _vote(change, ALICE, 2, 2, minute=1)
        evidence = _collector(self._STICKY).collect(change)
        assert evidence.approvers == frozenset()
        assert dict(evidence.approvers_from_previous_patch_sets) == {
            1: frozenset({ADMIN}),
            2: frozenset({ALICE}),
        }
        assert evidence.sticky_approval([ADMIN, ALICE]) == (2, ALICE)
        assert evidence.sticky_approval([ADMIN]) == (1, ADMIN)
        assert evidence.sticky_approval([BOB]) is None
        assert evidence.sticky_approval(owned_by_all_users=True) == (2, ALICE)

    def test_later_vote_revokes_sticky_approval(self) -> None:
        change = _change(uploaders=(DAVE, DAVE))
        _vote(change, ADMIN, 1, 1)
        _vote(change, ADMIN, 0, 2, minute=1)
        evidence = _collector(self._STICKY).collect(change)
        assert dict(evidence.approvers_from_previous_patch_sets) == {}

    def test_latest_vote_within_patch_set_wins(self) -> None:
        change = _change(uploaders=(DAVE, DAVE))
        _vote(change, ADMIN, 1, 1, minute=0)
        _vote(change, ADMIN, -1, 1, minute=5)
        evidence = _collector(self._STICKY).collect(change)
        assert dict(evidence.approvers_from_previous_patch_sets) == {}

    def test_votes_after_target_are_ignored(self) -> None:
        change = _change(uploaders=(DAVE, DAVE, DAVE))
        _vote(change, ADMIN, 1, 1)
        _vote(change, ADMIN, 0, 3, minute=1)
        evidence = _collector(self._STICKY).collect(change, patch_set_id=2)
        assert dict(evidence.approvers_from_previous_patch_sets) == {1: frozenset({ADMIN})}

    def test_current_uploader_excluded_when_self_approval_ignored(self) -> None:
        change = _change(uploaders=(ALICE, DAVE))
        _vote(change, DAVE, 1, 1)
        _vote(change, ALICE, 1, 1)
        config = {**self._STICKY, "labels": _SELF_IGNORING_LABELS}
        evidence = _collector(config).collect(change)
        assert dict(evidence.approvers_from_previous_patch_sets) == {1: frozenset({ALICE})}


# ---------------------------------------------------------------------------
# Owned-paths evidence
# ---------------------------------------------------------------------------


class TestOwnedPathsEvidence:
    def test_candidates_replace_votes(self) -> None:
        change = _change()
        _vote(change, ADMIN, 2, 1)
        evidence = _collector().for_owned_paths(change, [ALICE])
        assert evidence.check_all_owners is True
        assert evidence.approvers == frozenset({ALICE})
        assert evidence.reviewers == frozenset()

    def test_snapshot_is_immutable(self) -> None:
        evidence = _collector().collect(_change())
        assert isinstance(evidence, ApprovalEvidenceSnapshot)
        with pytest.raises(AttributeError):
            evidence.uploader = ADMIN  # type: ignore[misc]
