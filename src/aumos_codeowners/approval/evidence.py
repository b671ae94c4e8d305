"""Collection of the approval evidence a status computation works from.

:class:`ApprovalEvidenceCollector` reads a change's reviewers, votes and
uploads through the :class:`~aumos_codeowners.review.history.VotingHistory`
collaborator and condenses them into an immutable
:class:`ApprovalEvidenceSnapshot` for one target patch set:

- reviewers: accounts in reviewer state (CC and removed reviewers excluded);
- approvers: current votes on the target patch set that meet the required
  approval, minus the uploader when the label ignores self approvals;
- overrides: current target patch set votes meeting any override approval, minus
  uploader votes on override labels that ignore self approvals;
- implicit approver: the uploader, depending on the implicit-approval mode;
- sticky approvers: per earlier patch set, accounts whose latest vote on
  the required label is a sufficient approval on that patch set.

The snapshot is built fresh for every check and never shared.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from aumos_codeowners.changes.repository import ChangedFiles
from aumos_codeowners.config.schema import FallbackCodeOwners, ImplicitApprovalMode
from aumos_codeowners.config.snapshot import ConfigSnapshot
from aumos_codeowners.errors import DestinationBranchNotFoundError
from aumos_codeowners.resolution.identities import OwnerIdentityResolver, ResolvedOwnerSet
from aumos_codeowners.review.history import VotingHistory
from aumos_codeowners.review.model import Change, PatchSetApproval, ReviewerState

logger = logging.getLogger(__name__)


def _latest_votes(approvals: Iterable[PatchSetApproval]) -> list[PatchSetApproval]:
    """Keep only the newest vote per account and label, ordered by ``granted``.

    Votes are an append-only history, so a later and weaker vote replaces
    an earlier approval.
    """
    latest: dict[tuple[int, str], PatchSetApproval] = {}
    for approval in sorted(approvals, key=lambda a: a.granted):
        latest[(approval.account_id, approval.label)] = approval
    return list(latest.values())


@dataclass(frozen=True)
class ApprovalEvidenceSnapshot:
    """Who reviewed, approved and uploaded, for one change and patch set.

    Attributes
    ----------
    change_id:
        The evaluated change.
    patch_set_id:
        The evaluated (target) patch set.
    revision:
        Revision of the target patch set.
    destination_revision:
        Revision of the destination branch; declarations are read from it.
    uploader:
        Uploader of the target patch set.
    change_owner:
        Owner of the change.
    reviewers:
        Accounts in reviewer state.
    approvers:
        Accounts whose vote on the target patch set meets the required
        approval, self-approval filtered.
    overrides:
        Target patch set votes that count as override approvals.
    implicit_approver:
        The uploader, if implicit approvals apply.
    approvers_from_previous_patch_sets:
        Earlier patch set id mapped to the accounts whose approval on it
        still counts.  Empty unless sticky approvals are enabled.
    global_code_owners:
        Configured global code owners, expanded.
    fallback_code_owners:
        Configured fallback mode.
    check_all_owners:
        ``True`` for owned-paths computations, where ``approvers`` holds
        candidate accounts rather than real votes.
    is_pure_revert:
        Whether the change is a pure revert.
    uploader_exempted:
        Whether the uploader is an exempted user.
    """

    change_id: str
    patch_set_id: int
    revision: str
    destination_revision: str
    uploader: int
    change_owner: int
    reviewers: frozenset[int] = field(default_factory=frozenset)
    approvers: frozenset[int] = field(default_factory=frozenset)
    overrides: tuple[PatchSetApproval, ...] = ()
    implicit_approver: int | None = None
    approvers_from_previous_patch_sets: Mapping[int, frozenset[int]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    global_code_owners: ResolvedOwnerSet = field(default_factory=ResolvedOwnerSet)
    fallback_code_owners: FallbackCodeOwners = FallbackCodeOwners.NONE
    check_all_owners: bool = False
    is_pure_revert: bool = False
    uploader_exempted: bool = False

    @property
    def has_overrides(self) -> bool:
        return bool(self.overrides)

    def sticky_approval(
        self,
        account_ids: Iterable[int] | None = None,
        owned_by_all_users: bool = False,
    ) -> tuple[int, int] | None:
        """Return ``(patch_set_id, account_id)`` of the newest sticky approval by an owner.

        Parameters
        ----------
        account_ids:
            Owner account ids.
        owned_by_all_users:
            When ``True`` every sticky approver counts as an owner.
        """
        owners = frozenset(account_ids or ())
        for patch_set_id in sorted(self.approvers_from_previous_patch_sets, reverse=True):
            for account_id in sorted(self.approvers_from_previous_patch_sets[patch_set_id]):
                if owned_by_all_users or account_id in owners:
                    return patch_set_id, account_id
        return None


class ApprovalEvidenceCollector:
    """Builds :class:`ApprovalEvidenceSnapshot` objects.

    Parameters
    ----------
    history:
        Voting history collaborator.
    changed_files:
        Repository collaborator, used to resolve the destination branch.
    identities:
        Expands configured global owners and exempted users.
    config:
        Immutable configuration snapshot.
    """

    def __init__(
        self,
        history: VotingHistory,
        changed_files: ChangedFiles,
        identities: OwnerIdentityResolver,
        config: ConfigSnapshot,
    ) -> None:
        self._history = history
        self._changed_files = changed_files
        self._identities = identities
        self._config = config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def collect(self, change: Change, patch_set_id: int | None = None) -> ApprovalEvidenceSnapshot:
        """Collect the approval evidence of *change* at *patch_set_id*.

        Parameters
        ----------
        change:
            The change to evaluate.
        patch_set_id:
            Target patch set; defaults to the current patch set.

        Returns
        -------
        ApprovalEvidenceSnapshot

        Raises
        ------
        DestinationBranchNotFoundError
            If the change's destination branch no longer exists.
        PatchSetNotFoundError
            If the target patch set does not exist.
        """
        destination_revision = self._destination_revision(change)
        target = change.patch_set(patch_set_id) if patch_set_id is not None else change.current_patch_set
        uploader = self._history.uploader(change, target.patch_set_id)
        change_owner = self._history.change_owner(change)
        approvals_by_patch_set = self._history.patch_set_approvals(change)
        current_approvals = _latest_votes(approvals_by_patch_set.get(target.patch_set_id, []))

        snapshot = ApprovalEvidenceSnapshot(
            change_id=change.change_id,
            patch_set_id=target.patch_set_id,
            revision=target.revision,
            destination_revision=destination_revision,
            uploader=uploader,
            change_owner=change_owner,
            reviewers=self._reviewers(change),
            approvers=self._approvers(current_approvals, uploader),
            overrides=self._overrides(current_approvals, uploader),
            implicit_approver=self._implicit_approver(uploader, change_owner),
            approvers_from_previous_patch_sets=self._sticky_approvers(
                approvals_by_patch_set, target.patch_set_id, uploader
            ),
            global_code_owners=self._identities.resolve_global_owners(self._config.global_code_owners),
            fallback_code_owners=self._config.fallback_code_owners,
            is_pure_revert=self._history.is_pure_revert(change),
            uploader_exempted=self._is_exempted(uploader),
        )
        logger.debug(
            "Evidence for %s PS%d: reviewers=%s approvers=%s overrides=%d implicit=%s sticky=%s",
            change.change_id,
            snapshot.patch_set_id,
            sorted(snapshot.reviewers),
            sorted(snapshot.approvers),
            len(snapshot.overrides),
            snapshot.implicit_approver,
            dict(snapshot.approvers_from_previous_patch_sets),
        )
        return snapshot

    def for_owned_paths(
        self,
        change: Change,
        account_ids: Iterable[int],
        patch_set_id: int | None = None,
    ) -> ApprovalEvidenceSnapshot:
        """Build the evidence for computing which paths *account_ids* own.

        Live votes, overrides and exemptions are not consulted; the
        candidate accounts take the place of the approvers.
        """
        destination_revision = self._destination_revision(change)
        target = change.patch_set(patch_set_id) if patch_set_id is not None else change.current_patch_set
        return ApprovalEvidenceSnapshot(
            change_id=change.change_id,
            patch_set_id=target.patch_set_id,
            revision=target.revision,
            destination_revision=destination_revision,
            uploader=self._history.uploader(change, target.patch_set_id),
            change_owner=self._history.change_owner(change),
            approvers=frozenset(account_ids),
            global_code_owners=self._identities.resolve_global_owners(self._config.global_code_owners),
            fallback_code_owners=self._config.fallback_code_owners,
            check_all_owners=True,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _destination_revision(self, change: Change) -> str:
        revision = self._changed_files.branch_revision(change.project, change.branch)
        if revision is None:
            raise DestinationBranchNotFoundError(change.project, change.branch)
        return revision

    def _reviewers(self, change: Change) -> frozenset[int]:
        return frozenset(
            account_id
            for account_id, state in self._history.reviewers(change).items()
            if state is ReviewerState.REVIEWER
        )

    def _approvers(self, approvals: list[PatchSetApproval], uploader: int) -> frozenset[int]:
        required = self._config.required_approval
        approvers = {approval.account_id for approval in approvals if required.is_approved_by(approval)}
        if required.ignore_self_approval and uploader in approvers:
            logger.debug(
                "Removing uploader %d from approvers, label %s ignores self approvals",
                uploader,
                required.label,
            )
            approvers.discard(uploader)
        return frozenset(approvers)

    def _overrides(self, approvals: list[PatchSetApproval], uploader: int) -> tuple[PatchSetApproval, ...]:
        overrides: list[PatchSetApproval] = []
        for approval in approvals:
            matching = [
                override for override in self._config.override_approvals if override.is_approved_by(approval)
            ]
            if not matching:
                continue
            if approval.account_id == uploader and all(o.ignore_self_approval for o in matching):
                logger.debug("Ignoring self override %s of uploader", approval)
                continue
            overrides.append(approval)
        return tuple(overrides)

    def _implicit_approver(self, uploader: int, change_owner: int) -> int | None:
        mode = self._config.implicit_approvals
        if mode is ImplicitApprovalMode.FORCED:
            return uploader
        if mode is ImplicitApprovalMode.TRUE:
            if self._config.required_approval.ignore_self_approval:
                logger.debug(
                    "Implicit approvals disabled, label %s ignores self approvals",
                    self._config.required_approval.label,
                )
                return None
            return uploader if uploader == change_owner else None
        return None

    def _sticky_approvers(
        self,
        approvals_by_patch_set: dict[int, list[PatchSetApproval]],
        target_patch_set_id: int,
        uploader: int,
    ) -> Mapping[int, frozenset[int]]:
        if not self._config.enable_sticky_approvals:
            return MappingProxyType({})
        required = self._config.required_approval

        # Latest vote on the required label per account, any value.
        latest: dict[int, PatchSetApproval] = {}
        for patch_set_id in sorted(approvals_by_patch_set, reverse=True):
            if patch_set_id > target_patch_set_id:
                continue
            for vote in _latest_votes(approvals_by_patch_set[patch_set_id]):
                if vote.label == required.label:
                    latest.setdefault(vote.account_id, vote)

        sticky: dict[int, set[int]] = defaultdict(set)
        for account_id, vote in latest.items():
            if vote.patch_set_id >= target_patch_set_id or not required.is_approved_by(vote):
                continue
            if required.ignore_self_approval and account_id == uploader:
                continue
            sticky[vote.patch_set_id].add(account_id)
        return MappingProxyType({ps: frozenset(accounts) for ps, accounts in sticky.items()})

    def _is_exempted(self, uploader: int) -> bool:
        if not self._config.exempted_users:
            return False
        account = self._identities.accounts.get(uploader)
        if account is None:
            return False
        return any(email.lower() in self._config.exempted_users for email in account.emails)
