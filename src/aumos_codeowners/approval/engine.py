"""Per-path status computation.

For one path side of a changed file, the first applicable rule wins:

1. an override vote is present: ``APPROVED`` (overrides are change-wide);
2. the change is a pure revert and pure reverts are exempt: ``APPROVED``;
3. the uploader is an exempted user: ``APPROVED``;
4. owned-paths mode: ``APPROVED`` if a candidate account owns the path,
   else ``INSUFFICIENT_REVIEWERS``;
5. an owner is an approver, or the implicit approver is an owner:
   ``APPROVED``;
6. an owner has a sticky approval from an earlier patch set: ``APPROVED``;
7. an owner is a reviewer: ``PENDING``;
8. otherwise ``INSUFFICIENT_REVIEWERS``.

A path owned by all users treats every approver, implicit approver and
reviewer as an owner.
"""
from __future__ import annotations

import logging

from aumos_codeowners.approval.evidence import ApprovalEvidenceSnapshot
from aumos_codeowners.approval.status import (
    CodeOwnerStatus,
    FileCodeOwnerStatus,
    PathCodeOwnerStatus,
)
from aumos_codeowners.changes.model import ChangedFileEntry
from aumos_codeowners.config.snapshot import ConfigSnapshot
from aumos_codeowners.resolution.owners import OwnerSetResolver, PathOwners

logger = logging.getLogger(__name__)


class FileStatusEngine:
    """Combines resolved owners with approval evidence into statuses.

    Parameters
    ----------
    resolver:
        Resolves the owners of each path.
    config:
        Immutable configuration snapshot.
    """

    def __init__(self, resolver: OwnerSetResolver, config: ConfigSnapshot) -> None:
        self._resolver = resolver
        self._config = config

    def file_status(
        self,
        changed_file: ChangedFileEntry,
        evidence: ApprovalEvidenceSnapshot,
    ) -> FileCodeOwnerStatus:
        """Compute the status of both path sides of *changed_file*."""
        new_path_status = None
        old_path_status = None
        if changed_file.new_path is not None:
            new_path_status = self.path_status(changed_file.new_path, evidence)
        if changed_file.old_path is not None and (changed_file.is_deletion or changed_file.is_rename):
            old_path_status = self.path_status(changed_file.old_path, evidence)
        return FileCodeOwnerStatus(
            changed_file=changed_file,
            new_path_status=new_path_status,
            old_path_status=old_path_status,
        )

    def path_status(self, path: str, evidence: ApprovalEvidenceSnapshot) -> PathCodeOwnerStatus:
        """Compute the status of a single path.

        Parameters
        ----------
        path:
            Absolute path of one side of a changed file.
        evidence:
            Approval evidence for the evaluated patch set.

        Returns
        -------
        PathCodeOwnerStatus
        """
        if evidence.has_overrides:
            override = evidence.overrides[0]
            return self._status(path, CodeOwnerStatus.APPROVED, f"override {override}")
        if self._config.exempt_pure_reverts and evidence.is_pure_revert:
            return self._status(path, CodeOwnerStatus.APPROVED, "pure revert is exempted")
        if evidence.uploader_exempted:
            return self._status(
                path,
                CodeOwnerStatus.APPROVED,
                f"uploader {evidence.uploader} is exempted from requiring code owner approvals",
            )

        owners = self._resolver.resolve(path, evidence.destination_revision)
        if evidence.check_all_owners:
            return self._owned_path_status(path, owners, evidence)

        approver = next(
            (account_id for account_id in sorted(evidence.approvers) if owners.is_owner(account_id)),
            None,
        )
        if approver is not None:
            return self._status(path, CodeOwnerStatus.APPROVED, f"approved by code owner {approver}")
        if owners.is_owner(evidence.implicit_approver):
            return self._status(
                path,
                CodeOwnerStatus.APPROVED,
                f"implicitly approved by patch set uploader {evidence.implicit_approver}",
            )

        sticky = evidence.sticky_approval(owners.owners.owners, owners.owners.owned_by_all_users)
        if sticky is not None:
            patch_set_id, account_id = sticky
            return self._status(
                path,
                CodeOwnerStatus.APPROVED,
                f"approved on patch set {patch_set_id} by code owner {account_id}",
            )

        reviewer = next(
            (account_id for account_id in sorted(evidence.reviewers) if owners.is_owner(account_id)),
            None,
        )
        if reviewer is not None:
            return self._status(path, CodeOwnerStatus.PENDING, f"code owner {reviewer} is a reviewer")

        reason = "no code owner approval"
        if owners.owners.is_empty():
            reason = "no code owners defined"
        return self._status(path, CodeOwnerStatus.INSUFFICIENT_REVIEWERS, reason, owners)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _owned_path_status(
        self,
        path: str,
        owners: PathOwners,
        evidence: ApprovalEvidenceSnapshot,
    ) -> PathCodeOwnerStatus:
        owner = next(
            (account_id for account_id in sorted(evidence.approvers) if owners.is_owner(account_id)),
            None,
        )
        if owner is None:
            return self._status(path, CodeOwnerStatus.INSUFFICIENT_REVIEWERS, "not owned by any candidate")
        return self._status(path, CodeOwnerStatus.APPROVED, f"owned by {owner}")

    @staticmethod
    def _status(
        path: str,
        status: CodeOwnerStatus,
        reason: str,
        owners: PathOwners | None = None,
    ) -> PathCodeOwnerStatus:
        reasons = (reason,)
        if owners is not None:
            reasons += tuple(str(unresolved) for unresolved in owners.unresolved_imports)
            reasons += owners.parse_errors
        logger.debug("%s: %s (%s)", path, status.value, reason)
        return PathCodeOwnerStatus(path=path, status=status, reasons=reasons)
