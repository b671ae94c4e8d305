"""Public entry point for code-owner approval checks.

:class:`CodeOwnerApprovalCheck` wires the collaborators together for
each request: it computes the changed files of the target patch set,
collects the approval evidence, resolves owners per path and reduces the
result.  Every request builds its own resolvers from the configuration
snapshot captured at construction, so concurrent calls share no mutable
state.

Example
-------
::

    check = CodeOwnerApprovalCheck(store, repository, history, accounts, snapshot)
    for file_status in check.get_file_statuses(change):
        print(file_status.changed_file, file_status.status.value)
    check.is_submittable(change)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from aumos_codeowners.approval.engine import FileStatusEngine
from aumos_codeowners.approval.evidence import ApprovalEvidenceCollector, ApprovalEvidenceSnapshot
from aumos_codeowners.approval.reducer import SubmittabilityReducer, SubmitVerdict
from aumos_codeowners.approval.status import FileCodeOwnerStatus
from aumos_codeowners.changes.repository import ChangedFiles
from aumos_codeowners.config.snapshot import ConfigSnapshot
from aumos_codeowners.declarations.store import DeclarationStore
from aumos_codeowners.resolution.identities import OwnerIdentityResolver
from aumos_codeowners.resolution.owners import OwnerSetResolver, PathOwners
from aumos_codeowners.review.accounts import AccountDirectory
from aumos_codeowners.review.history import VotingHistory
from aumos_codeowners.review.model import Change

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalCheckResult:
    """Statuses, evidence and verdict of one evaluation."""

    statuses: tuple[FileCodeOwnerStatus, ...]
    evidence: ApprovalEvidenceSnapshot
    verdict: SubmitVerdict


class CodeOwnerApprovalCheck:
    """Computes code-owner statuses and submittability for changes.

    Parameters
    ----------
    store:
        Declaration store.
    changed_files:
        Diff and branch collaborator.
    history:
        Voting history collaborator.
    accounts:
        Account directory.
    config:
        Immutable configuration snapshot used for every request.
    """

    def __init__(
        self,
        store: DeclarationStore,
        changed_files: ChangedFiles,
        history: VotingHistory,
        accounts: AccountDirectory,
        config: ConfigSnapshot,
    ) -> None:
        self._store = store
        self._changed_files = changed_files
        self._history = history
        self._accounts = accounts
        self._config = config
        self._reducer = SubmittabilityReducer()

    @property
    def config(self) -> ConfigSnapshot:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(self, change: Change, patch_set_id: int | None = None) -> ApprovalCheckResult:
        """Evaluate *change* at *patch_set_id* (default: current patch set).

        Raises
        ------
        DestinationBranchNotFoundError
            If the destination branch of the change does not exist.
        PatchSetNotFoundError
            If the patch set does not exist.
        RevisionNotFoundError
            If the patch set revision is unknown to the repository.
        """
        identities = OwnerIdentityResolver(self._accounts)
        collector = ApprovalEvidenceCollector(self._history, self._changed_files, identities, self._config)
        evidence = collector.collect(change, patch_set_id)
        engine = self._engine(change, identities)
        statuses = tuple(
            engine.file_status(changed_file, evidence)
            for changed_file in self._changed_files.compute(evidence.revision, self._config.merge_commit_strategy)
        )
        verdict = self._reducer.verdict(statuses, evidence)
        logger.info(
            "Change %s PS%d: %d files, submittable=%s",
            change.change_id,
            evidence.patch_set_id,
            len(statuses),
            verdict.submittable,
        )
        return ApprovalCheckResult(statuses=statuses, evidence=evidence, verdict=verdict)

    def get_file_statuses(self, change: Change, patch_set_id: int | None = None) -> list[FileCodeOwnerStatus]:
        """Return the code-owner status of every file changed by the patch set."""
        return list(self.evaluate(change, patch_set_id).statuses)

    def get_file_statuses_for_account(
        self,
        change: Change,
        patch_set_id: int | None,
        account_id: int,
    ) -> list[FileCodeOwnerStatus]:
        """Return statuses where ``APPROVED`` means *account_id* owns the path.

        Live votes, overrides and exemptions are not consulted.
        """
        identities = OwnerIdentityResolver(self._accounts)
        collector = ApprovalEvidenceCollector(self._history, self._changed_files, identities, self._config)
        evidence = collector.for_owned_paths(change, [account_id], patch_set_id)
        engine = self._engine(change, identities)
        return [
            engine.file_status(changed_file, evidence)
            for changed_file in self._changed_files.compute(evidence.revision, self._config.merge_commit_strategy)
        ]

    def get_owned_paths(self, change: Change, account_id: int, patch_set_id: int | None = None) -> list[str]:
        """Return the sorted changed paths that *account_id* owns."""
        owned = {
            path_status.path
            for file_status in self.get_file_statuses_for_account(change, patch_set_id, account_id)
            for path_status in file_status.path_statuses()
            if path_status.is_approved
        }
        return sorted(owned)

    def is_submittable(self, change: Change) -> bool:
        """Return ``True`` if the current patch set has sufficient code-owner approval."""
        return self.evaluate(change).verdict.submittable

    def verdict(self, change: Change, patch_set_id: int | None = None) -> SubmitVerdict:
        return self.evaluate(change, patch_set_id).verdict

    def resolve_owners(self, path: str, revision: str, project: str | None = None) -> PathOwners:
        """Resolve the effective code owners of *path* at *revision*."""
        resolver = OwnerSetResolver(
            self._store, OwnerIdentityResolver(self._accounts), self._config, project=project
        )
        return resolver.resolve(path, revision)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _engine(self, change: Change, identities: OwnerIdentityResolver) -> FileStatusEngine:
        resolver = OwnerSetResolver(self._store, identities, self._config, project=change.project)
        return FileStatusEngine(resolver, self._config)
