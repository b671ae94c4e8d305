"""Voting history interface consumed by the approval evidence collector."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict

from aumos_codeowners.review.model import Change, PatchSetApproval, ReviewerState


class VotingHistory(ABC):
    """Read-only view of a change's reviewers, uploads and votes."""

    @abstractmethod
    def patch_set_approvals(self, change: Change) -> dict[int, list[PatchSetApproval]]:
        """Return the votes of *change* grouped by patch set id."""

    @abstractmethod
    def uploader(self, change: Change, patch_set_id: int) -> int:
        """Return the account that uploaded the given patch set.

        Raises
        ------
        PatchSetNotFoundError
            If the patch set does not exist.
        """

    @abstractmethod
    def change_owner(self, change: Change) -> int:
        """Return the account owning *change*."""

    @abstractmethod
    def reviewers(self, change: Change) -> dict[int, ReviewerState]:
        """Return the reviewer state per account."""

    def is_pure_revert(self, change: Change) -> bool:
        """Whether *change* purely reverts an already submitted change."""
        return change.is_pure_revert


class ChangeVotingHistory(VotingHistory):
    """Reads the voting history straight from a :class:`Change` record."""

    def patch_set_approvals(self, change: Change) -> dict[int, list[PatchSetApproval]]:
        grouped: dict[int, list[PatchSetApproval]] = defaultdict(list)
        for approval in sorted(change.approvals, key=lambda a: (a.patch_set_id, a.granted)):
            grouped[approval.patch_set_id].append(approval)
        return dict(grouped)

    def uploader(self, change: Change, patch_set_id: int) -> int:
        return change.patch_set(patch_set_id).uploader

    def change_owner(self, change: Change) -> int:
        return change.owner

    def reviewers(self, change: Change) -> dict[int, ReviewerState]:
        return dict(change.reviewers)
