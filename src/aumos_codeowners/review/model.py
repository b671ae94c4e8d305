"""Review records: changes, patch sets, votes and reviewer state."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from aumos_codeowners.errors import PatchSetNotFoundError


class ReviewerState(str, Enum):
    """State of an account on a change's attention list."""

    REVIEWER = "reviewer"
    CC = "cc"
    REMOVED = "removed"


@dataclass(frozen=True)
class PatchSetApproval:
    """One vote cast on a label of one patch set.

    Attributes
    ----------
    account_id:
        Account that cast the vote.
    label:
        Voting label name, e.g. ``"Code-Review"``.
    value:
        Vote value; may be negative.
    patch_set_id:
        Patch set the vote was cast on.
    granted:
        UTC time the vote was cast.
    """

    account_id: int
    label: str
    value: int
    patch_set_id: int
    granted: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __str__(self) -> str:
        sign = "+" if self.value > 0 else ""
        return f"{self.label}{sign}{self.value} by {self.account_id} on PS{self.patch_set_id}"


@dataclass(frozen=True)
class PatchSet:
    """One uploaded revision of a change."""

    patch_set_id: int
    uploader: int
    revision: str


@dataclass
class Change:
    """A proposed change under review.

    Attributes
    ----------
    change_id:
        Unique change identifier.
    project:
        Project (repository) name.
    branch:
        Destination branch.
    owner:
        Account that owns the change.
    patch_sets:
        Uploaded patch sets, in any order.
    reviewers:
        Reviewer state per account.
    approvals:
        All votes across all patch sets.
    is_pure_revert:
        Whether the change purely reverts an already submitted change.
    """

    change_id: str
    project: str
    branch: str
    owner: int
    patch_sets: list[PatchSet] = field(default_factory=list)
    reviewers: dict[int, ReviewerState] = field(default_factory=dict)
    approvals: list[PatchSetApproval] = field(default_factory=list)
    is_pure_revert: bool = False

    @property
    def current_patch_set(self) -> PatchSet:
        """The patch set with the highest id."""
        if not self.patch_sets:
            raise PatchSetNotFoundError(self.change_id)
        return max(self.patch_sets, key=lambda patch_set: patch_set.patch_set_id)

    def patch_set(self, patch_set_id: int) -> PatchSet:
        """Return the patch set with *patch_set_id*.

        Raises
        ------
        PatchSetNotFoundError
            If the change has no such patch set.
        """
        for patch_set in self.patch_sets:
            if patch_set.patch_set_id == patch_set_id:
                return patch_set
        raise PatchSetNotFoundError(self.change_id, patch_set_id)

    def add_patch_set(self, uploader: int, revision: str) -> PatchSet:
        """Append a new patch set numbered after the current one."""
        next_id = max((ps.patch_set_id for ps in self.patch_sets), default=0) + 1
        patch_set = PatchSet(patch_set_id=next_id, uploader=uploader, revision=revision)
        self.patch_sets.append(patch_set)
        return patch_set

    def vote(self, account_id: int, label: str, value: int, patch_set_id: int | None = None) -> PatchSetApproval:
        """Record a vote, on the current patch set unless *patch_set_id* is given."""
        target = patch_set_id if patch_set_id is not None else self.current_patch_set.patch_set_id
        self.patch_set(target)
        approval = PatchSetApproval(
            account_id=account_id, label=label, value=value, patch_set_id=target
        )
        self.approvals.append(approval)
        return approval
