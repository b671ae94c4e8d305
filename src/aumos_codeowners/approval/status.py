"""Code-owner status values for changed files."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from aumos_codeowners.changes.model import ChangedFileEntry


class CodeOwnerStatus(str, Enum):
    """Approval state of one path, ordered by strength."""

    INSUFFICIENT_REVIEWERS = "INSUFFICIENT_REVIEWERS"
    PENDING = "PENDING"
    APPROVED = "APPROVED"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CodeOwnerStatus):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, CodeOwnerStatus):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, CodeOwnerStatus):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, CodeOwnerStatus):
            return NotImplemented
        return self.rank >= other.rank


_RANKS: dict[CodeOwnerStatus, int] = {
    CodeOwnerStatus.INSUFFICIENT_REVIEWERS: 0,
    CodeOwnerStatus.PENDING: 1,
    CodeOwnerStatus.APPROVED: 2,
}


@dataclass(frozen=True)
class PathCodeOwnerStatus:
    """Status of one side (old or new path) of a changed file.

    Attributes
    ----------
    path:
        Absolute path.
    status:
        The computed status.
    reasons:
        Human-readable explanations, e.g. ``"approved on patch set 2"``.
    """

    path: str
    status: CodeOwnerStatus
    reasons: tuple[str, ...] = field(default=(), compare=False)

    @property
    def is_approved(self) -> bool:
        return self.status is CodeOwnerStatus.APPROVED


@dataclass(frozen=True)
class FileCodeOwnerStatus:
    """Status of a changed file: one status per existing path side.

    Deletions carry only ``old_path_status``; additions and modifications
    only ``new_path_status``; renames carry both, computed independently.
    """

    changed_file: ChangedFileEntry
    new_path_status: PathCodeOwnerStatus | None = None
    old_path_status: PathCodeOwnerStatus | None = None

    def path_statuses(self) -> tuple[PathCodeOwnerStatus, ...]:
        return tuple(
            status for status in (self.new_path_status, self.old_path_status) if status is not None
        )

    @property
    def is_approved(self) -> bool:
        return all(status.is_approved for status in self.path_statuses())

    @property
    def status(self) -> CodeOwnerStatus:
        """The weakest status of both path sides."""
        return min(status.status for status in self.path_statuses())
