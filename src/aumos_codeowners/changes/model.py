"""Changed-file records and merge-commit strategies."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from aumos_codeowners.paths import normalize_path


class MergeCommitStrategy(str, Enum):
    """Which files of a merge commit require code-owner approval.

    ``ALL_CHANGED_FILES``
        Every file that differs from the first parent.
    ``FILES_WITH_CONFLICT_RESOLUTION``
        Only files whose content differs from the automatic merge, i.e.
        files where a conflict was resolved by hand.
    """

    ALL_CHANGED_FILES = "ALL_CHANGED_FILES"
    FILES_WITH_CONFLICT_RESOLUTION = "FILES_WITH_CONFLICT_RESOLUTION"


@dataclass(frozen=True)
class ChangedFileEntry:
    """A file touched by a revision.

    Invariants: a deletion has no ``new_path``; an addition has no
    ``old_path``; a modification has equal paths; a rename has two
    different paths.

    Attributes
    ----------
    old_path:
        Absolute path before the change, ``None`` for additions.
    new_path:
        Absolute path after the change, ``None`` for deletions.
    is_rename:
        Whether the file was moved from ``old_path`` to ``new_path``.
    is_deletion:
        Whether the file was removed.
    """

    old_path: str | None
    new_path: str | None
    is_rename: bool = False
    is_deletion: bool = False

    def __post_init__(self) -> None:
        if self.old_path is not None:
            object.__setattr__(self, "old_path", normalize_path(self.old_path))
        if self.new_path is not None:
            object.__setattr__(self, "new_path", normalize_path(self.new_path))

        if self.old_path is None and self.new_path is None:
            raise ValueError("A changed file needs an old path or a new path.")
        if self.is_deletion:
            if self.new_path is not None or self.old_path is None:
                raise ValueError("A deletion has an old path and no new path.")
            if self.is_rename:
                raise ValueError("A deletion cannot be a rename.")
        elif self.is_rename:
            if self.old_path is None or self.new_path is None or self.old_path == self.new_path:
                raise ValueError("A rename has two different paths.")
        elif self.new_path is None:
            raise ValueError("Only deletions may omit the new path.")
        elif self.old_path is not None and self.old_path != self.new_path:
            raise ValueError("A modification has equal old and new paths.")

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def addition(cls, path: str) -> ChangedFileEntry:
        return cls(old_path=None, new_path=path)

    @classmethod
    def modification(cls, path: str) -> ChangedFileEntry:
        return cls(old_path=path, new_path=path)

    @classmethod
    def deletion(cls, path: str) -> ChangedFileEntry:
        return cls(old_path=path, new_path=None, is_deletion=True)

    @classmethod
    def rename(cls, old_path: str, new_path: str) -> ChangedFileEntry:
        return cls(old_path=old_path, new_path=new_path, is_rename=True)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_addition(self) -> bool:
        return self.old_path is None

    @property
    def path(self) -> str:
        """The path used for ordering: the new path, else the old path."""
        return self.new_path if self.new_path is not None else self.old_path  # type: ignore[return-value]

    @property
    def change_type(self) -> str:
        if self.is_deletion:
            return "DELETED"
        if self.is_rename:
            return "RENAMED"
        if self.is_addition:
            return "ADDED"
        return "MODIFIED"

    def __str__(self) -> str:
        if self.is_rename:
            return f"{self.old_path} -> {self.new_path}"
        return self.path
