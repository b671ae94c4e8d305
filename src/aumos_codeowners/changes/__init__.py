"""Changed-file computation."""
from __future__ import annotations

from aumos_codeowners.changes.model import ChangedFileEntry, MergeCommitStrategy
from aumos_codeowners.changes.repository import ChangedFiles, Commit, InMemoryRepository, diff_trees

__all__ = [
    "ChangedFileEntry",
    "ChangedFiles",
    "Commit",
    "InMemoryRepository",
    "MergeCommitStrategy",
    "diff_trees",
]
