"""Changed-files interface and an in-memory repository implementing it.

:class:`ChangedFiles` is the diff collaborator: given a revision and a
merge-commit strategy it returns the touched files, deduplicated and
sorted by path.  :class:`InMemoryRepository` is a small commit graph with
file trees and branches, enough to drive the approval check end to end.

Example
-------
::

    repo = InMemoryRepository()
    repo.add_commit(Commit("c1", tree={"/a.txt": "v1"}))
    repo.add_commit(Commit("c2", tree={"/a.txt": "v2", "/b.txt": "v1"}, parents=("c1",)))
    repo.set_branch("project", "main", "c1")
    [str(f) for f in repo.compute("c2", MergeCommitStrategy.ALL_CHANGED_FILES)]
    # ['/a.txt', '/b.txt']
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from aumos_codeowners.changes.model import ChangedFileEntry, MergeCommitStrategy
from aumos_codeowners.errors import RevisionNotFoundError
from aumos_codeowners.paths import normalize_path

logger = logging.getLogger(__name__)


class ChangedFiles(ABC):
    """Diff and branch collaborator.

    Implementations must be safe for concurrent reads at a fixed revision.
    """

    @abstractmethod
    def compute(
        self,
        revision: str,
        merge_commit_strategy: MergeCommitStrategy,
    ) -> list[ChangedFileEntry]:
        """Return the files changed by *revision*.

        Parameters
        ----------
        revision:
            The revision (commit) to inspect.
        merge_commit_strategy:
            How to select the files of a merge commit.

        Returns
        -------
        list[ChangedFileEntry]
            Deduplicated and sorted by path.

        Raises
        ------
        RevisionNotFoundError
            If *revision* is unknown.
        """

    @abstractmethod
    def branch_revision(self, project: str, branch: str) -> str | None:
        """Return the revision *branch* points at, or ``None`` if it does not exist."""


@dataclass(frozen=True)
class Commit:
    """A commit: a full file tree plus its parents.

    Attributes
    ----------
    revision:
        Commit identifier.
    tree:
        Mapping of absolute path to file content (or content hash).
    parents:
        Parent revisions; two or more make a merge commit.
    auto_merge_tree:
        For merge commits, the tree an automatic merge of the parents
        produced.  Files whose content differs from this tree had a
        conflict resolved by hand.
    """

    revision: str
    tree: Mapping[str, str] = field(default_factory=dict)
    parents: tuple[str, ...] = ()
    auto_merge_tree: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "tree", _freeze_tree(self.tree))
        object.__setattr__(self, "parents", tuple(self.parents))
        if self.auto_merge_tree is not None:
            object.__setattr__(self, "auto_merge_tree", _freeze_tree(self.auto_merge_tree))

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


def _freeze_tree(tree: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType({normalize_path(path): content for path, content in tree.items()})


def diff_trees(base: Mapping[str, str], target: Mapping[str, str]) -> list[ChangedFileEntry]:
    """Compare two trees and return the changed files sorted by path.

    A file deleted from *base* whose exact content reappears as a new file
    in *target* is reported as a rename.
    """
    deleted = sorted(path for path in base if path not in target)
    added = sorted(path for path in target if path not in base)
    modified = sorted(path for path in target if path in base and base[path] != target[path])

    entries: dict[tuple[str | None, str | None], ChangedFileEntry] = {}
    unmatched_added = list(added)
    for old_path in deleted:
        rename_target = next(
            (new_path for new_path in unmatched_added if target[new_path] == base[old_path]),
            None,
        )
        if rename_target is None:
            entry = ChangedFileEntry.deletion(old_path)
        else:
            unmatched_added.remove(rename_target)
            entry = ChangedFileEntry.rename(old_path, rename_target)
        entries[(entry.old_path, entry.new_path)] = entry
    for new_path in unmatched_added:
        entry = ChangedFileEntry.addition(new_path)
        entries[(entry.old_path, entry.new_path)] = entry
    for path in modified:
        entry = ChangedFileEntry.modification(path)
        entries[(entry.old_path, entry.new_path)] = entry
    return sorted(entries.values(), key=lambda e: (e.path, e.old_path or ""))


class InMemoryRepository(ChangedFiles):
    """Thread-safe in-memory commit graph with branches."""

    def __init__(self) -> None:
        self._commits: dict[str, Commit] = {}
        self._branches: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def add_commit(self, commit: Commit) -> Commit:
        with self._lock:
            self._commits[commit.revision] = commit
        return commit

    def set_branch(self, project: str, branch: str, revision: str) -> None:
        with self._lock:
            self._branches[(project, branch)] = revision

    def delete_branch(self, project: str, branch: str) -> None:
        with self._lock:
            self._branches.pop((project, branch), None)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def commit(self, revision: str) -> Commit:
        """Return the commit for *revision*.

        Raises
        ------
        RevisionNotFoundError
            If *revision* is unknown.
        """
        with self._lock:
            commit = self._commits.get(revision)
        if commit is None:
            raise RevisionNotFoundError(revision)
        return commit

    def branch_revision(self, project: str, branch: str) -> str | None:
        with self._lock:
            return self._branches.get((project, branch))

    def compute(
        self,
        revision: str,
        merge_commit_strategy: MergeCommitStrategy,
    ) -> list[ChangedFileEntry]:
        commit = self.commit(revision)
        if not commit.parents:
            base: Mapping[str, str] = {}
        elif commit.is_merge and merge_commit_strategy is MergeCommitStrategy.FILES_WITH_CONFLICT_RESOLUTION:
            if commit.auto_merge_tree is None:
                logger.warning(
                    "Merge commit %s has no auto-merge tree, diffing against first parent",
                    revision,
                )
                base = self.commit(commit.parents[0]).tree
            else:
                base = commit.auto_merge_tree
        else:
            base = self.commit(commit.parents[0]).tree

        changed = diff_trees(base, commit.tree)
        logger.debug(
            "Computed %d changed files for %s (%s)",
            len(changed),
            revision,
            merge_commit_strategy.value,
        )
        return changed
