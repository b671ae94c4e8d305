"""Tests for changed-file entries and the in-memory repository."""
from __future__ import annotations

import pytest

from aumos_codeowners.changes.model import ChangedFileEntry, MergeCommitStrategy
from aumos_codeowners.changes.repository import Commit, InMemoryRepository, diff_trees
from aumos_codeowners.errors import RevisionNotFoundError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _paths(entries: list[ChangedFileEntry]) -> list[str]:
    return [str(entry) for entry in entries]


def _merge_repository() -> InMemoryRepository:
    repo = InMemoryRepository()
    repo.add_commit(Commit("base", tree={"/a.txt": "1", "/b.txt": "1"}))
    repo.add_commit(Commit("left", tree={"/a.txt": "2", "/b.txt": "1"}, parents=("base",)))
    repo.add_commit(Commit("right", tree={"/a.txt": "1", "/b.txt": "2"}, parents=("base",)))
    repo.add_commit(
        Commit(
            "merge",
            tree={"/a.txt": "3", "/b.txt": "2"},
            parents=("left", "right"),
            auto_merge_tree={"/a.txt": "2", "/b.txt": "2"},
        )
    )
    return repo


# ---------------------------------------------------------------------------
# ChangedFileEntry
# ---------------------------------------------------------------------------


class TestChangedFileEntry:
    def test_addition(self) -> None:
        entry = ChangedFileEntry.addition("foo.txt")
        assert entry.new_path == "/foo.txt"
        assert entry.is_addition is True
        assert entry.change_type == "ADDED"

    def test_modification(self) -> None:
        entry = ChangedFileEntry.modification("/foo.txt")
        assert entry.change_type == "MODIFIED"
        assert entry.old_path == entry.new_path

    def test_deletion(self) -> None:
        entry = ChangedFileEntry.deletion("/foo.txt")
        assert entry.new_path is None
        assert entry.path == "/foo.txt"
        assert entry.change_type == "DELETED"

    def test_rename(self) -> None:
        entry = ChangedFileEntry.rename("/a.txt", "/b.txt")
        assert entry.change_type == "RENAMED"
        assert str(entry) == "/a.txt -> /b.txt"

    def test_needs_a_path(self) -> None:
        with pytest.raises(ValueError):
            ChangedFileEntry(old_path=None, new_path=None)

    def test_deletion_cannot_have_new_path(self) -> None:
        with pytest.raises(ValueError):
            ChangedFileEntry(old_path="/a", new_path="/a", is_deletion=True)

    def test_rename_needs_different_paths(self) -> None:
        with pytest.raises(ValueError):
            ChangedFileEntry.rename("/a", "/a")

    def test_modification_needs_equal_paths(self) -> None:
        with pytest.raises(ValueError):
            ChangedFileEntry(old_path="/a", new_path="/b")

    def test_only_deletions_omit_new_path(self) -> None:
        with pytest.raises(ValueError):
            ChangedFileEntry(old_path="/a", new_path=None)


# ---------------------------------------------------------------------------
# diff_trees
# ---------------------------------------------------------------------------


class TestDiffTrees:
    def test_detects_all_change_types_sorted(self) -> None:
        base = {"/keep.txt": "1", "/mod.txt": "1", "/gone.txt": "1"}
        target = {"/keep.txt": "1", "/mod.txt": "2", "/new.txt": "1-new"}
        entries = diff_trees(base, target)
        assert [(e.change_type, e.path) for e in entries] == [
            ("DELETED", "/gone.txt"),
            ("MODIFIED", "/mod.txt"),
            ("ADDED", "/new.txt"),
        ]

    def test_exact_content_move_is_a_rename(self) -> None:
        entries = diff_trees({"/old/a.txt": "same"}, {"/new/a.txt": "same"})
        assert len(entries) == 1
        assert entries[0].is_rename is True
        assert entries[0].old_path == "/old/a.txt"

    def test_identical_trees_have_no_changes(self) -> None:
        assert diff_trees({"/a": "1"}, {"/a": "1"}) == []


# ---------------------------------------------------------------------------
# InMemoryRepository
# ---------------------------------------------------------------------------


class TestInMemoryRepository:
    def test_root_commit_adds_everything(self) -> None:
        repo = InMemoryRepository()
        repo.add_commit(Commit("c1", tree={"/b.txt": "1", "/a.txt": "1"}))
        assert _paths(repo.compute("c1", MergeCommitStrategy.ALL_CHANGED_FILES)) == ["/a.txt", "/b.txt"]

    def test_compute_against_parent(self) -> None:
        repo = InMemoryRepository()
        repo.add_commit(Commit("c1", tree={"/a.txt": "1"}))
        repo.add_commit(Commit("c2", tree={"/a.txt": "2", "/b.txt": "1"}, parents=("c1",)))
        assert _paths(repo.compute("c2", MergeCommitStrategy.ALL_CHANGED_FILES)) == ["/a.txt", "/b.txt"]

    def test_unknown_revision_raises(self) -> None:
        with pytest.raises(RevisionNotFoundError):
            InMemoryRepository().compute("missing", MergeCommitStrategy.ALL_CHANGED_FILES)

    def test_merge_all_changed_files_uses_first_parent(self) -> None:
        repo = _merge_repository()
        assert _paths(repo.compute("merge", MergeCommitStrategy.ALL_CHANGED_FILES)) == ["/a.txt", "/b.txt"]

    def test_merge_conflict_resolution_uses_auto_merge(self) -> None:
        repo = _merge_repository()
        changed = repo.compute("merge", MergeCommitStrategy.FILES_WITH_CONFLICT_RESOLUTION)
        assert _paths(changed) == ["/a.txt"]

    def test_merge_without_auto_merge_falls_back_to_first_parent(self) -> None:
        repo = _merge_repository()
        repo.add_commit(Commit("merge2", tree={"/a.txt": "3", "/b.txt": "2"}, parents=("left", "right")))
        changed = repo.compute("merge2", MergeCommitStrategy.FILES_WITH_CONFLICT_RESOLUTION)
        assert _paths(changed) == ["/a.txt", "/b.txt"]

    def test_branches(self) -> None:
        repo = InMemoryRepository()
        repo.set_branch("p", "main", "c1")
        assert repo.branch_revision("p", "main") == "c1"
        assert repo.branch_revision("other", "main") is None
        repo.delete_branch("p", "main")
        assert repo.branch_revision("p", "main") is None

    def test_commit_tree_is_read_only(self) -> None:
        commit = Commit("c1", tree={"a.txt": "1"})
        assert dict(commit.tree) == {"/a.txt": "1"}
        with pytest.raises(TypeError):
            commit.tree["/b.txt"] = "2"  # type: ignore[index]
