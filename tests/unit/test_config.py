"""Tests for the configuration loader, approval parsing and config snapshots."""
from __future__ import annotations

import pathlib

import pytest

from aumos_codeowners.changes.model import MergeCommitStrategy
from aumos_codeowners.config.schema import (
    CodeOwnersConfig,
    ConfigLoader,
    FallbackCodeOwners,
    ImplicitApprovalMode,
    LabelDefinition,
)
from aumos_codeowners.config.snapshot import ConfigSnapshot, RequiredApproval
from aumos_codeowners.errors import ConfigurationError
from aumos_codeowners.matching.path_expressions import GlobMatcher, PathExpressions
from aumos_codeowners.review.model import PatchSetApproval

_LABELS = [
    LabelDefinition(name="Code-Review", min_value=-2, max_value=2),
    LabelDefinition(name="Owners-Override", min_value=0, max_value=1, ignore_self_approval=True),
]

_FULL_CONFIG = """\
version: "1"
labels:
  - name: Code-Review
    min_value: -2
    max_value: 2
    ignore_self_approval: true
  - name: Owners-Override
    min_value: 0
    max_value: 1
required_approval: Code-Review+2
override_approvals: [Owners-Override+1]
enable_implicit_approvals: forced
enable_sticky_approvals: true
exempt_pure_reverts: true
exempted_users: ["Bot@Example.com"]
fallback_code_owners: project_owners
global_code_owners: ["root@example.com"]
merge_commit_strategy: files_with_conflict_resolution
path_expressions: find_owners_glob
"""


# ---------------------------------------------------------------------------
# ConfigLoader
# ---------------------------------------------------------------------------


class TestConfigLoader:
    def test_defaults(self) -> None:
        config = ConfigLoader().defaults()
        assert config.required_approval == "Code-Review+1"
        assert config.enable_implicit_approvals is ImplicitApprovalMode.FALSE
        assert config.fallback_code_owners is FallbackCodeOwners.NONE
        assert config.path_expressions is PathExpressions.GLOB
        assert config.max_import_depth == 10

    def test_load_full_config(self) -> None:
        config = ConfigLoader().load_string(_FULL_CONFIG)
        assert config.enable_implicit_approvals is ImplicitApprovalMode.FORCED
        assert config.fallback_code_owners is FallbackCodeOwners.PROJECT_OWNERS
        assert config.merge_commit_strategy is MergeCommitStrategy.FILES_WITH_CONFLICT_RESOLUTION
        assert config.path_expressions is PathExpressions.FIND_OWNERS_GLOB

    def test_yaml_booleans_become_implicit_modes(self) -> None:
        assert ConfigLoader().load_string("enable_implicit_approvals: true").enable_implicit_approvals is (
            ImplicitApprovalMode.TRUE
        )
        assert ConfigLoader().load_string("enable_implicit_approvals: false").enable_implicit_approvals is (
            ImplicitApprovalMode.FALSE
        )

    def test_load_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "code-owners.yaml"
        path.write_text(_FULL_CONFIG, encoding="utf-8")
        assert ConfigLoader().load(path).enable_sticky_approvals is True

    def test_missing_file_raises(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigLoader().load(tmp_path / "missing.yaml")

    def test_invalid_value_raises_configuration_error(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "code-owners.yaml"
        path.write_text("fallback_code_owners: SOMEONE\n", encoding="utf-8")
        with pytest.raises(ConfigurationError) as excinfo:
            ConfigLoader().load(path)
        assert str(path) in str(excinfo.value)

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigLoader().load_string("- a\n- b\n")

    def test_duplicate_labels_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate"):
            ConfigLoader().load_dict({"labels": [{"name": "A"}, {"name": "A"}]})

    def test_label_range_validated(self) -> None:
        with pytest.raises(ConfigurationError):
            ConfigLoader().load_dict({"labels": [{"name": "A", "min_value": 2, "max_value": 1}]})

    def test_max_import_depth_must_be_positive(self) -> None:
        with pytest.raises(ConfigurationError):
            ConfigLoader().load_dict({"max_import_depth": 0})

    def test_unknown_keys_allowed(self) -> None:
        config = ConfigLoader().load_dict({"future_setting": 3})
        assert isinstance(config, CodeOwnersConfig)

    def test_label_lookup(self) -> None:
        config = ConfigLoader().defaults()
        assert config.label("Code-Review") is not None
        assert config.label("Verified") is None


# ---------------------------------------------------------------------------
# RequiredApproval
# ---------------------------------------------------------------------------


class TestRequiredApproval:
    def test_parse(self) -> None:
        approval = RequiredApproval.parse("Code-Review+2", _LABELS)
        assert approval == RequiredApproval("Code-Review", 2)
        assert str(approval) == "Code-Review+2"

    def test_parse_copies_ignore_self_approval(self) -> None:
        approval = RequiredApproval.parse("Owners-Override+1", _LABELS)
        assert approval.ignore_self_approval is True

    @pytest.mark.parametrize(
        ("text", "message"),
        [
            ("Code-Review", "expected format"),
            ("Code-Review+", "expected format"),
            ("+1", "expected format"),
            ("Code-Review+x", "not an integer"),
            ("Code-Review+0", "must be positive"),
            ("Verified+1", "not defined"),
            ("Code-Review+3", "allows values"),
        ],
    )
    def test_invalid_approvals(self, text: str, message: str) -> None:
        with pytest.raises(ConfigurationError, match=message):
            RequiredApproval.parse(text, _LABELS)

    def test_is_approved_by(self) -> None:
        approval = RequiredApproval("Code-Review", 1)
        assert approval.is_approved_by(PatchSetApproval(1, "Code-Review", 2, 1)) is True
        assert approval.is_approved_by(PatchSetApproval(1, "Code-Review", 0, 1)) is False
        assert approval.is_approved_by(PatchSetApproval(1, "Verified", 2, 1)) is False


# ---------------------------------------------------------------------------
# ConfigSnapshot
# ---------------------------------------------------------------------------


class TestConfigSnapshot:
    def test_snapshot_from_full_config(self) -> None:
        snapshot = ConfigLoader().load_string(_FULL_CONFIG).snapshot()
        assert snapshot.required_approval == RequiredApproval("Code-Review", 2, ignore_self_approval=True)
        assert [str(o) for o in snapshot.override_approvals] == ["Owners-Override+1"]
        assert snapshot.exempted_users == frozenset({"bot@example.com"})
        assert [o.email for o in snapshot.global_code_owners] == ["root@example.com"]

    def test_snapshot_rejects_unknown_override_label(self) -> None:
        config = ConfigLoader().load_dict({"override_approvals": ["Owners-Override+1"]})
        with pytest.raises(ConfigurationError, match="not defined"):
            config.snapshot()

    def test_snapshot_includes_config_path(self) -> None:
        config = ConfigLoader().load_dict({"required_approval": "Nope+1"})
        with pytest.raises(ConfigurationError, match=r"^\[cfg.yaml\]"):
            ConfigSnapshot.from_config(config, config_path="cfg.yaml")

    def test_duplicate_overrides_collapsed(self) -> None:
        config = ConfigLoader().load_dict({"override_approvals": ["Code-Review+2", "Code-Review+2"]})
        assert len(config.snapshot().override_approvals) == 1

    def test_snapshot_is_frozen(self) -> None:
        snapshot = ConfigLoader().defaults().snapshot()
        with pytest.raises(AttributeError):
            snapshot.enable_sticky_approvals = True  # type: ignore[misc]

    def test_matcher(self) -> None:
        assert isinstance(ConfigLoader().defaults().snapshot().matcher, GlobMatcher)
