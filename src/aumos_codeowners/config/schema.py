"""Code-owners configuration loader with Pydantic v2 validation.

Loads and validates a ``code-owners.yaml`` file into a typed
:class:`CodeOwnersConfig` object.  Unknown keys are allowed to support
future schema additions without breakage.  Before evaluation the config
is frozen into a :class:`~aumos_codeowners.config.snapshot.ConfigSnapshot`
with :meth:`CodeOwnersConfig.snapshot`, which also performs the
cross-field checks (approval strings against label definitions).

Example
-------
>>> loader = ConfigLoader()
>>> config = loader.load_string("required_approval: Code-Review+2")
>>> config.snapshot().required_approval.value
2
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from aumos_codeowners.changes.model import MergeCommitStrategy
from aumos_codeowners.errors import ConfigurationError
from aumos_codeowners.matching.path_expressions import PathExpressions

if TYPE_CHECKING:
    from aumos_codeowners.config.snapshot import ConfigSnapshot

logger = logging.getLogger(__name__)


class ImplicitApprovalMode(str, Enum):
    """Whether the uploader's own upload counts as a code-owner approval.

    ``FALSE``
        Never.
    ``TRUE``
        Only if the uploader is also the change owner, and only if the
        required label does not ignore self approvals.
    ``FORCED``
        Always, for the uploader of the current patch set.
    """

    FALSE = "false"
    TRUE = "true"
    FORCED = "forced"


class FallbackCodeOwners(str, Enum):
    """Who owns paths for which no owners were declared at all."""

    NONE = "NONE"
    ALL_USERS = "ALL_USERS"
    PROJECT_OWNERS = "PROJECT_OWNERS"


class LabelDefinition(BaseModel):
    """A voting label known to the project."""

    model_config = {"extra": "allow"}

    name: str
    min_value: int = Field(default=-2)
    max_value: int = Field(default=2)
    ignore_self_approval: bool = Field(default=False)

    @model_validator(mode="after")
    def validate_range(self) -> LabelDefinition:
        if self.min_value > self.max_value:
            raise ValueError(
                f"Label '{self.name}' has min_value {self.min_value} above max_value {self.max_value}"
            )
        return self


def _default_labels() -> list[LabelDefinition]:
    return [LabelDefinition(name="Code-Review", min_value=-2, max_value=2)]


class CodeOwnersConfig(BaseModel):
    """Top-level code-owners configuration schema.

    Loaded from ``code-owners.yaml``.  All fields are optional and fall
    back to sensible defaults.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    labels: list[LabelDefinition] = Field(default_factory=_default_labels)
    required_approval: str = Field(default="Code-Review+1")
    override_approvals: list[str] = Field(default_factory=list)
    enable_implicit_approvals: ImplicitApprovalMode = Field(default=ImplicitApprovalMode.FALSE)
    enable_sticky_approvals: bool = Field(default=False)
    exempt_pure_reverts: bool = Field(default=False)
    exempted_users: list[str] = Field(default_factory=list)
    fallback_code_owners: FallbackCodeOwners = Field(default=FallbackCodeOwners.NONE)
    global_code_owners: list[str] = Field(default_factory=list)
    merge_commit_strategy: MergeCommitStrategy = Field(default=MergeCommitStrategy.ALL_CHANGED_FILES)
    path_expressions: PathExpressions = Field(default=PathExpressions.GLOB)
    default_declaration_revision: str = Field(default="refs/meta/config")
    max_import_depth: int = Field(default=10, ge=1)

    @field_validator("enable_implicit_approvals", mode="before")
    @classmethod
    def coerce_implicit_mode(cls, value: object) -> object:
        # YAML turns bare true/false into booleans.
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator(
        "fallback_code_owners", "merge_commit_strategy", "path_expressions", mode="before"
    )
    @classmethod
    def coerce_enum_case(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("labels")
    @classmethod
    def validate_unique_labels(cls, values: list[LabelDefinition]) -> list[LabelDefinition]:
        names = [label.name for label in values]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate label definitions: {duplicates}")
        return values

    def label(self, name: str) -> LabelDefinition | None:
        """Return the label definition called *name*, if any."""
        return next((label for label in self.labels if label.name == name), None)

    def snapshot(self) -> ConfigSnapshot:
        """Freeze this config into an immutable, fully validated snapshot.

        Raises
        ------
        ConfigurationError
            If an approval string is malformed, names an unknown label, or
            requests a value outside the label's range.
        """
        from aumos_codeowners.config.snapshot import ConfigSnapshot

        return ConfigSnapshot.from_config(self)


class ConfigLoader:
    """Loads and validates code-owners YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load(Path("code-owners.yaml"))
    """

    def load(self, config_path: Path) -> CodeOwnersConfig:
        """Load and validate a code-owners YAML file.

        Parameters
        ----------
        config_path:
            Path to the ``code-owners.yaml`` file.

        Returns
        -------
        CodeOwnersConfig
            Validated configuration object.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ConfigurationError:
            When the YAML content cannot be parsed or fails validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Code-owners config not found: {config_path}")

        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw: dict[str, object] = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse YAML: {exc}", str(config_path)) from exc

        config = self.load_dict(raw, config_path=str(config_path))
        logger.info("Loaded code-owners config from %s", config_path)
        return config

    def load_string(self, yaml_content: str) -> CodeOwnersConfig:
        """Load and validate a YAML string directly.

        Parameters
        ----------
        yaml_content:
            Raw YAML text.

        Returns
        -------
        CodeOwnersConfig
            Validated configuration object.
        """
        try:
            raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse YAML string: {exc}") from exc
        return self.load_dict(raw)

    def load_dict(
        self,
        raw: dict[str, object],
        config_path: str | None = None,
    ) -> CodeOwnersConfig:
        """Validate an already-parsed mapping."""
        if not isinstance(raw, dict):
            raise ConfigurationError("Code-owners config must be a YAML mapping (dict).", config_path)
        try:
            return CodeOwnersConfig.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(str(exc), config_path) from exc

    def defaults(self) -> CodeOwnersConfig:
        """Return a configuration populated entirely with defaults."""
        return CodeOwnersConfig()
