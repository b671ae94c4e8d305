"""Immutable configuration snapshot captured once per request.

The snapshot is the only configuration the resolution and approval
layers read.  Building it parses every approval string against the label
definitions, so configuration mistakes fail here rather than during
per-file evaluation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from aumos_codeowners.changes.model import MergeCommitStrategy
from aumos_codeowners.config.schema import (
    CodeOwnersConfig,
    FallbackCodeOwners,
    ImplicitApprovalMode,
    LabelDefinition,
)
from aumos_codeowners.declarations.model import OwnerReference
from aumos_codeowners.errors import ConfigurationError
from aumos_codeowners.matching.path_expressions import PathExpressionMatcher, PathExpressions
from aumos_codeowners.review.model import PatchSetApproval

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# RequiredApproval
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequiredApproval:
    """A label and minimum value that counts as an approval.

    Attributes
    ----------
    label:
        Label name, e.g. ``"Code-Review"``.
    value:
        Minimum vote value, always positive.
    ignore_self_approval:
        Copied from the label definition: votes by the uploader of the
        patch set do not count.
    """

    label: str
    value: int
    ignore_self_approval: bool = False

    @classmethod
    def parse(
        cls,
        text: str,
        labels: list[LabelDefinition],
        config_path: str | None = None,
    ) -> RequiredApproval:
        """Parse ``"<label>+<value>"`` and check it against *labels*.

        Parameters
        ----------
        text:
            Approval string such as ``"Code-Review+1"``.
        labels:
            Label definitions known to the project.
        config_path:
            Optional source identifier used in error messages.

        Returns
        -------
        RequiredApproval

        Raises
        ------
        ConfigurationError
            If the string is malformed, the label is unknown, or the value
            is not positive or outside the label's range.
        """
        label_name, separator, raw_value = text.strip().rpartition("+")
        if not separator or not label_name or not raw_value:
            raise ConfigurationError(
                f"Invalid approval {text!r}: expected format '<label>+<value>'.", config_path
            )
        try:
            value = int(raw_value)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid approval {text!r}: value {raw_value!r} is not an integer.", config_path
            ) from exc
        if value <= 0:
            raise ConfigurationError(
                f"Invalid approval {text!r}: value must be positive.", config_path
            )

        label = next((candidate for candidate in labels if candidate.name == label_name), None)
        if label is None:
            raise ConfigurationError(
                f"Invalid approval {text!r}: label {label_name!r} is not defined.", config_path
            )
        if value > label.max_value:
            raise ConfigurationError(
                f"Invalid approval {text!r}: label {label_name!r} allows values "
                f"{label.min_value}..{label.max_value}.",
                config_path,
            )
        return cls(label=label.name, value=value, ignore_self_approval=label.ignore_self_approval)

    def is_approved_by(self, approval: PatchSetApproval) -> bool:
        """Return ``True`` if *approval* is on this label with at least the required value."""
        return approval.label == self.label and approval.value >= self.value

    def __str__(self) -> str:
        return f"{self.label}+{self.value}"


# ---------------------------------------------------------------------------
# ConfigSnapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ConfigSnapshot:
    """Read-only configuration consumed by resolution and approval code."""

    required_approval: RequiredApproval
    override_approvals: tuple[RequiredApproval, ...] = ()
    implicit_approvals: ImplicitApprovalMode = ImplicitApprovalMode.FALSE
    enable_sticky_approvals: bool = False
    exempt_pure_reverts: bool = False
    exempted_users: frozenset[str] = field(default_factory=frozenset)
    fallback_code_owners: FallbackCodeOwners = FallbackCodeOwners.NONE
    global_code_owners: tuple[OwnerReference, ...] = ()
    merge_commit_strategy: MergeCommitStrategy = MergeCommitStrategy.ALL_CHANGED_FILES
    path_expressions: PathExpressions = PathExpressions.GLOB
    default_declaration_revision: str = "refs/meta/config"
    max_import_depth: int = 10

    @classmethod
    def from_config(cls, config: CodeOwnersConfig, config_path: str | None = None) -> ConfigSnapshot:
        """Validate *config* and freeze it.

        Raises
        ------
        ConfigurationError
            If any approval string is invalid.
        """
        required = RequiredApproval.parse(config.required_approval, config.labels, config_path)
        overrides = tuple(
            dict.fromkeys(
                RequiredApproval.parse(text, config.labels, config_path)
                for text in config.override_approvals
            )
        )
        try:
            global_owners = tuple(OwnerReference(email) for email in config.global_code_owners)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid global code owner: {exc}", config_path) from exc

        snapshot = cls(
            required_approval=required,
            override_approvals=overrides,
            implicit_approvals=config.enable_implicit_approvals,
            enable_sticky_approvals=config.enable_sticky_approvals,
            exempt_pure_reverts=config.exempt_pure_reverts,
            exempted_users=frozenset(email.strip().lower() for email in config.exempted_users),
            fallback_code_owners=config.fallback_code_owners,
            global_code_owners=global_owners,
            merge_commit_strategy=config.merge_commit_strategy,
            path_expressions=config.path_expressions,
            default_declaration_revision=config.default_declaration_revision,
            max_import_depth=config.max_import_depth,
        )
        logger.debug(
            "Config snapshot: required=%s overrides=%s implicit=%s sticky=%s fallback=%s",
            required,
            [str(o) for o in overrides],
            snapshot.implicit_approvals.value,
            snapshot.enable_sticky_approvals,
            snapshot.fallback_code_owners.value,
        )
        return snapshot

    @property
    def matcher(self) -> PathExpressionMatcher:
        return self.path_expressions.matcher
