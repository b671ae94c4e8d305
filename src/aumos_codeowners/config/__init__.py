"""Code-owners configuration: YAML schema and immutable snapshot."""
from __future__ import annotations

from aumos_codeowners.config.schema import (
    CodeOwnersConfig,
    ConfigLoader,
    FallbackCodeOwners,
    ImplicitApprovalMode,
    LabelDefinition,
)
from aumos_codeowners.config.snapshot import ConfigSnapshot, RequiredApproval

__all__ = [
    "CodeOwnersConfig",
    "ConfigLoader",
    "ConfigSnapshot",
    "FallbackCodeOwners",
    "ImplicitApprovalMode",
    "LabelDefinition",
    "RequiredApproval",
]
