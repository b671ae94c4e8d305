"""Shared bootstrap for aumos-codeowners benchmarks."""
from __future__ import annotations

import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).parent.parent
_SRC = _REPO_ROOT / "src"
_BENCHMARKS = _REPO_ROOT / "benchmarks"

for _path in [str(_SRC), str(_BENCHMARKS)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

from aumos_codeowners.approval.check import CodeOwnerApprovalCheck
from aumos_codeowners.config.schema import ConfigLoader
from aumos_codeowners.declarations.loader import DeclarationLoader
from aumos_codeowners.resolution.identities import OwnerIdentityResolver
from aumos_codeowners.resolution.owners import OwnerSetResolver
from aumos_codeowners.review.accounts import Account, InMemoryAccountDirectory
from aumos_codeowners.scenario import ScenarioLoader

__all__ = [
    "Account",
    "CodeOwnerApprovalCheck",
    "ConfigLoader",
    "DeclarationLoader",
    "InMemoryAccountDirectory",
    "OwnerIdentityResolver",
    "OwnerSetResolver",
    "ScenarioLoader",
]
