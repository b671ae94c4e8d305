"""aumos-codeowners — Code-owner resolution and approval checks for change review.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_codeowners as co
>>> co.__version__
'0.1.0'
>>> governor = co.CodeOwnersGovernor(declarations={"/": ["admin@example.com"]})
>>> governor.owners_of("/src/main.py")
['admin@example.com']
"""
from __future__ import annotations

__version__: str = "0.1.0"

from aumos_codeowners.convenience import CodeOwnersGovernor

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
from aumos_codeowners.errors import (
    CodeOwnersError,
    ConfigurationError,
    DeclarationParseError,
    DestinationBranchNotFoundError,
    PatchSetNotFoundError,
    RevisionNotFoundError,
    StructuralError,
)

# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------
from aumos_codeowners.declarations.loader import DeclarationLoader
from aumos_codeowners.declarations.model import (
    ImportMode,
    ImportReference,
    OwnerReference,
    OwnerSet,
    OwnershipDeclaration,
)
from aumos_codeowners.declarations.store import DeclarationStore, InMemoryDeclarationStore

# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------
from aumos_codeowners.matching.path_expressions import (
    FindOwnersGlobMatcher,
    GlobMatcher,
    PathExpressionMatcher,
    PathExpressions,
    SimplePathExpressionMatcher,
)

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from aumos_codeowners.config.schema import (
    CodeOwnersConfig,
    ConfigLoader,
    FallbackCodeOwners,
    ImplicitApprovalMode,
    LabelDefinition,
)
from aumos_codeowners.config.snapshot import ConfigSnapshot, RequiredApproval

# ---------------------------------------------------------------------------
# Review and changes
# ---------------------------------------------------------------------------
from aumos_codeowners.review.accounts import Account, AccountDirectory, InMemoryAccountDirectory
from aumos_codeowners.review.history import ChangeVotingHistory, VotingHistory
from aumos_codeowners.review.model import Change, PatchSet, PatchSetApproval, ReviewerState
from aumos_codeowners.changes.model import ChangedFileEntry, MergeCommitStrategy
from aumos_codeowners.changes.repository import ChangedFiles, Commit, InMemoryRepository

# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
from aumos_codeowners.resolution.identities import (
    OwnerIdentityResolver,
    OwnerSource,
    ResolvedOwnerSet,
)
from aumos_codeowners.resolution.owners import OwnerSetResolver, PathOwners, UnresolvedImport

# ---------------------------------------------------------------------------
# Approval
# ---------------------------------------------------------------------------
from aumos_codeowners.approval.check import ApprovalCheckResult, CodeOwnerApprovalCheck
from aumos_codeowners.approval.engine import FileStatusEngine
from aumos_codeowners.approval.evidence import ApprovalEvidenceCollector, ApprovalEvidenceSnapshot
from aumos_codeowners.approval.reducer import SubmittabilityReducer, SubmitVerdict
from aumos_codeowners.approval.status import (
    CodeOwnerStatus,
    FileCodeOwnerStatus,
    PathCodeOwnerStatus,
)

# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------
from aumos_codeowners.scenario import Scenario, ScenarioLoader

__all__ = [
    "__version__",
    "CodeOwnersGovernor",
    # Errors
    "CodeOwnersError",
    "ConfigurationError",
    "DeclarationParseError",
    "DestinationBranchNotFoundError",
    "PatchSetNotFoundError",
    "RevisionNotFoundError",
    "StructuralError",
    # Declarations
    "DeclarationLoader",
    "DeclarationStore",
    "ImportMode",
    "ImportReference",
    "InMemoryDeclarationStore",
    "OwnerReference",
    "OwnerSet",
    "OwnershipDeclaration",
    # Matching
    "FindOwnersGlobMatcher",
    "GlobMatcher",
    "PathExpressionMatcher",
    "PathExpressions",
    "SimplePathExpressionMatcher",
    # Configuration
    "CodeOwnersConfig",
    "ConfigLoader",
    "ConfigSnapshot",
    "FallbackCodeOwners",
    "ImplicitApprovalMode",
    "LabelDefinition",
    "RequiredApproval",
    # Review and changes
    "Account",
    "AccountDirectory",
    "Change",
    "ChangeVotingHistory",
    "ChangedFileEntry",
    "ChangedFiles",
    "Commit",
    "InMemoryAccountDirectory",
    "InMemoryRepository",
    "MergeCommitStrategy",
    "PatchSet",
    "PatchSetApproval",
    "ReviewerState",
    "VotingHistory",
    # Resolution
    "OwnerIdentityResolver",
    "OwnerSetResolver",
    "OwnerSource",
    "PathOwners",
    "ResolvedOwnerSet",
    "UnresolvedImport",
    # Approval
    "ApprovalCheckResult",
    "ApprovalEvidenceCollector",
    "ApprovalEvidenceSnapshot",
    "CodeOwnerApprovalCheck",
    "CodeOwnerStatus",
    "FileCodeOwnerStatus",
    "FileStatusEngine",
    "PathCodeOwnerStatus",
    "SubmitVerdict",
    "SubmittabilityReducer",
    # Scenarios
    "Scenario",
    "ScenarioLoader",
]
