"""Approval evidence, per-file statuses and submittability."""
from __future__ import annotations

from aumos_codeowners.approval.check import ApprovalCheckResult, CodeOwnerApprovalCheck
from aumos_codeowners.approval.engine import FileStatusEngine
from aumos_codeowners.approval.evidence import ApprovalEvidenceCollector, ApprovalEvidenceSnapshot
from aumos_codeowners.approval.reducer import SubmittabilityReducer, SubmitVerdict
from aumos_codeowners.approval.status import (
    CodeOwnerStatus,
    FileCodeOwnerStatus,
    PathCodeOwnerStatus,
)

__all__ = [
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
]
