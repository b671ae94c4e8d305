"""Folding per-file statuses into a submittability decision."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from aumos_codeowners.approval.evidence import ApprovalEvidenceSnapshot
from aumos_codeowners.approval.status import FileCodeOwnerStatus


@dataclass(frozen=True)
class SubmitVerdict:
    """Outcome of the submittability reduction.

    Attributes
    ----------
    submittable:
        Whether the change has sufficient code-owner approval.
    overridden:
        Whether an override vote made the change submittable.
    blocking_paths:
        Paths whose status is not ``APPROVED``, sorted.
    file_count:
        Number of changed files considered.
    """

    submittable: bool
    overridden: bool = False
    blocking_paths: tuple[str, ...] = ()
    file_count: int = 0


class SubmittabilityReducer:
    """A change is submittable if overridden or every path side is approved.

    A change without changed files is vacuously submittable.
    """

    def verdict(
        self,
        statuses: Sequence[FileCodeOwnerStatus],
        evidence: ApprovalEvidenceSnapshot | None = None,
    ) -> SubmitVerdict:
        overridden = evidence is not None and evidence.has_overrides
        blocking = sorted(
            {
                path_status.path
                for file_status in statuses
                for path_status in file_status.path_statuses()
                if not path_status.is_approved
            }
        )
        return SubmitVerdict(
            submittable=overridden or not blocking,
            overridden=overridden,
            blocking_paths=tuple(blocking),
            file_count=len(statuses),
        )

    def is_submittable(
        self,
        statuses: Sequence[FileCodeOwnerStatus],
        evidence: ApprovalEvidenceSnapshot | None = None,
    ) -> bool:
        return self.verdict(statuses, evidence).submittable
