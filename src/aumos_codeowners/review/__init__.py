"""Review workflow records and collaborators."""
from __future__ import annotations

from aumos_codeowners.review.accounts import Account, AccountDirectory, InMemoryAccountDirectory
from aumos_codeowners.review.history import ChangeVotingHistory, VotingHistory
from aumos_codeowners.review.model import Change, PatchSet, PatchSetApproval, ReviewerState

__all__ = [
    "Account",
    "AccountDirectory",
    "Change",
    "ChangeVotingHistory",
    "InMemoryAccountDirectory",
    "PatchSet",
    "PatchSetApproval",
    "ReviewerState",
    "VotingHistory",
]
