"""Path expression matching for per-file owner sets."""
from __future__ import annotations

from aumos_codeowners.matching.path_expressions import (
    FindOwnersGlobMatcher,
    GlobMatcher,
    PathExpressionMatcher,
    PathExpressions,
    SimplePathExpressionMatcher,
)

__all__ = [
    "FindOwnersGlobMatcher",
    "GlobMatcher",
    "PathExpressionMatcher",
    "PathExpressions",
    "SimplePathExpressionMatcher",
]
