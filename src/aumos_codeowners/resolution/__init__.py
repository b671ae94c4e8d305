"""Owner resolution: path owners and owner identities."""
from __future__ import annotations

from aumos_codeowners.resolution.identities import (
    OwnerIdentityResolver,
    OwnerSource,
    ResolvedOwnerSet,
)
from aumos_codeowners.resolution.owners import OwnerSetResolver, PathOwners, UnresolvedImport

__all__ = [
    "OwnerIdentityResolver",
    "OwnerSetResolver",
    "OwnerSource",
    "PathOwners",
    "ResolvedOwnerSet",
    "UnresolvedImport",
]
