"""Ownership declarations: value types, storage and loading."""
from __future__ import annotations

from aumos_codeowners.declarations.loader import DeclarationLoader
from aumos_codeowners.declarations.model import (
    ImportMode,
    ImportReference,
    OwnerReference,
    OwnerSet,
    OwnershipDeclaration,
)
from aumos_codeowners.declarations.store import DeclarationStore, InMemoryDeclarationStore

__all__ = [
    "DeclarationLoader",
    "DeclarationStore",
    "ImportMode",
    "ImportReference",
    "InMemoryDeclarationStore",
    "OwnerReference",
    "OwnerSet",
    "OwnershipDeclaration",
]
