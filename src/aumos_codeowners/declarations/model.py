"""Immutable value types for per-directory ownership declarations.

An :class:`OwnershipDeclaration` holds the ownership rules of one
directory at one revision:

- owner sets without patterns apply to every file in the directory tree
  below the declaration;
- owner sets with patterns apply only to files matching one of their path
  expressions (patterns are OR'd);
- imports pull in owner sets from declarations stored elsewhere;
- ``inherit_disabled`` stops owners of parent directories from applying.

Example
-------
>>> from aumos_codeowners.declarations.model import (
...     OwnerReference, OwnerSet, OwnershipDeclaration,
... )
>>> declaration = OwnershipDeclaration(
...     directory="/docs",
...     revision="refs/heads/main",
...     owner_sets=(
...         OwnerSet(owners=(OwnerReference("writer@example.com"),)),
...         OwnerSet(patterns=("*.md",), owners=(OwnerReference("editor@example.com"),)),
...     ),
... )
>>> len(declaration.global_owner_sets())
1
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from aumos_codeowners.paths import normalize_path


# ---------------------------------------------------------------------------
# Owner references
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OwnerReference:
    """An owner as written in a declaration: an email, or ``*`` for all users.

    Attributes
    ----------
    email:
        The owner's email address, or the all-users wildcard ``"*"``.
    """

    ALL_USERS_WILDCARD: ClassVar[str] = "*"

    email: str

    def __post_init__(self) -> None:
        email = self.email.strip()
        if not email:
            raise ValueError("Owner email must not be empty.")
        object.__setattr__(self, "email", email)

    @property
    def is_wildcard(self) -> bool:
        """``True`` for the all-users wildcard."""
        return self.email == self.ALL_USERS_WILDCARD

    @classmethod
    def all_users(cls) -> OwnerReference:
        return cls(cls.ALL_USERS_WILDCARD)

    def __str__(self) -> str:
        return self.email


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class ImportMode(str, Enum):
    """Which parts of an imported declaration are pulled in."""

    ALL = "ALL"
    GLOBAL_OWNER_SETS_ONLY = "GLOBAL_OWNER_SETS_ONLY"
    OWNER_SET_PATTERNS_ONLY = "OWNER_SET_PATTERNS_ONLY"

    @property
    def imports_inherit_flag(self) -> bool:
        """Whether the imported declaration's ``inherit_disabled`` applies."""
        return self is ImportMode.ALL

    @property
    def imports_global_owner_sets(self) -> bool:
        return self in (ImportMode.ALL, ImportMode.GLOBAL_OWNER_SETS_ONLY)

    @property
    def imports_pattern_owner_sets(self) -> bool:
        return self in (ImportMode.ALL, ImportMode.OWNER_SET_PATTERNS_ONLY)

    @property
    def follows_transitive_imports(self) -> bool:
        """Whether imports of the imported declaration are resolved too."""
        return self in (ImportMode.ALL, ImportMode.GLOBAL_OWNER_SETS_ONLY)

    def transitive_mode(self, declared: ImportMode) -> ImportMode:
        """Mode applied to an import found inside a declaration imported with this mode.

        An import reached through ``GLOBAL_OWNER_SETS_ONLY`` can never
        contribute more than global owner sets.
        """
        if self is ImportMode.ALL:
            return declared
        return ImportMode.GLOBAL_OWNER_SETS_ONLY


@dataclass(frozen=True)
class ImportReference:
    """A reference to another declaration whose owners are imported.

    Attributes
    ----------
    directory:
        Directory of the imported declaration.  Relative directories are
        resolved against the importing declaration's directory.
    mode:
        Which parts of the imported declaration are used.
    revision:
        Revision to read the imported declaration from.  ``None`` means
        the revision of the importing declaration.
    """

    directory: str
    mode: ImportMode = ImportMode.ALL
    revision: str | None = None

    def __post_init__(self) -> None:
        if not self.directory:
            raise ValueError("Import directory must not be empty.")
        object.__setattr__(self, "mode", ImportMode(self.mode))

    def __str__(self) -> str:
        revision = f"@{self.revision}" if self.revision else ""
        return f"{self.directory}{revision} ({self.mode.value})"


# ---------------------------------------------------------------------------
# Owner sets and declarations
# ---------------------------------------------------------------------------


def _dedupe(items: tuple) -> tuple:
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class OwnerSet:
    """A group of owners, optionally scoped to path expressions.

    Attributes
    ----------
    patterns:
        Path expressions; empty means the set applies to every file.
    owners:
        Owners of matching files, deduplicated in declaration order.
    inherit_disabled:
        When a scoped set matches, owners from parent directories, the
        declaration's unscoped sets and global owners are ignored.
    imports:
        Imports that only apply when this set matches.
    """

    patterns: tuple[str, ...] = ()
    owners: tuple[OwnerReference, ...] = ()
    inherit_disabled: bool = False
    imports: tuple[ImportReference, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", _dedupe(tuple(self.patterns)))
        object.__setattr__(self, "owners", _dedupe(tuple(self.owners)))
        object.__setattr__(self, "imports", tuple(self.imports))

    @property
    def is_global(self) -> bool:
        """``True`` when the set has no patterns."""
        return not self.patterns

    @property
    def is_empty(self) -> bool:
        """``True`` for sets that declare nothing at all."""
        return not (self.owners or self.patterns or self.imports or self.inherit_disabled)


@dataclass(frozen=True)
class OwnershipDeclaration:
    """Ownership rules for one directory at one revision.

    Empty owner sets are dropped on construction so they can never leak
    into resolution results.
    """

    directory: str
    revision: str
    inherit_disabled: bool = False
    owner_sets: tuple[OwnerSet, ...] = ()
    imports: tuple[ImportReference, ...] = ()
    source: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "directory", normalize_path(self.directory))
        object.__setattr__(
            self,
            "owner_sets",
            tuple(owner_set for owner_set in self.owner_sets if not owner_set.is_empty),
        )
        object.__setattr__(self, "imports", tuple(self.imports))

    @property
    def key(self) -> tuple[str, str]:
        """``(directory, revision)`` identity of this declaration."""
        return (self.directory, self.revision)

    def global_owner_sets(self) -> tuple[OwnerSet, ...]:
        return tuple(owner_set for owner_set in self.owner_sets if owner_set.is_global)

    def pattern_owner_sets(self) -> tuple[OwnerSet, ...]:
        return tuple(owner_set for owner_set in self.owner_sets if not owner_set.is_global)

    def declares_owners(self) -> bool:
        """``True`` if any owner set, scoped or not, names at least one owner."""
        return any(owner_set.owners for owner_set in self.owner_sets)

    def is_empty(self) -> bool:
        return not self.owner_sets and not self.imports and not self.inherit_disabled
