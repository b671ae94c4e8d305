"""Declaration storage interface and an in-memory implementation.

The version-control layer that stores declarations as tracked files is
outside this library.  The owner resolver only needs
:meth:`DeclarationStore.get`, which returns the parsed declaration of one
directory at one revision, ``None`` when there is none, or raises
:class:`~aumos_codeowners.errors.DeclarationParseError` when the
declaration exists but is broken.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod

from aumos_codeowners.declarations.model import OwnershipDeclaration
from aumos_codeowners.errors import DeclarationParseError
from aumos_codeowners.paths import normalize_path

logger = logging.getLogger(__name__)


class DeclarationStore(ABC):
    """Resolves a directory and revision to a parsed ownership declaration.

    Implementations must be safe for concurrent reads at a fixed revision.
    """

    @abstractmethod
    def get(self, directory: str, revision: str) -> OwnershipDeclaration | None:
        """Return the declaration stored for *directory* at *revision*.

        Parameters
        ----------
        directory:
            Absolute directory path.
        revision:
            Branch name or commit identifier.

        Returns
        -------
        OwnershipDeclaration | None
            ``None`` when the directory has no declaration.

        Raises
        ------
        DeclarationParseError
            If a declaration exists but cannot be parsed.
        """

    @abstractmethod
    def contains_any(self, revision: str) -> bool:
        """Return ``True`` if at least one declaration exists at *revision*."""


class InMemoryDeclarationStore(DeclarationStore):
    """Thread-safe dict-backed declaration store keyed by ``(revision, directory)``.

    Example
    -------
    ::

        store = InMemoryDeclarationStore()
        store.add(OwnershipDeclaration(directory="/", revision="main", owner_sets=(...)))
        store.get("/", "main")
    """

    def __init__(self, declarations: list[OwnershipDeclaration] | None = None) -> None:
        self._declarations: dict[tuple[str, str], OwnershipDeclaration] = {}
        self._broken: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()
        for declaration in declarations or []:
            self.add(declaration)

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def add(self, declaration: OwnershipDeclaration) -> None:
        """Store *declaration*, replacing any previous one for its key."""
        key = (declaration.revision, declaration.directory)
        with self._lock:
            self._declarations[key] = declaration
            self._broken.pop(key, None)

    def add_unparseable(self, directory: str, revision: str, reason: str) -> None:
        """Register a declaration that exists but fails to parse."""
        key = (revision, normalize_path(directory))
        with self._lock:
            self._broken[key] = reason
            self._declarations.pop(key, None)
        logger.debug("Registered unparseable declaration %s@%s: %s", key[1], revision, reason)

    def remove(self, directory: str, revision: str) -> None:
        key = (revision, normalize_path(directory))
        with self._lock:
            self._declarations.pop(key, None)
            self._broken.pop(key, None)

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def get(self, directory: str, revision: str) -> OwnershipDeclaration | None:
        key = (revision, normalize_path(directory))
        with self._lock:
            reason = self._broken.get(key)
            declaration = self._declarations.get(key)
        if reason is not None:
            raise DeclarationParseError(reason, directory=key[1], revision=revision)
        return declaration

    def contains_any(self, revision: str) -> bool:
        with self._lock:
            return any(rev == revision for rev, _ in self._declarations) or any(
                rev == revision for rev, _ in self._broken
            )

    def revisions(self) -> list[str]:
        """Return the sorted revisions that hold at least one declaration."""
        with self._lock:
            keys = list(self._declarations) + list(self._broken)
        return sorted({revision for revision, _ in keys})

    def __len__(self) -> int:
        with self._lock:
            return len(self._declarations) + len(self._broken)
