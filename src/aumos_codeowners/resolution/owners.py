"""Resolution of the effective code owners of a file path.

:class:`OwnerSetResolver` walks from the directory that contains a file
up to the repository root.  At every directory that has a declaration it
collects:

- the owner sets without patterns;
- the owner sets whose patterns match the path relative to that
  directory;
- the owner sets pulled in by imports, resolved breadth-first with a
  visited set of ``(directory, revision)`` keys so that import cycles
  terminate.

The climb stops at a declaration with ``inherit_disabled`` or when a
matching scoped owner set disables inheritance.  The latter also drops
the declaration's unscoped owner sets and the configured global owners.
After the root, the default declaration (``/`` on the configured
default revision) is visited unless the climb was stopped.

Fallback owners apply only when the path has no owners and nothing in the
chain declared any: a non-empty owner set (matching or not), an
unresolvable email, an unresolved import or a parse error all count as
declared and suppress the fallback.

Example
-------
::

    resolver = OwnerSetResolver(store, OwnerIdentityResolver(accounts), snapshot)
    owners = resolver.resolve("/docs/readme.md", "refs/heads/main")
    owners.owners.contains(account_id)
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

from aumos_codeowners.config.schema import FallbackCodeOwners
from aumos_codeowners.config.snapshot import ConfigSnapshot
from aumos_codeowners.declarations.model import (
    ImportMode,
    ImportReference,
    OwnerSet,
    OwnershipDeclaration,
)
from aumos_codeowners.declarations.store import DeclarationStore
from aumos_codeowners.errors import DeclarationParseError
from aumos_codeowners.paths import ROOT, iter_directories, normalize_path, relativize, resolve_directory
from aumos_codeowners.resolution.identities import (
    OwnerIdentityResolver,
    OwnerSource,
    ResolvedOwnerSet,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UnresolvedImport:
    """An import that contributed nothing.

    Attributes
    ----------
    importing_directory:
        Directory of the declaration that holds the import.
    reference:
        The import as declared.
    reason:
        Why it could not be resolved.
    """

    importing_directory: str
    reference: ImportReference
    reason: str

    def __str__(self) -> str:
        return f"import of {self.reference} from {self.importing_directory}: {self.reason}"


@dataclass(frozen=True)
class PathOwners:
    """Effective code owners of one path at one revision.

    Attributes
    ----------
    path:
        The absolute file path.
    revision:
        Revision the declarations were read from.
    owners:
        Effective owners: declared, default, global and fallback.
    declared_owners:
        Owners from the directory chain and the default declaration only.
    ignore_parent_owners:
        Whether the climb was stopped by an inherit-disabled flag.
    has_declared_owners:
        Whether anything in the chain declared owners.
    fallback_applied:
        Whether fallback owners were used.
    bootstrapping:
        Whether the revision has no declarations at all, in which case
        project owners act as code owners.
    unresolved_imports:
        Imports that could not be resolved.
    parse_errors:
        Messages of declarations that failed to parse.
    messages:
        Human-readable resolution notes.
    """

    path: str
    revision: str
    owners: ResolvedOwnerSet
    declared_owners: ResolvedOwnerSet = field(default_factory=ResolvedOwnerSet)
    ignore_parent_owners: bool = False
    has_declared_owners: bool = False
    fallback_applied: bool = False
    bootstrapping: bool = False
    unresolved_imports: tuple[UnresolvedImport, ...] = ()
    parse_errors: tuple[str, ...] = ()
    messages: tuple[str, ...] = ()

    @property
    def has_unresolved_imports(self) -> bool:
        return bool(self.unresolved_imports)

    def is_owner(self, account_id: int | None) -> bool:
        return self.owners.contains(account_id)


# ---------------------------------------------------------------------------
# Internal state
# ---------------------------------------------------------------------------


@dataclass
class _Walk:
    """Mutable accumulator for a single resolution."""

    path: str
    resolved: ResolvedOwnerSet = field(default_factory=ResolvedOwnerSet)
    declares_owners: bool = False
    ignore_parents: bool = False
    ignore_global_owners: bool = False
    unresolved_imports: list[UnresolvedImport] = field(default_factory=list)
    parse_errors: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _PendingImport:
    importing: OwnershipDeclaration
    reference: ImportReference
    mode: ImportMode
    chain: tuple[tuple[str, str], ...]


@dataclass
class _ImportedOwnerSets:
    global_sets: list[OwnerSet] = field(default_factory=list)
    pattern_sets: list[OwnerSet] = field(default_factory=list)
    ignore_parents: bool = False


# ---------------------------------------------------------------------------
# OwnerSetResolver
# ---------------------------------------------------------------------------


class OwnerSetResolver:
    """Computes the effective code owners of file paths.

    The resolver holds no per-path state, so one instance can serve
    concurrent calls provided the store is safe for concurrent reads.

    Parameters
    ----------
    store:
        Source of ownership declarations.
    identities:
        Expands owner references into accounts.
    config:
        Immutable configuration snapshot.
    project:
        Project name, used for project-owner fallback and bootstrapping.
    """

    def __init__(
        self,
        store: DeclarationStore,
        identities: OwnerIdentityResolver,
        config: ConfigSnapshot,
        project: str | None = None,
    ) -> None:
        self._store = store
        self._identities = identities
        self._config = config
        self._matcher = config.matcher
        self._project = project

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(self, path: str, revision: str) -> PathOwners:
        """Return the effective code owners of *path* at *revision*.

        Parameters
        ----------
        path:
            Absolute file path.
        revision:
            Revision to read declarations from, normally the destination
            branch of the change.

        Returns
        -------
        PathOwners
        """
        path = normalize_path(path)
        if self._is_bootstrapping(revision):
            return self._resolve_bootstrapping(path, revision)

        walk = _Walk(path=path)
        for directory in iter_directories(path):
            self._visit(walk, directory, revision, OwnerSource.EXPLICIT)
            if walk.ignore_parents:
                logger.debug("Stopped climbing at %s for %s", directory, path)
                break
        else:
            default_revision = self._config.default_declaration_revision
            if default_revision != revision:
                self._visit(walk, ROOT, default_revision, OwnerSource.DEFAULT)

        declared = walk.resolved
        owners = declared
        if not walk.ignore_global_owners and self._config.global_code_owners:
            owners = owners | self._identities.resolve_global_owners(self._config.global_code_owners)

        fallback_applied = False
        if self._fallback_applies(declared, walk):
            fallback = self._fallback_owners()
            owners = owners | fallback
            fallback_applied = True
            walk.messages.append(
                f"no code owners declared, using fallback {self._config.fallback_code_owners.value}"
            )

        return PathOwners(
            path=path,
            revision=revision,
            owners=owners,
            declared_owners=declared,
            ignore_parent_owners=walk.ignore_parents,
            has_declared_owners=walk.declares_owners,
            fallback_applied=fallback_applied,
            unresolved_imports=tuple(walk.unresolved_imports),
            parse_errors=tuple(walk.parse_errors),
            messages=tuple(walk.messages) + declared.messages,
        )

    def ignore_parent_owners(self, path: str, revision: str) -> bool:
        """Return ``True`` if inheritance from parent directories is disabled for *path*."""
        return self.resolve(path, revision).ignore_parent_owners

    # ------------------------------------------------------------------
    # Directory walk
    # ------------------------------------------------------------------

    def _visit(self, walk: _Walk, directory: str, revision: str, source: OwnerSource) -> None:
        try:
            declaration = self._store.get(directory, revision)
        except DeclarationParseError as exc:
            logger.warning("Ignoring unparseable declaration: %s", exc)
            walk.parse_errors.append(str(exc))
            walk.declares_owners = True
            return
        if declaration is None:
            return

        relative_path = relativize(declaration.directory, walk.path)
        global_sets = list(declaration.global_owner_sets())
        pattern_sets = [
            owner_set
            for owner_set in declaration.pattern_owner_sets()
            if self._matches(owner_set, relative_path)
        ]
        if declaration.declares_owners():
            walk.declares_owners = True

        imported = self._resolve_imports(walk, declaration, pattern_sets, relative_path)
        global_sets.extend(imported.global_sets)
        pattern_sets.extend(imported.pattern_sets)
        ignore_parents = declaration.inherit_disabled or imported.ignore_parents

        if any(owner_set.inherit_disabled for owner_set in pattern_sets):
            global_sets = []
            ignore_parents = True
            walk.ignore_global_owners = True

        references = [owner for owner_set in global_sets + pattern_sets for owner in owner_set.owners]
        contribution = self._identities.expand(references, source)
        walk.resolved = walk.resolved | contribution
        walk.ignore_parents = walk.ignore_parents or ignore_parents
        if references:
            walk.messages.append(
                f"{len(references)} owner(s) from {declaration.directory}@{revision}"
            )

    def _matches(self, owner_set: OwnerSet, relative_path: str) -> bool:
        return any(self._matcher.matches(pattern, relative_path) for pattern in owner_set.patterns)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _resolve_imports(
        self,
        walk: _Walk,
        declaration: OwnershipDeclaration,
        matching_sets: list[OwnerSet],
        relative_path: str,
    ) -> _ImportedOwnerSets:
        """Resolve the imports of *declaration* breadth-first.

        Imported scoped owner sets are matched against the path relative
        to the importing declaration, as if they were inlined there.
        """
        result = _ImportedOwnerSets()
        root_chain = (declaration.key,)
        queue: deque[_PendingImport] = deque(
            _PendingImport(declaration, reference, reference.mode, root_chain)
            for reference in declaration.imports
        )
        queue.extend(
            _PendingImport(declaration, reference, reference.mode, root_chain)
            for owner_set in [*declaration.global_owner_sets(), *matching_sets]
            for reference in owner_set.imports
        )
        seen: set[tuple[str, str]] = {declaration.key}

        while queue:
            pending = queue.popleft()
            reference = pending.reference
            try:
                directory = resolve_directory(pending.importing.directory, reference.directory)
            except ValueError as exc:
                self._unresolved(walk, pending, str(exc))
                continue
            key = (directory, reference.revision or pending.importing.revision)

            if key in pending.chain:
                self._unresolved(walk, pending, "import cycle")
                continue
            if key in seen:
                logger.debug("Declaration %s@%s already imported", *key)
                continue
            if len(pending.chain) > self._config.max_import_depth:
                self._unresolved(
                    walk, pending, f"import depth exceeds {self._config.max_import_depth}"
                )
                continue
            seen.add(key)

            try:
                imported = self._store.get(*key)
            except DeclarationParseError as exc:
                self._unresolved(walk, pending, f"unparseable declaration: {exc}")
                continue
            if imported is None:
                self._unresolved(walk, pending, "declaration not found")
                continue

            mode = pending.mode
            if imported.declares_owners():
                walk.declares_owners = True
            if mode.imports_inherit_flag and imported.inherit_disabled:
                result.ignore_parents = True
            if mode.imports_global_owner_sets:
                result.global_sets.extend(imported.global_owner_sets())
            matched: list[OwnerSet] = []
            if mode.imports_pattern_owner_sets:
                matched = [
                    owner_set
                    for owner_set in imported.pattern_owner_sets()
                    if self._matches(owner_set, relative_path)
                ]
                result.pattern_sets.extend(matched)

            if not mode.follows_transitive_imports:
                continue
            chain = pending.chain + (key,)
            for transitive in imported.imports:
                queue.append(
                    _PendingImport(imported, transitive, mode.transitive_mode(transitive.mode), chain)
                )
            if mode is ImportMode.ALL:
                for owner_set in [*imported.global_owner_sets(), *matched]:
                    for transitive in owner_set.imports:
                        queue.append(_PendingImport(imported, transitive, transitive.mode, chain))
        return result

    @staticmethod
    def _unresolved(walk: _Walk, pending: _PendingImport, reason: str) -> None:
        unresolved = UnresolvedImport(
            importing_directory=pending.importing.directory,
            reference=pending.reference,
            reason=reason,
        )
        logger.warning("Unresolved %s", unresolved)
        walk.unresolved_imports.append(unresolved)
        walk.messages.append(str(unresolved))
        # A broken import still counts as declared owners.
        walk.declares_owners = True

    # ------------------------------------------------------------------
    # Fallback and bootstrapping
    # ------------------------------------------------------------------

    def _fallback_applies(self, declared: ResolvedOwnerSet, walk: _Walk) -> bool:
        return (
            self._config.fallback_code_owners is not FallbackCodeOwners.NONE
            and declared.is_empty()
            and not walk.declares_owners
        )

    def _fallback_owners(self) -> ResolvedOwnerSet:
        match self._config.fallback_code_owners:
            case FallbackCodeOwners.ALL_USERS:
                return self._identities.resolve_source(OwnerSource.FALLBACK_ALL_USERS)
            case FallbackCodeOwners.PROJECT_OWNERS:
                return self._identities.resolve_source(
                    OwnerSource.FALLBACK_PROJECT_OWNERS, project=self._project
                )
        return ResolvedOwnerSet.empty()

    def _is_bootstrapping(self, revision: str) -> bool:
        return not self._store.contains_any(revision) and not self._store.contains_any(
            self._config.default_declaration_revision
        )

    def _resolve_bootstrapping(self, path: str, revision: str) -> PathOwners:
        """Without any declaration, project owners act as code owners."""
        owners = self._identities.resolve_source(
            OwnerSource.FALLBACK_PROJECT_OWNERS, project=self._project
        )
        if self._config.global_code_owners:
            owners = owners | self._identities.resolve_global_owners(self._config.global_code_owners)
        logger.debug("No declarations at %s, bootstrapping %s with project owners", revision, path)
        return PathOwners(
            path=path,
            revision=revision,
            owners=owners,
            bootstrapping=True,
            messages=("no declarations found, project owners are code owners",),
        )
