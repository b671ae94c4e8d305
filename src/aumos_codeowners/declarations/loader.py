"""YAML-based loader for ownership declarations.

DeclarationLoader turns YAML documents or already-parsed dicts into
:class:`OwnershipDeclaration` objects and fills an
:class:`InMemoryDeclarationStore`.  This is a structured interchange
format for wiring and tests, not the OWNERS text syntax.

Schema
------
::

    revision: "refs/heads/main"
    declarations:
      - directory: "/"
        owners:
          - "admin@example.com"
      - directory: "/docs"
        inherit_disabled: true
        owners:
          - "writer@example.com"
        owner_sets:
          - patterns: ["*.md"]
            owners: ["editor@example.com"]
            inherit_disabled: true
            imports:
              - directory: "/shared"
                mode: "OWNER_SET_PATTERNS_ONLY"
        imports:
          - directory: "../common"
            mode: "ALL"
            revision: "refs/meta/config"
      - directory: "/broken"
        invalid: "unexpected token on line 3"

``owners`` at the declaration level is shorthand for one owner set
without patterns.  An entry with ``invalid`` registers a declaration that
exists but fails to parse.  Each entry may override ``revision``.

Example
-------
::

    loader = DeclarationLoader()
    store = loader.load("/path/to/declarations.yaml")
    store.get("/docs", "refs/heads/main")
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

import yaml

from aumos_codeowners.declarations.model import (
    ImportMode,
    ImportReference,
    OwnerReference,
    OwnerSet,
    OwnershipDeclaration,
)
from aumos_codeowners.declarations.store import InMemoryDeclarationStore
from aumos_codeowners.errors import DeclarationParseError

logger = logging.getLogger(__name__)


class DeclarationLoader:
    """Builds declarations and declaration stores from YAML or dicts.

    Parameters
    ----------
    default_revision:
        Revision used for entries that name none.
    pattern_import_mode:
        Mode applied to imports declared on a scoped owner set when the
        entry does not name one.
    """

    _KNOWN_ENTRY_KEYS: frozenset[str] = frozenset(
        ["directory", "revision", "inherit_disabled", "owners", "owner_sets", "imports", "invalid"]
    )

    def __init__(
        self,
        default_revision: str = "refs/heads/main",
        pattern_import_mode: ImportMode = ImportMode.OWNER_SET_PATTERNS_ONLY,
    ) -> None:
        self._default_revision = default_revision
        self._pattern_import_mode = pattern_import_mode

    def load(
        self,
        config_path: str | Path,
        store: InMemoryDeclarationStore | None = None,
    ) -> InMemoryDeclarationStore:
        """Load every declaration of a YAML file into a store.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        DeclarationParseError
            If the file cannot be parsed or is structurally invalid.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Declaration file not found: {config_path}")
        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise DeclarationParseError(f"Failed to parse YAML: {exc}", str(config_path)) from exc
        return self.load_from_dict(raw, store=store)

    def load_from_yaml_string(
        self,
        yaml_string: str,
        store: InMemoryDeclarationStore | None = None,
    ) -> InMemoryDeclarationStore:
        """Load every declaration of a YAML string into a store."""
        try:
            raw = yaml.safe_load(yaml_string) or {}
        except yaml.YAMLError as exc:
            raise DeclarationParseError(f"Failed to parse YAML string: {exc}") from exc
        return self.load_from_dict(raw, store=store)

    def load_from_dict(
        self,
        raw: Mapping[str, object],
        store: InMemoryDeclarationStore | None = None,
    ) -> InMemoryDeclarationStore:
        """Load a ``{"revision": ..., "declarations": [...]}`` mapping into a store.

        Parameters
        ----------
        raw:
            Mapping conforming to the module schema.
        store:
            Store to add to.  A new store is created when omitted.

        Returns
        -------
        InMemoryDeclarationStore

        Raises
        ------
        DeclarationParseError
            If the mapping is structurally invalid.
        """
        if not isinstance(raw, Mapping):
            raise DeclarationParseError("Declaration document must be a mapping.")
        entries = raw.get("declarations", [])
        if not isinstance(entries, list):
            raise DeclarationParseError("'declarations' must be a list.")
        revision = str(raw.get("revision", self._default_revision))
        return self.build_store(entries, revision=revision, store=store)

    def build_store(
        self,
        entries: list[Mapping[str, object]],
        revision: str | None = None,
        store: InMemoryDeclarationStore | None = None,
    ) -> InMemoryDeclarationStore:
        """Add one declaration per entry to *store* and return it."""
        target = store if store is not None else InMemoryDeclarationStore()
        revision = revision or self._default_revision
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise DeclarationParseError("Each declaration entry must be a mapping.")
            entry_revision = str(entry.get("revision", revision))
            if "invalid" in entry:
                target.add_unparseable(
                    str(entry.get("directory", "/")), entry_revision, str(entry["invalid"])
                )
                continue
            target.add(self.parse(entry, revision=entry_revision))
        logger.info("Loaded %d declarations (default revision %s)", len(entries), revision)
        return target

    def parse(self, entry: Mapping[str, object], revision: str | None = None) -> OwnershipDeclaration:
        """Parse a single declaration entry.

        Raises
        ------
        DeclarationParseError
            If the entry is structurally invalid.
        """
        directory = str(entry.get("directory", ""))
        if not directory:
            raise DeclarationParseError("Declaration entry must name a 'directory'.")
        entry_revision = str(entry.get("revision", revision or self._default_revision))

        unknown = set(entry) - self._KNOWN_ENTRY_KEYS
        if unknown:
            raise DeclarationParseError(
                f"Unknown keys: {sorted(unknown)}. Known keys: {sorted(self._KNOWN_ENTRY_KEYS)}.",
                directory=directory,
                revision=entry_revision,
            )

        try:
            owner_sets: list[OwnerSet] = []
            owners = self._owners(entry.get("owners", []))
            if owners:
                owner_sets.append(OwnerSet(owners=owners))
            for raw_set in self._list(entry.get("owner_sets", []), "owner_sets"):
                owner_sets.append(self._owner_set(raw_set))
            imports = tuple(
                self._import(raw_import, ImportMode.ALL)
                for raw_import in self._list(entry.get("imports", []), "imports")
            )
            return OwnershipDeclaration(
                directory=directory,
                revision=entry_revision,
                inherit_disabled=bool(entry.get("inherit_disabled", False)),
                owner_sets=tuple(owner_sets),
                imports=imports,
            )
        except DeclarationParseError:
            raise
        except (ValueError, TypeError, KeyError) as exc:
            raise DeclarationParseError(str(exc), directory=directory, revision=entry_revision) from exc

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _list(value: object, name: str) -> list:
        if not isinstance(value, list):
            raise ValueError(f"'{name}' must be a list.")
        return value

    def _owners(self, value: object) -> tuple[OwnerReference, ...]:
        return tuple(OwnerReference(str(email)) for email in self._list(value, "owners"))

    def _owner_set(self, raw: object) -> OwnerSet:
        if not isinstance(raw, Mapping):
            raise ValueError("Each owner set must be a mapping.")
        patterns = raw.get("patterns", [])
        if isinstance(patterns, str):
            patterns = [patterns]
        if raw.get("inherit_disabled") and not patterns:
            raise ValueError("'inherit_disabled' on an owner set requires 'patterns'.")
        return OwnerSet(
            patterns=tuple(str(pattern) for pattern in self._list(patterns, "patterns")),
            owners=self._owners(raw.get("owners", [])),
            inherit_disabled=bool(raw.get("inherit_disabled", False)),
            imports=tuple(
                self._import(raw_import, self._pattern_import_mode)
                for raw_import in self._list(raw.get("imports", []), "imports")
            ),
        )

    @staticmethod
    def _import(raw: object, default_mode: ImportMode) -> ImportReference:
        if isinstance(raw, str):
            return ImportReference(directory=raw, mode=default_mode)
        if not isinstance(raw, Mapping):
            raise ValueError("Each import must be a mapping or a directory string.")
        mode_name = str(raw.get("mode", default_mode.value)).upper()
        try:
            mode = ImportMode(mode_name)
        except ValueError as exc:
            raise ValueError(
                f"Unknown import mode {mode_name!r}. Valid: {[m.value for m in ImportMode]}."
            ) from exc
        revision = raw.get("revision")
        return ImportReference(
            directory=str(raw["directory"]),
            mode=mode,
            revision=str(revision) if revision is not None else None,
        )
