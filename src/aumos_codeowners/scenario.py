"""YAML scenario files wiring the in-memory collaborators together.

A scenario describes a complete review situation: configuration,
accounts, declarations, a commit graph and a change.  The CLI, the
quickstart facade and the examples all load scenarios through
:class:`ScenarioLoader`.

Schema
------
::

    project: "demo"
    config:
      required_approval: "Code-Review+1"
      fallback_code_owners: "NONE"
    accounts:
      - id: 1000
        emails: ["admin@example.com"]
        name: "Admin"
      - id: 1001
        emails: ["dev@example.com"]
        active: true
    project_owners: [1000]
    declarations:
      - directory: "/"
        owners: ["admin@example.com"]
    repository:
      commits:
        - revision: "base"
          tree: {"/README.md": "v1"}
        - revision: "ps1"
          parents: ["base"]
          tree: {"/README.md": "v1", "/x.txt": "v1"}
      branches:
        main: "base"
    change:
      id: "I0001"
      branch: "main"
      owner: 1001
      patch_sets:
        - {id: 1, uploader: 1001, revision: "ps1"}
      reviewers: {1000: "reviewer"}
      votes:
        - {account: 1000, label: "Code-Review", value: 1, patch_set: 1}

Declarations are stored at the revision the change's destination branch
points at, unless an entry names its own ``revision``.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml

from aumos_codeowners.approval.check import CodeOwnerApprovalCheck
from aumos_codeowners.changes.repository import Commit, InMemoryRepository
from aumos_codeowners.config.schema import ConfigLoader
from aumos_codeowners.config.snapshot import ConfigSnapshot
from aumos_codeowners.declarations.loader import DeclarationLoader
from aumos_codeowners.declarations.store import InMemoryDeclarationStore
from aumos_codeowners.errors import ConfigurationError
from aumos_codeowners.review.accounts import Account, InMemoryAccountDirectory
from aumos_codeowners.review.history import ChangeVotingHistory
from aumos_codeowners.review.model import Change, PatchSet, PatchSetApproval, ReviewerState

logger = logging.getLogger(__name__)

_DEFAULT_PROJECT = "project"
_DEFAULT_BRANCH = "main"


@dataclass
class Scenario:
    """All collaborators of one review situation."""

    project: str
    config: ConfigSnapshot
    accounts: InMemoryAccountDirectory
    store: InMemoryDeclarationStore
    repository: InMemoryRepository
    history: ChangeVotingHistory
    change: Change | None = None

    def approval_check(self) -> CodeOwnerApprovalCheck:
        """Build an approval check over this scenario's collaborators."""
        return CodeOwnerApprovalCheck(
            store=self.store,
            changed_files=self.repository,
            history=self.history,
            accounts=self.accounts,
            config=self.config,
        )

    def branch_revision(self, branch: str | None = None) -> str | None:
        if branch is None:
            branch = self.change.branch if self.change is not None else _DEFAULT_BRANCH
        return self.repository.branch_revision(self.project, branch)


class ScenarioLoader:
    """Loads :class:`Scenario` objects from YAML files, strings or dicts."""

    def load(self, scenario_path: str | Path) -> Scenario:
        """Load a scenario file.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        ConfigurationError
            If the scenario is malformed.
        """
        scenario_path = Path(scenario_path)
        if not scenario_path.exists():
            raise FileNotFoundError(f"Scenario not found: {scenario_path}")
        try:
            with scenario_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse YAML: {exc}", str(scenario_path)) from exc
        return self.load_dict(raw, source=str(scenario_path))

    def load_string(self, yaml_content: str) -> Scenario:
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse YAML string: {exc}") from exc
        return self.load_dict(raw)

    def load_dict(self, raw: Mapping[str, object], source: str | None = None) -> Scenario:
        """Build a scenario from an already-parsed mapping."""
        if not isinstance(raw, Mapping):
            raise ConfigurationError("Scenario must be a YAML mapping (dict).", source)
        project = str(raw.get("project", _DEFAULT_PROJECT))

        config = ConfigLoader().load_dict(dict(raw.get("config") or {}), config_path=source)
        snapshot = ConfigSnapshot.from_config(config, config_path=source)

        try:
            accounts = self._accounts(raw, project)
            repository = self._repository(raw.get("repository") or {}, project)
            change = self._change(raw.get("change"), project)
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid scenario: {exc}", source) from exc

        branch = change.branch if change is not None else _DEFAULT_BRANCH
        revision = repository.branch_revision(project, branch) or branch
        store = DeclarationLoader(default_revision=revision).build_store(
            list(raw.get("declarations") or []), revision=revision
        )
        logger.info(
            "Loaded scenario %s: %d accounts, %d declarations",
            source or "<dict>",
            len(accounts.all_accounts()),
            len(store),
        )
        return Scenario(
            project=project,
            config=snapshot,
            accounts=accounts,
            store=store,
            repository=repository,
            history=ChangeVotingHistory(),
            change=change,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _accounts(raw: Mapping[str, object], project: str) -> InMemoryAccountDirectory:
        accounts = [
            Account(
                account_id=int(entry["id"]),
                emails=tuple(str(email) for email in entry.get("emails", [])),
                active=bool(entry.get("active", True)),
                display_name=str(entry.get("name", "")),
            )
            for entry in raw.get("accounts") or []
        ]
        owners = {int(account_id) for account_id in raw.get("project_owners") or []}
        return InMemoryAccountDirectory(accounts, project_owners={project: owners})

    @staticmethod
    def _repository(raw: Mapping[str, object], project: str) -> InMemoryRepository:
        repository = InMemoryRepository()
        for entry in raw.get("commits") or []:
            auto_merge_tree = entry.get("auto_merge_tree")
            repository.add_commit(
                Commit(
                    revision=str(entry["revision"]),
                    tree={str(path): str(content) for path, content in (entry.get("tree") or {}).items()},
                    parents=tuple(str(parent) for parent in entry.get("parents", [])),
                    auto_merge_tree=(
                        {str(path): str(content) for path, content in auto_merge_tree.items()}
                        if auto_merge_tree is not None
                        else None
                    ),
                )
            )
        for branch, revision in (raw.get("branches") or {}).items():
            repository.set_branch(project, str(branch), str(revision))
        return repository

    @staticmethod
    def _change(raw: object, project: str) -> Change | None:
        if raw is None:
            return None
        if not isinstance(raw, Mapping):
            raise TypeError("'change' must be a mapping.")
        patch_sets = [
            PatchSet(
                patch_set_id=int(entry["id"]),
                uploader=int(entry["uploader"]),
                revision=str(entry["revision"]),
            )
            for entry in raw.get("patch_sets", [])
        ]
        reviewers = {
            int(account_id): ReviewerState(str(state).lower())
            for account_id, state in (raw.get("reviewers") or {}).items()
        }
        approvals = [
            PatchSetApproval(
                account_id=int(vote["account"]),
                label=str(vote.get("label", "Code-Review")),
                value=int(vote["value"]),
                patch_set_id=int(vote["patch_set"]),
            )
            for vote in raw.get("votes", [])
        ]
        return Change(
            change_id=str(raw.get("id", "I0000")),
            project=project,
            branch=str(raw.get("branch", _DEFAULT_BRANCH)),
            owner=int(raw["owner"]),
            patch_sets=patch_sets,
            reviewers=reviewers,
            approvals=approvals,
            is_pure_revert=bool(raw.get("is_pure_revert", False)),
        )
