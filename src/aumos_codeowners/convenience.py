"""Convenience API for aumos-codeowners — 3-line quickstart.

Example
-------
::

    from aumos_codeowners import CodeOwnersGovernor
    governor = CodeOwnersGovernor(declarations={"/": ["admin@example.com"]})
    print(governor.owners_of("/src/main.py"))

"""
from __future__ import annotations

from typing import Any


class CodeOwnersGovernor:
    """Zero-setup code-owner checks for the 80% use case.

    Wraps a :class:`~aumos_codeowners.scenario.Scenario` built from plain
    Python values.  Accounts are created on the fly for every email that
    appears in the declarations, numbered from 1000 in order of
    appearance.

    Parameters
    ----------
    declarations:
        Mapping of directory to owner emails.
    config:
        Optional code-owners config dict.  Defaults apply when omitted.
    project:
        Project name.

    Example
    -------
    ::

        governor = CodeOwnersGovernor(declarations={"/": ["admin@example.com"]})
        governor.owners_of("/README.md")  # ['admin@example.com']
    """

    def __init__(
        self,
        declarations: dict[str, list[str]] | None = None,
        config: dict[str, Any] | None = None,
        project: str = "project",
    ) -> None:
        from aumos_codeowners.scenario import ScenarioLoader

        declarations = declarations or {}
        emails: list[str] = []
        for owners in declarations.values():
            for email in owners:
                if email != "*" and email not in emails:
                    emails.append(email)
        self._scenario = ScenarioLoader().load_dict(
            {
                "project": project,
                "config": config or {},
                "accounts": [
                    {"id": 1000 + index, "emails": [email]} for index, email in enumerate(emails)
                ],
                "declarations": [
                    {"directory": directory, "owners": owners}
                    for directory, owners in declarations.items()
                ],
                "repository": {"commits": [{"revision": "base"}], "branches": {"main": "base"}},
            }
        )
        self._check = self._scenario.approval_check()

    def owners_of(self, path: str) -> list[str]:
        """Return the sorted owner emails of *path*, ``["*"]`` if owned by all users."""
        owners = self._check.resolve_owners(path, "base", project=self._scenario.project).owners
        if owners.owned_by_all_users:
            return ["*"]
        emails = []
        for account_id in sorted(owners.owners):
            account = self._scenario.accounts.get(account_id)
            if account is not None and account.preferred_email:
                emails.append(account.preferred_email)
        return sorted(emails)

    def is_owner(self, email: str, path: str) -> bool:
        """Return ``True`` if *email* owns *path*."""
        account = self._scenario.accounts.lookup(email)
        owners = self._check.resolve_owners(path, "base", project=self._scenario.project)
        if account is None:
            return owners.owners.owned_by_all_users
        return owners.is_owner(account.account_id)

    @property
    def scenario(self) -> Any:
        """The underlying Scenario instance."""
        return self._scenario

    def __repr__(self) -> str:
        return f"CodeOwnersGovernor(declarations={len(self._scenario.store)})"
