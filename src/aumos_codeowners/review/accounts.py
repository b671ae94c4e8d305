"""Account lookup used to turn owner emails into account identities.

The review system's account database is external.  Owner resolution only
needs to map an email to exactly one active account, list all accounts
and list the holders of the project-owner permission.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Account:
    """A registered user account.

    Attributes
    ----------
    account_id:
        Numeric account identifier.
    emails:
        Email addresses registered for the account.
    active:
        Inactive accounts never resolve as code owners.
    display_name:
        Optional human-readable name.
    """

    account_id: int
    emails: tuple[str, ...] = field(default=())
    active: bool = True
    display_name: str = ""

    @property
    def preferred_email(self) -> str | None:
        return self.emails[0] if self.emails else None

    def __str__(self) -> str:
        return self.display_name or self.preferred_email or f"account-{self.account_id}"


class AccountDirectory(ABC):
    """Resolves emails to accounts."""

    @abstractmethod
    def lookup(self, email: str) -> Account | None:
        """Return the single active account owning *email*.

        Returns ``None`` for unknown, inactive or ambiguous emails.
        """

    @abstractmethod
    def all_accounts(self) -> list[Account]:
        """Return every active account."""

    @abstractmethod
    def project_owners(self, project: str) -> set[int]:
        """Return the ids of accounts holding the project-owner permission."""

    def get(self, account_id: int) -> Account | None:
        """Return the account with *account_id*, if known."""
        for account in self.all_accounts():
            if account.account_id == account_id:
                return account
        return None


class InMemoryAccountDirectory(AccountDirectory):
    """Dict-backed account directory.

    Parameters
    ----------
    accounts:
        Known accounts, active or not.
    project_owners:
        Mapping of project name to the account ids owning it.
    """

    def __init__(
        self,
        accounts: list[Account] | None = None,
        project_owners: dict[str, set[int]] | None = None,
    ) -> None:
        self._accounts: dict[int, Account] = {}
        self._project_owners: dict[str, set[int]] = {
            project: set(ids) for project, ids in (project_owners or {}).items()
        }
        self._lock = threading.Lock()
        for account in accounts or []:
            self.add(account)

    def add(self, account: Account) -> None:
        with self._lock:
            self._accounts[account.account_id] = account

    def grant_project_owner(self, project: str, account_id: int) -> None:
        with self._lock:
            self._project_owners.setdefault(project, set()).add(account_id)

    def lookup(self, email: str) -> Account | None:
        wanted = email.strip().lower()
        with self._lock:
            candidates = [
                account
                for account in self._accounts.values()
                if wanted in (registered.lower() for registered in account.emails)
            ]
        if not candidates:
            logger.debug("No account found for email %s", email)
            return None
        if len(candidates) > 1:
            logger.debug(
                "Email %s is ambiguous, owned by accounts %s",
                email,
                sorted(account.account_id for account in candidates),
            )
            return None
        account = candidates[0]
        if not account.active:
            logger.debug("Account %d for email %s is inactive", account.account_id, email)
            return None
        return account

    def all_accounts(self) -> list[Account]:
        with self._lock:
            return [account for account in self._accounts.values() if account.active]

    def get(self, account_id: int) -> Account | None:
        with self._lock:
            return self._accounts.get(account_id)

    def project_owners(self, project: str) -> set[int]:
        with self._lock:
            owners = set(self._project_owners.get(project, set()))
            active = {account_id for account_id, account in self._accounts.items() if account.active}
        return owners & active
