"""Expansion of owner references into concrete account identities.

Every owner population (declared owners, the all-users wildcard, global,
default and fallback owners) is expanded by
:meth:`OwnerIdentityResolver.resolve_source`, so the precedence rules
between them live in one place.

Unresolvable emails (unknown, inactive or ambiguous accounts) are dropped
and logged, never raised: declarations are edited by humans and may
name accounts that no longer exist.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from aumos_codeowners.declarations.model import OwnerReference
from aumos_codeowners.review.accounts import AccountDirectory

logger = logging.getLogger(__name__)


class OwnerSource(str, Enum):
    """Where an owner population comes from."""

    EXPLICIT = "explicit"
    ALL_USERS_WILDCARD = "all_users_wildcard"
    GLOBAL = "global"
    DEFAULT = "default"
    FALLBACK_ALL_USERS = "fallback_all_users"
    FALLBACK_PROJECT_OWNERS = "fallback_project_owners"


@dataclass(frozen=True)
class ResolvedOwnerSet:
    """Concrete owners of a path.

    ``owned_by_all_users`` and a non-empty ``owners`` set may both be
    populated, from different declarations in the chain.

    Attributes
    ----------
    owners:
        Account ids of the owners.
    owned_by_all_users:
        ``True`` if every user counts as an owner.
    has_unresolved_owners:
        ``True`` if at least one declared email could not be resolved.
    sources:
        Owner sources that contributed.
    messages:
        Human-readable notes on dropped owners.
    """

    owners: frozenset[int] = field(default_factory=frozenset)
    owned_by_all_users: bool = False
    has_unresolved_owners: bool = False
    sources: frozenset[OwnerSource] = field(default_factory=frozenset)
    messages: tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> ResolvedOwnerSet:
        return cls()

    def is_empty(self) -> bool:
        """``True`` if nobody owns the path."""
        return not self.owners and not self.owned_by_all_users

    def contains(self, account_id: int | None) -> bool:
        """Return ``True`` if *account_id* is an owner."""
        if account_id is None:
            return False
        return self.owned_by_all_users or account_id in self.owners

    def union(self, other: ResolvedOwnerSet) -> ResolvedOwnerSet:
        return ResolvedOwnerSet(
            owners=self.owners | other.owners,
            owned_by_all_users=self.owned_by_all_users or other.owned_by_all_users,
            has_unresolved_owners=self.has_unresolved_owners or other.has_unresolved_owners,
            sources=self.sources | other.sources,
            messages=self.messages + other.messages,
        )

    def __or__(self, other: ResolvedOwnerSet) -> ResolvedOwnerSet:
        return self.union(other)


class OwnerIdentityResolver:
    """Turns owner references into :class:`ResolvedOwnerSet` objects.

    Email lookups are cached per instance.  Create one resolver per
    request so that account changes are picked up.

    Parameters
    ----------
    accounts:
        Account directory used to look up emails.
    """

    def __init__(self, accounts: AccountDirectory) -> None:
        self._accounts = accounts
        self._cache: dict[str, int | None] = {}
        self._lock = threading.Lock()

    @property
    def accounts(self) -> AccountDirectory:
        return self._accounts

    def lookup(self, email: str) -> int | None:
        """Return the account id for *email*, or ``None`` if it is unresolvable."""
        key = email.strip().lower()
        with self._lock:
            if key in self._cache:
                return self._cache[key]
        account = self._accounts.lookup(email)
        account_id = account.account_id if account is not None else None
        with self._lock:
            self._cache[key] = account_id
        return account_id

    def expand(
        self,
        references: Iterable[OwnerReference],
        source: OwnerSource = OwnerSource.EXPLICIT,
    ) -> ResolvedOwnerSet:
        """Expand declared owner references.

        Parameters
        ----------
        references:
            Owner references; ``*`` sets ``owned_by_all_users``.
        source:
            Source recorded for concretely resolved owners.

        Returns
        -------
        ResolvedOwnerSet
        """
        owners: set[int] = set()
        owned_by_all_users = False
        unresolved = False
        sources: set[OwnerSource] = set()
        messages: list[str] = []
        for reference in references:
            if reference.is_wildcard:
                owned_by_all_users = True
                sources.add(OwnerSource.ALL_USERS_WILDCARD)
                continue
            account_id = self.lookup(reference.email)
            if account_id is None:
                unresolved = True
                message = f"cannot resolve code owner email {reference.email}"
                messages.append(message)
                logger.warning("Dropping owner: %s", message)
                continue
            owners.add(account_id)
            sources.add(source)
        return ResolvedOwnerSet(
            owners=frozenset(owners),
            owned_by_all_users=owned_by_all_users,
            has_unresolved_owners=unresolved,
            sources=frozenset(sources),
            messages=tuple(messages),
        )

    def resolve_source(
        self,
        source: OwnerSource,
        references: Iterable[OwnerReference] = (),
        project: str | None = None,
    ) -> ResolvedOwnerSet:
        """Expand the owner population of one *source*.

        Parameters
        ----------
        source:
            The owner source to expand.
        references:
            Declared references for ``EXPLICIT``, ``GLOBAL`` and ``DEFAULT``.
        project:
            Project name, required for ``FALLBACK_PROJECT_OWNERS``.

        Returns
        -------
        ResolvedOwnerSet
        """
        match source:
            case OwnerSource.EXPLICIT | OwnerSource.GLOBAL | OwnerSource.DEFAULT:
                return self.expand(references, source)
            case OwnerSource.ALL_USERS_WILDCARD | OwnerSource.FALLBACK_ALL_USERS:
                return ResolvedOwnerSet(owned_by_all_users=True, sources=frozenset([source]))
            case OwnerSource.FALLBACK_PROJECT_OWNERS:
                if project is None:
                    logger.warning("Project owners requested without a project, none resolved")
                    return ResolvedOwnerSet.empty()
                owners = frozenset(self._accounts.project_owners(project))
                return ResolvedOwnerSet(
                    owners=owners,
                    sources=frozenset([source]) if owners else frozenset(),
                )
        raise ValueError(f"Unknown owner source {source!r}")

    def resolve_global_owners(self, references: Iterable[OwnerReference]) -> ResolvedOwnerSet:
        """Expand configured global code owners."""
        return self.resolve_source(OwnerSource.GLOBAL, references)
