"""Tests for account lookup and owner identity expansion."""
from __future__ import annotations

import logging

import pytest

from aumos_codeowners.declarations.model import OwnerReference
from aumos_codeowners.resolution.identities import (
    OwnerIdentityResolver,
    OwnerSource,
    ResolvedOwnerSet,
)
from aumos_codeowners.review.accounts import Account, InMemoryAccountDirectory


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def accounts() -> InMemoryAccountDirectory:
    return InMemoryAccountDirectory(
        [
            Account(1, ("alice@example.com",), display_name="Alice"),
            Account(2, ("bob@example.com", "Shared@example.com")),
            Account(3, ("shared@example.com",)),
            Account(4, ("gone@example.com",), active=False),
        ],
        project_owners={"demo": {1, 4}},
    )


@pytest.fixture()
def resolver(accounts: InMemoryAccountDirectory) -> OwnerIdentityResolver:
    return OwnerIdentityResolver(accounts)


# ---------------------------------------------------------------------------
# InMemoryAccountDirectory
# ---------------------------------------------------------------------------


class TestAccountDirectory:
    def test_lookup_is_case_insensitive(self, accounts: InMemoryAccountDirectory) -> None:
        account = accounts.lookup("ALICE@example.com")
        assert account is not None
        assert account.account_id == 1

    def test_ambiguous_email_is_unresolvable(self, accounts: InMemoryAccountDirectory) -> None:
        assert accounts.lookup("shared@example.com") is None

    def test_inactive_account_is_unresolvable(self, accounts: InMemoryAccountDirectory) -> None:
        assert accounts.lookup("gone@example.com") is None

    def test_unknown_email(self, accounts: InMemoryAccountDirectory) -> None:
        assert accounts.lookup("nobody@example.com") is None

    def test_project_owners_are_active_only(self, accounts: InMemoryAccountDirectory) -> None:
        assert accounts.project_owners("demo") == {1}
        assert accounts.project_owners("other") == set()

    def test_grant_project_owner(self, accounts: InMemoryAccountDirectory) -> None:
        accounts.grant_project_owner("other", 2)
        assert accounts.project_owners("other") == {2}

    def test_all_accounts_excludes_inactive(self, accounts: InMemoryAccountDirectory) -> None:
        assert sorted(a.account_id for a in accounts.all_accounts()) == [1, 2, 3]

    def test_account_str(self, accounts: InMemoryAccountDirectory) -> None:
        assert str(accounts.get(1)) == "Alice"
        assert str(accounts.get(2)) == "bob@example.com"
        assert str(Account(9)) == "account-9"


# ---------------------------------------------------------------------------
# OwnerIdentityResolver
# ---------------------------------------------------------------------------


class TestOwnerIdentityResolver:
    def test_expand_resolves_emails(self, resolver: OwnerIdentityResolver) -> None:
        resolved = resolver.expand([OwnerReference("alice@example.com"), OwnerReference("bob@example.com")])
        assert resolved.owners == frozenset({1, 2})
        assert resolved.has_unresolved_owners is False
        assert resolved.sources == frozenset({OwnerSource.EXPLICIT})

    def test_unresolvable_emails_are_dropped(self, resolver: OwnerIdentityResolver) -> None:
        resolved = resolver.expand([OwnerReference("gone@example.com"), OwnerReference("shared@example.com")])
        assert resolved.owners == frozenset()
        assert resolved.has_unresolved_owners is True
        assert len(resolved.messages) == 2

    def test_dropped_owner_logs_warning(
        self, resolver: OwnerIdentityResolver, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="aumos_codeowners.resolution.identities"):
            resolver.expand([OwnerReference("gone@example.com")])
        records = [r for r in caplog.records if r.name == "aumos_codeowners.resolution.identities"]
        assert [r.levelno for r in records] == [logging.WARNING]

    def test_wildcard_means_all_users(self, resolver: OwnerIdentityResolver) -> None:
        resolved = resolver.expand([OwnerReference.all_users()])
        assert resolved.owned_by_all_users is True
        assert resolved.contains(12345) is True

    def test_lookup_is_cached(self, resolver: OwnerIdentityResolver, accounts: InMemoryAccountDirectory) -> None:
        assert resolver.lookup("alice@example.com") == 1
        accounts.add(Account(1, ("alice@example.com",), active=False))
        assert resolver.lookup("alice@example.com") == 1
        assert OwnerIdentityResolver(accounts).lookup("alice@example.com") is None

    def test_fallback_project_owners(self, resolver: OwnerIdentityResolver) -> None:
        resolved = resolver.resolve_source(OwnerSource.FALLBACK_PROJECT_OWNERS, project="demo")
        assert resolved.owners == frozenset({1})

    def test_fallback_project_owners_without_project(self, resolver: OwnerIdentityResolver) -> None:
        assert resolver.resolve_source(OwnerSource.FALLBACK_PROJECT_OWNERS).is_empty() is True

    def test_fallback_all_users(self, resolver: OwnerIdentityResolver) -> None:
        assert resolver.resolve_source(OwnerSource.FALLBACK_ALL_USERS).owned_by_all_users is True

    def test_global_owners_source(self, resolver: OwnerIdentityResolver) -> None:
        resolved = resolver.resolve_global_owners([OwnerReference("bob@example.com")])
        assert resolved.sources == frozenset({OwnerSource.GLOBAL})


class TestResolvedOwnerSet:
    def test_union(self) -> None:
        merged = ResolvedOwnerSet(owners=frozenset({1})) | ResolvedOwnerSet(
            owners=frozenset({2}), owned_by_all_users=True
        )
        assert merged.owners == frozenset({1, 2})
        assert merged.owned_by_all_users is True

    def test_contains_none(self) -> None:
        assert ResolvedOwnerSet(owned_by_all_users=True).contains(None) is False

    def test_empty(self) -> None:
        assert ResolvedOwnerSet.empty().is_empty() is True
