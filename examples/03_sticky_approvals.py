#!/usr/bin/env python3
"""Example: Sticky, Implicit and Override Approvals

Builds the collaborators by hand and shows how configuration changes the
outcome for the same change: approvals from earlier patch sets, the
uploader's implicit approval and override votes.

Usage:
    python examples/03_sticky_approvals.py

Requirements:
    pip install aumos-codeowners
"""
from __future__ import annotations

import aumos_codeowners as co
from aumos_codeowners import (
    Account,
    Change,
    ChangeVotingHistory,
    CodeOwnerApprovalCheck,
    Commit,
    ConfigLoader,
    InMemoryAccountDirectory,
    InMemoryDeclarationStore,
    InMemoryRepository,
    OwnerReference,
    OwnerSet,
    OwnershipDeclaration,
)

ADMIN = 1000
DAVE = 1004


def _check(config: dict[str, object]) -> tuple[CodeOwnerApprovalCheck, Change]:
    repository = InMemoryRepository()
    repository.add_commit(Commit("base", tree={"/app.py": "v1"}))
    repository.add_commit(Commit("ps1", tree={"/app.py": "v2"}, parents=("base",)))
    repository.add_commit(Commit("ps2", tree={"/app.py": "v3"}, parents=("base",)))
    repository.set_branch("demo", "main", "base")

    accounts = InMemoryAccountDirectory(
        [Account(ADMIN, ("admin@example.com",), display_name="Admin"), Account(DAVE, ("dave@example.com",))]
    )
    store = InMemoryDeclarationStore(
        [
            OwnershipDeclaration(
                directory="/",
                revision="base",
                owner_sets=(
                    OwnerSet(
                        owners=(OwnerReference("admin@example.com"), OwnerReference("dave@example.com"))
                    ),
                ),
            )
        ]
    )

    change = Change(change_id="I42", project="demo", branch="main", owner=DAVE)
    change.add_patch_set(uploader=DAVE, revision="ps1")
    change.vote(ADMIN, "Code-Review", 1)
    change.add_patch_set(uploader=DAVE, revision="ps2")

    snapshot = ConfigLoader().load_dict(config).snapshot()
    return CodeOwnerApprovalCheck(store, repository, ChangeVotingHistory(), accounts, snapshot), change


def main() -> None:
    print(f"aumos-codeowners version: {co.__version__}")

    scenarios: list[tuple[str, dict[str, object]]] = [
        ("defaults", {}),
        ("sticky approvals", {"enable_sticky_approvals": True}),
        ("implicit approvals", {"enable_implicit_approvals": "true"}),
        (
            "implicit approvals, self approvals ignored",
            {
                "enable_implicit_approvals": "true",
                "labels": [{"name": "Code-Review", "ignore_self_approval": True}],
            },
        ),
        ("forced implicit approvals", {"enable_implicit_approvals": "forced"}),
    ]
    for title, config in scenarios:
        check, change = _check(config)
        status = check.get_file_statuses(change)[0].new_path_status
        assert status is not None
        print(f"  {title:<45} {status.status.value:<22} {'; '.join(status.reasons)}")

    # Override votes approve every file of the change
    check, change = _check({"override_approvals": ["Code-Review+2"]})
    change.vote(ADMIN, "Code-Review", 2)
    verdict = check.verdict(change)
    print(f"\nWith an override vote: submittable={verdict.submittable} overridden={verdict.overridden}")


if __name__ == "__main__":
    main()
