#!/usr/bin/env python3
"""Example: Approval Check

Loads a complete review scenario (accounts, declarations, commits and a
change), prints the code-owner status of every changed file and whether
the change is submittable.

Usage:
    python examples/02_approval_check.py

Requirements:
    pip install aumos-codeowners
"""
from __future__ import annotations

import aumos_codeowners as co

_SCENARIO = """\
project: demo
config:
  required_approval: Code-Review+1
  fallback_code_owners: PROJECT_OWNERS
accounts:
  - {id: 1000, emails: [admin@example.com], name: Admin}
  - {id: 1001, emails: [alice@example.com], name: Alice}
  - {id: 1002, emails: [bob@example.com], name: Bob}
  - {id: 1004, emails: [dave@example.com], name: Dave}
project_owners: [1000]
declarations:
  - directory: /
    owners: [admin@example.com]
  - directory: /docs
    inherit_disabled: true
    owners: [alice@example.com]
    owner_sets:
      - patterns: ["*.png"]
        owners: [bob@example.com]
repository:
  commits:
    - revision: base
      tree: {/README.md: v1, /docs/guide.md: v1, /docs/old.md: same}
    - revision: ps1
      parents: [base]
      tree: {/README.md: v2, /docs/guide.md: v2, /docs/new.md: same, /docs/logo.png: v1}
  branches:
    main: base
change:
  id: I0001
  branch: main
  owner: 1004
  patch_sets:
    - {id: 1, uploader: 1004, revision: ps1}
  reviewers: {1000: reviewer, 1002: reviewer}
  votes:
    - {account: 1001, label: Code-Review, value: 1, patch_set: 1}
"""


def main() -> None:
    print(f"aumos-codeowners version: {co.__version__}")

    # Step 1: Load the scenario and build the approval check
    scenario = co.ScenarioLoader().load_string(_SCENARIO)
    check = scenario.approval_check()
    change = scenario.change
    assert change is not None

    # Step 2: Per-file statuses
    result = check.evaluate(change)
    print(f"\nChange {change.change_id}, patch set {result.evidence.patch_set_id}:")
    for file_status in result.statuses:
        print(f"  {file_status.changed_file.change_type:<9} {file_status.changed_file}")
        for path_status in file_status.path_statuses():
            print(f"      {path_status.path}: {path_status.status.value} ({'; '.join(path_status.reasons)})")

    # Step 3: Verdict
    verdict = result.verdict
    print(f"\nSubmittable: {verdict.submittable}")
    for path in verdict.blocking_paths:
        print(f"  blocked by {path}")

    # Step 4: Which changed paths does Bob own?
    print(f"\nPaths owned by Bob: {check.get_owned_paths(change, 1002)}")


if __name__ == "__main__":
    main()
