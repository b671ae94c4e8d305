#!/usr/bin/env python3
"""Example: Quickstart — aumos-codeowners

Minimal working example: declare directory owners, resolve the owners of
a few paths and check who owns what.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install aumos-codeowners
"""
from __future__ import annotations

import aumos_codeowners as co


def main() -> None:
    print(f"aumos-codeowners version: {co.__version__}")

    # Step 1: Declare owners per directory
    governor = co.CodeOwnersGovernor(
        declarations={
            "/": ["admin@example.com"],
            "/docs": ["writer@example.com"],
            "/src/payments": ["payments-lead@example.com", "payments-dev@example.com"],
        }
    )
    print(f"Governor ready: {governor!r}")

    # Step 2: Resolve owners; parent owners are inherited
    paths = ["/README.md", "/docs/guide.md", "/src/payments/ledger.py", "/src/ui/app.ts"]
    print("\nResolved owners:")
    for path in paths:
        print(f"  {path}: {', '.join(governor.owners_of(path))}")

    # Step 3: Ownership checks
    print("\nOwnership checks:")
    for email, path in [
        ("writer@example.com", "/docs/guide.md"),
        ("writer@example.com", "/src/ui/app.ts"),
        ("admin@example.com", "/src/payments/ledger.py"),
    ]:
        verdict = "OWNER" if governor.is_owner(email, path) else "not owner"
        print(f"  [{verdict}] {email} -> {path}")


if __name__ == "__main__":
    main()
