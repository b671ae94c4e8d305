"""Benchmark: Owner resolution throughput — resolutions per second.

Resolves the owners of a file five directories deep, where every level
has a declaration, one level carries a per-file owner set and one level
imports a shared declaration.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_codeowners.config.schema import ConfigLoader
from aumos_codeowners.declarations.loader import DeclarationLoader
from aumos_codeowners.resolution.identities import OwnerIdentityResolver
from aumos_codeowners.resolution.owners import OwnerSetResolver
from aumos_codeowners.review.accounts import Account, InMemoryAccountDirectory

_REVISION: str = "refs/heads/main"
_ITERATIONS: int = 2_000
_DEPTH: int = 5
_PATH: str = "/l0/l1/l2/l3/l4/module.py"


def _build_resolver() -> OwnerSetResolver:
    """Build a resolver over a declaration at every directory level."""
    accounts = InMemoryAccountDirectory(
        [Account(1000 + i, (f"owner{i}@example.com",)) for i in range(_DEPTH + 3)]
    )
    entries: list[dict[str, object]] = [{"directory": "/", "owners": ["owner0@example.com"]}]
    directory = ""
    for level in range(_DEPTH):
        directory += f"/l{level}"
        entries.append({"directory": directory, "owners": [f"owner{level + 1}@example.com"]})
    entries[2]["owner_sets"] = [{"patterns": ["**.py"], "owners": [f"owner{_DEPTH + 1}@example.com"]}]
    entries[3]["imports"] = ["/shared"]
    entries.append({"directory": "/shared", "owners": [f"owner{_DEPTH + 2}@example.com"]})

    store = DeclarationLoader(default_revision=_REVISION).build_store(entries, revision=_REVISION)
    snapshot = ConfigLoader().defaults().snapshot()
    return OwnerSetResolver(store, OwnerIdentityResolver(accounts), snapshot)


def bench_owner_resolution_throughput() -> dict[str, object]:
    """Benchmark OwnerSetResolver.resolve() throughput.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms, memory_peak_mb.
    """
    resolver = _build_resolver()

    latencies_ms: list[float] = []
    start = time.perf_counter()
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        resolver.resolve(_PATH, _REVISION)
        latencies_ms.append((time.perf_counter() - t0) * 1000)
    total = time.perf_counter() - start

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    result: dict[str, object] = {
        "operation": "owner_resolution_throughput",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
        "memory_peak_mb": 0.0,
    }
    print(
        f"[bench_owner_resolution] {result['operation']}: "
        f"{result['ops_per_second']:,.0f} ops/sec  "
        f"p99={result['p99_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_owner_resolution_throughput()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "owner_resolution_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
