"""Benchmark: Approval check latency — per-evaluation p50/p99.

Evaluates a change touching many files across several directories, with
sticky approvals enabled and votes spread over two patch sets.
"""
from __future__ import annotations

import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from aumos_codeowners.scenario import Scenario, ScenarioLoader

_WARMUP: int = 20
_ITERATIONS: int = 300
_DIRECTORIES: int = 10
_FILES_PER_DIRECTORY: int = 5


def _build_scenario() -> Scenario:
    """Build a scenario with one owner per directory and half the owners voting."""
    base_tree = {f"/d{d}/f{f}.txt": "v1" for d in range(_DIRECTORIES) for f in range(_FILES_PER_DIRECTORY)}
    new_tree = {path: "v2" for path in base_tree}
    accounts = [{"id": 2000 + d, "emails": [f"owner{d}@example.com"]} for d in range(_DIRECTORIES)]
    accounts.append({"id": 1000, "emails": ["uploader@example.com"]})
    return ScenarioLoader().load_dict(
        {
            "project": "bench",
            "config": {"enable_sticky_approvals": True},
            "accounts": accounts,
            "declarations": [
                {"directory": f"/d{d}", "owners": [f"owner{d}@example.com"]} for d in range(_DIRECTORIES)
            ],
            "repository": {
                "commits": [
                    {"revision": "base", "tree": base_tree},
                    {"revision": "ps1", "parents": ["base"], "tree": new_tree},
                    {"revision": "ps2", "parents": ["base"], "tree": new_tree},
                ],
                "branches": {"main": "base"},
            },
            "change": {
                "id": "I-bench",
                "owner": 1000,
                "patch_sets": [
                    {"id": 1, "uploader": 1000, "revision": "ps1"},
                    {"id": 2, "uploader": 1000, "revision": "ps2"},
                ],
                "reviewers": {2000 + d: "reviewer" for d in range(_DIRECTORIES)},
                "votes": [
                    {"account": 2000 + d, "value": 1, "patch_set": 1 + d % 2}
                    for d in range(0, _DIRECTORIES, 2)
                ],
            },
        }
    )


def bench_approval_check_latency() -> dict[str, object]:
    """Benchmark CodeOwnerApprovalCheck.evaluate() per-call latency.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms, memory_peak_mb.
    """
    scenario = _build_scenario()
    check = scenario.approval_check()
    change = scenario.change
    assert change is not None

    for _ in range(_WARMUP):
        check.evaluate(change)

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        check.evaluate(change)
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "approval_check_latency",
        "iterations": _ITERATIONS,
        "files": _DIRECTORIES * _FILES_PER_DIRECTORY,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
        "memory_peak_mb": 0.0,
    }
    print(
        f"[bench_approval_check] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_approval_check_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "approval_check_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
