"""Benchmark: Handoff lifecycle latency — initiate + complete p50/p99.

Measures one initiate_handoff() followed by complete_handoff() against a
coordinator mirroring into an in-process shared store.
"""
from __future__ import annotations

import asyncio
import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from agent_handoff_coordinator.config import CoordinatorConfig
from agent_handoff_coordinator.coordinator import AgentCoordinator
from agent_handoff_coordinator.handoff.models import DeliverableRequirement
from agent_handoff_coordinator.storage.async_memory import AsyncInMemorySharedStore

_WARMUP: int = 200
_ITERATIONS: int = 5_000


async def _measure() -> list[float]:
    coordinator = AgentCoordinator.from_config(
        CoordinatorConfig(), shared=AsyncInMemorySharedStore()
    )
    await coordinator.initialize()
    requirements = [
        DeliverableRequirement(name="report", validator=lambda text: len(text) > 0),
        DeliverableRequirement(name="data"),
    ]
    received = {"report": "ok", "data": [1, 2, 3]}

    for _ in range(_WARMUP):
        handoff_id = await coordinator.initiate_handoff("a", "b", requirements)
        await coordinator.complete_handoff(handoff_id, received)

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        handoff_id = await coordinator.initiate_handoff("a", "b", requirements)
        await coordinator.complete_handoff(handoff_id, received)
        latencies_ms.append((time.perf_counter() - t0) * 1000)

    await coordinator.shutdown()
    return latencies_ms


def bench_handoff_latency() -> dict[str, object]:
    """Benchmark the initiate + complete round trip.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p50_latency_ms, p99_latency_ms.
    """
    latencies_ms = asyncio.run(_measure())
    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "handoff_lifecycle_latency",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p50_latency_ms": round(sorted_lats[n // 2], 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
    }
    print(
        f"[bench_handoff_latency] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_handoff_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "handoff_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
