#!/usr/bin/env python3
"""
Verification Benchmark Script
=============================

Benchmarks Groth16 verification and commitment tree appends.
Target: proof verification under 5 seconds.

Usage:
    python scripts/benchmark_verifier.py [--iterations N] [--stage NAME]

Proofs are forged with a seeded trapdoor key, so no circuit artifacts are
needed.
"""

import argparse
import asyncio
import hashlib
import json
import statistics
import sys
import time
from dataclasses import asdict, dataclass

from services.pool.services.merkle_tree import CommitmentTree
from shared.zk.field import ZERO_BYTES32, truncate_to_field
from shared.zk.prover import TrapdoorSetup
from shared.zk.verifier import Groth16Verifier


# Configuration
TARGET_TIME_MS = 5000
DEFAULT_ITERATIONS = 10
TREE_HEIGHT = 26


@dataclass
class BenchmarkResult:
    """Result of a benchmark run."""
    stage: str
    iterations: int
    min_ms: int
    max_ms: int
    mean_ms: float
    median_ms: float
    p95_ms: int
    success_rate: float
    pass_target: bool


def percentile(data: list[int], p: int) -> int:
    """Calculate percentile."""
    sorted_data = sorted(data)
    index = int(len(sorted_data) * p / 100)
    return sorted_data[min(index, len(sorted_data) - 1)]


def summarize(stage: str, iterations: int, times: list[int], successes: int) -> BenchmarkResult:
    if not times:
        return BenchmarkResult(stage, iterations, 0, 0, 0, 0, 0, 0, False)
    return BenchmarkResult(
        stage=stage,
        iterations=iterations,
        min_ms=min(times),
        max_ms=max(times),
        mean_ms=statistics.mean(times),
        median_ms=statistics.median(times),
        p95_ms=percentile(times, 95),
        success_rate=successes / iterations,
        pass_target=percentile(times, 95) < TARGET_TIME_MS,
    )


def _element(label: str) -> bytes:
    return truncate_to_field(hashlib.sha256(label.encode()).digest())


async def benchmark_verify(iterations: int) -> BenchmarkResult:
    """Benchmark compressed proof verification."""
    setup = TrapdoorSetup.generate(seed=1)
    verifier = Groth16Verifier(setup.verifying_key())
    mint = _element("mint")
    times: list[int] = []
    successes = 0

    print(f"\n{'='*60}")
    print("Benchmarking: groth16_verify")
    print(f"Iterations: {iterations}")
    print(f"{'='*60}")

    for i in range(iterations):
        proof = setup.prove(
            root=_element(f"root-{i}"),
            public_amount0=_element(f"amount-{i}"),
            public_amount1=ZERO_BYTES32,
            ext_data_hash=_element(f"ext-{i}"),
            input_nullifiers=[_element(f"n0-{i}"), _element(f"n1-{i}")],
            output_commitments=[_element(f"c0-{i}"), _element(f"c1-{i}")],
            mint_a=mint,
            mint_b=mint,
        )
        result = await verifier.verify_async(proof, mint, mint)
        times.append(result.verification_time_ms)
        successes += int(result.valid)

        status = "✓" if result.valid and result.verification_time_ms < TARGET_TIME_MS else "✗"
        print(f"  [{i+1}/{iterations}] {status} {result.verification_time_ms}ms")

    return summarize("groth16_verify", iterations, times, successes)


async def benchmark_append(iterations: int) -> BenchmarkResult:
    """Benchmark appending a pair of leaves to a full-height tree."""
    tree = CommitmentTree(height=TREE_HEIGHT)
    times: list[int] = []

    print(f"\n{'='*60}")
    print(f"Benchmarking: tree_append (height {TREE_HEIGHT})")
    print(f"Iterations: {iterations}")
    print(f"{'='*60}")

    for i in range(iterations):
        start = time.time()
        tree.append(_element(f"leaf-{i}-0"))
        tree.append(_element(f"leaf-{i}-1"))
        duration_ms = int((time.time() - start) * 1000)
        times.append(duration_ms)
        print(f"  [{i+1}/{iterations}] {duration_ms}ms (next_index={tree.next_index})")

    return summarize("tree_append", iterations, times, iterations)


def print_results(results: list[BenchmarkResult]) -> bool:
    """Print benchmark results summary."""
    print(f"\n{'='*70}")
    print("BENCHMARK SUMMARY")
    print(f"{'='*70}")

    print(f"\n{'Stage':<25} | {'P95':>8} | {'Mean':>8} | {'Target':>8} | Status")
    print("-" * 70)

    all_pass = True
    for r in results:
        status = "✅ PASS" if r.pass_target else "❌ FAIL"
        if not r.pass_target:
            all_pass = False
        print(f"{r.stage:<25} | {r.p95_ms:>6}ms | {r.mean_ms:>6.0f}ms | <{TARGET_TIME_MS}ms | {status}")

    print()
    return all_pass


async def main():
    parser = argparse.ArgumentParser(description="Benchmark proof verification")
    parser.add_argument("--iterations", "-n", type=int, default=DEFAULT_ITERATIONS,
                       help=f"Number of iterations (default: {DEFAULT_ITERATIONS})")
    parser.add_argument("--stage", "-s", type=str, choices=["verify", "append"],
                       help="Benchmark one stage only")
    parser.add_argument("--output", "-o", type=str, help="Output JSON file for results")

    args = parser.parse_args()

    results: list[BenchmarkResult] = []
    if args.stage is None or args.stage == "verify":
        results.append(await benchmark_verify(args.iterations))
    if args.stage is None or args.stage == "append":
        results.append(await benchmark_append(args.iterations))

    all_pass = print_results(results)

    if args.output:
        output_data = {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "target_ms": TARGET_TIME_MS,
            "results": [asdict(r) for r in results],
            "all_pass": all_pass,
        }
        with open(args.output, "w") as f:
            json.dump(output_data, f, indent=2)
        print(f"Results saved to: {args.output}")

    sys.exit(0 if all_pass else 1)


if __name__ == "__main__":
    asyncio.run(main())
