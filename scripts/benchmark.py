#!/usr/bin/env python3
"""Benchmark search latency on a vault at several concurrency levels.

Usage:
    uv run python scripts/benchmark.py --vault /path/to/vault --concurrency 1 4 8 16
"""

import argparse
import asyncio
import sys
import time
from pathlib import Path

# Add the src directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def format_time(seconds: float) -> str:
    """Format time in human readable format."""
    if seconds < 1:
        return f"{seconds * 1000:.1f}ms"
    return f"{seconds:.2f}s"


async def benchmark_concurrency(vault_path: Path, concurrency: int, queries: list[str]) -> dict:
    """Benchmark one concurrency level: a cold pass, then a pass over the warm cache."""
    from vault_search.search.config import get_search_config
    from vault_search.search.searcher import Searcher
    from vault_search.search.vault import Vault

    vault = Vault(vault_path.name, vault_path)
    searcher = Searcher(vault, get_search_config(concurrency=concurrency))

    list_start = time.perf_counter()
    file_count = len(vault.files())
    list_time = time.perf_counter() - list_start

    cold_start = time.perf_counter()
    await searcher.search(queries[0])
    cold_time = time.perf_counter() - cold_start

    warm_times = []
    result_counts = []
    for query in queries:
        q_start = time.perf_counter()
        results = await searcher.search(query)
        warm_times.append(time.perf_counter() - q_start)
        result_counts.append(len(results))

    return {
        "concurrency": concurrency,
        "files": file_count,
        "cached": len(vault.cache),
        "list_time": list_time,
        "cold_time": cold_time,
        "warm_avg_ms": sum(warm_times) / len(warm_times) * 1000,
        "avg_results": sum(result_counts) / len(result_counts),
    }


def print_results_table(results: list[dict]):
    """Print benchmark results in a table format."""
    print("\n" + "=" * 70)
    print("BENCHMARK RESULTS")
    print("=" * 70)

    print(f"{'Workers':>7} {'Files':>7} {'Cached':>7} {'List':>9} {'Cold':>9} {'Warm':>9} {'Hits':>6}")
    print("-" * 70)

    for r in results:
        print(
            f"{r['concurrency']:>7} "
            f"{r['files']:>7} "
            f"{r['cached']:>7} "
            f"{format_time(r['list_time']):>9} "
            f"{format_time(r['cold_time']):>9} "
            f"{r['warm_avg_ms']:>7.1f}ms "
            f"{r['avg_results']:>6.0f}"
        )

    print("=" * 70)
    print("\nNotes:")
    print("  - List: Time to walk the vault tree")
    print("  - Cold: First query, content read from disk")
    print("  - Warm: Average query time with every file cached")
    print("  - Hits: Average number of results per query")


def main():
    parser = argparse.ArgumentParser(description="Benchmark vault search latency")
    parser.add_argument(
        "--vault",
        "-v",
        type=Path,
        required=True,
        help="Path to the vault",
    )
    parser.add_argument(
        "--concurrency",
        "-c",
        type=int,
        nargs="+",
        default=[1, 4, 8, 16],
        help="Worker counts to benchmark (default: 1 4 8 16)",
    )
    parser.add_argument(
        "--queries",
        "-q",
        type=str,
        nargs="+",
        default=["meeting notes", "todo", "project roadmap", "bug", "api integration"],
        help="Queries to run",
    )
    args = parser.parse_args()

    if not args.vault.is_dir():
        print(f"Error: Vault path does not exist: {args.vault}")
        sys.exit(1)

    print(f"Benchmarking {len(args.concurrency)} concurrency levels on vault: {args.vault}")

    results = []
    for i, concurrency in enumerate(args.concurrency, 1):
        print(f"[{i}/{len(args.concurrency)}] {concurrency} workers")
        results.append(asyncio.run(benchmark_concurrency(args.vault, concurrency, args.queries)))

    print_results_table(results)


if __name__ == "__main__":
    main()
