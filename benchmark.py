#!/usr/bin/env python
"""
Streaming Parser Benchmark Suite

Measures how fast the streaming parser turns fragmented model output into
events, across input categories and fragment sizes, with detailed latency
statistics.

Usage:
    python benchmark.py
    python benchmark.py --iterations 1000
    python benchmark.py --category --verbose
    python benchmark.py --chunk-size 1 --chunk-size 16
"""

import argparse
import itertools
import statistics
import sys
import time
from typing import NamedTuple

sys.path.insert(0, 'src')

from xml_tool_stream.parsers import ParserOptions, XmlToolStreamParser


TOOLS = ["get_weather", "search", "send_email", "create_file"]


class BenchmarkResult(NamedTuple):
    """Results from a benchmark run."""
    name: str
    chunk_size: int
    iterations: int
    total_time_ms: float
    avg_time_ms: float
    min_time_ms: float
    max_time_ms: float
    median_time_ms: float
    p95_time_ms: float
    p99_time_ms: float
    chars_per_second: float
    events_per_stream: float


PLAIN_TEXT = [
    "I can help with that. Let me know what else you need.",
    "Comparisons like a < b and x > y are not tags, nor is <b>bold</b>.",
    "Line one\nLine two\nLine three with unicode: café 日本語",
]

SINGLE_CALLS = [
    "<get_weather><location>NY</location></get_weather>",
    "<search><query>python tutorials</query></search>",
    "<send_email><to>test@example.com</to><subject>Test</subject><body>Hi</body></send_email>",
    "<create_file><path>/tmp/test.txt</path><content>Hello</content></create_file>",
]

EMBEDDED_IN_TEXT = [
    "Let me check.\n<get_weather><location>Paris</location><unit>celsius</unit></get_weather>\nDone.",
    "Searching now: <search><query>streaming parsers</query></search> one moment.",
]

MULTIPLE_CALLS = [
    "<get_weather><location>NY</location></get_weather> and "
    "<get_weather><location>SF</location></get_weather> and "
    "<search><query>flights NY to SF</query></search>",
]

MALFORMED_CALLS = [
    "<get_weather><invalid>malformed xml</get_weather>",
    "<search>just some text</search>",
]

UNTERMINATED_CALLS = [
    "<get_weather><location>NY</location>",
    "Before <search><query>never closed",
]

LARGE_CALLS = [
    "<create_file><path>/tmp/big.txt</path><content>" + "x" * 5000 + "</content></create_file>",
    "Narrative " * 500 + "<search><query>end</query></search>",
]


def generate_test_data(count: int = 100) -> list[str]:
    """Generate a mixed set of test data."""
    all_data = (
        PLAIN_TEXT * 3 +
        SINGLE_CALLS * 5 +
        EMBEDDED_IN_TEXT * 3 +
        MULTIPLE_CALLS * 2 +
        MALFORMED_CALLS +
        UNTERMINATED_CALLS +
        LARGE_CALLS
    )
    return list(itertools.islice(itertools.cycle(all_data), count))


def stream_once(parser: XmlToolStreamParser, text: str, chunk_size: int) -> int:
    """Feed one text in fragments and return the number of events."""
    count = 0
    for i in range(0, len(text), chunk_size):
        count += len(parser.feed(text[i:i + chunk_size]))
    count += len(parser.finish())
    parser.drain_errors()
    return count


def run_benchmark(
    test_data: list[str],
    chunk_size: int,
    iterations: int = 100,
    name: str = "benchmark"
) -> BenchmarkResult:
    """Run a benchmark on a fresh streaming parser."""
    parser = XmlToolStreamParser(TOOLS, ParserOptions(on_error=lambda message, context: None))
    times: list[float] = []
    total_events = 0
    total_chars = 0

    for _ in range(iterations):
        for text in test_data:
            start = time.perf_counter()
            total_events += stream_once(parser, text, chunk_size)
            elapsed_ms = (time.perf_counter() - start) * 1000

            times.append(elapsed_ms)
            total_chars += len(text)

    times_sorted = sorted(times)
    total_time = sum(times)

    p95_idx = int(len(times_sorted) * 0.95)
    p99_idx = int(len(times_sorted) * 0.99)

    return BenchmarkResult(
        name=name,
        chunk_size=chunk_size,
        iterations=iterations,
        total_time_ms=total_time,
        avg_time_ms=statistics.mean(times),
        min_time_ms=min(times),
        max_time_ms=max(times),
        median_time_ms=statistics.median(times),
        p95_time_ms=times_sorted[p95_idx] if p95_idx < len(times_sorted) else times_sorted[-1],
        p99_time_ms=times_sorted[p99_idx] if p99_idx < len(times_sorted) else times_sorted[-1],
        chars_per_second=(total_chars / total_time) * 1000 if total_time > 0 else 0,
        events_per_stream=total_events / len(times) if times else 0,
    )


def print_result(result: BenchmarkResult, verbose: bool = False) -> None:
    """Print benchmark results."""
    print(f"\n{'='*60}")
    print(f"Benchmark: {result.name} (chunk size {result.chunk_size})")
    print(f"{'='*60}")
    print(f"  Iterations:        {result.iterations}")
    print(f"  Total time:        {result.total_time_ms:.2f} ms")
    print(f"  Chars/second:      {result.chars_per_second:,.0f}")
    print(f"  Events/stream:     {result.events_per_stream:.1f}")
    if verbose:
        print()
        print("  Latency Statistics:")
        print(f"    Average:         {result.avg_time_ms:.4f} ms")
        print(f"    Median (p50):    {result.median_time_ms:.4f} ms")
        print(f"    Min:             {result.min_time_ms:.4f} ms")
        print(f"    Max:             {result.max_time_ms:.4f} ms")
        print(f"    p95:             {result.p95_time_ms:.4f} ms")
        print(f"    p99:             {result.p99_time_ms:.4f} ms")


def run_category_benchmarks(
    chunk_size: int,
    iterations: int,
    verbose: bool
) -> list[BenchmarkResult]:
    """Run benchmarks for each category of test data."""
    results = []

    categories = [
        ("Plain Text", PLAIN_TEXT),
        ("Single Calls", SINGLE_CALLS),
        ("Embedded in Text", EMBEDDED_IN_TEXT),
        ("Multiple Calls", MULTIPLE_CALLS),
        ("Malformed Bodies", MALFORMED_CALLS),
        ("Unterminated Calls", UNTERMINATED_CALLS),
        ("Large Payloads", LARGE_CALLS),
    ]

    for name, data in categories:
        if verbose:
            print(f"  Running: {name}...")
        result = run_benchmark(data, chunk_size, iterations, name)
        results.append(result)

    return results


def print_summary(results: list[BenchmarkResult]) -> None:
    """Print a summary table of all benchmark results."""
    print(f"\n{'='*80}")
    print("SUMMARY")
    print(f"{'='*80}")
    print(f"{'Category':<25} {'Chunk':<7} {'Avg (ms)':<12} {'p95 (ms)':<12} {'Chars/s':<15}")
    print(f"{'-'*80}")

    for r in results:
        print(f"{r.name:<25} {r.chunk_size:<7} {r.avg_time_ms:<12.4f} {r.p95_time_ms:<12.4f} {r.chars_per_second:<15,.0f}")

    avg_throughput = statistics.mean(r.chars_per_second for r in results)
    avg_latency = statistics.mean(r.avg_time_ms for r in results)

    print(f"{'-'*80}")
    print(f"{'AVERAGE':<25} {'-':<7} {avg_latency:<12.4f} {'-':<12} {avg_throughput:<15,.0f}")


def main():
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Benchmark the streaming tool tag parser",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    arg_parser.add_argument(
        "--iterations", "-i",
        type=int,
        default=100,
        help="Number of iterations per test (default: 100)"
    )
    arg_parser.add_argument(
        "--chunk-size", "-s",
        type=int,
        action="append",
        dest="chunk_sizes",
        help="Fragment size in characters (repeatable, default: 1, 4, 32)"
    )
    arg_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed output"
    )
    arg_parser.add_argument(
        "--category", "-c",
        action="store_true",
        help="Run per-category benchmarks instead of mixed"
    )

    args = arg_parser.parse_args()
    chunk_sizes = args.chunk_sizes or [1, 4, 32]

    print("=" * 60)
    print("Streaming Parser Benchmark Suite")
    print("=" * 60)
    print(f"Iterations: {args.iterations}")
    print(f"Chunk sizes: {', '.join(str(s) for s in chunk_sizes)}")

    results: list[BenchmarkResult] = []
    if args.category:
        print("\nRunning category benchmarks...")
        for chunk_size in chunk_sizes:
            results.extend(run_category_benchmarks(chunk_size, args.iterations, args.verbose))
        if args.verbose:
            for result in results:
                print_result(result, args.verbose)
    else:
        print("\nGenerating test data...")
        test_data = generate_test_data(100)
        print(f"Test samples: {len(test_data)}")

        print("\nRunning benchmark...")
        for chunk_size in chunk_sizes:
            result = run_benchmark(test_data, chunk_size, args.iterations, "Mixed Workload")
            print_result(result, args.verbose)
            results.append(result)

    print_summary(results)
    print("\nBenchmark complete!")


if __name__ == "__main__":
    main()
