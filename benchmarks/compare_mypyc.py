#!/usr/bin/env python3
"""
Benchmark comparison between pure Python and mypyc-compiled builds of the ESI masker.

This script measures:
- ESI masking (compiled in the mypyc build)
- ESI unmasking (compiled in the mypyc build)
- A full TagRewriter.process() call, where html5lib and lxml dominate
"""

import sys
import time
from pathlib import Path

SIMPLE_HTML = '<html><body><esi:include src="/x" /><p>Hello World</p></body></html>'

COMPLEX_HTML = """
<!DOCTYPE html>
<html>
<head>
    <title>Test Page</title>
    <esi:include src="/head?a=1&b=2" />
</head>
<body>
    <div class="container">
        <esi:try>
            <esi:attempt><esi:include src="/nav" /></esi:attempt>
            <esi:except><p>Navigation unavailable</p></esi:except>
        </esi:try>
        <h1>Main Heading</h1>
        <p>This is a test paragraph with <strong>bold</strong> and <em>italic</em> text.</p>
        <esi:choose>
            <esi:when test="$(HTTP_COOKIE{group})=='Advanced'"><p>Advanced</p></esi:when>
            <esi:otherwise><p>Basic</p></esi:otherwise>
        </esi:choose>
        <table>
            <tr><td>Cell 1</td><td><esi:vars>$(HTTP_HOST)</esi:vars></td></tr>
        </table>
    </div>
</body>
</html>
""" * 10  # Repeat to make it larger


def check_compiled_modules():
    """Check which modules are compiled with mypyc."""
    from tagrewriter import esi

    if getattr(esi, "__file__", "").endswith((".so", ".pyd")):
        return ["esi"]
    return []


def benchmark_mask(html, iterations=1000):
    """Benchmark ESI masking."""
    from tagrewriter.esi import preprocess

    start = time.perf_counter()
    for _ in range(iterations):
        _ = preprocess(html)
    end = time.perf_counter()

    return end - start


def benchmark_unmask(html, iterations=1000):
    """Benchmark ESI unmasking."""
    from tagrewriter.esi import postprocess, preprocess

    masked = preprocess(html)

    start = time.perf_counter()
    for _ in range(iterations):
        _ = postprocess(masked)
    end = time.perf_counter()

    return end - start


def benchmark_process(html, iterations=100):
    """Benchmark a full rewrite with no handlers."""
    from tagrewriter import TagRewriter

    rewriter = TagRewriter()

    start = time.perf_counter()
    for _ in range(iterations):
        _ = rewriter.process(html)
    end = time.perf_counter()

    return end - start


def run_benchmarks():
    """Run all benchmarks."""
    print("=" * 70)
    print("html5-tagrewriter mypyc Benchmark Comparison")
    print("=" * 70)

    compiled_modules = check_compiled_modules()
    if compiled_modules:
        print(f"\n✓ Compiled modules detected: {', '.join(compiled_modules)}")
    else:
        print("\n✗ No compiled modules detected (running pure Python)")

    from tagrewriter import esi

    print(f"\nModule location:\n  tagrewriter.esi: {getattr(esi, '__file__', '<?>')}")

    results = {}
    for number, (title, func, html, iterations) in enumerate(
        [
            ("Simple ESI Masking", benchmark_mask, SIMPLE_HTML, 100000),
            ("Complex ESI Masking", benchmark_mask, COMPLEX_HTML, 10000),
            ("Complex ESI Unmasking", benchmark_unmask, COMPLEX_HTML, 10000),
            ("Full Rewrite", benchmark_process, COMPLEX_HTML, 100),
        ],
        start=1,
    ):
        print("\n" + "-" * 70)
        print(f"Benchmark {number}: {title}")
        print("-" * 70)
        elapsed = func(html, iterations=iterations)
        print(f"Time: {elapsed:.4f}s for {iterations:,} iterations")
        print(f"Rate: {iterations / elapsed:.2f} operations/second")
        results[title] = elapsed

    print("\n" + "=" * 70)

    return results


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Compare performance of the pure Python vs mypyc-compiled ESI masker"
    )
    parser.add_argument(
        '--mode',
        choices=['pure', 'compiled'],
        default='compiled',
        help="Which version to benchmark (default: compiled)",
    )

    args = parser.parse_args()

    if args.mode == 'pure':
        print("\n" + "=" * 70)
        print("RUNNING PURE PYTHON BENCHMARKS")
        print("=" * 70)

        import tagrewriter
        package_path = Path(tagrewriter.__file__).parent
        so_files = list(package_path.glob("*.so"))

        if so_files:
            print(f"\nWarning: Found {len(so_files)} compiled modules.")
            print("To run pure Python benchmarks, first build without mypyc:")
            print("  1. Remove .so files: find src -name '*.so' -delete")
            print("  2. Reinstall: pip install -e .")
            print("\nAborting pure benchmarks to avoid mixed results.\n")
            sys.exit(1)

        run_benchmarks()

    elif args.mode == 'compiled':
        print("\n" + "=" * 70)
        print("RUNNING MYPYC-COMPILED BENCHMARKS")
        print("=" * 70)
        print("\nTo build with mypyc:")
        print("  TAGREWRITER_USE_MYPYC=1 pip install -e .[mypyc] --no-build-isolation")
        print()

        run_benchmarks()


if __name__ == "__main__":
    main()
