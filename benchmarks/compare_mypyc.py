#!/usr/bin/env python3
"""
Benchmark comparison between pure Python and mypyc-compiled versions of xmlpull.

This script measures performance differences for:
- Entity iteration
- Reference decoding (compiled in mypyc version)
- Markup generation (always pure Python)
"""

import sys
import time
from pathlib import Path

# Sample XML for testing
SIMPLE_XML = "<root><item id='1'>Hello World</item></root>"

COMPLEX_XML = "<?xml version='1.0' encoding='UTF-8'?><catalog>" + """
    <book id="bk101" available lang="en">
        <author>Gambardella, Matthew</author>
        <title>XML Developer's Guide</title>
        <price currency='EUR'>44.95</price>
        <!-- reviewed -->
        <description><![CDATA[An in-depth look at <xml> & friends]]></description>
        <cover/>
    </book>""" * 10 + "</catalog>"

XML_WITH_REFERENCES = "<doc>" + """
<p>&lt;&gt;&amp;&quot;&apos;</p>
<p>&#169;&#174;&#x2122;</p>
<p a='&#x2014;&#x2013;&#x2026;'>J&#xF6;rg</p>
""" * 100 + "</doc>"

COMPILED_MODULES = ["tokenizer", "entities", "tagstack"]


def check_compiled_modules():
    """Check which modules are compiled with mypyc."""
    import importlib

    compiled = []
    for name in COMPILED_MODULES:
        try:
            mod = importlib.import_module(f"xmlpull.{name}")
        except ImportError:
            continue
        # Compiled modules are extension files instead of .py
        if getattr(mod, "__file__", "").endswith((".so", ".pyd")):
            compiled.append(name)
    return compiled


def benchmark_iteration(xml, iterations=1000):
    """Benchmark pulling every entity."""
    from xmlpull import EntityIterator

    start = time.perf_counter()
    for _ in range(iterations):
        it = EntityIterator(xml)
        while it.advance():
            pass
    end = time.perf_counter()

    return end - start


def benchmark_generation(iterations=1000):
    """Benchmark writing a small catalog into a fixed buffer."""
    from xmlpull import Generator

    buffer = bytearray(64 * 1024)
    start = time.perf_counter()
    for _ in range(iterations):
        g = Generator(buffer)
        with g.root_tag("catalog") as root:
            for i in range(20):
                book = root.add_tag("book")
                book.add_parameter("id", f"bk{i}")
                book.add_tag("title").add_text("XML Developer's Guide & <more>")
            root.add_comment(" end ")
    end = time.perf_counter()

    return end - start


def run_benchmarks():
    """Run all benchmarks."""
    print("=" * 70)
    print("xmlpull mypyc Benchmark Comparison")
    print("=" * 70)

    def print_module_files():
        import importlib

        for name in COMPILED_MODULES + ["generator"]:
            try:
                mod = importlib.import_module(f"xmlpull.{name}")
                print(f"  xmlpull.{name}: {getattr(mod, '__file__', '<?>')}")
            except ImportError as exc:
                print(f"  xmlpull.{name}: <import failed: {exc}>")

    compiled_modules = check_compiled_modules()
    if compiled_modules:
        print(f"\n✓ Compiled modules detected: {', '.join(compiled_modules)}")
    else:
        print("\n✗ No compiled modules detected (running pure Python)")
    print("\nModule locations:")
    print_module_files()

    print("\n" + "-" * 70)
    print("Benchmark 1: Simple Document Iteration")
    print("-" * 70)
    time_simple = benchmark_iteration(SIMPLE_XML, iterations=10000)
    print(f"Time: {time_simple:.4f}s for 10,000 iterations")
    print(f"Rate: {10000 / time_simple:.2f} parses/second")

    print("\n" + "-" * 70)
    print("Benchmark 2: Complex Document Iteration")
    print("-" * 70)
    time_complex = benchmark_iteration(COMPLEX_XML, iterations=1000)
    print(f"Time: {time_complex:.4f}s for 1,000 iterations")
    print(f"Rate: {1000 / time_complex:.2f} parses/second")

    print("\n" + "-" * 70)
    print("Benchmark 3: Reference Decoding")
    print("-" * 70)
    time_references = benchmark_iteration(XML_WITH_REFERENCES, iterations=200)
    print(f"Time: {time_references:.4f}s for 200 iterations")
    print(f"Rate: {200 / time_references:.2f} parses/second")

    print("\n" + "-" * 70)
    print("Benchmark 4: Generation")
    print("-" * 70)
    time_generate = benchmark_generation(iterations=1000)
    print(f"Time: {time_generate:.4f}s for 1,000 iterations")
    print(f"Rate: {1000 / time_generate:.2f} documents/second")

    print("\n" + "=" * 70)

    return {
        "simple_parse": time_simple,
        "complex_parse": time_complex,
        "references": time_references,
        "generate": time_generate,
    }


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Compare performance of pure Python vs mypyc-compiled xmlpull",
    )
    parser.add_argument(
        "--mode",
        choices=["pure", "compiled"],
        default="compiled",
        help="Which version to benchmark (default: compiled)",
    )

    args = parser.parse_args()

    if args.mode == "pure":
        print("\n" + "=" * 70)
        print("RUNNING PURE PYTHON BENCHMARKS")
        print("=" * 70)

        import xmlpull

        so_files = list(Path(xmlpull.__file__).parent.glob("*.so"))
        if so_files:
            print(f"\nWarning: Found {len(so_files)} compiled modules.")
            print("To run pure Python benchmarks, first build without mypyc:")
            print("  1. Remove .so files: find src -name '*.so' -delete")
            print("  2. Reinstall: pip install -e .")
            print("\nAborting pure benchmarks to avoid mixed results.\n")
            sys.exit(1)

        run_benchmarks()

    elif args.mode == "compiled":
        print("\n" + "=" * 70)
        print("RUNNING MYPYC-COMPILED BENCHMARKS")
        print("=" * 70)
        print("\nTo build with mypyc:")
        print("  XMLPULL_USE_MYPYC=1 pip install -e .[mypyc] --no-build-isolation")
        print()

        run_benchmarks()


if __name__ == "__main__":
    main()
