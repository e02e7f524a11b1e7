#!/usr/bin/env python3
"""
Performance benchmark for xmlpull against other streaming XML parsers.
Reads *.xml files from a directory, or generates a synthetic corpus when no
directory is given.
"""

# ruff: noqa: PLC0415, BLE001
from __future__ import annotations

import argparse
import io
import multiprocessing
import os
import pathlib
import random
import sys
import threading
import time

# optional dependency for RSS sampling
try:
    import psutil

    _PSUTIL_AVAILABLE = True
except Exception:
    psutil = None
    _PSUTIL_AVAILABLE = False


class MemoryMonitor:
    def __init__(self, pid: int | None = None, sample_interval: float = 0.01):
        """
        pid: process ID to monitor (default: current process).
        sample_interval: seconds between samples (default 10ms).
        """
        self.sample_interval = sample_interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        target_pid = pid if pid is not None else os.getpid()
        self._proc = psutil.Process(target_pid) if _PSUTIL_AVAILABLE else None
        self.start_rss = None
        self.end_rss = None
        self.peak_rss = None
        self.last_rss = None
        self.samples = 0

    def _get_rss(self) -> int | None:
        if not self._proc:
            return None
        try:
            return self._proc.memory_info().rss
        except psutil.Error:
            return None

    def start(self):
        if not _PSUTIL_AVAILABLE:
            return
        self.start_rss = self._get_rss()
        self.peak_rss = self.start_rss
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self):
        while not self._stop.is_set():
            rss = self._get_rss()
            if rss is not None:
                self.last_rss = rss
                if self.peak_rss is None or rss > self.peak_rss:
                    self.peak_rss = rss
                self.samples += 1
            self._stop.wait(self.sample_interval)

    def stop(self):
        if not _PSUTIL_AVAILABLE:
            return
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=1.0)

        # The child may already be gone, fall back to the last sample
        current = self._get_rss()
        self.end_rss = current if current else self.last_rss

    def to_dict(self) -> dict:
        if not _PSUTIL_AVAILABLE:
            return {"memory_note": "psutil not installed; memory metrics skipped"}

        def mb(x):
            return (x or 0) / (1024 * 1024)

        delta = 0.0
        if self.end_rss is not None and self.start_rss is not None:
            delta = mb(self.end_rss) - mb(self.start_rss)
        return {
            "rss_start_mb": mb(self.start_rss),
            "rss_end_mb": mb(self.end_rss),
            "rss_delta_mb": delta,
            "rss_peak_mb": mb(self.peak_rss),
            "mem_samples": self.samples,
        }


WORDS = ["lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing", "elit", "sed", "do"]


def generate_document(rng: random.Random, records: int) -> str:
    """Build a catalog-like document with attributes, references, comments and CDATA."""
    parts = ["<?xml version='1.0' encoding='UTF-8'?>\n<catalog>\n"]
    for i in range(records):
        words = " ".join(rng.choices(WORDS, k=rng.randint(3, 20)))
        parts.append(f'  <record id="r{i}" kind=\'{rng.choice(WORDS)}\' score="{rng.random():.4f}">\n')
        parts.append(f"    <title>{words.title()} &amp; more</title>\n")
        if i % 3 == 0:
            parts.append(f"    <!-- record {i} -->\n")
        if i % 5 == 0:
            parts.append(f"    <raw><![CDATA[<{words}> & friends]]></raw>\n")
        parts.append(f"    <body>{words} &lt;{i}&gt; &#x263A;</body>\n")
        parts.append("    <empty/>\n  </record>\n")
    parts.append("</catalog>\n")
    return "".join(parts)


def load_xml_files(directory: pathlib.Path | None, limit: int | None, records: int) -> list[tuple[str, bytes]]:
    """Return a list of (filename, xml_bytes) tuples."""
    if directory is None:
        rng = random.Random(1234)
        count = limit or 50
        return [(f"generated-{i:03d}.xml", generate_document(rng, records).encode("utf-8")) for i in range(count)]
    if not directory.is_dir():
        print(f"ERROR: Directory not found at {directory}")
        sys.exit(1)
    files = sorted(directory.glob("*.xml"))
    if limit:
        files = files[:limit]
    return [(path.name, path.read_bytes()) for path in files]


def _time_parse(parse, xml_files: list, iterations: int) -> dict:
    all_times = []
    errors = 0
    error_files = []
    if xml_files:
        try:
            parse(xml_files[0][1])
        except Exception:
            pass
    for _ in range(iterations):
        for filename, xml in xml_files:
            try:
                start = time.perf_counter()
                parse(xml)
                all_times.append(time.perf_counter() - start)
            except Exception as e:
                errors += 1
                error_files.append((filename, str(e)))
    return {
        "total_time": sum(all_times),
        "mean_time": sum(all_times) / len(all_times) if all_times else 0,
        "min_time": min(all_times) if all_times else 0,
        "max_time": max(all_times) if all_times else 0,
        "errors": errors,
        "success_count": len(all_times),
        "error_files": error_files,
    }


def benchmark_xmlpull(xml_files: list, iterations: int = 1) -> dict:
    """Benchmark the xmlpull entity iterator."""
    try:
        from xmlpull import EntityIterator
    except ImportError:
        return {"error": "xmlpull not importable"}

    def parse(data):
        iterator = EntityIterator(data)
        while iterator.advance():
            pass

    return _time_parse(parse, xml_files, iterations)


def benchmark_expat(xml_files: list, iterations: int = 1) -> dict:
    """Benchmark xml.sax on top of expat."""
    import xml.sax

    handler = xml.sax.ContentHandler()

    def parse(data):
        xml.sax.parseString(data, handler)

    return _time_parse(parse, xml_files, iterations)


def benchmark_etree(xml_files: list, iterations: int = 1) -> dict:
    """Benchmark xml.etree.ElementTree.iterparse."""
    import xml.etree.ElementTree as ET

    def parse(data):
        for _event, elem in ET.iterparse(io.BytesIO(data), events=("start", "end", "comment")):
            pass

    return _time_parse(parse, xml_files, iterations)


def benchmark_lxml(xml_files: list, iterations: int = 1) -> dict:
    """Benchmark lxml.etree.iterparse."""
    try:
        from lxml import etree
    except ImportError:
        return {"error": "lxml not installed (pip install lxml)"}

    def parse(data):
        for _event, elem in etree.iterparse(io.BytesIO(data), events=("start", "end", "comment")):
            pass

    return _time_parse(parse, xml_files, iterations)


def _benchmark_worker(bench_fn, xml_files, iterations, queue):
    """Worker function to run benchmark in a separate process."""
    try:
        res = bench_fn(xml_files, iterations)
        queue.put(res)
    except Exception as e:
        queue.put({"error": str(e)})


def run_benchmark_isolated(bench_fn, xml_files, iterations, args):
    """Run benchmark in a separate process to isolate memory usage."""
    if args.no_mem or not _PSUTIL_AVAILABLE:
        return bench_fn(xml_files, iterations)

    import gc

    gc.collect()

    queue = multiprocessing.Queue()
    p = multiprocessing.Process(target=_benchmark_worker, args=(bench_fn, xml_files, iterations, queue))
    p.start()

    mon = MemoryMonitor(pid=p.pid, sample_interval=max(0.0005, args.mem_sample_ms / 1000.0))
    mon.start()

    res = None
    try:
        res = queue.get()
    finally:
        mon.stop()
        p.join()

    if res and "error" not in res:
        res.update(mon.to_dict())
    return res


PARSERS = ["xmlpull", "expat", "etree", "lxml"]


def print_results(results: dict, file_count: int, iterations: int = 1):
    """Pretty print benchmark results."""
    print("\n" + "=" * 90)
    if iterations > 1:
        print(f"BENCHMARK RESULTS ({file_count} XML files x {iterations} iterations)")
    else:
        print(f"BENCHMARK RESULTS ({file_count} XML files)")
    print("=" * 90)

    header = f"\n{'Parser':<12} {'Total (s)':<10} {'Mean (ms)':<10} {'Peak (MB)':<10} {'Delta (MB)':<10} {'Errors':<8}"
    print(header)
    print("-" * 90)

    xmlpull_time = results.get("xmlpull", {}).get("total_time", 0)

    for parser in PARSERS:
        if parser not in results:
            continue
        result = results[parser]
        if "error" in result:
            print(f"{parser:<12} {result['error']}")
            continue

        total = result["total_time"]
        mean_ms = result["mean_time"] * 1000
        mem_str = (
            f"{result['rss_peak_mb']:>10.1f} {result['rss_delta_mb']:>10.1f}"
            if "rss_peak_mb" in result
            else f"{'n/a':>10} {'n/a':>10}"
        )

        speedup = ""
        if parser != "xmlpull" and xmlpull_time > 0 and total > 0:
            speedup = f" ({total / xmlpull_time:.2f}x)"

        print(f"{parser:<12} {total:<10.3f} {mean_ms:<10.3f} {mem_str} {result['errors']:<8}{speedup}")

    print("\n" + "=" * 90)

    for parser in PARSERS:
        error_files = results.get(parser, {}).get("error_files", [])
        if error_files:
            print(f"\nErrors for {parser}:")
            for filename, error_msg in error_files:
                print(f"  {filename}: {error_msg}")
            print()


def main():
    parser = argparse.ArgumentParser(description="Benchmark streaming XML parsers")
    parser.add_argument("--dir", type=pathlib.Path, help="Directory with *.xml files (default: generated corpus)")
    parser.add_argument("--limit", type=int, default=50, help="Limit number of files (default: 50, use 0 for all)")
    parser.add_argument("--records", type=int, default=200, help="Records per generated document (default: 200)")
    parser.add_argument("--iterations", type=int, default=5, help="Number of iterations (default: 5)")
    parser.add_argument(
        "--parsers",
        nargs="+",
        choices=PARSERS,
        default=PARSERS,
        help="Parsers to benchmark (default: all)",
    )
    parser.add_argument("--no-mem", action="store_true", help="Disable memory measurement (RSS sampling)")
    parser.add_argument(
        "--mem-sample-ms", type=float, default=10.0, help="Memory sampling interval in milliseconds (default: 10ms)",
    )

    args = parser.parse_args()

    limit = args.limit if args.limit > 0 else None
    xml_files = load_xml_files(args.dir, limit, args.records)
    if not xml_files:
        print("ERROR: No XML files loaded")
        sys.exit(1)
    print(f"Loaded {len(xml_files)} XML files")

    total_bytes = sum(len(xml) for _, xml in xml_files)
    print(f"Total XML size: {total_bytes / 1024 / 1024:.2f} MB")

    benchmarks = {
        "xmlpull": benchmark_xmlpull,
        "expat": benchmark_expat,
        "etree": benchmark_etree,
        "lxml": benchmark_lxml,
    }
    if not _PSUTIL_AVAILABLE and not args.no_mem:
        print("Note: psutil not installed; memory metrics will be skipped. Install with: pip install psutil")

    results = {}
    for parser_name in args.parsers:
        print(f"\nBenchmarking {parser_name}...", end="", flush=True)
        res = run_benchmark_isolated(benchmarks[parser_name], xml_files, args.iterations, args)
        results[parser_name] = res
        if "error" in res:
            print(f" SKIPPED ({res['error']})")
        else:
            print(
                f" DONE ({res['total_time']:.3f}s"
                + (f", peak RSS {res.get('rss_peak_mb', 0):.1f} MB" if "rss_peak_mb" in res else "")
                + ")",
            )

    print_results(results, len(xml_files), args.iterations)


if __name__ == "__main__":
    main()
