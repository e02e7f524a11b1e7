#!/usr/bin/env python3
"""Debug script to inspect the entity stream of a document."""

import argparse
import sys
from pathlib import Path

from xmlpull import EntityIterator, XMLSyntaxError, to_test_format


def debug_file(path, trace=False):
    if not path.exists():
        print(f"File not found: {path}")
        return 1

    source = path.read_bytes()
    print(f"=== {path} ({len(source)} bytes) ===")

    if trace:
        print("\nTrace:")
        try:
            iterator = EntityIterator(source, debug=True)
            while iterator.advance():
                pass
        except XMLSyntaxError as exc:
            print(f"\n!!! {exc.error} !!!")
            return 1

    try:
        output = to_test_format(source)
    except XMLSyntaxError as exc:
        print(f"\n!!! {exc.error} !!!")
        return 1

    print("\nEntities:")
    print(output)
    print("\n✓ PARSED")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print the entity stream of an XML file")
    parser.add_argument("file", type=Path, help="XML document to tokenize")
    parser.add_argument("--trace", action="store_true", help="Also print the iterator's debug trace")
    args = parser.parse_args()

    sys.exit(debug_file(args.file, trace=args.trace))
