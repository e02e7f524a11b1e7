"""
Build script for xmlpull with optional mypyc compilation.

Usage:
    # Pure Python build (default)
    python -m build

    # Compiled with mypyc
    XMLPULL_USE_MYPYC=1 pip install .
"""

import os
import sys
from pathlib import Path

from setuptools import find_packages, setup

# Determine if we should use mypyc
USE_MYPYC = os.environ.get("XMLPULL_USE_MYPYC", "0") == "1"

# Note: generator.py is excluded, it is not on the parsing hot path
MYPYC_MODULES = [
    "src/xmlpull/tokenizer.py",
    "src/xmlpull/entities.py",
    "src/xmlpull/tagstack.py",
]


def build_with_mypyc() -> list:
    """Build extension modules using mypyc."""
    try:
        from mypyc.build import mypycify
    except ImportError:
        print(
            "ERROR: mypyc is not installed. Install with: pip install mypy",
            file=sys.stderr,
        )
        print("Or install with mypyc support: pip install xmlpull[mypyc]", file=sys.stderr)
        sys.exit(1)

    # Verify all modules exist
    for module_path in MYPYC_MODULES:
        if not Path(module_path).exists():
            print(f"ERROR: Module not found: {module_path}", file=sys.stderr)
            sys.exit(1)

    print("=" * 70)
    print("Building xmlpull with mypyc compilation")
    print("=" * 70)
    print(f"Compiling {len(MYPYC_MODULES)} modules:")
    for module in MYPYC_MODULES:
        print(f"  - {module}")
    print("=" * 70)

    opt_level = os.environ.get("MYPYC_OPT_LEVEL", "3")
    debug_level = os.environ.get("MYPYC_DEBUG_LEVEL", "0")

    mypyc_options = {
        "opt_level": opt_level,
        "debug_level": debug_level,
        "verbose": True,
        "separate": False,
        "multi_file": False,
    }

    return mypycify(MYPYC_MODULES, **mypyc_options)


if __name__ == "__main__":
    ext_modules = []

    if USE_MYPYC:
        ext_modules = build_with_mypyc()
    else:
        print("Building xmlpull in pure Python mode (no mypyc compilation)")
        print("To enable mypyc: XMLPULL_USE_MYPYC=1 pip install .")

    setup(
        name="xmlpull",
        version="0.1.0",
        description="Pull-style XML tokenizer and bounded-buffer markup generator",
        package_dir={"": "src"},
        packages=find_packages("src"),
        python_requires=">=3.9",
        install_requires=[],
        extras_require={
            "mypyc": ["mypy"],
            "test": ["pytest"],
            "benchmark": ["lxml", "psutil"],
        },
        ext_modules=ext_modules,
    )
