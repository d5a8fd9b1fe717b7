#!/usr/bin/env python3
"""Test runner script for DraftGate.

Runs the suite under pytest with coverage of the ``draftGate`` package. The tests
use fakes for the UI Automation tree, the hooks and Tk, so they run anywhere.
"""
from __future__ import annotations

import sys
import subprocess
from pathlib import Path

DEFAULT_ARGS = [
    "-v",
    "--cov=draftGate",
    "--cov-report=term-missing",
]


def run_tests(args: list[str] | None = None) -> int:
    """Run pytest from the project root and return its exit code."""
    project_root = Path(__file__).parent
    cmd = [sys.executable, "-m", "pytest", *(args or DEFAULT_ARGS)]

    print(f"Running: {' '.join(cmd)}")
    print("-" * 60)
    return subprocess.run(cmd, cwd=project_root).returncode


def main() -> int:
    args = sys.argv[1:] or None

    if args and args[0] in ["-h", "--help"]:
        print("Usage: python run_tests.py [pytest arguments]")
        print()
        print("Examples:")
        print("  python run_tests.py                          # All tests with coverage")
        print("  python run_tests.py tests/test_interceptor.py")
        print("  python run_tests.py -k diff                  # Tests matching 'diff'")
        print("  python run_tests.py --cov=draftGate --cov-report=html")
        return 0

    exit_code = run_tests(args)
    print("=" * 60)
    print("All tests passed" if exit_code == 0 else "Some tests failed (re-run with -vv or --pdb)")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
