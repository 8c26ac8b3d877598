#!/usr/bin/env python
"""
Build pipeline - validates and compiles the catalog, then runs the tests.

Usage:
    python scripts/build_all.py
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from menu_pricing.data.build_catalog import build_catalog


def main():
    print("=" * 60)
    print("MENU PRICING BUILD PIPELINE")
    print("=" * 60)
    print()

    # Build catalog
    print("[1/2] Building compiled catalog...")
    report = build_catalog(verbose=True)

    if report["status"] != "success":
        print("\n❌ BUILD FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")

    print()
    print("[2/2] Running tests...")

    # Run tests
    import subprocess
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-q', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Items: {report['metrics']['item_count']}")
    print(f"  Rules dropped: {report['metrics']['rules_dropped']}")
    print(f"  Items without base price: {report['metrics']['unpriced_items']}")
    if "sheet_rules_applied" in report["metrics"]:
        print(f"  Price sheet rules applied: {report['metrics']['sheet_rules_applied']}")


if __name__ == "__main__":
    main()
