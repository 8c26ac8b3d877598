#!/usr/bin/env python
"""
Validate catalog JSON and write the normalized copy.

Usage:
    python scripts/compile_catalog.py [--export-sheet price_sheet.csv]
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from menu_pricing.catalog.ingest import compile_catalog, load_catalog
from menu_pricing.config.settings import get_settings
from menu_pricing.data.price_sheet import export_price_sheet


def main():
    settings = get_settings()

    print("Compiling catalog...")
    success, report = compile_catalog(
        settings.catalog_json,
        settings.compiled_catalog,
        settings.default_currency,
    )
    if not success:
        print(f"\n❌ Compilation failed with {len(report.errors)} errors")
        sys.exit(1)

    if '--export-sheet' in sys.argv:
        idx = sys.argv.index('--export-sheet')
        if idx + 1 >= len(sys.argv):
            print("--export-sheet needs a path")
            sys.exit(2)
        out = Path(sys.argv[idx + 1])
        items, _ = load_catalog(settings.compiled_catalog, settings.default_currency)
        export_price_sheet(items).to_csv(out, index=False)
        print(f"Exported price sheet: {out}")


if __name__ == "__main__":
    main()
