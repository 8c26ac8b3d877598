"""
Catalog Builder - Merges catalog JSON with the price sheet.

Produces the compiled catalog the pricing engine loads, plus a build report
with input hashes, coverage metrics, warnings and errors.
"""
import json
import hashlib
from datetime import datetime
from typing import Optional
from pathlib import Path

from pydantic import ValidationError

from ..config.settings import get_settings, Settings
from ..catalog.ingest import load_catalog, write_catalog
from ..engine.min_price import find_min_base_price
from .price_sheet import apply_price_sheet, read_price_sheet


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def build_catalog(settings: Optional[Settings] = None, verbose: bool = True) -> dict:
    """
    Build the compiled catalog from catalog JSON and the optional price sheet.

    Args:
        settings: Optional settings override
        verbose: Print progress messages

    Returns:
        Build report dictionary
    """
    settings = settings or get_settings()

    report = {
        "timestamp": datetime.now().isoformat(),
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    catalog_file = settings.catalog_json

    if not catalog_file.exists():
        msg = f"CRITICAL ERROR: {catalog_file} not found."
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    report["input_files"]["catalog"] = {
        "path": str(catalog_file),
        "hash": get_file_hash(catalog_file)
    }

    try:
        items, ingest = load_catalog(catalog_file, settings.default_currency)
    except (ValueError, ValidationError) as e:
        msg = f"ERROR: Failed to process {catalog_file}. {e}"
        report["errors"].append(msg)
        report["status"] = "failed"
        if verbose:
            print(msg)
        return report

    report["errors"].extend(ingest.errors)
    report["warnings"].extend(ingest.warnings)

    # Price sheet overrides (optional)
    sheet_file = settings.price_sheet_csv
    if sheet_file.exists():
        report["input_files"]["price_sheet"] = {
            "path": str(sheet_file),
            "hash": get_file_hash(sheet_file)
        }
        try:
            df_sheet = read_price_sheet(sheet_file)
            sheet = apply_price_sheet(items, df_sheet, settings.default_currency)
            report["metrics"]["sheet_rows"] = len(df_sheet)
            report["metrics"]["sheet_rules_applied"] = sheet.rules_loaded
            report["warnings"].extend(sheet.warnings)
            report["warnings"].extend(sheet.errors)
            if verbose:
                print(f"SUCCESS: Applied {sheet.rules_loaded} price sheet rules from {sheet_file.name}")
        except ValueError as e:
            msg = f"ERROR: Processing {sheet_file} failed. {e}"
            report["warnings"].append(msg)
            if verbose:
                print(msg)
    elif verbose:
        print(f"{sheet_file.name} not found - using catalog prices only")

    # Coverage: items that can show a "starting from" price
    unpriced = [code for code, item in items.items() if find_min_base_price(item) is None]
    report["metrics"]["item_count"] = len(items)
    report["metrics"]["rules_dropped"] = ingest.rules_dropped
    report["metrics"]["unpriced_items"] = len(unpriced)
    if unpriced:
        report["warnings"].append(f"{len(unpriced)} items have no base price: {', '.join(unpriced)}")

    if report["errors"]:
        report["status"] = "failed"
        if verbose:
            for err in report["errors"]:
                print(f"ERROR: {err}")
    else:
        output_path = settings.compiled_catalog
        write_catalog(items, output_path, source=catalog_file)
        report["output_file"] = str(output_path)
        report["status"] = "success"
        if verbose:
            print(f"\nPROCESS COMPLETE: {output_path} generated with {len(items)} items.")

    # Save build report
    report_path = settings.build_report
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2)

    if verbose:
        print(f"Build report saved to: {report_path}")

    return report


if __name__ == "__main__":
    build_catalog()
