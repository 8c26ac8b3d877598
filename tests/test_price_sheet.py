"""
Price sheet tests: CSV rows applied onto the catalog with pandas.
"""
import json
import os
import sys
from decimal import Decimal

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from menu_pricing.catalog.ingest import parse_catalog
from menu_pricing.config.settings import Settings
from menu_pricing.data.build_catalog import build_catalog
from menu_pricing.data.price_sheet import SHEET_COLUMNS, apply_price_sheet, export_price_sheet, read_price_sheet
from menu_pricing.engine.models import Channel

CATALOG = [{
    "code": "LATTE",
    "variants": [
        {"code": "REG", "prices": [{"kind": "base", "value": {"amount": 10, "currency": "TRY"}}]},
        {"code": "LARGE", "prices": [{"kind": "base", "value": {"amount": 14, "currency": "TRY"}}]},
    ],
    "modifierGroups": [
        {"code": "EXTRA", "options": [
            {"code": "SHOT", "prices": [{"kind": "base", "value": {"amount": 2, "currency": "TRY"}}]},
        ]},
    ],
}]

SHEET = """item_code,variant_code,group_code,option_code,kind,amount,currency,tax_included,min_qty,channels,outlet,active_from,active_to,list_ref,note
LATTE,REG,,,base,11,TRY,true,,,,,,,
LATTE,REG,,,base,9.5,TRY,true,,delivery|pickup,branch1,2024-01-01,2024-12-31,PL-7,promo
LATTE,,EXTRA,SHOT,base,2.5,,false,3,,,,,,
LATTE,,EXTRA,SHOT,base,-1,TRY,,,,,,,,
PIZZA,MARG,,,base,20,TRY,,,,,,,,
LATTE,HUGE,,,base,20,TRY,,,,,,,,
"""


@pytest.fixture
def items():
    items, report = parse_catalog(CATALOG)
    assert report.valid
    return items


@pytest.fixture
def sheet_path(tmp_path):
    path = tmp_path / "price_sheet.csv"
    path.write_text(SHEET, encoding="utf-8")
    return path


def test_read_price_sheet_normalizes_columns(sheet_path):
    df = read_price_sheet(sheet_path)
    assert list(df.columns) == SHEET_COLUMNS
    assert len(df) == 6
    assert df.iloc[0]['variant_code'] == 'REG'
    assert df.iloc[2]['currency'] == ''


def test_missing_required_column(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("item_code,kind\nLATTE,base\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_price_sheet(path)


def test_apply_replaces_prices_of_referenced_entities(items, sheet_path):
    report = apply_price_sheet(items, read_price_sheet(sheet_path), default_currency="TRY")

    reg = items["LATTE"].get_variant("REG")
    assert [r.value.amount for r in reg.prices] == [Decimal(11), Decimal("9.5")]
    promo = reg.prices[1]
    assert promo.outlet == "branch1"
    assert promo.channels == frozenset({Channel.DELIVERY, Channel.PICKUP})
    assert promo.list_ref == "PL-7"

    shot = items["LATTE"].get_group("EXTRA").get_option("SHOT")
    assert len(shot.prices) == 1
    assert shot.prices[0].value.currency == "TRY"
    assert shot.prices[0].value.tax_included is False
    assert shot.prices[0].min_qty == Decimal(3)

    # Untouched entity keeps its catalog prices
    assert items["LATTE"].get_variant("LARGE").prices[0].value.amount == Decimal(14)

    assert report.rules_loaded == 3
    assert report.rules_dropped == 1
    assert len(report.errors) == 2, report.errors


def test_export_flattens_every_rule(items):
    df = export_price_sheet(items)
    assert list(df.columns) == SHEET_COLUMNS
    assert len(df) == 3
    shot = df[df['option_code'] == 'SHOT'].iloc[0]
    assert shot['group_code'] == 'EXTRA'
    assert shot['amount'] == '2'


def test_export_then_apply_keeps_prices(items, tmp_path):
    path = tmp_path / "sheet.csv"
    export_price_sheet(items).to_csv(path, index=False)
    fresh, _ = parse_catalog(CATALOG)
    for variant in fresh["LATTE"].variants:
        variant.prices = []
    report = apply_price_sheet(fresh, read_price_sheet(path))
    assert report.valid
    assert fresh["LATTE"].get_variant("LARGE").prices[0].value.amount == Decimal(14)


def test_build_catalog_writes_output_and_report(tmp_path, sheet_path):
    catalog = tmp_path / "catalog.json"
    catalog.write_text(json.dumps({"items": CATALOG}), encoding="utf-8")
    settings = Settings(
        project_root=tmp_path,
        catalog_json=catalog,
        price_sheet_csv=sheet_path,
        compiled_catalog=tmp_path / "outputs" / "compiled_catalog.json",
        build_report=tmp_path / "outputs" / "build_report.json",
    )

    report = build_catalog(settings, verbose=False)

    assert report["status"] == "success", report["errors"]
    assert settings.compiled_catalog.exists()
    assert settings.build_report.exists()
    assert report["metrics"]["item_count"] == 1
    assert report["metrics"]["sheet_rules_applied"] == 3
    assert report["input_files"]["price_sheet"]["hash"]

    compiled = json.loads(settings.compiled_catalog.read_text(encoding="utf-8"))
    reg = compiled["items"][0]["variants"][0]
    assert [p["value"]["amount"] for p in reg["prices"]] == ["11", "9.5"]


def test_build_catalog_without_input(tmp_path):
    settings = Settings(
        project_root=tmp_path,
        catalog_json=tmp_path / "missing.json",
        price_sheet_csv=tmp_path / "missing.csv",
        compiled_catalog=tmp_path / "out.json",
        build_report=tmp_path / "report.json",
    )
    report = build_catalog(settings, verbose=False)
    assert report["status"] == "failed"
    assert not settings.compiled_catalog.exists()
