"""
Catalog ingestion tests: validated construction at the boundary.
"""
import json
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from menu_pricing.catalog.ingest import (
    IngestReport,
    compile_catalog,
    load_catalog,
    parse_catalog,
    parse_item,
    parse_price_rule,
)
from menu_pricing.engine.models import Channel, PriceKind


def item_record(**overrides) -> dict:
    record = {
        "code": "LATTE",
        "name": {"tr": "Latte"},
        "variants": [
            {"code": "REG", "isDefault": True, "volumeMl": 350, "prices": [
                {"kind": "base", "value": {"amount": 10, "currency": "TRY", "taxIncluded": True}},
            ]},
        ],
        "modifierGroups": [
            {"code": "MILK", "maxSelect": 1, "options": [
                {"code": "OAT", "prices": [{"kind": "base", "value": {"amount": 1.5, "currency": "TRY"}}]},
            ]},
        ],
    }
    record.update(overrides)
    return record


def test_parse_full_rule():
    rule = parse_price_rule({
        "kind": "base",
        "value": {"amount": "8.50", "currency": "eur", "taxIncluded": False},
        "listRef": "PL-1",
        "activeFrom": "2024-01-01",
        "activeTo": "2024-01-31",
        "minQty": 5,
        "channels": ["delivery", "pickup"],
        "outlet": "branch1",
        "note": "winter",
    })
    assert rule.kind is PriceKind.BASE
    assert rule.value.amount == Decimal("8.50")
    assert rule.value.currency == "EUR"
    assert rule.value.tax_included is False
    assert rule.channels == frozenset({Channel.DELIVERY, Channel.PICKUP})
    assert rule.active_from == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert rule.active_to.date().isoformat() == "2024-01-31"
    assert rule.active_to.hour == 23, "date-only end bound covers the whole day"
    assert rule.min_qty == Decimal(5)


def test_missing_currency_uses_default():
    rule = parse_price_rule({"kind": "base", "value": {"amount": 3}}, default_currency="USD")
    assert rule.value.currency == "USD"
    assert rule.value.tax_included is True


def test_blank_optional_fields_are_absent():
    rule = parse_price_rule({"kind": "base", "value": {"amount": 3}, "outlet": " ", "channels": []})
    assert rule.outlet is None
    assert rule.channels is None


@pytest.mark.parametrize("record", [
    {"kind": "base", "value": {"amount": -1}},
    {"kind": "base", "value": {"currency": "TRY"}},
    {"kind": "base", "value": {"amount": 1, "currency": "GBP"}},
    {"kind": "promo", "value": {"amount": 1}},
    {"kind": "base", "value": {"amount": 1}, "activeFrom": "2024-02-01", "activeTo": "2024-01-01"},
    {"kind": "base", "value": {"amount": 1}, "channels": ["drone"]},
    {"kind": "base", "value": {"amount": 1}, "minQty": -2},
], ids=["negative", "no-amount", "currency", "kind", "inverted-window", "channel", "min-qty"])
def test_malformed_rules_are_rejected(record):
    with pytest.raises(ValidationError):
        parse_price_rule(record)


def test_bad_rule_is_dropped_but_item_survives():
    record = item_record()
    record["variants"][0]["prices"].append({"kind": "base", "value": {"amount": -5}})
    report = IngestReport()
    item = parse_item(record, report)
    assert len(item.variants[0].prices) == 1
    assert report.rules_dropped == 1
    assert report.rules_loaded == 2
    assert "LATTE.REG.prices[1]" in report.warnings[0]


def test_item_fields_are_mapped():
    item = parse_item(item_record())
    assert item.name == "Latte"
    assert item.variants[0].is_default is True
    assert item.variants[0].volume_ml == 350
    assert item.modifier_groups[0].max_select == 1
    assert item.modifier_groups[0].options[0].prices[0].value.amount == Decimal("1.5")


def test_duplicate_variant_codes_fail_the_item():
    record = item_record(variants=[{"code": "REG"}, {"code": "REG"}])
    with pytest.raises(ValidationError):
        parse_item(record)


def test_parse_catalog_collects_item_errors():
    records = [item_record(), item_record(code=""), item_record()]
    items, report = parse_catalog(records)
    assert list(items) == ["LATTE"]
    assert report.items_loaded == 1
    assert len(report.errors) == 2
    assert not report.valid


def test_load_and_compile_roundtrip(tmp_path):
    src = tmp_path / "catalog.json"
    src.write_text(json.dumps({"items": [item_record()]}), encoding="utf-8")
    out = tmp_path / "outputs" / "compiled.json"

    success, report = compile_catalog(src, out, verbose=False)
    assert success, report.errors
    assert out.exists()

    items, again = load_catalog(out)
    assert again.valid
    rule = items["LATTE"].variants[0].prices[0]
    assert rule.value.amount == Decimal(10)
    assert rule.value.currency == "TRY"


def test_compile_refuses_invalid_catalog(tmp_path):
    src = tmp_path / "catalog.json"
    src.write_text(json.dumps([item_record(code="")]), encoding="utf-8")
    out = tmp_path / "compiled.json"
    success, report = compile_catalog(src, out, verbose=False)
    assert not success
    assert not out.exists()


def test_missing_catalog_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "nope.json")


@pytest.mark.parametrize("stamp", [1704067200, 1704067200.5, True, ["2024-01-01"]],
                         ids=["epoch-int", "epoch-float", "bool", "list"])
def test_non_date_timestamp_is_rejected(stamp):
    with pytest.raises(ValidationError):
        parse_price_rule({"kind": "base", "value": {"amount": 5}, "activeFrom": stamp})


def test_numeric_window_drops_only_that_rule():
    record = item_record()
    record["variants"][0]["prices"].append(
        {"kind": "base", "value": {"amount": 5}, "activeFrom": 1704067200}
    )
    items, report = parse_catalog([record])
    assert report.valid, report.errors
    assert [r.value.amount for r in items["LATTE"].variants[0].prices] == [Decimal(10)]
    assert report.rules_dropped == 1
    assert any("LATTE.REG.prices[1]" in w for w in report.warnings)


@pytest.mark.parametrize("entry", ["oops", 7, None, ["base"]], ids=["str", "int", "null", "list"])
def test_non_object_rule_drops_only_that_rule(entry):
    record = item_record()
    record["modifierGroups"][0]["options"][0]["prices"].append(entry)
    items, report = parse_catalog([record])
    assert report.valid, report.errors
    oat = items["LATTE"].get_group("MILK").get_option("OAT")
    assert len(oat.prices) == 1
    assert report.rules_dropped == 1
    assert "LATTE.MILK.OAT.prices[1] dropped: expected an object" in report.warnings[0]
