"""
Price Sheet - Flat CSV of price rules, one row per rule.

Lets pricing staff maintain rules in a spreadsheet. Rows are validated with
the same schema as catalog JSON and applied onto the in-memory catalog:
every variant/option a sheet references gets its price list replaced by the
sheet's rows.
"""
import logging
from pathlib import Path
from typing import Optional

import pandas as pd
from pydantic import ValidationError

from ..catalog.ingest import IngestReport, parse_price_rule
from ..engine.models import MenuItem, PriceRule

logger = logging.getLogger(__name__)

SHEET_COLUMNS = [
    'item_code', 'variant_code', 'group_code', 'option_code',
    'kind', 'amount', 'currency', 'tax_included',
    'min_qty', 'channels', 'outlet', 'active_from', 'active_to',
    'list_ref', 'note',
]

REQUIRED_COLUMNS = ('item_code', 'kind', 'amount')


def read_price_sheet(path: Path) -> pd.DataFrame:
    """Read a price sheet CSV; every cell comes back as a stripped string or None."""
    if not path.exists():
        raise FileNotFoundError(f"Price sheet not found at {path}.")

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [c.strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Price sheet {path} is missing columns: {', '.join(missing)}")

    for col in SHEET_COLUMNS:
        if col not in df.columns:
            df[col] = ''
    for col in SHEET_COLUMNS:
        df[col] = df[col].astype(str).str.strip()

    return df[SHEET_COLUMNS]


def _row_to_record(row: pd.Series) -> dict:
    """Map a sheet row to the camelCase rule record the ingestion schema reads."""
    def cell(name: str) -> Optional[str]:
        value = row.get(name, '')
        return value if value else None

    record = {
        "kind": cell('kind'),
        "value": {
            "amount": cell('amount'),
            "currency": cell('currency'),
        },
        "listRef": cell('list_ref'),
        "activeFrom": cell('active_from'),
        "activeTo": cell('active_to'),
        "minQty": cell('min_qty'),
        "outlet": cell('outlet'),
        "note": cell('note'),
    }
    tax = cell('tax_included')
    if tax is not None:
        record["value"]["taxIncluded"] = tax.lower() in ('true', '1', 'yes', 'on')
    channels = cell('channels')
    if channels:
        record["channels"] = [c.strip() for c in channels.replace('|', ',').split(',') if c.strip()]
    return record


def apply_price_sheet(
    items: dict[str, MenuItem],
    df: pd.DataFrame,
    default_currency: str = 'TRY',
    report: Optional[IngestReport] = None,
) -> IngestReport:
    """
    Replace the price lists of every entity the sheet references.

    A row targets a variant (variant_code) or a modifier option
    (group_code + option_code). Rows pointing at unknown entities or failing
    validation are reported and skipped. Sheet row order is kept.
    """
    report = report if report is not None else IngestReport()
    collected: dict[tuple, list[PriceRule]] = {}
    targets = {}

    for idx, row in df.iterrows():
        line = idx + 2  # header is line 1
        item = items.get(row['item_code'])
        if item is None:
            report.errors.append(f"Line {line}: unknown item '{row['item_code']}'")
            continue

        if row['variant_code']:
            entity = item.get_variant(row['variant_code'])
            key = (item.code, 'variant', row['variant_code'])
        elif row['group_code'] and row['option_code']:
            group = item.get_group(row['group_code'])
            entity = group.get_option(row['option_code']) if group else None
            key = (item.code, 'option', row['group_code'], row['option_code'])
        else:
            report.errors.append(f"Line {line}: row needs variant_code or group_code + option_code")
            continue

        if entity is None:
            report.errors.append(f"Line {line}: no such entity {'/'.join(key)}")
            continue

        try:
            rule = parse_price_rule(_row_to_record(row), default_currency)
        except ValidationError as e:
            msg = f"Line {line} dropped: {e.error_count()} validation error(s)"
            logger.warning("%s: %s", msg, e)
            report.warnings.append(msg)
            report.rules_dropped += 1
            continue

        targets[key] = entity
        collected.setdefault(key, []).append(rule)

    for key, rules in collected.items():
        targets[key].prices = rules
        report.rules_loaded += len(rules)

    logger.info("Applied %d price rules to %d entities", report.rules_loaded, len(collected))
    return report


def export_price_sheet(items: dict[str, MenuItem]) -> pd.DataFrame:
    """Flatten every price rule of the catalog into a sheet DataFrame."""
    rows = []

    def add(item_code: str, rule: PriceRule, variant_code: str = '', group_code: str = '', option_code: str = ''):
        rows.append({
            'item_code': item_code,
            'variant_code': variant_code,
            'group_code': group_code,
            'option_code': option_code,
            'kind': rule.kind.value,
            'amount': str(rule.value.amount),
            'currency': rule.value.currency,
            'tax_included': 'true' if rule.value.tax_included else 'false',
            'min_qty': '' if rule.min_qty is None else str(rule.min_qty),
            'channels': '|'.join(sorted(c.value for c in rule.channels)) if rule.channels else '',
            'outlet': rule.outlet or '',
            'active_from': rule.active_from.isoformat() if rule.active_from else '',
            'active_to': rule.active_to.isoformat() if rule.active_to else '',
            'list_ref': rule.list_ref or '',
            'note': rule.note or '',
        })

    for item in items.values():
        for variant in item.variants:
            for rule in variant.prices:
                add(item.code, rule, variant_code=variant.code)
        for group in item.modifier_groups:
            for option in group.options:
                for rule in option.prices:
                    add(item.code, rule, group_code=group.code, option_code=option.code)

    return pd.DataFrame(rows, columns=SHEET_COLUMNS)
