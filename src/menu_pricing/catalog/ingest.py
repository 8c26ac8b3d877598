"""
Catalog Ingestion - Validates raw catalog records and builds engine models.

Reads catalog JSON (camelCase records as authored by the admin editors),
validates every price rule individually, and outputs the dataclasses the
pricing engine works on. An invalid rule is dropped and reported; it never
fails the item it belongs to.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..engine.models import (
    SUPPORTED_CURRENCIES,
    Channel,
    MenuItem,
    ModifierGroup,
    ModifierOption,
    Money,
    PriceKind,
    PriceRule,
    Variant,
    to_utc,
)

logger = logging.getLogger(__name__)


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class MoneySchema(_Record):
    """Money as stored in the catalog."""
    amount: Decimal = Field(..., ge=0)
    currency: Optional[str] = None
    tax_included: bool = Field(True, alias='taxIncluded')

    @field_validator('currency')
    @classmethod
    def _known_currency(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value.strip() == '':
            return None
        code = value.strip().upper()
        if code not in SUPPORTED_CURRENCIES:
            raise ValueError(f"currency must be one of {SUPPORTED_CURRENCIES}, got '{value}'")
        return code


class PriceRuleSchema(_Record):
    """A single price rule record."""
    kind: PriceKind
    value: MoneySchema
    list_ref: Optional[str] = Field(None, alias='listRef')
    active_from: Optional[datetime] = Field(None, alias='activeFrom')
    active_to: Optional[datetime] = Field(None, alias='activeTo')
    min_qty: Optional[Decimal] = Field(None, alias='minQty', ge=0)
    channels: Optional[list[Channel]] = None
    outlet: Optional[str] = None
    note: Optional[str] = None

    @field_validator('active_from', mode='before')
    @classmethod
    def _parse_from(cls, value: Any):
        return to_utc(value)

    @field_validator('active_to', mode='before')
    @classmethod
    def _parse_to(cls, value: Any):
        return to_utc(value, end_of_day=True)

    @field_validator('outlet', 'list_ref', 'note', mode='before')
    @classmethod
    def _blank_is_none(cls, value: Any):
        if isinstance(value, str) and value.strip() == '':
            return None
        return value

    @field_validator('channels')
    @classmethod
    def _channels_not_empty(cls, value: Optional[list[Channel]]):
        # An empty channel list is treated as "all channels"
        return value or None

    @model_validator(mode='after')
    def _window_order(self):
        if self.active_from and self.active_to and self.active_from > self.active_to:
            raise ValueError("activeFrom must not be after activeTo")
        return self

    def to_rule(self, default_currency: str) -> PriceRule:
        return PriceRule(
            kind=self.kind,
            value=Money(
                amount=self.value.amount,
                currency=self.value.currency or default_currency,
                tax_included=self.value.tax_included,
            ),
            list_ref=self.list_ref,
            active_from=self.active_from,
            active_to=self.active_to,
            min_qty=self.min_qty,
            channels=frozenset(self.channels) if self.channels else None,
            outlet=self.outlet,
            note=self.note,
        )


class VariantSchema(_Record):
    code: str = Field(..., min_length=1)
    name: Any = ""
    order: int = 0
    is_default: bool = Field(False, alias='isDefault')
    sku: Optional[str] = None
    barcode: Optional[str] = None
    size_label: Optional[str] = Field(None, alias='sizeLabel')
    volume_ml: Optional[int] = Field(None, alias='volumeMl', ge=0)
    net_weight_gr: Optional[int] = Field(None, alias='netWeightGr', ge=0)
    prices: list[Any] = Field(default_factory=list)


class ModifierOptionSchema(_Record):
    code: str = Field(..., min_length=1)
    name: Any = ""
    order: int = 0
    is_default: bool = Field(False, alias='isDefault')
    prices: list[Any] = Field(default_factory=list)


class ModifierGroupSchema(_Record):
    code: str = Field(..., min_length=1)
    name: Any = ""
    order: Optional[int] = None
    min_select: Optional[int] = Field(None, alias='minSelect', ge=0)
    max_select: Optional[int] = Field(None, alias='maxSelect', ge=0)
    is_required: bool = Field(False, alias='isRequired')
    options: list[ModifierOptionSchema] = Field(default_factory=list)

    @model_validator(mode='after')
    def _limits_order(self):
        if self.min_select is not None and self.max_select is not None and self.min_select > self.max_select:
            raise ValueError("minSelect must not exceed maxSelect")
        return self


class MenuItemSchema(_Record):
    code: str = Field(..., min_length=1)
    name: Any = ""
    variants: list[VariantSchema] = Field(default_factory=list)
    modifier_groups: list[ModifierGroupSchema] = Field(default_factory=list, alias='modifierGroups')

    @model_validator(mode='after')
    def _unique_variant_codes(self):
        codes = [v.code for v in self.variants]
        duplicates = sorted({c for c in codes if codes.count(c) > 1})
        if duplicates:
            raise ValueError(f"duplicate variant codes: {', '.join(duplicates)}")
        return self


@dataclass
class IngestReport:
    """Outcome of a catalog load."""
    items_loaded: int = 0
    rules_loaded: int = 0
    rules_dropped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def _display_name(name: Any) -> str:
    """Names may be translated maps; keep the first non-empty string."""
    if isinstance(name, str):
        return name
    if isinstance(name, dict):
        for value in name.values():
            if isinstance(value, str) and value:
                return value
    return ""


def _format_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get('loc', ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get('msg', ''))
    return "; ".join(parts)


def parse_price_rule(data: dict, default_currency: str = 'TRY') -> PriceRule:
    """Validate one raw rule; raises pydantic.ValidationError when malformed."""
    return PriceRuleSchema.model_validate(data).to_rule(default_currency)


def parse_price_rules(
    raw_rules: list[Any],
    where: str,
    report: IngestReport,
    default_currency: str = 'TRY',
) -> list[PriceRule]:
    """Validate a rule list, dropping and reporting malformed entries."""
    rules = []
    for i, data in enumerate(raw_rules or []):
        if not isinstance(data, dict):
            msg = f"{where}.prices[{i}] dropped: expected an object, got {type(data).__name__}"
            logger.warning(msg)
            report.warnings.append(msg)
            report.rules_dropped += 1
            continue
        try:
            rules.append(parse_price_rule(data, default_currency))
        except ValidationError as e:
            msg = f"{where}.prices[{i}] dropped: {_format_error(e)}"
            logger.warning(msg)
            report.warnings.append(msg)
            report.rules_dropped += 1
    report.rules_loaded += len(rules)
    return rules


def parse_item(
    data: dict,
    report: Optional[IngestReport] = None,
    default_currency: str = 'TRY',
) -> MenuItem:
    """
    Build a MenuItem from a raw record.

    Structural problems (missing codes, duplicate variants) raise
    pydantic.ValidationError; bad price rules are only reported.
    """
    report = report if report is not None else IngestReport()
    schema = MenuItemSchema.model_validate(data)

    variants = []
    for v in schema.variants:
        variants.append(Variant(
            code=v.code,
            name=_display_name(v.name),
            order=v.order,
            is_default=v.is_default,
            sku=v.sku,
            barcode=v.barcode,
            size_label=v.size_label,
            volume_ml=v.volume_ml,
            net_weight_gr=v.net_weight_gr,
            prices=parse_price_rules(v.prices, f"{schema.code}.{v.code}", report, default_currency),
        ))

    groups = []
    for g in schema.modifier_groups:
        options = [
            ModifierOption(
                code=o.code,
                name=_display_name(o.name),
                order=o.order,
                is_default=o.is_default,
                prices=parse_price_rules(o.prices, f"{schema.code}.{g.code}.{o.code}", report, default_currency),
            )
            for o in g.options
        ]
        groups.append(ModifierGroup(
            code=g.code,
            name=_display_name(g.name),
            order=g.order,
            min_select=g.min_select,
            max_select=g.max_select,
            is_required=g.is_required,
            options=options,
        ))

    if not variants:
        report.warnings.append(f"{schema.code}: item has no variants")

    return MenuItem(
        code=schema.code,
        name=_display_name(schema.name),
        variants=variants,
        modifier_groups=groups,
    )


def parse_catalog(
    records: list[dict],
    default_currency: str = 'TRY',
) -> tuple[dict[str, MenuItem], IngestReport]:
    """
    Build the in-memory catalog from raw item records.

    Returns (items by code, report). Items that fail structural validation are
    left out and listed in report.errors.
    """
    report = IngestReport()
    items: dict[str, MenuItem] = {}

    for i, data in enumerate(records):
        try:
            item = parse_item(data, report, default_currency)
        except ValidationError as e:
            report.errors.append(f"Item {i}: {_format_error(e)}")
            continue
        if item.code in items:
            report.errors.append(f"Item {i}: duplicate item code '{item.code}'")
            continue
        items[item.code] = item

    report.items_loaded = len(items)
    return items, report


def load_catalog(path: Path, default_currency: str = 'TRY') -> tuple[dict[str, MenuItem], IngestReport]:
    """Load catalog JSON from disk (a list of items, or {"items": [...]})."""
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found at {path}.")

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    records = data.get('items', []) if isinstance(data, dict) else data
    items, report = parse_catalog(records, default_currency)
    logger.info(
        "Loaded %d items (%d rules, %d dropped) from %s",
        report.items_loaded, report.rules_loaded, report.rules_dropped, path,
    )
    return items, report


def rule_to_dict(rule: PriceRule) -> dict:
    """Serialize a rule back to its camelCase record."""
    data = {
        "kind": rule.kind.value,
        "value": {
            "amount": str(rule.value.amount),
            "currency": rule.value.currency,
            "taxIncluded": rule.value.tax_included,
        },
        "listRef": rule.list_ref,
        "activeFrom": rule.active_from.isoformat() if rule.active_from else None,
        "activeTo": rule.active_to.isoformat() if rule.active_to else None,
        "minQty": str(rule.min_qty) if rule.min_qty is not None else None,
        "channels": sorted(c.value for c in rule.channels) if rule.channels else None,
        "outlet": rule.outlet,
        "note": rule.note,
    }
    return {k: v for k, v in data.items() if v is not None}


def item_to_dict(item: MenuItem) -> dict:
    """Serialize an item back to its camelCase record."""
    return {
        "code": item.code,
        "name": item.name,
        "variants": [
            {k: v for k, v in {
                "code": v.code,
                "name": v.name,
                "order": v.order,
                "isDefault": v.is_default,
                "sku": v.sku,
                "barcode": v.barcode,
                "sizeLabel": v.size_label,
                "volumeMl": v.volume_ml,
                "netWeightGr": v.net_weight_gr,
                "prices": [rule_to_dict(r) for r in v.prices],
            }.items() if v is not None}
            for v in item.variants
        ],
        "modifierGroups": [
            {k: v for k, v in {
                "code": g.code,
                "name": g.name,
                "order": g.order,
                "minSelect": g.min_select,
                "maxSelect": g.max_select,
                "isRequired": g.is_required,
                "options": [
                    {
                        "code": o.code,
                        "name": o.name,
                        "order": o.order,
                        "isDefault": o.is_default,
                        "prices": [rule_to_dict(r) for r in o.prices],
                    }
                    for o in g.options
                ],
            }.items() if v is not None}
            for g in item.modifier_groups
        ],
    }


def write_catalog(items: dict[str, MenuItem], output_json: Path, source: Optional[Path] = None) -> dict:
    """Write items as normalized catalog JSON; returns the written document."""
    output_data = {
        "compiled_at": datetime.now().isoformat(),
        "source_file": str(source) if source else None,
        "total_items": len(items),
        "items": [item_to_dict(item) for item in items.values()],
    }

    output_json.parent.mkdir(parents=True, exist_ok=True)
    with open(output_json, 'w', encoding='utf-8') as f:
        json.dump(output_data, f, indent=2, ensure_ascii=False)
    return output_data


def compile_catalog(
    catalog_json: Path,
    output_json: Path,
    default_currency: str = 'TRY',
    verbose: bool = True,
) -> tuple[bool, IngestReport]:
    """
    Validate catalog JSON and write the normalized copy.

    Returns (success, report). Nothing is written when items failed validation.
    """
    items, report = load_catalog(catalog_json, default_currency)

    if report.errors:
        if verbose:
            print("Validation errors:")
            for err in report.errors:
                print(f"  ❌ {err}")
        return False, report

    write_catalog(items, output_json, source=catalog_json)

    if verbose:
        for warning in report.warnings:
            print(f"  ⚠️  {warning}")
        print(f"✅ Compiled {report.items_loaded} items ({report.rules_loaded} price rules)")
        print(f"   Output: {output_json}")

    return True, report
