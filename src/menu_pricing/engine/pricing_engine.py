"""
Pricing Engine - Catalog-backed quoting with traceability.

Wraps the pure resolution core with:
- In-memory catalog loaded from the compiled catalog (or raw catalog JSON)
- Optional price sheet overrides
- Structured QuoteResult output with an execution trace and warnings
"""
import logging
from dataclasses import replace
from typing import Optional

from ..config.settings import get_settings, Settings
from .line_calculator import price_line
from .min_price import find_min_base_price
from .models import MenuItem, Money, PriceKind, QuoteRequest, QuoteResult, ResolutionContext, ResolvedPrice
from .resolver import resolve
from .rule_matcher import effective_when
from .selection import default_variant, resolve_selection, validate_selection

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Quotes configured menu items against a sales context.

    Resolution order for a quote:
    1. Look up the item; pick the requested variant or the default one
    2. Validate modifier selections against group limits
    3. Resolve the variant base price, then each selected option's base price
    4. unit = variant + options; total = unit x quantity
    """

    def __init__(self, settings: Optional[Settings] = None, items: Optional[dict[str, MenuItem]] = None):
        """Initialize engine with a catalog, loaded from disk unless given."""
        self.settings = settings or get_settings()
        self.load_warnings: list[str] = []

        if items is not None:
            self.items = dict(items)
            return

        # Deferred to avoid a circular import (ingestion depends on engine.models)
        from ..catalog.ingest import load_catalog
        from ..data.price_sheet import apply_price_sheet, read_price_sheet

        catalog_path = self.settings.compiled_catalog
        if not catalog_path.exists():
            catalog_path = self.settings.catalog_json
        if not catalog_path.exists():
            raise FileNotFoundError(
                f"Catalog not found at {self.settings.compiled_catalog} or {self.settings.catalog_json}. "
                "Run scripts/build_all.py or scripts/compile_catalog.py first."
            )

        self.items, report = load_catalog(catalog_path, self.settings.default_currency)
        self.load_warnings.extend(report.errors + report.warnings)

        # Raw catalog JSON still needs the price sheet applied
        if catalog_path == self.settings.catalog_json and self.settings.price_sheet_csv.exists():
            sheet = apply_price_sheet(
                self.items,
                read_price_sheet(self.settings.price_sheet_csv),
                self.settings.default_currency,
            )
            self.load_warnings.extend(sheet.errors + sheet.warnings)

        logger.info("Pricing engine loaded %d items from %s", len(self.items), catalog_path)

    def reload_data(self):
        """Reload the catalog from disk."""
        self.__init__(self.settings)

    def list_items(self) -> list[MenuItem]:
        return list(self.items.values())

    def get_item(self, code: str) -> Optional[MenuItem]:
        return self.items.get(str(code).strip())

    def starting_price(self, code: str) -> Optional[Money]:
        """Context-free "starting from" price for list display."""
        item = self.get_item(code)
        if item is None:
            return None
        return find_min_base_price(item)

    def variant_prices(self, code: str, ctx: Optional[ResolutionContext] = None) -> dict[str, Optional[ResolvedPrice]]:
        """Resolved base price of every variant of an item for one context."""
        item = self.get_item(code)
        if item is None:
            return {}
        ctx = ctx or ResolutionContext()
        return {v.code: resolve(v.prices, PriceKind.BASE, ctx) for v in item.variants}

    def quote(self, request: QuoteRequest) -> QuoteResult:
        """
        Price one configured line with full traceability.

        Args:
            request: QuoteRequest with item, variant, selections and context

        Returns:
            QuoteResult; unit_price/total are None when the line is unpriceable
        """
        result = QuoteResult(
            item_code=request.item_code,
            variant_code=None,
            quantity=request.quantity,
        )

        item = self.get_item(request.item_code)
        if item is None:
            result.add_warning(f"Unknown item {request.item_code}")
            result.add_trace("Item Lookup", "Item not found in catalog", request.item_code)
            return result
        result.add_trace("Item Lookup", "Found item in catalog", item.code)

        # Variant
        if request.variant_code:
            variant = item.get_variant(request.variant_code)
            if variant is None:
                result.add_warning(f"Unknown variant {request.variant_code} for item {item.code}")
                result.add_trace("Variant", "Requested variant not found", request.variant_code)
                return result
            result.add_trace("Variant", "Using requested variant", variant.code)
        else:
            variant = default_variant(item)
            if variant is None:
                result.add_warning(f"Item {item.code} has no variants")
                result.add_trace("Variant", "No variants available", None)
                return result
            result.add_trace("Variant", "Using default variant", variant.code)
        result.variant_code = variant.code

        # Selection limits
        result.selection_errors = validate_selection(item, request.selections)
        for err in result.selection_errors:
            result.add_trace("Selection", err, None)
        selected = resolve_selection(item, request.selections)

        # One instant for the traced rules and the priced line
        ctx = request.context()
        ctx = replace(ctx, when=effective_when(ctx))

        # Trace each resolution; price_line re-resolves with the same context
        variant_price = resolve(variant.prices, PriceKind.BASE, ctx)
        if variant_price is None:
            result.add_warning(f"No base price for variant {variant.code} in this context")
            result.add_trace("Variant Price", f"No applicable rule for {variant.code}", None)
        else:
            result.add_trace(
                "Variant Price",
                f"Rule [{variant_price.source_rule.describe()}]",
                str(variant_price.money),
            )

        for sel in selected:
            option_price = resolve(sel.option.prices, PriceKind.BASE, ctx)
            label = f"{sel.group.code}/{sel.option.code}"
            if option_price is None:
                result.add_warning(f"No base price for option {label} in this context")
                result.add_trace("Option Price", f"No applicable rule for {label}", None)
                continue
            result.add_trace("Option Price", f"{label} rule [{option_price.source_rule.describe()}]", str(option_price.money))
            if variant_price is not None and option_price.money.currency != variant_price.money.currency:
                result.add_warning(
                    f"Option {label} is priced in {option_price.money.currency}, "
                    f"variant in {variant_price.money.currency}; amounts added as-is"
                )

        line = price_line(variant, selected, request.quantity, ctx)
        if line is None:
            result.add_trace("Line Price", "Line is unpriceable for this context", None)
            return result

        result.unit_price = line.unit_price
        result.total = line.total
        result.add_trace("Unit Price", "Variant + selected options", str(line.unit_price))
        result.add_trace("Extension", f"Quantity {request.quantity} × {line.unit_price}", str(line.total))
        return result
