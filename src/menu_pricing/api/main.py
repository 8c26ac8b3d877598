"""
Pricing API - FastAPI app for display and cart clients.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, ValidationError

from ..catalog.ingest import parse_price_rule
from ..config.settings import get_settings
from ..engine import (
    Channel,
    Money,
    PriceKind,
    PricingEngine,
    QuoteRequest,
    ResolutionContext,
    ResolvedPrice,
    resolve,
)
from ..engine.models import MenuItem
from .state import get_engine

app = FastAPI(
    title="Menu Pricing API",
    description="Price resolution for menu items, variants and modifiers",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class MoneyOut(BaseModel):
    amount: Decimal
    currency: str
    tax_included: bool

    @classmethod
    def of(cls, money: Optional[Money]) -> Optional['MoneyOut']:
        if money is None:
            return None
        return cls(amount=money.amount, currency=money.currency, tax_included=money.tax_included)


class ContextIn(BaseModel):
    channel: Optional[Channel] = None
    outlet: Optional[str] = None
    when: Optional[datetime] = None
    quantity: Optional[Decimal] = Field(None, ge=0)

    def to_context(self) -> ResolutionContext:
        return ResolutionContext(
            channel=self.channel,
            outlet=self.outlet,
            when=self.when,
            quantity=self.quantity,
        )


class QuoteIn(BaseModel):
    variant_code: Optional[str] = None
    selections: Dict[str, List[str]] = Field(default_factory=dict)
    quantity: int = Field(1, ge=0)
    channel: Optional[Channel] = None
    outlet: Optional[str] = None
    when: Optional[datetime] = None


class QuoteOut(BaseModel):
    item_code: str
    variant_code: Optional[str]
    quantity: int
    unit_price: Optional[MoneyOut]
    total: Optional[MoneyOut]
    can_submit: bool
    selection_errors: List[str]
    warnings: List[str]
    trace: List[str]


class ResolveIn(BaseModel):
    rules: List[Any]
    kind: PriceKind = PriceKind.BASE
    context: ContextIn = Field(default_factory=ContextIn)


class ResolveOut(BaseModel):
    price: Optional[MoneyOut]
    rule_index: Optional[int]
    dropped_rules: List[int]


def _resolved_out(resolved: Optional[ResolvedPrice]) -> Optional[dict]:
    if resolved is None:
        return None
    return {
        "price": MoneyOut.of(resolved.money),
        "rule": resolved.source_rule.describe(),
        "note": resolved.source_rule.note,
    }


def _item_summary(engine: PricingEngine, item: MenuItem) -> dict:
    return {
        "code": item.code,
        "name": item.name,
        "starting_price": MoneyOut.of(engine.starting_price(item.code)),
        "variants": [v.code for v in item.variants],
    }


def _require_item(engine: PricingEngine, code: str) -> MenuItem:
    item = engine.get_item(code)
    if item is None:
        raise HTTPException(status_code=404, detail=f"Item '{code}' not found")
    return item


@app.get("/")
async def root():
    return {"status": "online", "message": "Menu Pricing API Active"}


@app.get("/items")
async def list_items(search: Optional[str] = None, engine: PricingEngine = Depends(get_engine)):
    items = engine.list_items()
    if search:
        needle = search.lower()
        items = [i for i in items if needle in i.code.lower() or needle in i.name.lower()]
    return [_item_summary(engine, item) for item in items]


@app.get("/items/{code}")
async def get_item(
    code: str,
    channel: Optional[Channel] = None,
    outlet: Optional[str] = None,
    engine: PricingEngine = Depends(get_engine),
):
    """Item detail with each variant's price resolved for the given context."""
    item = _require_item(engine, code)
    ctx = ResolutionContext(channel=channel, outlet=outlet)
    prices = engine.variant_prices(item.code, ctx)
    summary = _item_summary(engine, item)
    summary["variants"] = [
        {
            "code": v.code,
            "name": v.name,
            "is_default": v.is_default,
            "resolved": _resolved_out(prices.get(v.code)),
        }
        for v in item.variants
    ]
    summary["modifier_groups"] = [
        {
            "code": g.code,
            "name": g.name,
            "min_select": g.min_select,
            "max_select": g.max_select,
            "is_required": g.is_required,
            "options": [
                {"code": o.code, "name": o.name, "resolved": _resolved_out(resolve(o.prices, PriceKind.BASE, ctx))}
                for o in g.options
            ],
        }
        for g in item.modifier_groups
    ]
    return summary


@app.post("/items/{code}/quote", response_model=QuoteOut)
async def quote_item(code: str, req: QuoteIn, engine: PricingEngine = Depends(get_engine)):
    _require_item(engine, code)
    result = engine.quote(QuoteRequest(
        item_code=code,
        variant_code=req.variant_code,
        selections=req.selections,
        quantity=req.quantity,
        channel=req.channel,
        outlet=req.outlet,
        when=req.when,
    ))
    return QuoteOut(
        item_code=result.item_code,
        variant_code=result.variant_code,
        quantity=result.quantity,
        unit_price=MoneyOut.of(result.unit_price),
        total=MoneyOut.of(result.total),
        can_submit=result.can_submit,
        selection_errors=result.selection_errors,
        warnings=result.warnings,
        trace=result.get_trace_text().splitlines(),
    )


@app.post("/resolve", response_model=ResolveOut)
async def resolve_rules(req: ResolveIn):
    """Resolve an ad hoc rule list; malformed rules are skipped and reported."""
    settings = get_settings()
    rules, positions, dropped = [], [], []
    for i, data in enumerate(req.rules):
        try:
            rules.append(parse_price_rule(data, settings.default_currency))
            positions.append(i)
        except ValidationError:
            dropped.append(i)

    resolved = resolve(rules, req.kind, req.context.to_context())
    rule_index = None
    if resolved is not None:
        rule_index = positions[next(n for n, r in enumerate(rules) if r is resolved.source_rule)]
    return ResolveOut(
        price=MoneyOut.of(resolved.money) if resolved else None,
        rule_index=rule_index,
        dropped_rules=dropped,
    )


@app.get("/system/status")
async def get_status(engine: PricingEngine = Depends(get_engine)):
    settings = get_settings()
    has_report = settings.build_report.exists()
    return {
        "engine_active": True,
        "items_count": len(engine.items),
        "load_warnings": len(engine.load_warnings),
        "catalog_last_build": settings.build_report.stat().st_mtime if has_report else None
    }
