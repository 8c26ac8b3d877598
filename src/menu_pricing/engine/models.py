"""
Data models for the pricing engine.

Uses dataclasses for the read-side catalog records. Validation lives at the
ingestion boundary (see catalog.ingest); these records are taken as given.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional


SUPPORTED_CURRENCIES = ('TRY', 'EUR', 'USD')


class Channel(str, Enum):
    """Sales fulfillment mode."""
    DELIVERY = 'delivery'
    PICKUP = 'pickup'
    DINEIN = 'dinein'


class PriceKind(str, Enum):
    """Purpose partition of a price rule."""
    BASE = 'base'
    SURCHARGE = 'surcharge'
    DEPOSIT = 'deposit'


def to_utc(value, end_of_day: bool = False) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetime, date or ISO strings. Naive values are taken as UTC.
    A bare date becomes midnight, or the last instant of the day when
    end_of_day is set.
    """
    if value is None or value == '':
        return None
    if isinstance(value, str):
        text = value.strip()
        if len(text) == 10:
            value = date.fromisoformat(text)
        else:
            value = datetime.fromisoformat(text.replace('Z', '+00:00'))
    if not isinstance(value, date):
        raise ValueError(f"unsupported timestamp {value!r}")
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.max if end_of_day else time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Money:
    """An amount in one currency, with the tax flag passed through untouched."""
    amount: Decimal
    currency: str
    tax_included: bool = True

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency}"

    def with_amount(self, amount: Decimal) -> 'Money':
        return Money(amount=amount, currency=self.currency, tax_included=self.tax_included)


@dataclass(frozen=True)
class PriceRule:
    """One context-qualified pricing fact attached to a variant or modifier option."""
    kind: PriceKind
    value: Money
    list_ref: Optional[str] = None
    active_from: Optional[datetime] = None
    active_to: Optional[datetime] = None
    min_qty: Optional[Decimal] = None
    channels: Optional[frozenset] = None  # of Channel
    outlet: Optional[str] = None
    note: Optional[str] = None

    def describe(self) -> str:
        """Short human-readable summary used in traces."""
        parts = [self.kind.value if isinstance(self.kind, PriceKind) else str(self.kind)]
        if self.outlet:
            parts.append(f"outlet={self.outlet}")
        if self.channels:
            parts.append("channels=" + "|".join(sorted(getattr(c, "value", c) for c in self.channels)))
        if self.min_qty is not None:
            parts.append(f"qty>={self.min_qty}")
        if self.active_from:
            parts.append(f"from {self.active_from.date().isoformat()}")
        if self.active_to:
            parts.append(f"to {self.active_to.date().isoformat()}")
        return ", ".join(parts)


@dataclass(frozen=True)
class ResolutionContext:
    """The concrete sales situation used to pick among competing rules."""
    channel: Optional[Channel] = None
    outlet: Optional[str] = None
    when: Optional[datetime] = None  # None = now
    quantity: Optional[Decimal] = None  # None = 1


@dataclass(frozen=True)
class ResolvedPrice:
    """The winning rule's money plus the rule itself."""
    money: Money
    source_rule: PriceRule


@dataclass
class Variant:
    """A sellable variant (size) of a menu item."""
    code: str
    name: str = ""
    order: int = 0
    is_default: bool = False
    sku: Optional[str] = None
    barcode: Optional[str] = None
    size_label: Optional[str] = None
    volume_ml: Optional[int] = None
    net_weight_gr: Optional[int] = None
    prices: list[PriceRule] = field(default_factory=list)


@dataclass
class ModifierOption:
    """One choice inside a modifier group."""
    code: str
    name: str = ""
    order: int = 0
    is_default: bool = False
    prices: list[PriceRule] = field(default_factory=list)


@dataclass
class ModifierGroup:
    """A group of extras with selection limits."""
    code: str
    name: str = ""
    order: Optional[int] = None
    min_select: Optional[int] = None
    max_select: Optional[int] = None
    is_required: bool = False
    options: list[ModifierOption] = field(default_factory=list)

    def get_option(self, code: str) -> Optional[ModifierOption]:
        for option in self.options:
            if option.code == code:
                return option
        return None


@dataclass
class MenuItem:
    """A catalog item with its variants and modifier groups."""
    code: str
    name: str = ""
    variants: list[Variant] = field(default_factory=list)
    modifier_groups: list[ModifierGroup] = field(default_factory=list)

    def get_variant(self, code: str) -> Optional[Variant]:
        for variant in self.variants:
            if variant.code == code:
                return variant
        return None

    def get_group(self, code: str) -> Optional[ModifierGroup]:
        for group in self.modifier_groups:
            if group.code == code:
                return group
        return None


@dataclass(frozen=True)
class SelectedOption:
    """A picked modifier option together with its group."""
    group: ModifierGroup
    option: ModifierOption


@dataclass(frozen=True)
class LinePrice:
    """Unit price and total for one order line."""
    unit_price: Money
    total: Money


@dataclass
class TraceStep:
    """A single step in the quote resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class QuoteRequest:
    """A request to price one configured item."""
    item_code: str
    variant_code: Optional[str] = None
    # Map of group code -> picked option codes
    selections: dict[str, list[str]] = field(default_factory=dict)
    quantity: int = 1
    channel: Optional[Channel] = None
    outlet: Optional[str] = None
    when: Optional[datetime] = None

    def context(self) -> ResolutionContext:
        return ResolutionContext(
            channel=self.channel,
            outlet=self.outlet,
            when=self.when,
            quantity=Decimal(self.quantity),
        )


@dataclass
class QuoteResult:
    """Complete result of pricing one line."""
    item_code: str
    variant_code: Optional[str]
    quantity: int
    unit_price: Optional[Money] = None
    total: Optional[Money] = None
    selection_errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def priceable(self) -> bool:
        return self.unit_price is not None

    @property
    def can_submit(self) -> bool:
        """Whether add-to-cart should be enabled."""
        return (
            self.priceable
            and self.variant_code is not None
            and self.quantity > 0
            and not self.selection_errors
        )

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning, skipping duplicates."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)
