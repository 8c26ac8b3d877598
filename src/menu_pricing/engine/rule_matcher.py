"""
Rule Matcher - Decides whether a price rule applies to a resolution context.

A rule matches when every qualifier it carries (channel, outlet, validity
window, quantity tier) is satisfied by the context. Malformed rules never
match; they are skipped rather than raised so one bad catalog entry cannot
break an item's pricing.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from .models import SUPPORTED_CURRENCIES, Channel, PriceKind, PriceRule, ResolutionContext, to_utc


def is_well_formed(rule: PriceRule) -> bool:
    """Check the record invariants the resolver relies on."""
    if not isinstance(rule, PriceRule) or rule.value is None:
        return False
    if not isinstance(rule.kind, PriceKind):
        try:
            PriceKind(rule.kind)
        except ValueError:
            return False
    amount = rule.value.amount
    if amount is None or not isinstance(amount, (Decimal, int, float)):
        return False
    if amount < 0:
        return False
    if rule.value.currency not in SUPPORTED_CURRENCIES:
        return False
    if rule.active_from and rule.active_to:
        if to_utc(rule.active_from) > to_utc(rule.active_to):
            return False
    if rule.channels is not None and len(rule.channels) == 0:
        return False
    return True


def _as_channel(value) -> Optional[Channel]:
    if value is None or isinstance(value, Channel):
        return value
    try:
        return Channel(value)
    except ValueError:
        return None


def effective_when(ctx: ResolutionContext) -> datetime:
    """The context's timestamp, or now."""
    if ctx.when is None:
        return datetime.now(timezone.utc)
    return to_utc(ctx.when)


def effective_quantity(ctx: ResolutionContext) -> Decimal:
    """The context's quantity, or 1."""
    return Decimal(1) if ctx.quantity is None else Decimal(str(ctx.quantity))


def matches(rule: PriceRule, ctx: ResolutionContext, when: Optional[datetime] = None) -> bool:
    """
    Return True when the rule applies to the context.

    `when` lets a caller pin "now" once for a whole resolution pass.
    """
    if not is_well_formed(rule):
        return False

    # Channel
    if rule.channels is not None:
        wanted = _as_channel(ctx.channel)
        if wanted is None or wanted not in {_as_channel(c) for c in rule.channels}:
            return False

    # Outlet
    if rule.outlet is not None:
        if ctx.outlet is None or str(ctx.outlet) != str(rule.outlet):
            return False

    # Validity window, both bounds inclusive
    at = to_utc(when) if when is not None else effective_when(ctx)
    if rule.active_from is not None and at < to_utc(rule.active_from):
        return False
    if rule.active_to is not None and at > to_utc(rule.active_to, end_of_day=True):
        return False

    # Quantity tier
    if rule.min_qty is not None:
        if effective_quantity(ctx) < rule.min_qty:
            return False

    return True
