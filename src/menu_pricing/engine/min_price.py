"""
Minimum Price Scanner - Context-free "starting from" price for list display.

Ignores channel, outlet, time and quantity entirely. Used before a concrete
sales context is known; checkout always goes through the resolver instead.
"""
from typing import Iterator, Optional

from .models import MenuItem, Money, PriceKind, PriceRule
from .ranker import compare_ignoring_currency
from .rule_matcher import is_well_formed


def iter_base_rules(item: MenuItem) -> Iterator[PriceRule]:
    """Every well-formed base rule of the item: variants first, then options."""
    for variant in item.variants or []:
        for rule in variant.prices or []:
            if rule.kind == PriceKind.BASE and is_well_formed(rule):
                yield rule
    for group in item.modifier_groups or []:
        for option in group.options or []:
            for rule in option.prices or []:
                if rule.kind == PriceKind.BASE and is_well_formed(rule):
                    yield rule


def find_min_base_price(item: MenuItem) -> Optional[Money]:
    """Smallest base amount across the item; first seen wins ties."""
    if item is None:
        raise ValueError("item is required")

    best: Optional[Money] = None
    for rule in iter_base_rules(item):
        if best is None or compare_ignoring_currency(rule.value, best) < 0:
            best = rule.value
    return best
