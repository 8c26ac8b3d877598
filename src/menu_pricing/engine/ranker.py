"""
Specificity Ranker - Orders applicable rules, most specific first.

The whole tie-break chain lives in one comparator so the order is total and
deterministic for a fixed input.
"""
from functools import cmp_to_key
from typing import Iterable

from .models import Money, PriceRule


def compare_ignoring_currency(a: Money, b: Money) -> int:
    """
    Compare two money values by raw amount.

    Currencies are not reconciled: 10 EUR and 10 TRY compare equal.
    """
    if a.amount < b.amount:
        return -1
    if a.amount > b.amount:
        return 1
    return 0


def _tier(rule: PriceRule) -> tuple:
    # Present min_qty outranks absent; larger outranks smaller.
    if rule.min_qty is None:
        return (1, 0)
    return (0, -rule.min_qty)


def compare_specificity(a: tuple[int, PriceRule], b: tuple[int, PriceRule]) -> int:
    """
    Total order over (position, rule) pairs; negative means `a` ranks first.

    1. outlet-specific before outlet-agnostic
    2. channel-specific before channel-agnostic
    3. larger qualifying min_qty before smaller or absent
    4. lower amount before higher
    5. earlier position before later
    """
    pos_a, rule_a = a
    pos_b, rule_b = b

    for key in (
        lambda r: r.outlet is None,
        lambda r: r.channels is None,
        _tier,
    ):
        ka, kb = key(rule_a), key(rule_b)
        if ka != kb:
            return -1 if ka < kb else 1

    by_amount = compare_ignoring_currency(rule_a.value, rule_b.value)
    if by_amount:
        return by_amount

    return (pos_a > pos_b) - (pos_a < pos_b)


def rank(candidates: Iterable[PriceRule]) -> list[PriceRule]:
    """Return candidates ordered most specific first."""
    indexed = list(enumerate(candidates))
    indexed.sort(key=cmp_to_key(compare_specificity))
    return [rule for _, rule in indexed]
