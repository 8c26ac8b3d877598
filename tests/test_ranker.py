"""
Specificity ranker tests. Each tier only breaks ties left by the previous one.
"""
import os
import sys
from decimal import Decimal

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from menu_pricing.engine.models import Channel, Money, PriceKind, PriceRule
from menu_pricing.engine.ranker import compare_ignoring_currency, compare_specificity, rank


def rule(amount, currency="TRY", note=None, **kwargs) -> PriceRule:
    return PriceRule(kind=PriceKind.BASE, value=Money(Decimal(str(amount)), currency), note=note, **kwargs)


def test_outlet_beats_channel_and_price():
    outlet = rule(20, outlet="branch1")
    channel = rule(5, channels=frozenset({Channel.DELIVERY}))
    assert rank([channel, outlet])[0] is outlet


def test_channel_beats_quantity_tier():
    tiered = rule(5, min_qty=Decimal(10))
    channel = rule(9, channels=frozenset({Channel.PICKUP}))
    assert rank([tiered, channel])[0] is channel


def test_largest_min_qty_first():
    none = rule(3)
    five = rule(8, min_qty=Decimal(5))
    ten = rule(9, min_qty=Decimal(10))
    zero = rule(1, min_qty=Decimal(0))
    assert rank([none, five, ten, zero]) == [ten, five, zero, none]


def test_cheapest_breaks_specificity_tie():
    a = rule(12, outlet="x")
    b = rule(11, outlet="y")
    assert rank([a, b]) == [b, a]


def test_array_order_is_last_resort():
    first = rule(10, note="first")
    second = rule(10, note="second")
    assert rank([first, second])[0] is first
    assert rank([second, first])[0] is second


def test_amount_comparison_ignores_currency():
    assert compare_ignoring_currency(Money(Decimal(10), "EUR"), Money(Decimal(10), "TRY")) == 0
    assert compare_ignoring_currency(Money(Decimal(1), "EUR"), Money(Decimal(30), "TRY")) < 0
    cheap_eur = rule(5, currency="EUR")
    pricey_try = rule(6, currency="TRY")
    assert rank([pricey_try, cheap_eur])[0] is cheap_eur


def test_comparator_is_antisymmetric():
    a, b = rule(10, outlet="x"), rule(9)
    assert compare_specificity((0, a), (1, b)) < 0
    assert compare_specificity((1, b), (0, a)) > 0
    assert compare_specificity((0, a), (0, a)) == 0


def test_rank_does_not_mutate_input():
    rules = [rule(10), rule(8, outlet="x")]
    snapshot = list(rules)
    rank(rules)
    assert rules == snapshot


def test_rank_is_deterministic():
    rules = [
        rule(10), rule(8, outlet="b1"), rule(8, outlet="b1", note="dup"),
        rule(7, channels=frozenset({Channel.DINEIN})), rule(6, min_qty=Decimal(2)),
    ]
    assert all(rank(rules) == rank(rules) for _ in range(5))
