"""
Line Price Calculator - Unit price and total for a cart line.

unit = variant base price + sum of selected option base prices
total = unit x quantity
"""
from dataclasses import replace
from decimal import Decimal
from typing import Optional, Sequence

from .models import LinePrice, Money, PriceKind, ResolutionContext, SelectedOption, Variant
from .resolver import resolve
from .rule_matcher import effective_when


def price_line(
    variant: Variant,
    selected_options: Sequence[SelectedOption],
    quantity,
    ctx: Optional[ResolutionContext] = None,
) -> Optional[LinePrice]:
    """
    Price one order line.

    Returns None when the variant or any selected option has no applicable
    base price; the caller should then disallow submission.
    Currencies of option prices are not reconciled with the variant's.
    """
    if variant is None:
        raise ValueError("variant is required")
    if selected_options is None:
        raise ValueError("selected_options must be a sequence, got None")
    qty = Decimal(str(quantity))
    if qty < 0:
        raise ValueError(f"quantity must not be negative, got {quantity}")

    ctx = ctx or ResolutionContext()
    if ctx.quantity is None:
        ctx = replace(ctx, quantity=qty)
    if ctx.when is None:
        ctx = replace(ctx, when=effective_when(ctx))

    variant_price = resolve(variant.prices, PriceKind.BASE, ctx)
    if variant_price is None:
        return None

    options_total = Decimal(0)
    for selected in selected_options:
        option_price = resolve(selected.option.prices, PriceKind.BASE, ctx)
        if option_price is None:
            return None
        options_total += Decimal(str(option_price.money.amount))

    base: Money = variant_price.money
    unit_amount = Decimal(str(base.amount)) + options_total
    unit_price = base.with_amount(unit_amount)
    total = base.with_amount(unit_amount * qty)
    return LinePrice(unit_price=unit_price, total=total)
