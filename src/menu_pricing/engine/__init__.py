"""Engine subpackage - core price resolution logic."""
from .models import (
    Channel,
    LinePrice,
    MenuItem,
    Money,
    PriceKind,
    PriceRule,
    QuoteRequest,
    QuoteResult,
    ResolutionContext,
    ResolvedPrice,
    SelectedOption,
)
from .rule_matcher import matches
from .ranker import rank, compare_ignoring_currency
from .resolver import resolve
from .line_calculator import price_line
from .min_price import find_min_base_price
from .pricing_engine import PricingEngine

__all__ = [
    'PricingEngine', 'QuoteRequest', 'QuoteResult',
    'Channel', 'PriceKind', 'Money', 'PriceRule', 'ResolutionContext', 'ResolvedPrice',
    'MenuItem', 'SelectedOption', 'LinePrice',
    'matches', 'rank', 'compare_ignoring_currency', 'resolve', 'price_line', 'find_min_base_price',
]
