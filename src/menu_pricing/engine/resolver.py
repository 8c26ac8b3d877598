"""
Price Resolver - Picks exactly one rule per (entity, price kind), or none.

Used the same way for a variant's prices and a modifier option's prices.
"""
from dataclasses import replace
from typing import Optional, Sequence

from .models import PriceKind, PriceRule, ResolutionContext, ResolvedPrice
from .ranker import rank
from .rule_matcher import effective_when, matches


def _same_kind(rule: PriceRule, kind) -> bool:
    rule_kind = rule.kind.value if isinstance(rule.kind, PriceKind) else rule.kind
    wanted = kind.value if isinstance(kind, PriceKind) else kind
    return rule_kind == wanted


def applicable_rules(
    rules: Sequence[PriceRule],
    kind,
    ctx: Optional[ResolutionContext] = None,
) -> list[PriceRule]:
    """All rules of `kind` that match the context, ranked most specific first."""
    if rules is None:
        raise ValueError("rules must be a sequence of PriceRule, got None")
    ctx = ctx or ResolutionContext()

    # Pin "now" once so every rule sees the same instant
    if ctx.when is None:
        ctx = replace(ctx, when=effective_when(ctx))

    candidates = [
        rule for rule in rules
        if isinstance(rule, PriceRule) and _same_kind(rule, kind) and matches(rule, ctx)
    ]
    return rank(candidates)


def resolve(
    rules: Sequence[PriceRule],
    kind,
    ctx: Optional[ResolutionContext] = None,
) -> Optional[ResolvedPrice]:
    """
    Resolve the single applicable rule for a context.

    Returns None when no rule applies; that is a normal outcome, not an error.
    """
    ranked = applicable_rules(rules, kind, ctx)
    if not ranked:
        return None
    winner = ranked[0]
    return ResolvedPrice(money=winner.value, source_rule=winner)
