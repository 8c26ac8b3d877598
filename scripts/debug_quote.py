#!/usr/bin/env python
"""
Print the resolution trace for one item quote.

Usage:
    python scripts/debug_quote.py ITEM_CODE [VARIANT_CODE] [--channel delivery]
        [--outlet branch1] [--qty 2] [--when 2024-01-15] [--pick GROUP=OPTION ...]
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from menu_pricing.engine import PricingEngine, QuoteRequest
from menu_pricing.engine.models import Channel, to_utc


def debug():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument('item_code')
    parser.add_argument('variant_code', nargs='?')
    parser.add_argument('--channel', choices=[c.value for c in Channel])
    parser.add_argument('--outlet')
    parser.add_argument('--qty', type=int, default=1)
    parser.add_argument('--when')
    parser.add_argument('--pick', action='append', default=[], metavar='GROUP=OPTION')
    args = parser.parse_args()

    selections = {}
    for pick in args.pick:
        group, _, option = pick.partition('=')
        selections.setdefault(group, []).append(option)

    engine = PricingEngine()
    for warning in engine.load_warnings:
        print(f"LOAD WARNING: {warning}")

    print(f"Starting from: {engine.starting_price(args.item_code) or '-'}")

    result = engine.quote(QuoteRequest(
        item_code=args.item_code,
        variant_code=args.variant_code,
        selections=selections,
        quantity=args.qty,
        channel=Channel(args.channel) if args.channel else None,
        outlet=args.outlet,
        when=to_utc(args.when),
    ))

    print("\nTrace:")
    print(result.get_trace_text())
    for warning in result.warnings:
        print(f"WARNING: {warning}")
    print(f"\nUnit: {result.unit_price or '-'}  Total: {result.total or '-'}  Can submit: {result.can_submit}")


if __name__ == "__main__":
    debug()
