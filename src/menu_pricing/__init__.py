"""
Menu Pricing Package

Context-aware price resolution for menu items: picks the applicable price
rule per variant and modifier option for a sales context (channel, outlet,
time, quantity) and prices order lines.
"""

__version__ = "1.0.0"
