"""
Selection helpers - default variant, group ordering and modifier limits.
"""
from typing import Optional

from .models import MenuItem, ModifierGroup, SelectedOption, Variant

_UNORDERED = 10 ** 9


def default_variant(item: MenuItem) -> Optional[Variant]:
    """The variant flagged as default, else the first one."""
    for variant in item.variants:
        if variant.is_default:
            return variant
    return item.variants[0] if item.variants else None


def sorted_groups(item: MenuItem) -> list[ModifierGroup]:
    """Modifier groups by display order; groups without an order go last."""
    return sorted(
        item.modifier_groups,
        key=lambda g: g.order if g.order is not None else _UNORDERED,
    )


def validate_selection(item: MenuItem, selections: Optional[dict[str, list[str]]]) -> list[str]:
    """
    Check picked option codes against each group's limits.

    Returns a list of error messages; empty means the selection can be submitted.
    """
    selections = selections or {}
    errors = []

    for group_code, picked in selections.items():
        group = item.get_group(group_code)
        if group is None:
            errors.append(f"Unknown modifier group '{group_code}'")
            continue
        seen = set()
        for code in picked:
            if group.get_option(code) is None:
                errors.append(f"Unknown option '{code}' in group '{group_code}'")
            elif code in seen:
                errors.append(f"Option '{code}' picked more than once in group '{group_code}'")
            seen.add(code)

    for group in sorted_groups(item):
        count = len(set(selections.get(group.code, [])))
        if group.is_required and (group.min_select or 0) <= 0 and count == 0:
            errors.append(f"Group '{group.code}' requires a selection")
        if group.min_select is not None and count < group.min_select:
            errors.append(f"Group '{group.code}' needs at least {group.min_select} option(s), got {count}")
        if group.max_select is not None and count > group.max_select:
            errors.append(f"Group '{group.code}' allows at most {group.max_select} option(s), got {count}")

    return errors


def resolve_selection(item: MenuItem, selections: Optional[dict[str, list[str]]]) -> list[SelectedOption]:
    """Turn group -> option codes into SelectedOption records; unknown and repeated codes are skipped."""
    selections = selections or {}
    resolved = []
    for group in sorted_groups(item):
        seen = set()
        for code in selections.get(group.code, []):
            option = group.get_option(code)
            if option is not None and code not in seen:
                resolved.append(SelectedOption(group=group, option=option))
            seen.add(code)
    return resolved
