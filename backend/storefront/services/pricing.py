"""
Variant price resolution.

Priority:
1. An explicit price table entry whose combination matches (order-independent).
2. Base price plus per-attribute-value adjustments (negative means markdown).
3. The base price.

Whatever the path, the result never drops below zero.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

CENTS = Decimal("0.01")
ZERO = Decimal("0")

# [{"combination": [(attribute_id, value), ...], "price": 12.50}, ...]
PriceTable = Sequence[Mapping[str, Any]]
# {attribute_id: {value: adjustment}}
AdjustmentRules = Mapping[Any, Mapping[str, Any]]


def to_decimal(value) -> Decimal:
    """Convert a price-like value to a Decimal; floats go through str to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def _pair(item) -> Tuple[int, str]:
    if isinstance(item, Mapping):
        return int(item["attribute_id"]), str(item["value"])
    attribute_id, value = item
    return int(attribute_id), str(value)


def _as_pair_set(combination: Iterable) -> frozenset:
    return frozenset(_pair(item) for item in combination)


def find_table_price(combination, price_table: Optional[PriceTable]) -> Optional[Decimal]:
    """First price table entry whose combination is set-equal to the given one."""
    if not price_table:
        return None

    wanted = _as_pair_set(combination)
    for entry in price_table:
        entry_pairs = list(entry["combination"])
        if len(entry_pairs) != len(wanted):
            continue
        if _as_pair_set(entry_pairs) == wanted:
            return to_decimal(entry["price"])
    return None


def _lookup_rule(rules: AdjustmentRules, attribute_id: int, value: str):
    # JSON bodies key attribute ids as strings
    attribute_rules = rules.get(attribute_id)
    if attribute_rules is None:
        attribute_rules = rules.get(str(attribute_id))
    if not isinstance(attribute_rules, Mapping):
        return None
    return attribute_rules.get(value)


def resolve_price(
    combination,
    base_price,
    price_table: Optional[PriceTable] = None,
    adjustment_rules: Optional[AdjustmentRules] = None,
) -> Decimal:
    """Price for one combination, clamped to a minimum of zero."""
    price = find_table_price(combination, price_table)

    if price is None:
        price = to_decimal(base_price if base_price is not None else ZERO)
        if adjustment_rules:
            for attribute_id, value in (_pair(item) for item in combination):
                adjustment = _lookup_rule(adjustment_rules, attribute_id, value)
                if adjustment is None:
                    continue
                try:
                    price += to_decimal(adjustment)
                except (InvalidOperation, TypeError, ValueError):
                    continue

    return max(ZERO, price).quantize(CENTS)
