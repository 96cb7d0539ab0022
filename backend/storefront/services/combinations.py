"""
Attribute combination generator.

Turns a list of (attribute_id, values) groups into the cartesian product of
value assignments. The first group varies slowest and the last group fastest,
the same order as nested loops with the first group outermost. Callers rely on
that order: generated SKUs are numbered by position and combination 0 becomes
the default variant.
"""
import logging
from typing import Optional, Sequence, Tuple

from storefront.config import get_settings
from storefront.services.errors import CombinationLimitExceeded

logger = logging.getLogger(__name__)

# One (attribute_id, value) pair per attribute in the generating group
Combination = Tuple[Tuple[int, str], ...]


def count_combinations(groups: Sequence[Tuple[int, Sequence[str]]]) -> int:
    """Number of combinations generate_combinations would return."""
    total = 1
    for _, values in groups:
        total *= len(values)
    return total


def _expand(groups: Sequence[Tuple[int, Sequence[str]]]) -> list[Combination]:
    if not groups:
        return [()]

    (attribute_id, values), rest = groups[0], groups[1:]
    rest_combinations = _expand(rest)

    return [
        ((attribute_id, value),) + tail
        for value in values
        for tail in rest_combinations
    ]


def generate_combinations(
    groups: Sequence[Tuple[int, Sequence[str]]],
    limit: Optional[int] = None,
) -> list[Combination]:
    """
    Enumerate every combination of one value per attribute group.

    An empty group list yields exactly one empty combination, so a product
    without combinable attributes still gets one variant.

    Raises:
        CombinationLimitExceeded: the product of the group sizes is above
            the limit (Settings.max_variant_combinations by default). The
            check runs before anything is enumerated.
    """
    if limit is None:
        limit = get_settings().max_variant_combinations

    groups = [(attribute_id, list(values)) for attribute_id, values in groups]
    total = count_combinations(groups)
    if total > limit:
        raise CombinationLimitExceeded(total, limit)

    combinations = _expand(groups)
    logger.debug(f"Generated {len(combinations)} combinations from {len(groups)} attribute groups")
    return combinations
