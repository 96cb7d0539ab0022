"""
SKU synthesis.

Three modes:
- pattern: "{product}-{color-value}-{size-value}" style templates
- sequential: "<PRODUCT>-<n>" for generated combinations without a pattern
- row import: product slug + attribute tokens + row index + timestamp + random
  suffix, for spreadsheet rows that carry no SKU of their own
"""
import random
import re
import string
import time
from typing import Mapping, Optional, Sequence, Tuple

MAX_SKU_LENGTH = 100

_ILLEGAL_RE = re.compile(r"[^A-Z0-9]+")
# Row-import slugs keep CJK product names readable
_SLUG_ILLEGAL_RE = re.compile("[^a-zA-Z0-9\\u4e00-\\u9fa5]")
_BASE36 = string.digits + string.ascii_lowercase

ATTRIBUTE_ID_PREFIX = 8
PRODUCT_SLUG_LENGTH = 30
VALUE_SLUG_LENGTH = 20


def normalize_sku(text: str) -> str:
    """Upper-case, collapse illegal runs to one hyphen, trim hyphens."""
    return _ILLEGAL_RE.sub("-", (text or "").upper()).strip("-")


def truncate_sku(sku: str, max_length: int = MAX_SKU_LENGTH) -> str:
    """Cut from the tail so the readable prefix survives."""
    return sku[:max_length]


def sku_from_pattern(
    pattern: str,
    combination: Sequence[Tuple[int, str]],
    product_name: str,
    attribute_names: Optional[Mapping[int, str]] = None,
) -> str:
    """
    Substitute tokens in a SKU pattern, case-insensitively.

    {product}             -> normalized product name
    {<attribute>}         -> normalized attribute display name
    {<attribute>-value}   -> normalized value of that attribute

    Attributes are keyed by their display name lowercased; unknown names
    fall back to the attribute id.
    """
    attribute_names = attribute_names or {}
    sku = re.sub(r"\{product\}", lambda _: normalize_sku(product_name), pattern, flags=re.IGNORECASE)

    for attribute_id, value in combination:
        name = attribute_names.get(attribute_id) or str(attribute_id)
        key = re.escape(name.lower())
        sku = re.sub(r"\{" + key + r"-value\}", lambda _: normalize_sku(value), sku, flags=re.IGNORECASE)
        sku = re.sub(r"\{" + key + r"\}", lambda _: normalize_sku(name), sku, flags=re.IGNORECASE)

    return truncate_sku(normalize_sku(sku)).rstrip("-")


def sequential_sku(product_name: str, index: int) -> str:
    """SKU for the index-th generated combination: "<PRODUCT>-<index+1>"."""
    suffix = f"-{index + 1}"
    slug = normalize_sku(product_name)[:MAX_SKU_LENGTH - len(suffix)].rstrip("-")
    return f"{slug}{suffix}" if slug else suffix.lstrip("-")


def _slug(text: str, length: int) -> str:
    return _SLUG_ILLEGAL_RE.sub("-", str(text)).lower()[:length]


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def import_row_sku(
    product_name: str,
    attributes: Mapping[int, str],
    row_index: int,
    now_ms: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    SKU for an imported row that supplied none.

    The timestamp and random suffix keep two rows unique even when they
    collide on product and attribute values.
    """
    pairs = []
    for attribute_id, value in attributes.items():
        short_id = re.sub(r"[^a-zA-Z0-9]", "", str(attribute_id)[:ATTRIBUTE_ID_PREFIX])
        pair = f"{short_id}-{_slug(value, VALUE_SLUG_LENGTH)}"
        if pair and pair != "-":
            pairs.append(pair)

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    rng = rng or random
    random_suffix = "".join(rng.choice(_BASE36) for _ in range(4))

    sku = "-".join([
        _slug(product_name, PRODUCT_SLUG_LENGTH),
        "-".join(pairs) or "default",
        str(row_index),
        _base36(now_ms),
        random_suffix,
    ])
    return truncate_sku(sku)
