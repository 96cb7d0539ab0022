import random

from storefront.services.sku import (
    MAX_SKU_LENGTH,
    import_row_sku,
    normalize_sku,
    sequential_sku,
    sku_from_pattern,
)

NAMES = {1: "Color", 2: "Size"}


def test_normalize_collapses_illegal_runs():
    assert normalize_sku("  classic tee__black ") == "CLASSIC-TEE-BLACK"


def test_normalize_is_idempotent():
    once = normalize_sku("--Dress / Red & Blue--")
    assert normalize_sku(once) == once


def test_pattern_substitutes_product_and_values():
    sku = sku_from_pattern(
        "{product}-{color-value}-{size-value}",
        [(1, "Black"), (2, "M")],
        "Classic Tee",
        NAMES,
    )
    assert sku == "CLASSIC-TEE-BLACK-M"


def test_pattern_tokens_are_case_insensitive():
    sku = sku_from_pattern("{PRODUCT}/{Color-Value}", [(1, "Black")], "Classic Tee", NAMES)
    assert sku == "CLASSIC-TEE-BLACK"


def test_attribute_name_token():
    sku = sku_from_pattern("{product}-{size}-{size-value}", [(2, "XL")], "Tee", NAMES)
    assert sku == "TEE-SIZE-XL"


def test_unknown_attribute_name_falls_back_to_id():
    assert sku_from_pattern("{7-value}", [(7, "red")], "Tee") == "RED"


def test_pattern_result_is_bounded():
    sku = sku_from_pattern("{product}-{color-value}", [(1, "Black")], "x" * 150, NAMES)
    assert len(sku) <= MAX_SKU_LENGTH
    assert not sku.endswith("-")


def test_sequential_sku_numbers_from_one():
    assert sequential_sku("Classic Tee", 0) == "CLASSIC-TEE-1"
    assert sequential_sku("Classic Tee", 9) == "CLASSIC-TEE-10"


def test_sequential_sku_keeps_suffix_when_truncated():
    sku = sequential_sku("a" * 200, 4)
    assert len(sku) <= MAX_SKU_LENGTH
    assert sku.endswith("-5")


def test_import_row_sku_layout():
    sku = import_row_sku("Classic Tee", {1: "Black"}, 3, now_ms=0, rng=random.Random(1))
    parts = sku.split("-")

    assert sku.startswith("classic-tee-1-black-3-0-")
    assert len(parts[-1]) == 4


def test_import_row_sku_without_attributes():
    sku = import_row_sku("Canvas Tote", {}, 2, now_ms=35)
    assert sku.startswith("canvas-tote-default-2-z-")


def test_import_row_sku_keeps_cjk_names():
    sku = import_row_sku("经典T恤", {}, 0, now_ms=35)
    assert sku.startswith("经典t恤-default-0-z-")


def test_import_row_sku_is_bounded():
    attributes = {i: "v" * 40 for i in range(1, 6)}
    assert len(import_row_sku("p" * 80, attributes, 12)) <= MAX_SKU_LENGTH


def test_import_row_skus_differ_for_identical_rows():
    rng = random.Random(7)
    first = import_row_sku("Tee", {1: "Black"}, 0, now_ms=1000, rng=rng)
    second = import_row_sku("Tee", {1: "Black"}, 0, now_ms=1000, rng=rng)
    assert first != second
