from decimal import Decimal

from storefront.services.pricing import find_table_price, resolve_price


def test_price_table_wins_over_rules():
    table = [{"combination": [(2, "M"), (1, "Black")], "price": "15"}]
    rules = {"1": {"Black": "5"}}

    price = resolve_price([(1, "Black"), (2, "M")], "10", table, rules)

    assert price == Decimal("15.00")


def test_price_table_needs_exact_set_match():
    table = [{"combination": [(1, "Black")], "price": "15"}]
    assert find_table_price([(1, "Black"), (2, "M")], table) is None


def test_first_matching_table_entry_wins():
    table = [
        {"combination": [(1, "Black")], "price": "15"},
        {"combination": [(1, "Black")], "price": "99"},
    ]
    assert resolve_price([(1, "Black")], "10", table) == Decimal("15.00")


def test_adjustments_are_summed_onto_base_price():
    rules = {"1": {"Black": "2.50"}, 2: {"L": "-1"}}
    assert resolve_price([(1, "Black"), (2, "L")], Decimal("10"), None, rules) == Decimal("11.50")


def test_unmatched_values_fall_back_to_base_price():
    rules = {"1": {"White": "3"}}
    assert resolve_price([(1, "Black")], "10", None, rules) == Decimal("10.00")


def test_price_is_floored_at_zero():
    rules = {"1": {"Clearance": "-20"}}
    assert resolve_price([(1, "Clearance")], "5", None, rules) == Decimal("0.00")


def test_float_inputs_do_not_pick_up_binary_noise():
    rules = {"1": {"x": 0.2}}
    assert resolve_price([(1, "x")], 0.1, None, rules) == Decimal("0.30")


def test_dict_pairs_are_accepted():
    combination = [{"attribute_id": 1, "value": "Black"}]
    table = [{"combination": [{"attribute_id": "1", "value": "Black"}], "price": 7}]
    assert resolve_price(combination, "10", table) == Decimal("7.00")
