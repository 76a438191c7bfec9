from decimal import Decimal

from advisor_calc.utils import (
    compound,
    jsonable,
    parse_flag,
    parse_int_or_default,
    parse_numeric_or_default,
    parse_offset_map,
    round_currency,
)


def test_parse_numeric_strips_currency_formatting():
    assert parse_numeric_or_default("$1,200.50") == Decimal("1200.50")
    assert parse_numeric_or_default(" 4.5% ") == Decimal("4.5")
    assert parse_numeric_or_default(7) == Decimal("7")
    assert parse_numeric_or_default(0.25) == Decimal("0.25")


def test_parse_numeric_falls_back_to_default():
    assert parse_numeric_or_default(None) == Decimal("0")
    assert parse_numeric_or_default("") == Decimal("0")
    assert parse_numeric_or_default("n/a", default=30) == Decimal("30")
    assert parse_numeric_or_default(float("nan"), default=5) == Decimal("5")
    assert parse_numeric_or_default(float("inf")) == Decimal("0")
    assert parse_numeric_or_default(True, default=2) == Decimal("2")
    assert parse_numeric_or_default({"a": 1}) == Decimal("0")


def test_parse_int_truncates_toward_zero():
    assert parse_int_or_default("12.9") == 12
    assert parse_int_or_default("-3.7") == -3
    assert parse_int_or_default("abc", default=50) == 50
    assert parse_int_or_default(None, default=65) == 65
    assert parse_int_or_default("0", default=50) == 0


def test_parse_flag_handles_checkbox_values():
    assert parse_flag("true") is True
    assert parse_flag("false") is False
    assert parse_flag(0) is False
    assert parse_flag(None, default=True) is True
    assert parse_flag("", default=True) is True


def test_parse_offset_map_drops_invalid_entries():
    raw = {"0": "100", "x": 5, "3": "", "-1": 4, "7": "$2,500", "9": None}
    assert parse_offset_map(raw) == {0: Decimal("100"), 7: Decimal("2500")}
    assert parse_offset_map(None) == {}


def test_round_currency_rounds_halves_up():
    assert round_currency(Decimal("2.5")) == Decimal("3")
    assert round_currency(Decimal("-2.5")) == Decimal("-2")
    assert round_currency(Decimal("1.49")) == Decimal("1")
    assert round_currency(Decimal("-1.51")) == Decimal("-2")


def test_jsonable_converts_decimals():
    data = jsonable({1: Decimal("3"), "rate": Decimal("1.5"), "rows": [Decimal("2.0")]})
    assert data == {"1": 3, "rate": 1.5, "rows": [2]}
    assert isinstance(data["1"], int)


def test_parse_numeric_rejects_stray_characters():
    assert parse_numeric_or_default("abc123") == Decimal("0")
    assert parse_numeric_or_default("1e5x", default=7) == Decimal("7")
    assert parse_numeric_or_default("£ 2 500") == Decimal("2500")
    assert parse_numeric_or_default("-3.5%") == Decimal("-3.5")


def test_compound_with_total_loss():
    assert compound(Decimal("100"), Decimal("-1"), 0) == Decimal("100")
    assert compound(Decimal("100"), Decimal("-1"), 3) == Decimal("0")
    assert compound(Decimal("100"), Decimal("0.1"), 2) == Decimal("121.00")
