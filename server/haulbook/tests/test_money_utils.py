from decimal import Decimal

from haulbook.utils import clean_zero, parse_decimal, quantize_money, quantize_to, safe_div, to_decimal


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal("137.423")) == Decimal("137.42")
    assert quantize_money(Decimal("137.425")) == Decimal("137.43")


def test_quantize_money_accepts_common_types_and_none():
    assert quantize_money(12) == Decimal("12.00")
    assert quantize_money(12.3) == Decimal("12.30")
    assert quantize_money("12.345") == Decimal("12.35")
    assert quantize_money(None) is None


def test_parse_decimal_rejects_garbage():
    assert parse_decimal(" 42.5 ") == Decimal("42.5")
    assert parse_decimal("abc") is None
    assert parse_decimal("NaN") is None
    assert parse_decimal(True) is None
    assert parse_decimal(None) is None
    assert to_decimal("n/a") == Decimal("0")


def test_zero_helpers_never_return_negative_zero():
    assert str(clean_zero(Decimal("-0.00"))) == "0.00"
    assert str(quantize_to(Decimal("-0.004"), "0.01")) == "0.00"
    assert safe_div(Decimal("10"), Decimal("0")) == Decimal("0")


def test_parse_decimal_rejects_out_of_range_magnitudes():
    assert parse_decimal("1e30") is None
    assert parse_decimal(Decimal("-1e20")) is None
    assert parse_decimal("999999999999.99") == Decimal("999999999999.99")
    assert to_decimal("1e30") == Decimal("0")
