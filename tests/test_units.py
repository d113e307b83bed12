import pytest

from wallet_scan.units import format_units, parse_decimals, parse_raw_amount


def test_format_units_whole_and_fractional():
    assert format_units(10**18, 18) == "1"
    assert format_units(15 * 10**17, 18) == "1.5"
    assert format_units(1, 18) == "0.000000000000000001"
    assert format_units(2_500_000_000, 9) == "2.5"


def test_format_units_keeps_precision_for_large_values():
    value = 123456789012345678901234567890
    assert format_units(value, 18) == "123456789012.34567890123456789"


def test_format_units_zero_decimals_and_zero_value():
    assert format_units(42, 0) == "42"
    assert format_units(0, 6) == "0"


def test_format_units_rejects_negative_input():
    with pytest.raises(ValueError):
        format_units(-1, 18)
    with pytest.raises(ValueError):
        format_units(1, -1)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (0, 0),
        (1234, 1234),
        ("1234", 1234),
        ("0x0", 0),
        ("0x", 0),
        ("0xde0b6b3a7640000", 10**18),
        (" 0X10 ", 16),
    ],
)
def test_parse_raw_amount(raw, expected):
    assert parse_raw_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, True, 1.5, "1.5", "abc", -1, "-5", {}])
def test_parse_raw_amount_rejects_invalid(raw):
    with pytest.raises(ValueError):
        parse_raw_amount(raw)


def test_parse_decimals_falls_back_to_default():
    assert parse_decimals(None, 18) == 18
    assert parse_decimals("", 9) == 9
    assert parse_decimals("6", 18) == 6
    assert parse_decimals(0, 18) == 0
    with pytest.raises(ValueError):
        parse_decimals(-2, 18)
