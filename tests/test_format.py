from decimal import Decimal

import pytest

from modules.la_cuenta.core.format import format_money, format_percent


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("0"), "0,00"),
        (Decimal("742.5"), "742,50"),
        (Decimal("1234.5"), "1.234,50"),
        (Decimal("1234567.891"), "1.234.567,89"),
        (Decimal("742.5") / Decimal("1.22"), "608,61"),
        (Decimal("0.005"), "0,01"),
        (Decimal("-54.774"), "-54,77"),
        (Decimal("-0.001"), "0,00"),
        (1500, "1.500,00"),
        (2.675, "2,68"),
    ],
)
def test_format_money(value, expected):
    assert format_money(value) == expected


def test_format_money_handles_large_amounts():
    assert format_money(Decimal("1e30")) == "1" + ".000" * 10 + ",00"


def test_format_money_does_not_touch_the_value():
    value = Decimal("1234.5678")
    format_money(value)
    assert value == Decimal("1234.5678")


def test_format_percent():
    assert format_percent(Decimal("20")) == "20,0"
    assert format_percent(Decimal("30.5339")) == "30,5"
    assert format_percent(Decimal("12.5"), 2) == "12,50"
