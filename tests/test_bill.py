from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP

import pytest

from modules.la_cuenta.core.bill import (
    BillInput,
    BillResult,
    DiscountTiming,
    TipMode,
    build_bill_input,
    compute,
)


def cents(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@pytest.fixture
def refund_bill() -> BillInput:
    return BillInput(
        amount_expression="1000",
        tip_mode=TipMode.PERCENTAGE,
        tip_percentage=Decimal("10"),
        wants_tip=True,
        card_discount_percentage=Decimal("20"),
        discount_timing=DiscountTiming.REFUND,
        include_tip_in_discount_base=True,
        vat_refund_percentage=Decimal("0"),
    )


def test_invoice_discount_with_law_rate_refund():
    bill = BillInput(
        amount_expression="990",
        card_discount_percentage=Decimal("25"),
        discount_timing=DiscountTiming.INVOICE,
        vat_refund_percentage=Decimal("9"),
        wants_tip=False,
    )
    result = compute(bill)

    assert result.numeric_amount == 990
    assert result.discounted_invoice_amount == Decimal("742.5")
    assert result.pos_amount == Decimal("742.5")
    assert result.numeric_tip == 0
    assert result.card_discount_amount == Decimal("247.5")
    assert result.taxable_amount == Decimal("742.5") / Decimal("1.22")
    assert cents(result.taxable_amount) == Decimal("608.61")
    assert cents(result.vat_discount) == Decimal("54.77")
    assert cents(result.final_price) == Decimal("687.73")
    assert cents(result.total_savings) == Decimal("302.27")


def test_refund_discount_including_tip(refund_bill):
    result = compute(refund_bill)

    assert result.pos_amount == 1000
    assert result.numeric_tip == 100
    assert result.subtotal == 1100
    assert result.card_discount_base == 1100
    assert result.card_discount_amount == 220
    assert result.vat_discount == 0
    assert result.final_price == 880
    assert result.total_savings == 220
    assert result.savings_percentage == 20
    assert result.per_person is None


def test_refund_discount_excluding_tip(refund_bill):
    result = compute(replace(refund_bill, include_tip_in_discount_base=False))

    assert result.card_discount_amount == 200
    assert result.final_price == 900
    assert result.total_savings == 200


def test_split_divides_the_aggregates(refund_bill):
    bill = BillInput(
        amount_expression=refund_bill.amount_expression,
        tip_percentage=refund_bill.tip_percentage,
        card_discount_percentage=refund_bill.card_discount_percentage,
        vat_refund_percentage=refund_bill.vat_refund_percentage,
        split_enabled=True,
        number_of_people=4,
    )
    result = compute(bill)

    assert result.final_price == 880
    assert result.per_person is not None
    assert result.per_person.final_price == 220
    assert result.per_person.total_savings == 55
    assert result.per_person.numeric_amount == 250
    assert result.per_person.numeric_tip == 25
    assert result.per_person.card_discount_amount == 55


def test_split_needs_at_least_two_people(refund_bill):
    bill = BillInput(amount_expression="1000", split_enabled=True, number_of_people=1)
    assert compute(bill).per_person is None


def test_compute_is_idempotent(refund_bill):
    assert compute(refund_bill) == compute(refund_bill)


@pytest.mark.parametrize("expression", ["", "abc", "-100", "100-300", "0"])
def test_no_positive_amount_gives_the_empty_result(expression):
    bill = BillInput(amount_expression=expression, tip_mode=TipMode.FIXED, fixed_tip=Decimal("50"))
    result = compute(bill)

    assert result == BillResult.empty()
    assert not result.has_results
    assert result.final_price == 0
    assert result.savings_percentage == 0


def test_tip_is_computed_on_the_pos_amount():
    bill = BillInput(
        amount_expression="1000",
        tip_percentage=Decimal("10"),
        card_discount_percentage=Decimal("20"),
        discount_timing=DiscountTiming.INVOICE,
        vat_refund_percentage=Decimal("9"),
    )
    result = compute(bill)

    assert result.pos_amount == 800
    assert result.numeric_tip == 80
    assert result.subtotal == 1080
    assert result.card_discount_amount == 200
    assert result.amount_for_vat == 800
    assert result.vat_discount == Decimal("800") / Decimal("1.22") * Decimal("9") / Decimal("100")
    assert result.final_price == 800 + 80 - result.vat_discount
    assert result.total_savings == 1080 - result.final_price


def test_unwanted_tip_is_zero_in_any_mode():
    for mode in TipMode:
        bill = BillInput(amount_expression="1000", tip_mode=mode, fixed_tip=Decimal("50"), wants_tip=False)
        assert compute(bill).numeric_tip == 0


def test_fixed_tip_ignores_the_percentage():
    bill = BillInput(
        amount_expression="1000",
        tip_mode=TipMode.FIXED,
        tip_percentage=Decimal("10"),
        fixed_tip=Decimal("150"),
        vat_refund_percentage=Decimal("0"),
    )
    result = compute(bill)

    assert result.numeric_tip == 150
    assert result.final_price == 1150


def test_vat_refund_excludes_the_tip():
    bill = BillInput(amount_expression="1220", tip_percentage=Decimal("10"))
    result = compute(bill)

    assert result.taxable_amount == 1000
    assert result.vat_discount == 90
    assert result.final_price == 1220 + 122 - 90


def test_final_price_is_not_floored():
    bill = BillInput(
        amount_expression="1000",
        card_discount_percentage=Decimal("100"),
        discount_timing=DiscountTiming.REFUND,
        include_tip_in_discount_base=True,
        vat_refund_percentage=Decimal("22"),
    )
    result = compute(bill)

    assert result.final_price < 0
    assert result.final_price == -result.vat_discount
    assert result.total_savings > result.subtotal


def test_build_bill_input_clamps_raw_fields():
    bill, error = build_bill_input(
        "500+500",
        card_discount_percentage="150",
        vat_refund_percentage="30",
        tip_percentage="abc",
        fixed_tip="-20",
        number_of_people="1",
        split_enabled="true",
        wants_tip="false",
        discount_timing="factura",
        tip_mode="fija",
    )

    assert error is None
    assert bill.card_discount_percentage == 100
    assert bill.vat_refund_percentage == 22
    assert bill.tip_percentage == 0
    assert bill.fixed_tip == 0
    assert bill.number_of_people == 2
    assert bill.split_enabled is True
    assert bill.wants_tip is False
    assert bill.discount_timing is DiscountTiming.INVOICE
    assert bill.tip_mode is TipMode.FIXED


def test_build_bill_input_defaults():
    bill, error = build_bill_input("1000")

    assert error is None
    assert bill.tip_mode is TipMode.PERCENTAGE
    assert bill.tip_percentage == 10
    assert bill.vat_refund_percentage == 9
    assert bill.card_discount_percentage == 0
    assert bill.discount_timing is DiscountTiming.REFUND
    assert bill.wants_tip is True
    assert bill.include_tip_in_discount_base is True
    assert bill.split_enabled is False
    assert bill.number_of_people == 2


def test_build_bill_input_rejects_unknown_modes():
    bill, error = build_bill_input("1000", tip_mode="propina")
    assert bill is None
    assert error

    bill, error = build_bill_input("1000", discount_timing="mañana")
    assert bill is None
    assert error


def test_result_to_dict():
    bill = BillInput(amount_expression="1000", split_enabled=True, number_of_people=2)
    data = compute(bill).to_dict()

    assert data["has_results"] is True
    assert Decimal(data["numeric_amount"]) == 1000
    assert Decimal(data["per_person"]["numeric_amount"]) == 500

    empty = BillResult.empty().to_dict()
    assert empty["has_results"] is False
    assert empty["per_person"] is None
