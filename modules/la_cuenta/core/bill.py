from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Tuple

from modules.la_cuenta.core.expression import evaluate
from modules.la_cuenta.core.normalize import (
    DEFAULT_PEOPLE,
    accept_fixed_tip,
    clamp_card_discount,
    clamp_people,
    clamp_tip_percentage,
    clamp_vat_refund,
    to_count,
    to_decimal,
)

logger = logging.getLogger(__name__)

IVA_RATE = Decimal("22")
IVA_GROSS_UP = Decimal("1.22")
LAW_17934_REFUND = Decimal("9")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class TipMode(str, Enum):
    PERCENTAGE = "porcentaje"
    FIXED = "fija"


class DiscountTiming(str, Enum):
    REFUND = "reembolso"
    INVOICE = "factura"


@dataclass(frozen=True)
class BillInput:
    amount_expression: str = ""
    tip_mode: TipMode = TipMode.PERCENTAGE
    tip_percentage: Decimal = Decimal("10")
    fixed_tip: Decimal = _ZERO
    wants_tip: bool = True
    card_discount_percentage: Decimal = _ZERO
    discount_timing: DiscountTiming = DiscountTiming.REFUND
    include_tip_in_discount_base: bool = True
    vat_refund_percentage: Decimal = LAW_17934_REFUND
    split_enabled: bool = False
    number_of_people: int = DEFAULT_PEOPLE

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for key, value in asdict(self).items():
            if isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, Decimal):
                data[key] = str(value)
            else:
                data[key] = value
        return data


@dataclass(frozen=True)
class PerPersonShare:
    numeric_amount: Decimal
    numeric_tip: Decimal
    card_discount_amount: Decimal
    vat_discount: Decimal
    final_price: Decimal
    total_savings: Decimal


@dataclass(frozen=True)
class BillResult:
    numeric_amount: Decimal = _ZERO
    discounted_invoice_amount: Decimal = _ZERO
    pos_amount: Decimal = _ZERO
    numeric_tip: Decimal = _ZERO
    subtotal: Decimal = _ZERO
    card_discount_base: Decimal = _ZERO
    card_discount_amount: Decimal = _ZERO
    amount_for_vat: Decimal = _ZERO
    taxable_amount: Decimal = _ZERO
    vat_discount: Decimal = _ZERO
    final_price: Decimal = _ZERO
    total_savings: Decimal = _ZERO
    savings_percentage: Decimal = _ZERO
    per_person: PerPersonShare | None = field(default=None)

    @property
    def has_results(self) -> bool:
        return self.numeric_amount > 0

    @classmethod
    def empty(cls) -> "BillResult":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        data = {
            key: str(value)
            for key, value in asdict(self).items()
            if key != "per_person"
        }
        data["has_results"] = self.has_results
        if self.per_person is None:
            data["per_person"] = None
        else:
            data["per_person"] = {
                key: str(value) for key, value in asdict(self.per_person).items()
            }
        return data


def _split(result: BillResult, people: int) -> PerPersonShare:
    divisor = Decimal(people)
    return PerPersonShare(
        numeric_amount=result.numeric_amount / divisor,
        numeric_tip=result.numeric_tip / divisor,
        card_discount_amount=result.card_discount_amount / divisor,
        vat_discount=result.vat_discount / divisor,
        final_price=result.final_price / divisor,
        total_savings=result.total_savings / divisor,
    )


def pos_amount_for(
    numeric_amount: Decimal,
    card_discount_percentage: Decimal,
    discount_timing: DiscountTiming,
) -> Decimal:
    """Amount charged on the card terminal.

    An invoice-timed discount is already off the charge; a refund-timed one
    comes back later, so the terminal charges the full bill.
    """
    if discount_timing is DiscountTiming.INVOICE:
        return numeric_amount * (1 - card_discount_percentage / _HUNDRED)
    return numeric_amount


def tip_for(bill: BillInput, pos_amount: Decimal) -> Decimal:
    if not bill.wants_tip:
        return _ZERO
    if bill.tip_mode is TipMode.PERCENTAGE:
        return pos_amount * bill.tip_percentage / _HUNDRED
    return bill.fixed_tip


def compute(bill: BillInput) -> BillResult:
    """Itemize what the diner pays for one bill.

    Every figure is derived from ``bill`` alone; nothing is rounded here.
    A bill whose amount does not evaluate to something positive yields the
    empty result.
    """
    numeric_amount = evaluate(bill.amount_expression)
    if numeric_amount <= 0:
        logger.debug("no positive amount in %r", bill.amount_expression)
        return BillResult.empty()

    card_pct = bill.card_discount_percentage
    invoice_timed = bill.discount_timing is DiscountTiming.INVOICE

    discounted_invoice_amount = pos_amount_for(numeric_amount, card_pct, bill.discount_timing)
    pos_amount = discounted_invoice_amount

    # Tip is always on what the terminal charges, never the pre-discount bill.
    numeric_tip = tip_for(bill, pos_amount)
    subtotal = numeric_amount + numeric_tip

    if invoice_timed:
        card_discount_base = numeric_amount
    elif bill.include_tip_in_discount_base:
        card_discount_base = subtotal
    else:
        card_discount_base = numeric_amount
    card_discount_amount = card_discount_base * card_pct / _HUNDRED

    # Invoice totals embed 22% IVA; the refund applies to the net, tip excluded.
    amount_for_vat = pos_amount if invoice_timed else numeric_amount
    taxable_amount = amount_for_vat / IVA_GROSS_UP
    vat_discount = taxable_amount * bill.vat_refund_percentage / _HUNDRED

    if invoice_timed:
        final_price = pos_amount + numeric_tip - vat_discount
    else:
        final_price = pos_amount + numeric_tip - card_discount_amount - vat_discount

    total_savings = subtotal - final_price
    savings_percentage = total_savings / subtotal * _HUNDRED if subtotal > 0 else _ZERO

    result = BillResult(
        numeric_amount=numeric_amount,
        discounted_invoice_amount=discounted_invoice_amount,
        pos_amount=pos_amount,
        numeric_tip=numeric_tip,
        subtotal=subtotal,
        card_discount_base=card_discount_base,
        card_discount_amount=card_discount_amount,
        amount_for_vat=amount_for_vat,
        taxable_amount=taxable_amount,
        vat_discount=vat_discount,
        final_price=final_price,
        total_savings=total_savings,
        savings_percentage=savings_percentage,
    )

    if bill.split_enabled and bill.number_of_people >= 2:
        return replace(result, per_person=_split(result, bill.number_of_people))
    return result


def _parse_flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raw = str(value).strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on", "si", "sí"}


def build_bill_input(
    amount_expression: str | None = None,
    *,
    tip_mode: str | None = None,
    tip_percentage: str | None = None,
    fixed_tip: str | None = None,
    wants_tip: Any = None,
    card_discount_percentage: str | None = None,
    discount_timing: str | None = None,
    include_tip_in_discount_base: Any = None,
    vat_refund_percentage: str | None = None,
    split_enabled: Any = None,
    number_of_people: str | None = None,
) -> Tuple[BillInput | None, str | None]:
    """Normalize raw form fields into a :class:`BillInput`.

    Out-of-range numbers are clamped and garbage becomes zero; only an
    unknown tip mode or discount timing is reported as an error.
    """
    try:
        mode = TipMode(tip_mode or TipMode.PERCENTAGE.value)
    except ValueError:
        return None, "Tipo de propina inválido."
    try:
        timing = DiscountTiming(discount_timing or DiscountTiming.REFUND.value)
    except ValueError:
        return None, "Tipo de descuento inválido."

    tip_pct = "10" if tip_percentage is None else tip_percentage
    vat_pct = str(LAW_17934_REFUND) if vat_refund_percentage is None else vat_refund_percentage

    bill = BillInput(
        amount_expression=amount_expression or "",
        tip_mode=mode,
        tip_percentage=to_decimal(clamp_tip_percentage(tip_pct)),
        fixed_tip=to_decimal(accept_fixed_tip(fixed_tip)),
        wants_tip=_parse_flag(wants_tip, True),
        card_discount_percentage=to_decimal(clamp_card_discount(card_discount_percentage)),
        discount_timing=timing,
        include_tip_in_discount_base=_parse_flag(include_tip_in_discount_base, True),
        vat_refund_percentage=to_decimal(clamp_vat_refund(vat_pct)),
        split_enabled=_parse_flag(split_enabled, False),
        number_of_people=to_count(clamp_people(number_of_people)),
    )
    return bill, None
