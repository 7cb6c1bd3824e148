from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any

from modules.la_cuenta.core.bill import DiscountTiming, TipMode, pos_amount_for
from modules.la_cuenta.core.expression import evaluate
from modules.la_cuenta.core.normalize import TIP_PERCENTAGE_RANGE, to_decimal

_CENTS = Decimal("0.01")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class TipModeConversion:
    mode: TipMode
    percentage: str
    fixed: str


def _round(value: Decimal, exp: Decimal) -> Decimal:
    with localcontext() as ctx:
        # a 200-char bill or an unbounded fixed tip can outgrow 28 digits
        ctx.prec = max(ctx.prec, value.adjusted() + 4)
        return value.quantize(exp, rounding=ROUND_HALF_UP)


def _money_text(value: Decimal) -> str:
    rounded = _round(value, _CENTS)
    if rounded == rounded.to_integral_value():
        return str(int(rounded))
    return format(rounded, "f")


def convert_tip_mode(
    from_mode: TipMode,
    to_mode: TipMode,
    base_amount: Decimal,
    current_percentage: str,
    current_fixed: str,
) -> TipModeConversion:
    """Carry the tip across a percentage/fixed toggle.

    ``base_amount`` is the POS amount at the time of the toggle, so the tip
    keeps its monetary value even when an invoice discount moved the base.
    An empty string means the field is unset.
    """
    unchanged = TipModeConversion(to_mode, current_percentage, current_fixed)
    if from_mode is to_mode or base_amount <= 0:
        return unchanged

    if to_mode is TipMode.FIXED:
        pct = to_decimal(current_percentage)
        fixed = _round(base_amount * pct / _HUNDRED, _CENTS)
        fixed_text = _money_text(fixed) if fixed > 0 else ""
        return TipModeConversion(to_mode, current_percentage, fixed_text)

    fixed = to_decimal(current_fixed)
    pct = _round(_HUNDRED * fixed / base_amount, Decimal("1"))
    low, high = TIP_PERCENTAGE_RANGE
    pct = max(low, min(high, pct))
    pct_text = str(int(pct)) if pct > 0 else ""
    return TipModeConversion(to_mode, pct_text, current_fixed)


def base_amount_for(
    amount_expression: str | None,
    card_discount_percentage: Any,
    discount_timing: DiscountTiming,
) -> Decimal:
    numeric_amount = evaluate(amount_expression)
    if numeric_amount <= 0:
        return Decimal("0")
    return pos_amount_for(numeric_amount, to_decimal(card_discount_percentage), discount_timing)
