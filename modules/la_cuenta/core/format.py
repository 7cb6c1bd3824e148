from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any

THOUSAND_SEP = "."
DECIMAL_SEP = ","


def _group_thousands(value: str, sep: str) -> str:
    if not sep:
        return value
    parts = []
    while value:
        parts.append(value[-3:])
        value = value[:-3]
    return sep.join(reversed(parts))


def _format_number(value: Any, decimals: int) -> str:
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    quant = Decimal("1") if decimals == 0 else Decimal("1." + "0" * decimals)
    with localcontext() as ctx:
        # quantize needs room for every integer digit of large bills
        ctx.prec = max(ctx.prec, number.adjusted() + decimals + 2)
        rounded = number.quantize(quant, rounding=ROUND_HALF_UP)
    normalized = format(rounded, "f")

    if "." in normalized:
        integer_part, fraction = normalized.split(".", 1)
    else:
        integer_part, fraction = normalized, ""

    sign = ""
    if integer_part.startswith("-"):
        integer_part = integer_part[1:]
        # -0,00 reads as zero
        if rounded != 0:
            sign = "-"

    grouped = _group_thousands(integer_part, THOUSAND_SEP)
    if decimals > 0:
        return f"{sign}{grouped}{DECIMAL_SEP}{fraction}"
    return f"{sign}{grouped}"


def format_money(value: Any) -> str:
    """Render an amount the way Uruguayan receipts print it: ``1.234,50``."""
    return _format_number(value, 2)


def format_percent(value: Any, decimals: int = 1) -> str:
    return _format_number(value, decimals)
