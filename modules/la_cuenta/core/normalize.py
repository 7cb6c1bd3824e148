from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

CARD_DISCOUNT_RANGE = (Decimal("0"), Decimal("100"))
VAT_REFUND_RANGE = (Decimal("0"), Decimal("22"))
TIP_PERCENTAGE_RANGE = (Decimal("0"), Decimal("100"))
PEOPLE_RANGE = (Decimal("2"), Decimal("99"))

DEFAULT_PEOPLE = 2


def _parse_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None

    compact = raw.replace(" ", "")
    if "," in compact and "." in compact:
        last_comma = compact.rfind(",")
        last_dot = compact.rfind(".")
        if last_comma > last_dot:
            compact = compact.replace(".", "")
            compact = compact.replace(",", ".")
        else:
            compact = compact.replace(",", "")
    elif "," in compact:
        compact = compact.replace(",", ".")

    try:
        parsed = Decimal(compact)
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _bound_text(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(int(value))
    return str(value)


def to_decimal(raw: Any) -> Decimal:
    """Parse a form value, treating anything unparseable as zero."""
    parsed = _parse_decimal(raw)
    return parsed if parsed is not None else Decimal("0")


def to_count(raw: Any, default: int = DEFAULT_PEOPLE) -> int:
    parsed = _parse_decimal(raw)
    if parsed is None:
        return default
    return int(parsed)


def clamp(raw: Any, minimum: Decimal | int, maximum: Decimal | int) -> str:
    """Pull a raw numeric field into ``[minimum, maximum]``.

    Non-numeric input becomes ``""`` (unset). Values already in range are
    returned as typed so the form keeps what the user wrote.
    """
    parsed = _parse_decimal(raw)
    if parsed is None:
        return ""
    low = Decimal(str(minimum))
    high = Decimal(str(maximum))
    if parsed < low:
        return _bound_text(low)
    if parsed > high:
        return _bound_text(high)
    return str(raw).strip()


def clamp_card_discount(raw: Any) -> str:
    return clamp(raw, *CARD_DISCOUNT_RANGE)


def clamp_vat_refund(raw: Any) -> str:
    return clamp(raw, *VAT_REFUND_RANGE)


def clamp_tip_percentage(raw: Any) -> str:
    return clamp(raw, *TIP_PERCENTAGE_RANGE)


def clamp_people(raw: Any) -> str:
    return clamp(raw, *PEOPLE_RANGE)


def accept_fixed_tip(raw: Any, current: str = "") -> str:
    # A fixed tip has no ceiling; negative or garbage edits are ignored.
    text = "" if raw is None else str(raw).strip()
    if not text:
        return ""
    parsed = _parse_decimal(text)
    if parsed is None or parsed < 0:
        return current
    return text
