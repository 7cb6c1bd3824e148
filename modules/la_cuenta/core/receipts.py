from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from modules.la_cuenta.core.bill import (
    IVA_RATE,
    BillInput,
    BillResult,
    DiscountTiming,
    TipMode,
)
from modules.la_cuenta.core.format import format_money, format_percent


@dataclass(frozen=True)
class ReceiptLine:
    label: str
    amount: Decimal
    note: str | None = None
    deduction: bool = False

    def to_dict(self) -> Dict[str, Any]:
        sign = "- " if self.deduction else ""
        return {
            "label": self.label,
            "amount": str(self.amount),
            "formatted": f"{sign}$ {format_money(self.amount)}",
            "note": self.note,
        }


@dataclass(frozen=True)
class ReceiptView:
    title: str
    lines: List[ReceiptLine] = field(default_factory=list)
    total_label: str = "Total"
    total: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "lines": [line.to_dict() for line in self.lines],
            "total_label": self.total_label,
            "total": str(self.total),
            "total_formatted": f"$ {format_money(self.total)}",
        }


def _pct(value: Decimal) -> str:
    # "12,5%", never "12,50%"
    return f"{format_percent(value, 2).rstrip('0').rstrip(',')}%"


def _invoice_discount_applies(bill: BillInput) -> bool:
    return bill.discount_timing is DiscountTiming.INVOICE and bill.card_discount_percentage > 0


def invoice_view(bill: BillInput, result: BillResult) -> ReceiptView:
    lines = [ReceiptLine("Consumo", result.numeric_amount)]
    if _invoice_discount_applies(bill):
        lines.append(
            ReceiptLine(
                f"Descuento ({_pct(bill.card_discount_percentage)})",
                result.card_discount_amount,
                deduction=True,
            )
        )
    lines.append(ReceiptLine(f"Subtotal gravado ({_pct(IVA_RATE)})", result.taxable_amount))
    lines.append(ReceiptLine(f"IVA {_pct(IVA_RATE)}", result.taxable_amount * IVA_RATE / 100))
    return ReceiptView(
        title="Factura e-Ticket",
        lines=lines,
        total_label="Total",
        total=result.amount_for_vat,
    )


def pos_voucher_view(bill: BillInput, result: BillResult) -> ReceiptView:
    lines = [ReceiptLine("Importe", result.pos_amount)]
    if result.numeric_tip > 0:
        lines.append(ReceiptLine("Propina", result.numeric_tip))
    if bill.vat_refund_percentage > 0:
        lines.append(
            ReceiptLine("Devolución IVA Ley 17.934", result.vat_discount, deduction=True)
        )
    return ReceiptView(
        title="Voucher POS",
        lines=lines,
        total_label="Total a pagar",
        total=result.pos_amount + result.numeric_tip - result.vat_discount,
    )


def breakdown_lines(bill: BillInput, result: BillResult) -> List[ReceiptLine]:
    """Lines of the on-screen summary, in display order."""
    lines = [ReceiptLine("Cuenta", result.numeric_amount)]
    pct = bill.card_discount_percentage

    if _invoice_discount_applies(bill):
        lines.append(
            ReceiptLine(f"Dto. en factura ({_pct(pct)})", result.card_discount_amount, deduction=True)
        )
        lines.append(ReceiptLine("Monto facturado", result.discounted_invoice_amount))
        lines.append(ReceiptLine("Monto en POS", result.pos_amount))

    if result.numeric_tip > 0:
        label = "Propina"
        if bill.tip_mode is TipMode.PERCENTAGE:
            label = f"Propina ({_pct(bill.tip_percentage)})"
        lines.append(ReceiptLine(label, result.numeric_tip))

    if bill.discount_timing is DiscountTiming.REFUND:
        lines.append(ReceiptLine("Subtotal", result.subtotal))
        if pct > 0:
            note = None
            if result.numeric_tip > 0:
                note = (
                    "Sobre cuenta + propina"
                    if bill.include_tip_in_discount_base
                    else "Solo sobre cuenta"
                )
            lines.append(
                ReceiptLine(
                    f"Dto. tarjeta ({_pct(pct)})",
                    result.card_discount_amount,
                    note=note,
                    deduction=True,
                )
            )

    if bill.vat_refund_percentage > 0:
        lines.append(
            ReceiptLine(
                f"Devolución IVA ({_pct(bill.vat_refund_percentage)})",
                result.vat_discount,
                note=f"Sobre gravado $ {format_money(result.taxable_amount)}",
                deduction=True,
            )
        )
    return lines
