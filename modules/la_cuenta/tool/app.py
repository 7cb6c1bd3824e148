from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from modules.la_cuenta.core.bill import (
    BillResult,
    DiscountTiming,
    TipMode,
    build_bill_input,
    compute,
)
from modules.la_cuenta.core.expression import evaluate, has_operator
from modules.la_cuenta.core.format import format_money, format_percent
from modules.la_cuenta.core.normalize import (
    accept_fixed_tip,
    clamp_card_discount,
    clamp_people,
    clamp_tip_percentage,
    clamp_vat_refund,
)
from modules.la_cuenta.core.receipts import breakdown_lines, invoice_view, pos_voucher_view
from modules.la_cuenta.core.tip_mode import base_amount_for, convert_tip_mode
from mozo.errors import ValidationNormalizeMiddleware
from mozo.settings import get_settings, shared_templates_dir

app = FastAPI(title="Mozo, la cuenta!")
app.add_middleware(ValidationNormalizeMiddleware)

BASE_DIR = Path(__file__).parent
ROOT_DIR = BASE_DIR.parents[2]
SHARED_TEMPLATES = shared_templates_dir(ROOT_DIR)

templates = Jinja2Templates(
    directory=[str(BASE_DIR / "templates"), str(SHARED_TEMPLATES)]
)
templates.env.auto_reload = True
templates.env.cache = {}

MONEY_FIELDS = (
    "numeric_amount",
    "discounted_invoice_amount",
    "pos_amount",
    "numeric_tip",
    "subtotal",
    "card_discount_amount",
    "taxable_amount",
    "vat_discount",
    "final_price",
    "total_savings",
)
PER_PERSON_FIELDS = (
    "numeric_amount",
    "numeric_tip",
    "card_discount_amount",
    "vat_discount",
    "final_price",
    "total_savings",
)

NORMALIZERS = {
    "card_discount": clamp_card_discount,
    "vat_refund": clamp_vat_refund,
    "tip_percentage": clamp_tip_percentage,
    "people": clamp_people,
}


def _formatted(result: BillResult) -> Dict[str, Any]:
    formatted: Dict[str, Any] = {
        name: format_money(getattr(result, name)) for name in MONEY_FIELDS
    }
    formatted["savings_percentage"] = format_percent(result.savings_percentage)
    if result.per_person is not None:
        formatted["per_person"] = {
            name: format_money(getattr(result.per_person, name))
            for name in PER_PERSON_FIELDS
        }
    return formatted


@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    base_path = request.url.path.rstrip("/")
    settings = get_settings()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "base_path": base_path,
            "default_tip_percent": settings.default_tip_percent,
            "default_vat_refund": settings.default_vat_refund,
        },
    )


@app.post("/calculate")
def calculate(
    amount_expression: str | None = Form(None),
    tip_mode: str | None = Form(None),
    tip_percentage: str | None = Form(None),
    fixed_tip: str | None = Form(None),
    wants_tip: str | None = Form(None),
    card_discount_percentage: str | None = Form(None),
    discount_timing: str | None = Form(None),
    include_tip_in_discount_base: str | None = Form(None),
    vat_refund_percentage: str | None = Form(None),
    split_enabled: str | None = Form(None),
    number_of_people: str | None = Form(None),
):
    bill, error = build_bill_input(
        amount_expression,
        tip_mode=tip_mode,
        tip_percentage=tip_percentage,
        fixed_tip=fixed_tip,
        wants_tip=wants_tip,
        card_discount_percentage=card_discount_percentage,
        discount_timing=discount_timing,
        include_tip_in_discount_base=include_tip_in_discount_base,
        vat_refund_percentage=vat_refund_percentage,
        split_enabled=split_enabled,
        number_of_people=number_of_people,
    )
    if error or bill is None:
        return JSONResponse({"error": error}, status_code=400)

    result = compute(bill)
    payload: Dict[str, Any] = {
        "input": bill.to_dict(),
        "result": result.to_dict(),
        "formatted": _formatted(result),
        "has_operator": has_operator(bill.amount_expression),
        "breakdown": [],
        "invoice": None,
        "pos_voucher": None,
    }
    if result.has_results:
        payload["breakdown"] = [line.to_dict() for line in breakdown_lines(bill, result)]
        payload["invoice"] = invoice_view(bill, result).to_dict()
        payload["pos_voucher"] = pos_voucher_view(bill, result).to_dict()
    return payload


@app.post("/evaluate")
def evaluate_expression(expression: str | None = Form(None)):
    value = evaluate(expression)
    return {
        "value": str(value),
        "formatted": format_money(value),
        "has_operator": has_operator(expression),
    }


@app.post("/tip-mode")
def toggle_tip_mode(
    from_mode: str = Form(...),
    to_mode: str = Form(...),
    amount_expression: str | None = Form(None),
    card_discount_percentage: str | None = Form(None),
    discount_timing: str | None = Form(None),
    tip_percentage: str | None = Form(None),
    fixed_tip: str | None = Form(None),
):
    try:
        source = TipMode(from_mode)
        target = TipMode(to_mode)
    except ValueError:
        return JSONResponse({"error": "Tipo de propina inválido."}, status_code=400)
    try:
        timing = DiscountTiming(discount_timing or DiscountTiming.REFUND.value)
    except ValueError:
        return JSONResponse({"error": "Tipo de descuento inválido."}, status_code=400)

    base = base_amount_for(
        amount_expression,
        clamp_card_discount(card_discount_percentage),
        timing,
    )
    conversion = convert_tip_mode(
        source,
        target,
        base,
        clamp_tip_percentage(tip_percentage),
        accept_fixed_tip(fixed_tip),
    )
    return {
        "tip_mode": conversion.mode.value,
        "tip_percentage": conversion.percentage,
        "fixed_tip": conversion.fixed,
        "base_amount": str(base),
    }


@app.post("/normalize")
def normalize_field(
    field: str = Form(...),
    value: str | None = Form(None),
    current: str = Form(""),
):
    if field == "fixed_tip":
        return {"field": field, "value": accept_fixed_tip(value, current)}
    normalizer = NORMALIZERS.get(field)
    if normalizer is None:
        return JSONResponse({"error": "Campo desconocido."}, status_code=400)
    return {"field": field, "value": normalizer(value)}
