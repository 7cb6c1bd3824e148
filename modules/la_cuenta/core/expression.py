from __future__ import annotations

import ast
import logging
import re
from decimal import Decimal

logger = logging.getLogger(__name__)

MAX_EXPRESSION_LENGTH = 200

ALLOWED_NODES = {
    ast.Expression,
    ast.BinOp,
    ast.UnaryOp,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.USub,
    ast.UAdd,
    ast.Constant,
}

# Digits, the four operators, parentheses, the decimal point and whitespace.
_ALLOWED_TEXT = re.compile(r"^[0-9+\-*/().\s]*$")
_OPERATOR = re.compile(r"[+\-*/]")
# Python rejects "007"; the calculator reads it as 7.
_LEADING_ZEROS = re.compile(r"(?<![0-9.])0+(?=[0-9])")

_ZERO = Decimal("0")


class _Rejected(Exception):
    pass


def _to_decimal(node: ast.expr, source: str) -> Decimal:
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise _Rejected("Unsupported literal")
        # Read the literal as typed so long decimals skip float rounding.
        return Decimal(ast.get_source_segment(source, node) or str(node.value))

    if isinstance(node, ast.UnaryOp):
        operand = _to_decimal(node.operand, source)
        if isinstance(node.op, ast.USub):
            return -operand
        if isinstance(node.op, ast.UAdd):
            return operand
        raise _Rejected("Unsupported unary operator")

    if isinstance(node, ast.BinOp):
        left = _to_decimal(node.left, source)
        right = _to_decimal(node.right, source)
        if isinstance(node.op, ast.Add):
            return left + right
        if isinstance(node.op, ast.Sub):
            return left - right
        if isinstance(node.op, ast.Mult):
            return left * right
        if isinstance(node.op, ast.Div):
            return left / right
        raise _Rejected("Unsupported operator")

    raise _Rejected("Unsupported expression")


def _parse(expr: str) -> ast.Expression:
    tree = ast.parse(expr, mode="eval")
    for node in ast.walk(tree):
        if type(node) not in ALLOWED_NODES:
            raise _Rejected("Unsupported expression")
    return tree


def has_operator(expression: str | None) -> bool:
    if not expression:
        return False
    return bool(_OPERATOR.search(expression))


def evaluate(expression: str | None) -> Decimal:
    """Evaluate a bill amount typed as plain arithmetic, e.g. ``500+300``.

    Only ``+ - * /``, parentheses and decimal literals are understood. Blank,
    oversized or malformed input evaluates to zero instead of raising, and so
    does any result that is not a finite number.
    """
    if expression is None:
        return _ZERO
    text = str(expression).strip()
    if not text:
        return _ZERO
    if len(text) > MAX_EXPRESSION_LENGTH:
        logger.debug("expression rejected: %d chars", len(text))
        return _ZERO
    if not _ALLOWED_TEXT.match(text):
        logger.debug("expression rejected: unsupported characters")
        return _ZERO

    try:
        source = _LEADING_ZEROS.sub("", text)
        result = _to_decimal(_parse(source).body, source)
    except (SyntaxError, ValueError, RecursionError, ArithmeticError, _Rejected) as exc:
        logger.debug("expression rejected: %s", exc)
        return _ZERO

    if not result.is_finite():
        return _ZERO
    return result
