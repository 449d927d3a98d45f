# Monetary helpers shared by the calculator, the PDF and the web layer.
# Amounts are plain floats; only rounding goes through Decimal so that
# halves go away from zero (2.5 -> 3, -2.5 -> -3, 2.675 -> 2.68).

import math
from decimal import Decimal, ROUND_HALF_UP

PERCENTAGE = "percentage"
AMOUNT = "amount"

RUPEE = "₹"


def to_float(v, default=0.0):
    """None, "", NaN and junk strings all become `default`."""
    if v is None or isinstance(v, bool):
        return default
    try:
        f = float(str(v).replace(",", "").strip()) if isinstance(v, str) else float(v)
    except (TypeError, ValueError):
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def round_half_away(x, ndigits=0):
    q = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(float(x))).quantize(q, rounding=ROUND_HALF_UP))


def resolve_discount(base, kind, value):
    # flat amounts are not clamped to the base
    value = to_float(value)
    if kind == PERCENTAGE:
        return to_float(base) * value / 100.0
    return value


def _group_indian(digits):
    # 1234567 -> 12,34,567
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    parts = []
    while len(head) > 2:
        parts.insert(0, head[-2:])
        head = head[:-2]
    if head:
        parts.insert(0, head)
    return ",".join(parts) + "," + tail


def format_inr(amount, symbol=True):
    """en-IN currency text, e.g. 123456.5 -> '₹ 1,23,456.50'."""
    v = round_half_away(to_float(amount), 2)
    sign = "-" if v < 0 else ""
    rupees, paise = f"{abs(v):.2f}".split(".")
    body = f"{_group_indian(rupees)}.{paise}"
    return f"{sign}{RUPEE} {body}" if symbol else f"{sign}{body}"


def format_signed(amount):
    """Round-off style text with an explicit sign: +0.40 / -0.25."""
    v = round_half_away(to_float(amount), 2) or 0.0
    return f"{v:+.2f}"
