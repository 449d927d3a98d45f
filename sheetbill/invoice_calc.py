"""Invoice totals calculator.

Pure functions over an immutable invoice draft: a tuple of `LineItem` plus one
`GlobalAdjustments`. Nothing here does I/O or keeps state; the web layer
rebuilds the draft from the form on every change and calls `compute_totals`
again.

Order of operations (each step's base depends on the previous one):

    subtotal            = sum(qty * price)
    discounted subtotal = subtotal - item discounts - global discount
    pre-deduction total = discounted subtotal + item tax + charges - extra discount
    pre-round total     = pre-deduction - TDS - TDS under GST + TCS
    final total         = round(pre-round) when round-off is on

Item tax is charged on each item's own taxable amount; the global discount
does not reduce it.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from sheetbill.money import resolve_discount, round_half_away, to_float


# ==============================
# Errors
# ==============================
class InvoiceError(ValueError):
    """A user-input problem the form can show next to `field`."""

    def __init__(self, field, message):
        super().__init__(message)
        self.field = field
        self.message = message


class InvalidQuantity(InvoiceError):
    pass


class InvalidUnitPrice(InvoiceError):
    pass


class DiscountExceedsBase(InvoiceError):
    pass


class DeductionConflict(InvoiceError):
    pass


def errors_by_field(errors):
    return {e.field: e.message for e in errors}


# ==============================
# Draft types
# ==============================
class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class AppliedOn(str, Enum):
    NET = "net"            # subtotal
    GRAND_TOTAL = "total"  # total before TDS/TCS


class WithholdingKind(str, Enum):
    TDS = "tds"
    TCS = "tcs"


@dataclass(frozen=True)
class Discount:
    kind: DiscountKind = DiscountKind.PERCENTAGE
    value: float = 0.0

    def amount_on(self, base):
        return resolve_discount(base, self.kind, self.value)


@dataclass(frozen=True)
class LineItem:
    name: str = ""
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    discount: Discount = field(default_factory=Discount)
    tax_rate_percent: float = 0.0
    hsn_sac: str = ""
    unit: str = ""


def new_line_item(name="", quantity=None, unit_price=None, **kwargs):
    """The "add item" path: a missing quantity starts at 1."""
    if quantity is None or (isinstance(quantity, float) and math.isnan(quantity)):
        quantity = 1
    return LineItem(name=name, quantity=quantity, unit_price=unit_price, **kwargs)


@dataclass(frozen=True)
class AdditionalCharge:
    name: str
    amount: float = 0.0


@dataclass(frozen=True)
class Deduction:
    rate_percent: float = 0.0
    amount: Optional[float] = None  # None: derive from the rate
    applied_on: AppliedOn = AppliedOn.NET


@dataclass(frozen=True)
class Withholding:
    """Either TDS (deducted) or TCS (collected), never both."""
    kind: WithholdingKind
    rate_percent: float = 0.0
    amount: Optional[float] = None  # None: derive from the rate
    applied_on: AppliedOn = AppliedOn.NET
    section: str = ""


@dataclass(frozen=True)
class GlobalAdjustments:
    global_discount: Discount = field(default_factory=Discount)
    additional_charges: Tuple[AdditionalCharge, ...] = ()
    extra_discount: float = 0.0
    withholding: Optional[Withholding] = None
    tds_under_gst: Optional[Deduction] = None
    round_off: bool = False


# ==============================
# Results
# ==============================
@dataclass(frozen=True)
class NormalizedItem:
    item: LineItem
    quantity: float
    unit_price: float
    base_amount: float
    discount_amount: float
    taxable_amount: float
    tax_amount: float
    line_total: float

    @property
    def hsn_sac(self):
        return self.item.hsn_sac

    @property
    def tax_rate_percent(self):
        return to_float(self.item.tax_rate_percent)


@dataclass(frozen=True)
class TotalsResult:
    subtotal: float
    item_discounts_total: float
    global_discount_amount: float
    extra_discount: float
    total_discount: float
    discounted_subtotal: float
    tax_amount: float
    additional_charges_total: float
    pre_deduction_total: float
    tds_amount: float
    tds_under_gst_amount: float
    tcs_amount: float
    pre_round_total: float
    round_off_amount: float
    final_total: float
    total_quantity: float
    items: Tuple[NormalizedItem, ...] = ()

    @property
    def taxable_amount(self):
        """Sum of the items' taxable amounts (after item discounts only)."""
        return sum(i.taxable_amount for i in self.items)


# ==============================
# Line-item normalizer
# ==============================
def normalize_item(item):
    # null/NaN quantity or price counts as 0 once the item exists
    qty = to_float(item.quantity)
    price = to_float(item.unit_price)
    base = qty * price
    discount = item.discount.amount_on(base)
    taxable = base - discount
    tax = taxable * to_float(item.tax_rate_percent) / 100.0
    return NormalizedItem(
        item=item,
        quantity=qty,
        unit_price=price,
        base_amount=base,
        discount_amount=discount,
        taxable_amount=taxable,
        tax_amount=tax,
        line_total=taxable + tax,
    )


def normalize_items(items):
    return tuple(i if isinstance(i, NormalizedItem) else normalize_item(i) for i in items)


# ==============================
# Round-off resolver
# ==============================
def resolve_round_off(total, enabled):
    """Return (final_total, signed round-off amount)."""
    if not enabled:
        return total, 0.0
    final = round_half_away(total)
    return final, final - total


# ==============================
# Charge & deduction aggregator
# ==============================
def compute_totals(items, adjustments=None):
    adj = adjustments or GlobalAdjustments()
    lines = normalize_items(items)

    subtotal = sum(i.base_amount for i in lines)
    item_discounts = sum(i.discount_amount for i in lines)
    global_discount = adj.global_discount.amount_on(subtotal)
    discounted_subtotal = subtotal - item_discounts - global_discount
    tax_amount = sum(i.tax_amount for i in lines)
    charges_total = sum(to_float(c.amount) for c in adj.additional_charges)
    extra_discount = to_float(adj.extra_discount)

    pre_deduction = discounted_subtotal + tax_amount + charges_total - extra_discount

    # amounts are taken as supplied; see withholding_amounts()
    w = adj.withholding
    tds = to_float(w.amount) if w is not None and w.kind == WithholdingKind.TDS else 0.0
    tds_gst = to_float(adj.tds_under_gst.amount) if adj.tds_under_gst is not None else 0.0
    tcs = to_float(w.amount) if w is not None and w.kind == WithholdingKind.TCS else 0.0

    total = pre_deduction
    total -= tds
    total -= tds_gst
    total += tcs

    final, round_off = resolve_round_off(total, adj.round_off)

    return TotalsResult(
        subtotal=subtotal,
        item_discounts_total=item_discounts,
        global_discount_amount=global_discount,
        extra_discount=extra_discount,
        total_discount=item_discounts + global_discount + extra_discount,
        discounted_subtotal=discounted_subtotal,
        tax_amount=tax_amount,
        additional_charges_total=charges_total,
        pre_deduction_total=pre_deduction,
        tds_amount=tds,
        tds_under_gst_amount=tds_gst,
        tcs_amount=tcs,
        pre_round_total=total,
        round_off_amount=round_off,
        final_total=final,
        total_quantity=sum(i.quantity for i in lines),
        items=lines,
    )


def withholding_amounts(items, adjustments):
    """Fill unset TDS/TCS/TDS-under-GST amounts from their rates.

    This is the form's job, done when a section or the "apply on" choice
    changes; `compute_totals` itself only adds up the amounts it is given.
    NET uses the subtotal, GRAND_TOTAL the total before any deduction.
    An amount that is already set (even 0) is kept.
    """
    totals = compute_totals(items, adjustments)

    def amount(rate, applied_on):
        base = totals.pre_deduction_total if applied_on == AppliedOn.GRAND_TOTAL else totals.subtotal
        return base * to_float(rate) / 100.0

    changes = {}
    w = adjustments.withholding
    if w is not None and w.amount is None:
        changes["withholding"] = replace(w, amount=amount(w.rate_percent, w.applied_on))
    d = adjustments.tds_under_gst
    if d is not None and d.amount is None:
        changes["tds_under_gst"] = replace(d, amount=amount(d.rate_percent, d.applied_on))
    return replace(adjustments, **changes) if changes else adjustments


# ==============================
# Validation (form layer)
# ==============================
def _bad_number(v):
    if v is None or isinstance(v, bool):
        return True
    try:
        f = float(v)
    except (TypeError, ValueError):
        return True
    return math.isnan(f) or math.isinf(f)


def validate_draft(items, adjustments=None):
    """Collect user-input problems; an empty list means the draft can be saved.

    The calculator computes on invalid drafts too (a flat discount larger
    than its base gives a negative taxable amount), so the form calls this
    before saving rather than relying on `compute_totals` to refuse.
    """
    adj = adjustments or GlobalAdjustments()
    errors = []
    if not items:
        errors.append(InvoiceError("items", "At least one item is required"))

    for idx, item in enumerate(items):
        if _bad_number(item.quantity) or float(item.quantity) <= 0:
            errors.append(InvalidQuantity(f"item_{idx}_quantity", "Quantity must be greater than 0"))
        if _bad_number(item.unit_price) or float(item.unit_price) < 0:
            errors.append(InvalidUnitPrice(f"item_{idx}_price", "Unit price must be a number, 0 or more"))
        line = normalize_item(item)
        if line.discount_amount > line.base_amount or to_float(item.discount.value) < 0:
            errors.append(DiscountExceedsBase(f"item_{idx}_discount", "Discount is more than the item amount"))

    totals = compute_totals(items, adj)
    after_items = totals.subtotal - totals.item_discounts_total
    if totals.global_discount_amount > max(after_items, 0.0) or to_float(adj.global_discount.value) < 0:
        errors.append(DiscountExceedsBase("global_discount", "Discount is more than the invoice amount"))
    if totals.extra_discount < 0:
        errors.append(DiscountExceedsBase("extra_discount", "Extra discount cannot be negative"))
    return errors
