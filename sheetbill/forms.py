# Form / JSON payload -> immutable invoice draft
# Payload keys follow the invoice form: items[], globalDiscount, additionalCharges[],
# extraDiscount, tds, tdsUnderGst, tcs, roundOff.

from sheetbill import config
from sheetbill.invoice_calc import (
    AdditionalCharge, AppliedOn, DeductionConflict, Deduction, Discount, DiscountKind,
    GlobalAdjustments, InvoiceError, LineItem, Withholding, WithholdingKind, new_line_item,
)
from sheetbill.money import to_float
from sheetbill.tax_sections import TDS_UNDER_GST_RATE, lookup_section


def _raw_number(v):
    # keep junk as-is so validate_draft can report it
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return v


def _truthy(v):
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "on", "yes")
    return bool(v)


def _dict(v, field, what):
    if v is None or v is False:
        return {}
    if not isinstance(v, dict):
        raise InvoiceError(field, f"{what} must be an object")
    return v


def _list(v, field, what):
    if v is None:
        return []
    if not isinstance(v, list):
        raise InvoiceError(field, f"{what} must be a list")
    return v


def _discount(d, field):
    d = _dict(d, field, "Discount")
    kind = DiscountKind.AMOUNT if str(d.get("type", "")).lower() == "amount" else DiscountKind.PERCENTAGE
    return Discount(kind, to_float(d.get("value")))


def _applied_on(v):
    return AppliedOn.GRAND_TOTAL if str(v or "").lower() in ("total", "grand_total") else AppliedOn.NET


def _item(idx, d):
    d = _dict(d, f"item_{idx}", f"Item {idx + 1}")
    fields = dict(
        name=str(d.get("name", "")).strip(),
        unit_price=_raw_number(d.get("unitPrice")),
        discount=_discount(d.get("discount"), f"item_{idx}_discount"),
        tax_rate_percent=to_float(d.get("taxRate"), config.DEFAULT_TAX_RATE),
        hsn_sac=str(d.get("hsnSac") or config.DEFAULT_HSN).strip(),
        unit=str(d.get("unit", "")).strip(),
    )
    if "quantity" not in d:
        return new_line_item(**fields)
    return LineItem(quantity=_raw_number(d.get("quantity")), **fields)


def _withholding(kind, d):
    section = str(d.get("section", "")).strip()
    rate = d.get("rate")
    if rate in (None, "") and section:
        try:
            rate = lookup_section(kind, section).rate
        except KeyError:
            raise InvoiceError(f"{kind.value}_section", f"Unknown {kind.value.upper()} section: {section}")
    return Withholding(
        kind=kind,
        rate_percent=to_float(rate),
        amount=to_float(d.get("amount"), None),
        applied_on=_applied_on(d.get("appliedOn")),
        section=section,
    )


def draft_from_json(payload):
    """Return (items, adjustments).

    Raises DeductionConflict for TDS + TCS, and InvoiceError when a section
    is unknown or a field has the wrong shape (e.g. a number where an object
    is expected).
    """
    payload = _dict(payload, "payload", "Invoice")
    items = tuple(_item(i, d) for i, d in enumerate(_list(payload.get("items"), "items", "Items")))

    tds = _dict(payload.get("tds"), "tds", "TDS")
    tcs = _dict(payload.get("tcs"), "tcs", "TCS")
    if _truthy(tds.get("enabled")) and _truthy(tcs.get("enabled")):
        raise DeductionConflict("tcs", "TDS and TCS cannot both be applied")
    withholding = None
    if _truthy(tds.get("enabled")):
        withholding = _withholding(WithholdingKind.TDS, tds)
    elif _truthy(tcs.get("enabled")):
        withholding = _withholding(WithholdingKind.TCS, tcs)

    tds_gst = _dict(payload.get("tdsUnderGst"), "tds_gst", "TDS under GST")
    tds_under_gst = None
    if _truthy(tds_gst.get("enabled")):
        tds_under_gst = Deduction(
            rate_percent=to_float(tds_gst.get("rate"), TDS_UNDER_GST_RATE),
            amount=to_float(tds_gst.get("amount"), None),
            applied_on=_applied_on(tds_gst.get("appliedOn")),
        )

    charges = [_dict(c, f"charge_{i}", f"Charge {i + 1}")
               for i, c in enumerate(_list(payload.get("additionalCharges"), "additional_charges", "Additional charges"))]

    adjustments = GlobalAdjustments(
        global_discount=_discount(payload.get("globalDiscount"), "global_discount"),
        additional_charges=tuple(
            AdditionalCharge(str(c.get("name", "")).strip(), to_float(c.get("amount")))
            for c in charges
            if str(c.get("name", "")).strip() or to_float(c.get("amount"))
        ),
        extra_discount=to_float(payload.get("extraDiscount")),
        withholding=withholding,
        tds_under_gst=tds_under_gst,
        round_off=_truthy(payload.get("roundOff", config.ROUND_OFF)),
    )
    return items, adjustments


def payload_from_form(form):
    """HTML form (werkzeug MultiDict) -> the JSON payload shape."""
    items = []
    rows = zip(form.getlist("name[]"), form.getlist("qty[]"), form.getlist("price[]"),
               form.getlist("disc_type[]"), form.getlist("disc[]"), form.getlist("tax[]"),
               form.getlist("hsn[]"), form.getlist("unit[]"))
    for name, qty, price, dtype, disc, tax, hsn, unit in rows:
        if not name.strip(): continue
        items.append({
            "name": name, "quantity": qty, "unitPrice": price,
            "discount": {"type": dtype, "value": disc},
            "taxRate": tax, "hsnSac": hsn, "unit": unit,
        })

    charges = [{"name": n, "amount": a}
               for n, a in zip(form.getlist("charge_name[]"), form.getlist("charge_amount[]"))]

    def deduction(prefix):
        return {
            "enabled": form.get(f"{prefix}_enabled", ""),
            "section": form.get(f"{prefix}_section", ""),
            "rate": form.get(f"{prefix}_rate", ""),
            "appliedOn": form.get(f"{prefix}_applied_on", "net"),
        }

    return {
        "items": items,
        "globalDiscount": {"type": form.get("global_disc_type", "percentage"),
                           "value": form.get("global_disc", "0")},
        "additionalCharges": charges,
        "extraDiscount": form.get("extra_discount", "0"),
        "tds": deduction("tds"),
        "tdsUnderGst": deduction("tds_gst"),
        "tcs": deduction("tcs"),
        "roundOff": bool(form.get("round_off")),
    }
