# HSN/SAC-wise tax summary for the printed tax invoice.
# Rows are keyed on (HSN/SAC, rate) in first-seen order, so one code sold at
# two rates prints as two rows instead of averaging the rates.

from dataclasses import dataclass
from typing import Optional, Tuple

from sheetbill.invoice_calc import normalize_items

TOTAL_LABEL = "TOTAL"


@dataclass(frozen=True)
class TaxBreakdownRow:
    hsn_sac: str
    tax_rate_percent: Optional[float]
    taxable_value: float
    central_tax_rate_percent: Optional[float]
    central_tax_amount: float
    state_tax_rate_percent: Optional[float]
    state_tax_amount: float
    integrated_tax_rate_percent: Optional[float]
    integrated_tax_amount: float
    total_tax_amount: float


@dataclass(frozen=True)
class TaxBreakdown:
    rows: Tuple[TaxBreakdownRow, ...]
    total_row: TaxBreakdownRow
    inter_state: bool = False


def _row(hsn, rate, taxable, inter_state):
    if inter_state:
        igst = taxable * rate / 100.0
        return TaxBreakdownRow(hsn, rate, taxable, 0.0, 0.0, 0.0, 0.0, rate, igst, igst)
    half = rate / 2.0
    cgst = taxable * half / 100.0
    sgst = taxable * half / 100.0
    return TaxBreakdownRow(hsn, rate, taxable, half, cgst, half, sgst, 0.0, 0.0, cgst + sgst)


def compute_tax_breakdown(items, inter_state=False):
    """Group items by HSN/SAC and rate; CGST+SGST halves, or IGST when inter-state.

    Accepts raw `LineItem`s or the normalized items of a `TotalsResult`.
    """
    groups = {}
    for line in normalize_items(items):
        key = ((line.hsn_sac or "").strip(), line.tax_rate_percent)
        groups[key] = groups.get(key, 0.0) + line.taxable_amount

    rows = tuple(_row(hsn, rate, taxable, inter_state) for (hsn, rate), taxable in groups.items())
    total_row = TaxBreakdownRow(
        hsn_sac=TOTAL_LABEL,
        tax_rate_percent=None,
        taxable_value=sum(r.taxable_value for r in rows),
        central_tax_rate_percent=None,
        central_tax_amount=sum(r.central_tax_amount for r in rows),
        state_tax_rate_percent=None,
        state_tax_amount=sum(r.state_tax_amount for r in rows),
        integrated_tax_rate_percent=None,
        integrated_tax_amount=sum(r.integrated_tax_amount for r in rows),
        total_tax_amount=sum(r.total_tax_amount for r in rows),
    )
    return TaxBreakdown(rows=rows, total_row=total_row, inter_state=inter_state)
