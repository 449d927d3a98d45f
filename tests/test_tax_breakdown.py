# tests/test_tax_breakdown.py
"""HSN/SAC-wise tax summary."""

import pytest

from sheetbill.invoice_calc import Discount, DiscountKind, LineItem, compute_totals
from sheetbill.tax_breakdown import TOTAL_LABEL, compute_tax_breakdown


def test_same_hsn_collapses_into_one_row(shirt, trousers):
    bd = compute_tax_breakdown([shirt, trousers])
    assert len(bd.rows) == 1
    row = bd.rows[0]
    assert row.hsn_sac == "1234"
    assert row.taxable_value == pytest.approx(1500)
    assert row.central_tax_rate_percent == 9
    assert row.state_tax_rate_percent == 9
    assert row.central_tax_amount == pytest.approx(135)
    assert row.state_tax_amount == pytest.approx(135)
    assert row.total_tax_amount == pytest.approx(270)


def test_total_row_sums_groups(shirt):
    other = LineItem(quantity=4, unit_price=250, tax_rate_percent=5, hsn_sac="998821")
    bd = compute_tax_breakdown([shirt, other])
    assert [r.hsn_sac for r in bd.rows] == ["1234", "998821"]
    assert bd.total_row.hsn_sac == TOTAL_LABEL
    assert bd.total_row.central_tax_rate_percent is None
    assert bd.total_row.taxable_value == pytest.approx(1900)
    assert bd.total_row.central_tax_amount == pytest.approx(81 + 25)
    assert bd.total_row.total_tax_amount == pytest.approx(162 + 50)


def test_breakdown_conserves_totals():
    items = [
        LineItem(quantity=3, unit_price=199.99, tax_rate_percent=18, hsn_sac="6109",
                 discount=Discount(DiscountKind.PERCENTAGE, 7.5)),
        LineItem(quantity=1, unit_price=1249.5, tax_rate_percent=12, hsn_sac="6203",
                 discount=Discount(DiscountKind.AMOUNT, 49.5)),
        LineItem(quantity=7, unit_price=13.13, tax_rate_percent=18, hsn_sac="6109"),
        LineItem(quantity=2, unit_price=80, tax_rate_percent=0, hsn_sac=""),
    ]
    totals = compute_totals(items)
    bd = compute_tax_breakdown(totals.items)
    assert sum(r.taxable_value for r in bd.rows) == pytest.approx(totals.subtotal - totals.item_discounts_total, abs=0.01)
    assert sum(r.total_tax_amount for r in bd.rows) == pytest.approx(totals.tax_amount, abs=0.01)
    assert bd.total_row.total_tax_amount == pytest.approx(totals.tax_amount, abs=0.01)


def test_same_hsn_different_rates_stay_separate():
    items = [
        LineItem(quantity=1, unit_price=100, tax_rate_percent=5, hsn_sac="6109"),
        LineItem(quantity=1, unit_price=2000, tax_rate_percent=12, hsn_sac="6109"),
    ]
    bd = compute_tax_breakdown(items)
    assert [(r.hsn_sac, r.tax_rate_percent) for r in bd.rows] == [("6109", 5), ("6109", 12)]
    assert bd.total_row.total_tax_amount == pytest.approx(5 + 240)


def test_inter_state_reports_igst(shirt):
    bd = compute_tax_breakdown([shirt], inter_state=True)
    row = bd.rows[0]
    assert bd.inter_state is True
    assert row.central_tax_amount == 0
    assert row.state_tax_amount == 0
    assert row.integrated_tax_rate_percent == 18
    assert row.integrated_tax_amount == pytest.approx(162)
    assert bd.total_row.total_tax_amount == pytest.approx(162)


def test_hsn_whitespace_is_ignored(shirt):
    spaced = LineItem(quantity=1, unit_price=600, tax_rate_percent=18, hsn_sac=" 1234 ")
    assert len(compute_tax_breakdown([shirt, spaced]).rows) == 1
