# tests/test_invoice_pdf.py
"""PDF rendering (reportlab) and the optional server copy."""

from unittest.mock import patch

from sheetbill import config
from sheetbill.forms import draft_from_json
from sheetbill.invoice_calc import GlobalAdjustments, LineItem, compute_totals, withholding_amounts
from sheetbill.invoice_pdf import discard_copy, render_invoice_pdf, save_copy
from sheetbill.tax_breakdown import compute_tax_breakdown

COMPANY = {"name": "Acme Traders", "address": "12 MG Road, Pune", "mobile": "9800000000",
           "gstin": "27ABCDE1234F1Z5", "state": "Maharashtra", "logo": "",
           "bank_lines": ["Bank: SBI", "A/C No.: 123", "IFSC: SBIN0000001", "Branch: Pune"]}
CUSTOMER = {"id": "C1", "name": "Ravi Kumar", "gstin": "", "phone": "", "address": "Mumbai"}
META = {"no": "INV-7", "date": "19/10/2026", "due_date": "", "place_of_supply": "Maharashtra"}


def _render(items, adjustments, notes=""):
    adjustments = withholding_amounts(items, adjustments)
    totals = compute_totals(items, adjustments)
    breakdown = compute_tax_breakdown(totals.items)
    return render_invoice_pdf(COMPANY, CUSTOMER, META, totals, breakdown, adjustments, notes)


def test_render_returns_pdf_bytes(invoice_payload):
    items, adj = draft_from_json(invoice_payload)
    data = _render(items, adj, notes="Thank you for your business")
    assert data.startswith(b"%PDF")


def test_render_with_withholding_and_round_off():
    payload = {"items": [{"name": "Consulting", "quantity": 1, "unitPrice": 10000, "taxRate": 18}],
               "tds": {"enabled": True, "section": "194J-a"},
               "tdsUnderGst": {"enabled": True}, "roundOff": True}
    items, adj = draft_from_json(payload)
    assert _render(items, adj).startswith(b"%PDF")


def test_long_invoice_spans_pages():
    items = [LineItem(name=f"Item {i}", quantity=1, unit_price=10 + i, tax_rate_percent=12, hsn_sac=str(6100 + i % 7))
             for i in range(80)]
    short = _render(items[:2], GlobalAdjustments(round_off=True))
    long = _render(items, GlobalAdjustments(round_off=True))
    assert long.startswith(b"%PDF")
    assert len(long) > len(short)


def test_save_copy_disabled_without_save_dir():
    with patch.object(config, "SAVE_DIR", ""):
        assert save_copy("Acme", "a.pdf", b"%PDF-1.4") is None


def test_save_copy_writes_under_firm_folder(tmp_path):
    with patch.object(config, "SAVE_DIR", str(tmp_path)):
        path = save_copy("Acme Traders", "INV-7.pdf", b"%PDF-1.4")
    assert path == str(tmp_path / "invoice" / "Acme_Traders" / "INV-7.pdf")
    assert (tmp_path / "invoice" / "Acme_Traders" / "INV-7.pdf").read_bytes() == b"%PDF-1.4"


def test_discard_copy(tmp_path):
    path = tmp_path / "INV-7.pdf"
    path.write_bytes(b"%PDF-1.4")
    discard_copy(str(path))
    assert not path.exists()
    discard_copy(str(path))  # already gone
    discard_copy(None)
