# tests/test_sheets.py
"""Google Sheets boundary, with gspread mocked out."""

import json
from unittest.mock import MagicMock, patch

import pytest

from sheetbill import sheets
from sheetbill.invoice_calc import compute_totals


def test_next_invoice_number():
    assert sheets.next_invoice_number([], "INV-") == "INV-1"
    assert sheets.next_invoice_number(["INV-3", "INV-12", "draft", ""], "INV-") == "INV-13"
    assert sheets.next_invoice_number([7, "9"]) == "10"


def test_get_next_invoice_number_reads_invoices_tab():
    ws = MagicMock()
    ws.get_all_records.return_value = [{"Id": "INV-4"}, {"Id": "INV-5"}]
    with patch("sheetbill.sheets._ws", return_value=ws):
        assert sheets.get_next_invoice_number("INV-") == "INV-6"


def test_get_next_invoice_number_falls_back_when_sheet_unreachable():
    with patch("sheetbill.sheets._ws", side_effect=RuntimeError("no creds")):
        assert sheets.get_next_invoice_number("INV-") == "INV-1"


def test_invoice_row_follows_header(shirt):
    totals = compute_totals([shirt])
    row = sheets.invoice_row({"no": "INV-1", "date": "19/10/2026"}, {"id": "C1", "name": "Ravi"},
                             totals, notes="n", pdf_url="/tmp/x.pdf")
    assert len(row) == len(sheets.INVOICE_HEADER)
    rec = dict(zip(sheets.INVOICE_HEADER, row))
    assert rec["Id"] == "INV-1"
    assert rec["Customer_Name"] == "Ravi"
    assert rec["Subtotal"] == "1000.00"
    assert rec["Tax_Amount"] == "162.00"
    assert rec["Status"] == "Sent"
    assert rec["Pdf_Url"] == "/tmp/x.pdf"
    items = json.loads(rec["Items"])
    assert items[0]["name"] == "Cotton Shirt"
    assert items[0]["total"] == 1062


def test_append_invoice_writes_header_on_empty_tab():
    ws = MagicMock()
    ws.get_all_values.return_value = []
    with patch("sheetbill.sheets._ws", return_value=ws):
        sheets.append_invoice(["INV-1"])
    ws.update.assert_called_once_with(range_name="A1", values=[sheets.INVOICE_HEADER])
    ws.append_row.assert_called_once_with(["INV-1"], value_input_option="USER_ENTERED")


def test_append_invoice_propagates_errors():
    with patch("sheetbill.sheets._ws", side_effect=RuntimeError("quota")):
        with pytest.raises(RuntimeError):
            sheets.append_invoice(["INV-1"])


def test_loaders_return_empty_on_error():
    with patch("sheetbill.sheets._ws", side_effect=RuntimeError("offline")):
        assert sheets.load_company() == {}
        assert sheets.load_customers() == {}
        assert sheets.load_products() == {}


def test_load_products_keyed_by_name():
    ws = MagicMock()
    ws.get_all_records.return_value = [
        {"Name": "Shirt", "HSN": "6109", "Unit": "pcs", "Price": "499", "Tax_Rate": "5"},
        {"Name": "", "Price": "1"},
        {"Name": "Broken", "Price": "n/a"},
    ]
    with patch("sheetbill.sheets._ws", return_value=ws):
        products = sheets.load_products()
    assert list(products) == ["Shirt"]
    assert products["Shirt"]["price"] == 499
    assert products["Shirt"]["tax_rate"] == 5


def test_load_company_reads_first_row():
    ws = MagicMock()
    ws.get_all_values.return_value = [["Name", "State", "GSTIN"], ["Acme", "Kerala", "32AAA"]]
    with patch("sheetbill.sheets._ws", return_value=ws):
        company = sheets.load_company()
    assert company["name"] == "Acme"
    assert company["state"] == "Kerala"
    assert company["gstin"] == "32AAA"
