# tests/test_app.py
"""Flask routes: live totals API and the save + download flow."""

from unittest.mock import patch

import pytest

from sheetbill.app import _is_inter_state, app

COMPANY = {"name": "Acme", "address": "", "mobile": "", "gstin": "", "state": "Maharashtra",
           "bank_lines": [], "logo": ""}

INVOICE_FORM = {
    "invoice_no": "INV-9", "invoice_date": "19/10/2026", "place_of_supply": "Maharashtra",
    "customer_name": "Ravi Kumar",
    "name[]": "Cotton Shirt", "qty[]": "2", "price[]": "500", "disc_type[]": "percentage",
    "disc[]": "10", "tax[]": "18", "hsn[]": "1234", "unit[]": "pcs",
    "global_disc_type": "amount", "global_disc": "0", "extra_discount": "0",
}


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def test_healthz(client):
    assert client.get("/healthz").data == b"ok"


def test_sections(client):
    data = client.get("/api/sections").get_json()
    assert any(s["code"] == "194C" for s in data["tds"])
    assert data["tdsUnderGstRate"] == 2.0


def test_api_totals_json(client, invoice_payload):
    res = client.post("/api/totals", json=invoice_payload)
    assert res.status_code == 200
    data = res.get_json()
    t = data["totals"]
    assert data["errors"] == {}
    assert t["subtotal"] == 1200
    assert t["taxAmount"] == 172
    assert t["total"] == 900 + 162 + 200 + 10 + 50
    assert t["taxBreakdown"][-1]["hsnSac"] == "TOTAL"
    assert t["amountInWords"].endswith("Only")


def test_api_totals_reports_validation_problems(client):
    res = client.post("/api/totals", json={"items": []})
    assert res.status_code == 200
    assert res.get_json()["errors"] == {"items": "At least one item is required"}


def test_api_totals_rejects_tds_with_tcs(client):
    payload = {"items": [{"name": "x", "quantity": 1, "unitPrice": 10}],
               "tds": {"enabled": True, "rate": 1}, "tcs": {"enabled": True, "rate": 1}}
    res = client.post("/api/totals", json=payload)
    assert res.status_code == 400
    assert "tcs" in res.get_json()["errors"]


def test_api_totals_form_body_inter_state(client):
    form = dict(INVOICE_FORM, company_state="Maharashtra", place_of_supply="Karnataka")
    t = client.post("/api/totals", data=form).get_json()["totals"]
    assert t["interState"] is True
    assert t["taxBreakdown"][0]["integratedTaxAmount"] == 162


def test_is_inter_state():
    assert _is_inter_state("Kerala", "kerala ") is False
    assert _is_inter_state("Kerala", "Goa") is True
    assert _is_inter_state("", "Goa") is False


def test_get_invoice_form(client):
    with patch("sheetbill.sheets.load_company", return_value=COMPANY), \
         patch("sheetbill.sheets.load_customers", return_value={}), \
         patch("sheetbill.sheets.load_products", return_value={}), \
         patch("sheetbill.sheets.get_next_invoice_number", return_value="INV-9"):
        res = client.get("/invoice")
    assert res.status_code == 200
    assert b"INV-9" in res.data


def test_post_invoice_returns_pdf_and_logs_row(client):
    with patch("sheetbill.sheets.load_company", return_value=COMPANY), \
         patch("sheetbill.sheets.append_invoice") as append:
        res = client.post("/invoice", data=INVOICE_FORM)
    assert res.status_code == 200
    assert res.mimetype == "application/pdf"
    assert res.data.startswith(b"%PDF")
    row = append.call_args[0][0]
    assert row[0] == "INV-9"
    assert row[7] == "1062.00"


def test_post_invoice_sheet_failure_flashes(client):
    with patch("sheetbill.sheets.load_company", return_value=COMPANY), \
         patch("sheetbill.sheets.append_invoice", side_effect=RuntimeError("quota")):
        res = client.post("/invoice", data=INVOICE_FORM)
    assert res.status_code == 302
    with client.session_transaction() as sess:
        assert any("Google Sheets" in m for _, m in sess["_flashes"])


def test_post_invoice_with_bad_quantity_is_not_saved(client):
    form = dict(INVOICE_FORM, **{"qty[]": "0"})
    with patch("sheetbill.sheets.load_company", return_value=COMPANY), \
         patch("sheetbill.sheets.append_invoice") as append:
        res = client.post("/invoice", data=form)
    assert res.status_code == 302
    append.assert_not_called()


def test_api_totals_uses_supplied_tds_amount(client):
    payload = {"items": [{"name": "x", "quantity": 1, "unitPrice": 1000, "taxRate": 0}],
               "tds": {"enabled": True, "amount": 100}, "roundOff": False}
    t = client.post("/api/totals", json=payload).get_json()["totals"]
    assert t["tdsAmount"] == 100
    assert t["total"] == 900


def test_api_totals_derives_tds_from_section(client):
    payload = {"items": [{"name": "x", "quantity": 1, "unitPrice": 1000, "taxRate": 0}],
               "tds": {"enabled": True, "section": "194C"}, "roundOff": False}
    t = client.post("/api/totals", json=payload).get_json()["totals"]
    assert t["tdsAmount"] == 10
    assert t["total"] == 990


@pytest.mark.parametrize("body, field", [
    ([1, 2], "payload"),
    ({"items": [{"name": "x", "quantity": 1, "unitPrice": 10, "discount": 5}]}, "item_0_discount"),
    ({"items": [], "tds": True}, "tds"),
])
def test_api_totals_rejects_malformed_json(client, body, field):
    res = client.post("/api/totals", json=body)
    assert res.status_code == 400
    assert field in res.get_json()["errors"]


def test_post_invoice_sheet_failure_removes_saved_copy(client, tmp_path):
    with patch("sheetbill.config.SAVE_DIR", str(tmp_path)), \
         patch("sheetbill.sheets.load_company", return_value=COMPANY), \
         patch("sheetbill.sheets.append_invoice", side_effect=RuntimeError("quota")):
        res = client.post("/invoice", data=INVOICE_FORM)
    assert res.status_code == 302
    assert list((tmp_path / "invoice" / "Acme").iterdir()) == []


def test_post_invoice_keeps_copy_once_logged(client, tmp_path):
    with patch("sheetbill.config.SAVE_DIR", str(tmp_path)), \
         patch("sheetbill.sheets.load_company", return_value=COMPANY), \
         patch("sheetbill.sheets.append_invoice") as append:
        client.post("/invoice", data=INVOICE_FORM)
    saved = list((tmp_path / "invoice" / "Acme").iterdir())
    assert len(saved) == 1
    assert append.call_args[0][0][-1] == str(saved[0])
