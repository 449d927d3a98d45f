# Google Sheets boundary (gspread + service account)
# - Company / Customers / Products tabs prefill the invoice form
# - Every saved invoice appends one summary row to the Invoices tab

import json
import re
from datetime import datetime

import gspread
from google.oauth2.service_account import Credentials as SA_Credentials

from sheetbill import config

INVOICE_HEADER = [
    "Id", "Customer_Id", "Customer_Name", "Date", "Due_Date",
    "Subtotal", "Tax_Amount", "Total", "Status", "Notes",
    "Items", "Payment_Terms", "Created_At", "Updated_At", "Pdf_Url",
]


def _gc():
    if not config.GOOGLE_SA_JSON or not config.SPREADSHEET_ID:
        raise RuntimeError("Missing env vars: GOOGLE_SA_JSON and/or SPREADSHEET_ID.")
    info = json.loads(config.GOOGLE_SA_JSON)
    creds = SA_Credentials.from_service_account_info(info, scopes=config.SHEETS_SCOPES)
    return gspread.authorize(creds)


def _ws(sheet_name):
    gc = _gc()
    return gc.open_by_key(config.SPREADSHEET_ID).worksheet(sheet_name)


def _header_index(rows):
    header = [h.strip().lower() for h in rows[0]]
    return {h: i for i, h in enumerate(header)}


def _cell(row, idx, name):
    i = idx.get(name.lower())
    return row[i].strip() if i is not None and i < len(row) else ""


def load_company():
    """First data row of the Company tab, or {} when the tab is missing/empty."""
    try:
        rows = _ws(config.COMPANY_TAB_NAME).get_all_values()
        if len(rows) < 2: return {}
        idx = _header_index(rows)
        r = rows[1]
        val = lambda name: _cell(r, idx, name)
        return {
            "name": val("name"),
            "address": val("address"),
            "mobile": val("mobile"),
            "gstin": val("gstin"),
            "state": val("state"),
            "logo": val("logolink") or config.COMPANY_LOGO,
            "bank_lines": [
                f"Bank: {val('bank') or '—'}",
                f"A/C No.: {val('account_number') or '—'}",
                f"IFSC: {val('ifsc') or '—'}",
                f"Branch: {val('branch') or '—'}",
            ],
        }
    except Exception as e:
        print("Company load error:", e);  return {}


def load_customers():
    try:
        rows = _ws(config.CUSTOMERS_TAB_NAME).get_all_records()
        out = {}
        for r in rows:
            cid = str(r.get("Id", "")).strip()
            if not cid: continue
            out[cid] = {
                "name":    str(r.get("Name", "")).strip(),
                "gstin":   str(r.get("GSTIN", "")).strip(),
                "phone":   str(r.get("Phone", "")).strip(),
                "email":   str(r.get("Email", "")).strip(),
                "address": str(r.get("Address", "")).strip(),
                "state":   str(r.get("State", "")).strip(),
            }
        return out
    except Exception as e:
        print("Customers load error:", e);  return {}


def load_products():
    try:
        rows = _ws(config.PRODUCTS_TAB_NAME).get_all_records()
        out = {}
        for r in rows:
            name = str(r.get("Name", "")).strip()
            if not name: continue
            try:
                price = float(r.get("Price") or 0)
                rate = float(r.get("Tax_Rate") or config.DEFAULT_TAX_RATE)
            except (TypeError, ValueError):
                continue
            out[name] = {
                "name": name,
                "hsn": str(r.get("HSN", "") or config.DEFAULT_HSN).strip(),
                "unit": str(r.get("Unit", "")).strip(),
                "price": price,
                "tax_rate": rate,
            }
        return out
    except Exception as e:
        print("Products load error:", e);  return {}


def next_invoice_number(existing, prefix=""):
    """Largest trailing number among `existing` ids plus one, with `prefix`."""
    max_num = 0
    for raw in existing:
        m = re.search(r"(\d+)$", str(raw).strip())
        if m and int(m.group(1)) > max_num:
            max_num = int(m.group(1))
    return f"{prefix}{max_num + 1}"


def get_next_invoice_number(prefix=None):
    prefix = config.INVOICE_PREFIX if prefix is None else prefix
    try:
        rows = _ws(config.INVOICES_TAB_NAME).get_all_records()
        return next_invoice_number((r.get("Id", "") for r in rows), prefix)
    except Exception as e:
        print("Invoice number lookup failed:", e)
        return f"{prefix}1"


def invoice_row(meta, customer, totals, notes="", payment_terms="", pdf_url="", status="Sent"):
    """Flatten one invoice into the Invoices tab column order (INVOICE_HEADER)."""
    now = datetime.now(config.IST).strftime("%Y-%m-%d %H:%M:%S")
    items = [{
        "name": line.item.name,
        "hsn": line.hsn_sac,
        "unit": line.item.unit,
        "quantity": line.quantity,
        "unitPrice": line.unit_price,
        "discount": {"type": line.item.discount.kind.value, "value": line.item.discount.value},
        "taxRate": line.tax_rate_percent,
        "taxableAmount": round(line.taxable_amount, 2),
        "taxAmount": round(line.tax_amount, 2),
        "total": round(line.line_total, 2),
    } for line in totals.items]
    return [
        meta.get("no", ""),
        customer.get("id", ""),
        customer.get("name", ""),
        meta.get("date", ""),
        meta.get("due_date", ""),
        f"{totals.subtotal:.2f}",
        f"{totals.tax_amount:.2f}",
        f"{totals.final_total:.2f}",
        status,
        notes or "",
        json.dumps(items),
        payment_terms or "",
        now,
        now,
        pdf_url or "",
    ]


def _ensure_invoice_header(ws):
    vals = ws.get_all_values()
    if not vals or not any(vals[0]):
        ws.update(range_name="A1", values=[INVOICE_HEADER])


def append_invoice(row_values):
    """Append a row built by invoice_row(); errors reach the caller."""
    try:
        ws = _ws(config.INVOICES_TAB_NAME)
        _ensure_invoice_header(ws)
        ws.append_row(row_values, value_input_option="USER_ENTERED")
    except Exception as e:
        print("Append Invoice failed:", e)
        raise
