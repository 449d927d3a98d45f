# SheetBill web app (Flask): GST tax invoice with live totals, Google Sheets log + PDF
# - Secrets via ENV: SPREADSHEET_ID, GOOGLE_SA_JSON, SESSION_SECRET (see config.py)
# - Company / Customers / Products tabs prefill the form, Invoices tab gets one row per invoice
# - POST /api/totals recalculates on every field change; POST /invoice saves + returns the PDF
#
# run: flask --app sheetbill.app run   (or python -m sheetbill.app)

import io
import re
from datetime import datetime

from flask import (
    Flask, render_template, request, redirect, url_for,
    send_file, flash, jsonify
)
from jinja2 import DictLoader

from sheetbill import config, sheets
from sheetbill.amount_words import amount_in_words
from sheetbill.forms import draft_from_json, payload_from_form
from sheetbill.invoice_calc import (
    InvoiceError, compute_totals, errors_by_field, validate_draft, withholding_amounts,
)
from sheetbill.invoice_pdf import discard_copy, render_invoice_pdf, save_copy
from sheetbill.money import format_inr, format_signed
from sheetbill.tax_breakdown import compute_tax_breakdown
from sheetbill.tax_sections import TCS_SECTIONS, TDS_SECTIONS, TDS_UNDER_GST_RATE

app = Flask(__name__)
app.secret_key = config.SESSION_SECRET


# ==============================
# Small helpers
# ==============================
def _r2(v):
    return round(v, 2)


def _is_inter_state(company_state, place_of_supply):
    a = (company_state or "").strip().lower()
    b = (place_of_supply or "").strip().lower()
    return bool(a and b and a != b)


def calculate(payload, inter_state=False):
    """Payload -> (items, adjustments, totals, breakdown, problems).

    Withholding amounts are re-derived from their rates here, the way the
    form does whenever a section or the "apply on" choice changes.
    InvoiceError from parsing (TDS + TCS together, unknown section) propagates.
    """
    items, adjustments = draft_from_json(payload)
    adjustments = withholding_amounts(items, adjustments)
    totals = compute_totals(items, adjustments)
    breakdown = compute_tax_breakdown(totals.items, inter_state=inter_state)
    return items, adjustments, totals, breakdown, validate_draft(items, adjustments)


def totals_json(totals, breakdown):
    rows = [{
        "hsnSac": r.hsn_sac,
        "taxableValue": _r2(r.taxable_value),
        "centralTaxRate": r.central_tax_rate_percent,
        "centralTaxAmount": _r2(r.central_tax_amount),
        "stateTaxRate": r.state_tax_rate_percent,
        "stateTaxAmount": _r2(r.state_tax_amount),
        "integratedTaxRate": r.integrated_tax_rate_percent,
        "integratedTaxAmount": _r2(r.integrated_tax_amount),
        "totalTaxAmount": _r2(r.total_tax_amount),
    } for r in (*breakdown.rows, breakdown.total_row)]
    return {
        "items": [{
            "baseAmount": _r2(i.base_amount),
            "discountAmount": _r2(i.discount_amount),
            "taxableAmount": _r2(i.taxable_amount),
            "taxAmount": _r2(i.tax_amount),
            "total": _r2(i.line_total),
        } for i in totals.items],
        "subtotal": _r2(totals.subtotal),
        "totalDiscount": _r2(totals.total_discount),
        "taxAmount": _r2(totals.tax_amount),
        "additionalChargesTotal": _r2(totals.additional_charges_total),
        "tdsAmount": _r2(totals.tds_amount),
        "tdsUnderGstAmount": _r2(totals.tds_under_gst_amount),
        "tcsAmount": _r2(totals.tcs_amount),
        "roundOffAmount": _r2(totals.round_off_amount),
        "roundOffText": format_signed(totals.round_off_amount),
        "total": _r2(totals.final_total),
        "totalText": format_inr(totals.final_total),
        "totalQuantity": totals.total_quantity,
        "amountInWords": amount_in_words(totals.final_total, only=True),
        "taxBreakdown": rows,
        "interState": breakdown.inter_state,
    }


# ==============================
# Templates (in-memory)
# ==============================
TEMPLATES = {
"base.html": r"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ title or "SheetBill" }}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <style>
    :root { --blue:#2563eb; --grey:#6b7280; --b:#e5e7eb; --text:#111827; }
    body { font-family: system-ui, -apple-system, "Segoe UI", Roboto, Arial, sans-serif; margin: 18px; color: var(--text); }
    header { display: flex; align-items: center; justify-content: space-between; margin-bottom: 16px; }
    .btn { display:inline-block; padding:8px 12px; background:var(--blue); color:white; text-decoration:none; border-radius:6px; border:0; cursor:pointer; }
    .btn.secondary { background:var(--grey); }
    .btn.small { padding:6px 10px; font-size: 14px; }
    .card { border:1px solid var(--b); border-radius:10px; padding:16px; margin:12px 0; }
    input, select, textarea { padding:8px; border:1px solid #cbd5e1; border-radius:6px; width: 100%; box-sizing: border-box; }
    table { border-collapse: collapse; width:100%; }
    th, td { border:1px solid #e5e7eb; padding:6px; text-align:left; }
    th.right, td.right { text-align:right; }
    .row { display:flex; gap:12px; flex-wrap:wrap; }
    .grow { flex:1 1 220px; }
    .right { text-align:right; }
    .msg { color:#dc2626; margin-bottom:8px; }
    label { font-size: 13px; color:#374151; }
  </style>
</head>
<body>
  <header>
    <div><strong>SheetBill</strong></div>
    <nav><a class="btn secondary" href="{{ url_for('invoice') }}">New Invoice</a></nav>
  </header>

  {% with messages = get_flashed_messages(category_filter=["error"]) %}
    {% for m in messages %}<div class="msg">{{ m }}</div>{% endfor %}
  {% endwith %}

  {% block content %}{% endblock %}
</body>
</html>
""",
"invoice.html": r"""
{% extends "base.html" %}
{% block content %}
<h2>Tax Invoice</h2>
<form method="post" id="invoiceForm" class="card">
  <input type="hidden" name="company_state" value="{{ company.get('state','') }}">
  <div class="row">
    <div class="grow"><label>Invoice No.</label><br><input name="invoice_no" value="{{ next_no }}" required></div>
    <div class="grow"><label>Date</label><br><input name="invoice_date" value="{{ today }}"></div>
    <div class="grow"><label>Due Date</label><br><input name="due_date"></div>
    <div class="grow"><label>Place of Supply</label><br><input name="place_of_supply" id="pos" value="{{ company.get('state','') }}"></div>
  </div>

  <h3>Bill To</h3>
  <div class="row">
    <div class="grow">
      <label>Customer</label><br>
      <select name="customer_id" id="customer_id">
        <option value="">-- new / walk-in --</option>
        {% for cid, c in customers.items() %}<option value="{{ cid }}">{{ c.name }}</option>{% endfor %}
      </select>
    </div>
    <div class="grow"><label>Name</label><br><input name="customer_name" id="c_name"></div>
    <div class="grow"><label>GSTIN</label><br><input name="customer_gstin" id="c_gstin"></div>
    <div class="grow"><label>Phone</label><br><input name="customer_phone" id="c_phone"></div>
  </div>
  <div class="row"><div class="grow"><label>Address</label><br><textarea name="customer_address" id="c_address" rows="2"></textarea></div></div>

  <h3>Items</h3>
  <datalist id="products">{% for name in products %}<option value="{{ name }}">{% endfor %}</datalist>
  <table id="items">
    <thead><tr>
      <th>Item</th><th>HSN/SAC</th><th class="right">Qty</th><th>Unit</th><th class="right">Price</th>
      <th>Disc.</th><th class="right">Tax %</th><th class="right">Amount</th><th></th>
    </tr></thead>
    <tbody></tbody>
  </table>
  <p><button type="button" class="btn small" onclick="addRow()">Add Item</button></p>

  <div class="row">
    <div class="grow card">
      <h4>Discounts &amp; Charges</h4>
      <label>Discount on subtotal</label>
      <div class="row">
        <select name="global_disc_type" style="max-width:120px"><option value="percentage">%</option><option value="amount">Amount</option></select>
        <input name="global_disc" type="number" step="0.01" value="0" style="max-width:140px">
      </div>
      <label>Additional charges</label>
      <div id="charges"></div>
      <p><button type="button" class="btn secondary small" onclick="addCharge()">Add Charge</button></p>
      <label>Extra discount</label><input name="extra_discount" type="number" step="0.01" value="0">

      <h4>TDS / TCS</h4>
      <label><input type="checkbox" name="tds_enabled" value="1" style="width:auto"> TDS</label>
      <select name="tds_section">
        {% for s in tds_sections %}<option value="{{ s.code }}">{{ s.label }} - {{ s.description }}</option>{% endfor %}
      </select>
      <select name="tds_applied_on"><option value="net">on Net (subtotal)</option><option value="total">on Total</option></select>
      <label><input type="checkbox" name="tds_gst_enabled" value="1" style="width:auto"> TDS under GST ({{ tds_gst_rate|round(1) }}%)</label>
      <label><input type="checkbox" name="tcs_enabled" value="1" style="width:auto"> TCS</label>
      <select name="tcs_section">
        {% for s in tcs_sections %}<option value="{{ s.code }}">{{ s.label }} - {{ s.description }}</option>{% endfor %}
      </select>
      <select name="tcs_applied_on"><option value="net">on Net (subtotal)</option><option value="total">on Total</option></select>
      <label><input type="checkbox" name="round_off" value="1" style="width:auto" {% if round_off %}checked{% endif %}> Round off</label>
    </div>
    <div class="grow card">
      <h4>Summary</h4>
      <table id="summary"><tbody></tbody></table>
      <p><b id="words"></b></p>
      <div class="msg" id="errors"></div>
    </div>
  </div>

  <label>Notes</label><textarea name="notes" rows="2"></textarea>
  <p><button id="inv_submit" class="btn" type="submit">Save &amp; Download PDF</button></p>
</form>

<script>
const CUSTOMERS = {{ customers|tojson }};
const PRODUCTS  = {{ products|tojson }};
const DEFAULT_TAX = {{ default_tax_rate|tojson }};

function addRow(p){
  const tr = document.createElement('tr');
  tr.innerHTML = `
    <td><input name="name[]" list="products" value="${p?.name ?? ''}"></td>
    <td><input name="hsn[]" value="${p?.hsn ?? ''}"></td>
    <td class="right"><input name="qty[]" type="number" step="0.01" value="${p?.qty ?? 1}"></td>
    <td><input name="unit[]" value="${p?.unit ?? ''}"></td>
    <td class="right"><input name="price[]" type="number" step="0.01" value="${p?.price ?? ''}"></td>
    <td><select name="disc_type[]"><option value="percentage">%</option><option value="amount">Amt</option></select>
        <input name="disc[]" type="number" step="0.01" value="0"></td>
    <td class="right"><input name="tax[]" type="number" step="0.01" value="${p?.tax_rate ?? DEFAULT_TAX}"></td>
    <td class="right amt"></td>
    <td><button class="btn secondary small" type="button" onclick="this.closest('tr').remove(); recalc()">Delete</button></td>`;
  tr.querySelector('input[name="name[]"]').addEventListener('change', e=>{
    const prod = PRODUCTS[e.target.value];
    if(!prod) return;
    tr.querySelector('input[name="hsn[]"]').value = prod.hsn || '';
    tr.querySelector('input[name="unit[]"]').value = prod.unit || '';
    tr.querySelector('input[name="price[]"]').value = prod.price;
    tr.querySelector('input[name="tax[]"]').value = prod.tax_rate;
    recalc();
  });
  document.querySelector('#items tbody').appendChild(tr);
  return tr;
}

function addCharge(){
  const div = document.createElement('div');
  div.className = 'row';
  div.innerHTML = `<input name="charge_name[]" placeholder="Name" class="grow">
    <input name="charge_amount[]" type="number" step="0.01" value="0" style="max-width:140px">`;
  document.getElementById('charges').appendChild(div);
}

document.getElementById('customer_id').addEventListener('change', e=>{
  const c = CUSTOMERS[e.target.value] || {};
  document.getElementById('c_name').value    = c.name || '';
  document.getElementById('c_gstin').value   = c.gstin || '';
  document.getElementById('c_phone').value   = c.phone || '';
  document.getElementById('c_address').value = c.address || '';
  if(c.state) document.getElementById('pos').value = c.state;
  recalc();
});

let pending = null;
async function recalc(){
  const fd = new FormData(document.getElementById('invoiceForm'));
  if(pending) pending.abort();
  pending = new AbortController();
  try{
    const res = await fetch("{{ url_for('api_totals') }}", { method: "POST", body: fd, signal: pending.signal });
    const data = await res.json();
    document.getElementById('errors').textContent = Object.values(data.errors || {}).join(' · ');
    if(!res.ok) return;
    const t = data.totals;
    document.querySelectorAll('#items tbody tr').forEach((tr, i)=>{
      const it = t.items[i]; tr.querySelector('.amt').textContent = it ? it.total.toFixed(2) : '';
    });
    const lines = [["Subtotal", t.subtotal], ["Discount", -t.totalDiscount], ["Tax", t.taxAmount],
                   ["Additional Charges", t.additionalChargesTotal], ["TDS", -t.tdsAmount],
                   ["TDS under GST", -t.tdsUnderGstAmount], ["TCS", t.tcsAmount]];
    const body = document.querySelector('#summary tbody');
    body.innerHTML = lines.filter(l => l[1]).map(l => `<tr><td>${l[0]}</td><td class="right">${l[1].toFixed(2)}</td></tr>`).join('')
      + `<tr><td>Round Off</td><td class="right">${t.roundOffText}</td></tr>`
      + `<tr><th>Total</th><th class="right">${t.totalText}</th></tr>`;
    document.getElementById('words').textContent = t.amountInWords;
  }catch(err){
    if(err.name !== 'AbortError') console.error(err);
  }
}

document.getElementById('invoiceForm').addEventListener('input', recalc);
document.getElementById('invoiceForm').addEventListener('change', recalc);
addRow();
recalc();
</script>
{% endblock %}
"""
}

# mount in-memory templates
app.jinja_loader = DictLoader(TEMPLATES)


# ==============================
# Routes
# ==============================
@app.route("/healthz")
def healthz():
    return "ok", 200


@app.route("/", methods=["GET"])
def root():
    return redirect(url_for("invoice"))


@app.route("/api/sections")
def api_sections():
    return jsonify({
        "tds": [s._asdict() for s in TDS_SECTIONS.values()],
        "tcs": [s._asdict() for s in TCS_SECTIONS.values()],
        "tdsUnderGstRate": TDS_UNDER_GST_RATE,
    })


@app.route("/api/totals", methods=["POST"])
def api_totals():
    payload = request.get_json(silent=True)
    if payload is None:
        payload = payload_from_form(request.form)
        inter_state = _is_inter_state(request.form.get("company_state"), request.form.get("place_of_supply"))
    elif not isinstance(payload, dict):
        return jsonify({"errors": {"payload": "Invoice must be an object"}}), 400
    else:
        inter_state = bool(payload.get("interState"))
    try:
        _, _, totals, breakdown, problems = calculate(payload, inter_state)
    except InvoiceError as e:
        return jsonify({"errors": {e.field: e.message}}), 400
    return jsonify({"totals": totals_json(totals, breakdown), "errors": errors_by_field(problems)})


@app.route("/invoice", methods=["GET", "POST"])
def invoice():
    if request.method == "GET":
        company = sheets.load_company()
        return render_template("invoice.html",
                               company=company,
                               customers=sheets.load_customers(),
                               products=sheets.load_products(),
                               next_no=sheets.get_next_invoice_number(),
                               today=datetime.now(config.IST).strftime("%d/%m/%Y"),
                               tds_sections=list(TDS_SECTIONS.values()),
                               tcs_sections=list(TCS_SECTIONS.values()),
                               tds_gst_rate=TDS_UNDER_GST_RATE,
                               default_tax_rate=config.DEFAULT_TAX_RATE,
                               round_off=config.ROUND_OFF)

    # POST
    company = sheets.load_company() or {"name": "", "address": "", "mobile": "", "gstin": "",
                                        "state": "", "bank_lines": [], "logo": config.COMPANY_LOGO}
    form = request.form
    meta = {
        "no":              form.get("invoice_no") or sheets.get_next_invoice_number(),
        "date":            form.get("invoice_date") or datetime.now(config.IST).strftime("%d/%m/%Y"),
        "due_date":        form.get("due_date", "").strip(),
        "place_of_supply": form.get("place_of_supply", "").strip(),
        "reference":       form.get("reference", "").strip(),
    }
    cust_id = form.get("customer_id", "")
    cust_src = sheets.load_customers().get(cust_id, {}) if cust_id else {}
    customer = {
        "id":      cust_id,
        "name":    form.get("customer_name") or cust_src.get("name", ""),
        "gstin":   form.get("customer_gstin") or cust_src.get("gstin", ""),
        "phone":   form.get("customer_phone") or cust_src.get("phone", ""),
        "address": form.get("customer_address") or cust_src.get("address", ""),
    }
    notes = form.get("notes", "").strip()
    inter_state = _is_inter_state(company.get("state"), meta["place_of_supply"])

    try:
        _, adjustments, totals, breakdown, problems = calculate(payload_from_form(form), inter_state)
    except InvoiceError as e:
        flash(e.message, "error"); return redirect(url_for("invoice"))
    if problems:
        for p in problems:
            flash(p.message, "error")
        return redirect(url_for("invoice"))

    data = render_invoice_pdf(company, customer, meta, totals, breakdown, adjustments, notes)

    timestamp = datetime.now(config.IST).strftime("%Y%m%d-%H%M%S")
    safe_cust = re.sub(r'[^A-Za-z0-9_]+', '_', (customer['name'] or 'Customer').strip().replace(' ', '_'))
    dl_name = f"{meta['no']}_{safe_cust}_{timestamp}.pdf"
    saved_at = save_copy(company.get("name"), dl_name, data)

    try:
        sheets.append_invoice(sheets.invoice_row(meta, customer, totals, notes=notes, pdf_url=saved_at or ""))
    except Exception as e:
        discard_copy(saved_at)
        flash(f"Could not save invoice to Google Sheets: {e}", "error")
        return redirect(url_for("invoice"))

    return send_file(io.BytesIO(data), as_attachment=True, download_name=dl_name, mimetype="application/pdf")


# ==============================
# Main
# ==============================
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT, debug=True)
