# Printable A4 tax invoice (reportlab)
# Display only: every number comes from a TotalsResult / TaxBreakdown.

import io
import os
import re
import base64

import requests
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from sheetbill import config
from sheetbill.amount_words import amount_in_words
from sheetbill.invoice_calc import DiscountKind
from sheetbill.money import format_signed

# HTTP session for remote logos
HTTP = requests.Session()
HTTP.headers.update({"User-Agent": "Mozilla/5.0 (SheetBill invoice renderer)"})

ROW_H = 18
L_MARGIN, R_MARGIN, T_MARGIN, B_MARGIN = 24, 24, 24, 42


# ==============================
# Small helpers
# ==============================
def _wrap(text, max_width, font="Helvetica", size=9):
    text = (text or "").replace("\r", " ").replace("\n", " ").strip()
    if not text: return [""]
    words = text.split()
    lines, line = [], ""
    for w in words:
        test = (line + " " + w).strip()
        if pdfmetrics.stringWidth(test, font, size) <= max_width: line = test
        else:
            if line: lines.append(line)
            line = w
    if line: lines.append(line)
    return lines


def _money(v):
    return f"{v:,.2f}"


def _normalize_remote_url(u):
    u = u.strip()
    # Google Drive share -> direct
    if u.startswith("https://drive.google.com/file/d/"):
        m = re.search(r"/file/d/([^/]+)/", u)
        if m: return f"https://drive.google.com/uc?export=download&id={m.group(1)}"
    # Dropbox share -> raw
    if "dropbox.com" in u and "raw=1" not in u and "dl=1" not in u:
        sep = "&" if "?" in u else "?"
        u = u + sep + "raw=1"
    return u


def _image_reader_from_src(src):
    if not src: return None
    u = src.strip()

    if u.startswith("data:image/"):
        try:
            _, b64 = u.split(",", 1)
            return ImageReader(io.BytesIO(base64.b64decode(b64)))
        except Exception as e:
            print("Logo decode skipped:", e); return None

    if u.startswith("http://") or u.startswith("https://"):
        try:
            r = HTTP.get(_normalize_remote_url(u), timeout=10)
            r.raise_for_status()
            ctype = r.headers.get("Content-Type", "").lower()
            if not (ctype.startswith("image/") or ctype.startswith("application/octet-stream")):
                return None
            return ImageReader(io.BytesIO(r.content))
        except Exception as e:
            print("Logo remote fetch skipped:", e); return None

    try:
        if os.path.exists(u):
            with open(u, "rb") as f:
                return ImageReader(io.BytesIO(f.read()))
    except Exception as e:
        print("Logo local read skipped:", e)
    return None


def _draw_logo(c, logo_src, x_right, y_top, max_w, max_h):
    try:
        img = _image_reader_from_src(logo_src)
        if not img: return
        iw, ih = img.getSize()
        if iw <= 0 or ih <= 0: return
        scale = min(max_w/iw, max_h/ih)
        w, h = iw*scale, ih*scale
        c.drawImage(img, x_right - w, y_top - h, w, h, preserveAspectRatio=True, mask='auto')
    except Exception as e:
        print("Logo draw skipped:", e)


def save_copy(firm_name, filename, data_bytes):
    """Optional server-side copy under SAVE_DIR/invoice/<firm>/."""
    try:
        if not config.SAVE_DIR: return None
        sub = os.path.join(os.path.abspath(config.SAVE_DIR), "invoice",
                           re.sub(r'\s+', '_', (firm_name or "Unknown").strip()))
        os.makedirs(sub, exist_ok=True)
        path = os.path.join(sub, filename)
        with open(path, "wb") as f:
            f.write(data_bytes)
        print(f"Saved copy at: {path}")
        return path
    except Exception as e:
        print("Skip saving copy:", e)
        return None


def discard_copy(path):
    """Remove a copy written by save_copy() for an invoice that was not logged."""
    if not path: return
    try:
        os.remove(path)
        print(f"Removed copy at: {path}")
    except OSError as e:
        print("Could not remove copy:", e)


# ==============================
# Invoice
# ==============================
class _Page:
    """y cursor that starts a new page when a block does not fit."""

    def __init__(self, c):
        self.c = c
        self.width, self.height = A4
        self.L, self.R = L_MARGIN, self.width - R_MARGIN
        self.y = self.height - T_MARGIN

    def ensure(self, h):
        if self.y - h < B_MARGIN:
            self.c.showPage()
            self.y = self.height - T_MARGIN
            return True
        return False


def _discount_text(item):
    d = item.discount
    if not d.value: return ""
    return f"{d.value:g}%" if d.kind == DiscountKind.PERCENTAGE else f"{d.value:.2f}"


def _draw_header(p, company, customer, meta):
    c, L, R = p.c, p.L, p.R
    band_h = 26
    c.setFillColorRGB(0.93, 0.93, 0.93)
    c.rect(L, p.y-band_h, R-L, band_h, fill=1, stroke=1)
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString((L+R)/2, p.y-band_h+7, "TAX INVOICE")
    p.y -= band_h + 6

    c.setFont("Helvetica-Bold", 12)
    c.drawString(L+8, p.y-14, (company.get("name") or "").upper())
    c.setFont("Helvetica", 9)
    ay = p.y - 28
    for ln in _wrap(company.get("address", ""), (R-L) - config.LOGO_MAX_W - 40):
        c.drawString(L+8, ay, ln); ay -= 12
    bits = [f"Mobile: {company['mobile']}" if company.get("mobile") else "",
            f"GSTIN: {company['gstin']}" if company.get("gstin") else ""]
    c.drawString(L+8, ay, "   |   ".join(b for b in bits if b))
    _draw_logo(c, company.get("logo"), x_right=R-8, y_top=p.y-4,
               max_w=config.LOGO_MAX_W, max_h=config.LOGO_MAX_H)
    p.y = min(ay, p.y - config.LOGO_MAX_H) - 14

    part_h = 100
    half = (R-L)/2
    c.rect(L, p.y-part_h, half, part_h)
    c.rect(L+half, p.y-part_h, half, part_h)

    c.setFont("Helvetica-Bold", 10)
    c.drawString(L+8, p.y-16, "Bill To")
    c.setFont("Helvetica", 9)
    sy = p.y-32
    for ln in [f"Name: {customer.get('name') or '—'}",
               *([f"GSTIN: {customer['gstin']}"] if customer.get("gstin") else []),
               *([f"Phone: {customer['phone']}"] if customer.get("phone") else [])]:
        c.drawString(L+8, sy, ln); sy -= 12
    for ln in _wrap(customer.get("address", ""), half-16)[:3]:
        c.drawString(L+8, sy, ln); sy -= 12

    mx = L+half+8
    c.setFont("Helvetica-Bold", 10); c.drawString(mx, p.y-16, "Invoice Details")
    c.setFont("Helvetica", 9)
    my = p.y-32
    for lbl, key in [("Invoice No.", "no"), ("Date", "date"), ("Due Date", "due_date"),
                     ("Place of Supply", "place_of_supply"), ("Reference", "reference")]:
        if meta.get(key):
            c.drawString(mx, my, f"{lbl}: {meta[key]}"); my -= 14
    p.y -= part_h + 10


def _draw_items(p, totals):
    c, L, R = p.c, p.L, p.R
    table_w = R-L
    w_no, w_hsn, w_qty, w_rate, w_disc, w_tax, w_amt = 26, 60, 50, 62, 48, 40, 72
    w_name = table_w - (w_no + w_hsn + w_qty + w_rate + w_disc + w_tax + w_amt)
    widths = [w_no, w_name, w_hsn, w_qty, w_rate, w_disc, w_tax, w_amt]
    headers = ["No.", "Item", "HSN/SAC", "Qty", "Rate", "Disc.", "Tax %", "Amount"]

    def head():
        x = L; c.setFont("Helvetica-Bold", 9)
        for w, h in zip(widths, headers):
            c.rect(x, p.y-16, w, 16); c.drawString(x+4, p.y-12, h); x += w
        p.y -= 16

    head()
    c.setFont("Helvetica", 9)
    for n, line in enumerate(totals.items, 1):
        if p.ensure(ROW_H):
            head(); c.setFont("Helvetica", 9)
        row_y = p.y - 12
        cells = [
            (str(n), "r"),
            ((line.item.name or "")[:45], "l"),
            (line.hsn_sac or "", "l"),
            (f"{line.quantity:g} {line.item.unit}".strip(), "r"),
            (_money(line.unit_price), "r"),
            (_discount_text(line.item), "r"),
            (f"{line.tax_rate_percent:g}", "r"),
            (_money(line.taxable_amount), "r"),
        ]
        x = L
        for w, (text, align) in zip(widths, cells):
            c.rect(x, p.y-ROW_H, w, ROW_H)
            if align == "r": c.drawRightString(x+w-4, row_y, text)
            else: c.drawString(x+4, row_y, text)
            x += w
        p.y -= ROW_H

    p.ensure(ROW_H)
    c.setFont("Helvetica-Bold", 9)
    c.rect(L, p.y-ROW_H, table_w, ROW_H)
    c.drawString(L+6, p.y-12, f"Total Qty: {totals.total_quantity:g}")
    c.drawRightString(R-4, p.y-12, _money(totals.taxable_amount))
    p.y -= ROW_H + 10


def _withholding_label(name, w):
    section = f" {w.section}" if w.section else ""
    return f"{name}{section} @{w.rate_percent:g}%"


def _summary_lines(totals, breakdown, adjustments):
    out = [("Subtotal", _money(totals.subtotal))]
    discount = totals.item_discounts_total + totals.global_discount_amount
    if discount:
        out.append(("Discount", "-" + _money(discount)))
    tr = breakdown.total_row
    if breakdown.inter_state:
        out.append(("IGST", _money(tr.integrated_tax_amount)))
    else:
        out.append(("CGST", _money(tr.central_tax_amount)))
        out.append(("SGST", _money(tr.state_tax_amount)))
    for ch in adjustments.additional_charges:
        out.append((ch.name or "Charges", _money(ch.amount)))
    if totals.extra_discount:
        out.append(("Extra Discount", "-" + _money(totals.extra_discount)))
    w = adjustments.withholding
    if totals.tds_amount:
        out.append((_withholding_label("TDS", w), "-" + _money(totals.tds_amount)))
    if totals.tds_under_gst_amount:
        out.append((f"TDS under GST @{adjustments.tds_under_gst.rate_percent:g}%", "-" + _money(totals.tds_under_gst_amount)))
    if totals.tcs_amount:
        out.append((_withholding_label("TCS", w), "+" + _money(totals.tcs_amount)))
    if adjustments.round_off:
        out.append(("Round Off", format_signed(totals.round_off_amount)))
    return out


def _draw_summary(p, company, totals, breakdown, adjustments):
    c, L, R = p.c, p.L, p.R
    lines = _summary_lines(totals, breakdown, adjustments)
    half = (R-L)/2
    box_h = max(16 + 14*len(lines) + 26, 150)
    p.ensure(box_h)
    top = p.y

    c.rect(L, top-box_h, half, box_h)
    c.setFont("Helvetica-Bold", 10); c.drawString(L+8, top-16, "Amount Chargeable (in words):")
    c.setFont("Helvetica", 9)
    yline = top-30
    for wln in _wrap("INR " + amount_in_words(totals.final_total, only=True), half-16):
        c.drawString(L+8, yline, wln); yline -= 12
    yline -= 8
    c.setFont("Helvetica-Bold", 10); c.drawString(L+8, yline, "Bank Details:"); yline -= 14
    c.setFont("Helvetica", 9)
    for bl in company.get("bank_lines", []):
        c.drawString(L+8, yline, bl); yline -= 12

    c.rect(L+half, top-box_h, half, box_h)
    rx, rv = L+half+8, R-8
    c.setFont("Helvetica-Bold", 10); c.drawString(rx, top-16, "Summary")
    c.setFont("Helvetica", 9)
    yy = top-32
    for lbl, val in lines:
        c.drawString(rx, yy, f"{lbl}:"); c.drawRightString(rv, yy, val); yy -= 14
    c.setFont("Helvetica-Bold", 10)
    c.drawString(rx, yy-4, "Grand Total (INR)")
    c.drawRightString(rv, yy-4, _money(totals.final_total))
    p.y = top - box_h - 10


def _draw_breakdown(p, breakdown):
    c, L, R = p.c, p.L, p.R
    table_w = R-L
    if breakdown.inter_state:
        headers = ["HSN/SAC", "Taxable Value", "IGST Rate", "IGST Amount", "Total Tax"]
        pick = lambda r: [r.integrated_tax_rate_percent, r.integrated_tax_amount]
    else:
        headers = ["HSN/SAC", "Taxable Value", "CGST Rate", "CGST Amt", "SGST Rate", "SGST Amt", "Total Tax"]
        pick = lambda r: [r.central_tax_rate_percent, r.central_tax_amount,
                          r.state_tax_rate_percent, r.state_tax_amount]
    w = table_w / len(headers)
    p.ensure(16 + ROW_H*2)

    def head():
        x = L; c.setFont("Helvetica-Bold", 9)
        for h in headers:
            c.rect(x, p.y-16, w, 16); c.drawString(x+4, p.y-12, h); x += w
        p.y -= 16

    def row(r, bold=False):
        if p.ensure(ROW_H): head()
        c.setFont("Helvetica-Bold" if bold else "Helvetica", 9)
        vals = [r.hsn_sac or "—", _money(r.taxable_value)]
        for i, v in enumerate(pick(r)):
            if i % 2 == 0: vals.append("" if v is None else f"{v:g}%")
            else: vals.append(_money(v))
        vals.append(_money(r.total_tax_amount))
        x = L
        for i, v in enumerate(vals):
            c.rect(x, p.y-ROW_H, w, ROW_H)
            if i == 0: c.drawString(x+4, p.y-12, v)
            else: c.drawRightString(x+w-4, p.y-12, v)
            x += w
        p.y -= ROW_H

    head()
    for r in breakdown.rows: row(r)
    row(breakdown.total_row, bold=True)

    p.ensure(30)
    c.setFont("Helvetica", 9)
    c.drawString(L+4, p.y-14, "Tax Amount (in words): INR " + amount_in_words(breakdown.total_row.total_tax_amount, only=True))
    p.y -= 30


def draw_invoice_pdf(buf, company, customer, meta, totals, breakdown, adjustments, notes=""):
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(f"Invoice {meta.get('no', '')}")
    c.setLineWidth(0.7)
    p = _Page(c)

    _draw_header(p, company, customer, meta)
    _draw_items(p, totals)
    _draw_summary(p, company, totals, breakdown, adjustments)
    _draw_breakdown(p, breakdown)

    if notes:
        note_lines = _wrap(notes, p.R - p.L - 16)[:6]
        p.ensure(14 + 12*len(note_lines))
        c.setFont("Helvetica-Bold", 9); c.drawString(p.L+4, p.y-12, "Notes:")
        c.setFont("Helvetica", 9)
        ny = p.y - 26
        for ln in note_lines:
            c.drawString(p.L+4, ny, ln); ny -= 12
        p.y = ny

    p.ensure(50)
    c.setFont("Helvetica", 9)
    c.drawString(p.L+10, p.y-30, "Customer Signature")
    c.drawRightString(p.R-10, p.y-16, f"For {company.get('name') or ''}")
    c.drawRightString(p.R-10, p.y-30, "Authorised Signatory")
    c.save()


def render_invoice_pdf(company, customer, meta, totals, breakdown, adjustments, notes=""):
    buf = io.BytesIO()
    draw_invoice_pdf(buf, company, customer, meta, totals, breakdown, adjustments, notes)
    return buf.getvalue()
