# SheetBill settings, all from ENV
# - Secrets: SPREADSHEET_ID, GOOGLE_SA_JSON (service account JSON in one var), SESSION_SECRET
# - Optional: SAVE_DIR (server copy of every PDF), tab names, INVOICE_PREFIX, ROUND_OFF

import os
from zoneinfo import ZoneInfo

SPREADSHEET_ID   = os.getenv("SPREADSHEET_ID")        # required for saving
GOOGLE_SA_JSON   = os.getenv("GOOGLE_SA_JSON")        # required for saving
SESSION_SECRET   = os.getenv("SESSION_SECRET", "change-me")

SAVE_DIR = os.getenv("SAVE_DIR", "").strip()

# Sheet names
INVOICES_TAB_NAME   = os.getenv("INVOICES_TAB_NAME", "Invoices")
CUSTOMERS_TAB_NAME  = os.getenv("CUSTOMERS_TAB_NAME", "Customers")
PRODUCTS_TAB_NAME   = os.getenv("PRODUCTS_TAB_NAME", "Products")
COMPANY_TAB_NAME    = os.getenv("COMPANY_TAB_NAME", "Company")

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

INVOICE_PREFIX   = os.getenv("INVOICE_PREFIX", "INV-")
ROUND_OFF        = os.getenv("ROUND_OFF", "true").strip().lower() in ("1", "true", "yes", "on")
DEFAULT_TAX_RATE = float(os.getenv("DEFAULT_TAX_RATE", "18"))
DEFAULT_HSN      = os.getenv("DEFAULT_HSN", "")
COMPANY_LOGO     = os.getenv("COMPANY_LOGO", "").strip()   # path or URL

PORT = int(os.getenv("PORT", "8080"))

IST = ZoneInfo("Asia/Kolkata")

# ----- Logo sizing (PDF points; 72 pt = 1 inch)
LOGO_MAX_W = int(os.getenv("LOGO_MAX_W", "160"))
LOGO_MAX_H = int(os.getenv("LOGO_MAX_H", "50"))
