"""SheetBill: GST invoicing over a Google Sheets spreadsheet."""

__version__ = "0.1.0"
