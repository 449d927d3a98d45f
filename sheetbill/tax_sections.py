# Income-tax withholding sections offered on the invoice summary.
# code -> (label, description, default rate %)

from collections import namedtuple

from sheetbill.invoice_calc import WithholdingKind

TaxSection = namedtuple("TaxSection", "code label description rate")

TDS_UNDER_GST_RATE = 2.0

TDS_SECTIONS = {s.code: s for s in [
    TaxSection("192A",        "0% 192A",     "Salary", 0),
    TaxSection("193",         "10% 193",     "Interest on Securities", 10),
    TaxSection("194",         "10% 194",     "Dividend", 10),
    TaxSection("194A-interest", "10% 194A",  "Interest (Banks)", 10),
    TaxSection("194A-senior", "0% 194A",     "Senior Citizens", 0),
    TaxSection("194C",        "1% 194C",     "Contractor/Sub-contractor", 1),
    TaxSection("194D",        "5% 194D",     "Insurance Commission", 5),
    TaxSection("194DA",       "1% 194DA",    "Life Insurance Policy", 1),
    TaxSection("194EE",       "10% 194EE",   "NSS/NSC/SCSS", 10),
    TaxSection("194F",        "20% 194F",    "Mutual Fund Units", 20),
    TaxSection("194G",        "5% 194G",     "Commission/Brokerage", 5),
    TaxSection("194H",        "5% 194H",     "Commission to Agents", 5),
    TaxSection("194I-a",      "10% 194I(a)", "Rent - Land/Building", 10),
    TaxSection("194I-b",      "2% 194I(b)",  "Rent - Plant/Machinery", 2),
    TaxSection("194IA",       "1% 194IA",    "Property Transfer", 1),
    TaxSection("194IB",       "5% 194IB",    "Rent by Individual/HUF", 5),
    TaxSection("194IC",       "10% 194IC",   "Joint Development Agreement", 10),
    TaxSection("194J-a",      "10% 194J(a)", "Professional/Technical Services", 10),
    TaxSection("194J-b",      "10% 194J(b)", "Royalty/Copyright", 10),
    TaxSection("194K",        "10% 194K",    "Income from Units", 10),
    TaxSection("194LA",       "10% 194LA",   "Compensation - Land Acquisition", 10),
    TaxSection("194LB",       "10% 194LB",   "Interest by Co-operative Society", 10),
    TaxSection("194LBA",      "5% 194LBA",   "Business Correspondent", 5),
    TaxSection("194LD",       "5% 194LD",    "Interest on Infrastructure Debt Fund", 5),
    TaxSection("194M",        "5% 194M",     "Contract/Professional Services", 5),
    TaxSection("194O",        "1% 194O",     "E-commerce Operator", 1),
    TaxSection("194Q",        "0.1% 194Q",   "Purchase of Goods", 0.1),
    TaxSection("194R",        "10% 194R",    "Benefits/Perquisites", 10),
    TaxSection("194S",        "1% 194S",     "Cryptocurrency Transfer", 1),
    TaxSection("195",         "20% 195",     "Non-resident Payments", 20),
    TaxSection("194B",        "30% 194B",    "Lottery/Crossword/Races", 30),
]}

TCS_SECTIONS = {s.code: s for s in [
    TaxSection("206C-IH",   "0.1% 206C(IH)",    "Sale of Goods", 0.1),
    TaxSection("206C",      "0.1% 206C",        "Sale of Goods (General)", 0.1),
    TaxSection("206C-1G-a", "1% 206C(1G)(a)",   "Sale of Motor Vehicle", 1),
    TaxSection("206C-1G-b", "0.5% 206C(1G)(b)", "Sale of Goods (Overseas)", 0.5),
]}


def sections_for(kind):
    return TDS_SECTIONS if WithholdingKind(kind) == WithholdingKind.TDS else TCS_SECTIONS


def lookup_section(kind, code):
    """KeyError when `code` is not a known section of that kind."""
    return sections_for(kind)[code]
