"""Shared fixtures for the SheetBill test suite."""

import pytest

from sheetbill.invoice_calc import Discount, DiscountKind, LineItem


@pytest.fixture
def shirt() -> LineItem:
    """2 x 500 with 10% off at 18% GST: base 1000, discount 100, taxable 900, tax 162."""
    return LineItem(
        name="Cotton Shirt",
        quantity=2,
        unit_price=500,
        discount=Discount(DiscountKind.PERCENTAGE, 10),
        tax_rate_percent=18,
        hsn_sac="1234",
    )


@pytest.fixture
def trousers() -> LineItem:
    """Same HSN as `shirt`, taxable 600 at 18%."""
    return LineItem(name="Trousers", quantity=1, unit_price=600, tax_rate_percent=18, hsn_sac="1234")


@pytest.fixture
def invoice_payload() -> dict:
    """JSON body as the invoice form posts it."""
    return {
        "items": [
            {"name": "Cotton Shirt", "quantity": 2, "unitPrice": 500,
             "discount": {"type": "percentage", "value": 10}, "taxRate": 18, "hsnSac": "1234"},
            {"name": "Stitching", "quantity": 1, "unitPrice": 200,
             "discount": {"type": "amount", "value": 0}, "taxRate": 5, "hsnSac": "998821"},
        ],
        "globalDiscount": {"type": "amount", "value": 0},
        "additionalCharges": [{"name": "Packing", "amount": 50}],
        "extraDiscount": 0,
        "roundOff": False,
    }
