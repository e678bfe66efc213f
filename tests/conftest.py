"""
Shared receipt transcripts for the extraction tests.

Each fixture is plain OCR text as the upstream OCR step would hand it over.
"""

import pytest


DINER_RECEIPT = "Joe's Diner\nBurger $8.00\nFries $3.00\nTax $0.88\nTotal $11.88"

GROCERY_RECEIPT = """FRESH MARKET
123 Main St
Tel: (555) 123-4567
03/15/2024 14:22
Apples 4.50
Bread 3.25
Milk 2.99
SUBTOTAL 10.74
SALES TAX 0.86
TOTAL $11.60
CASH $20.00
CHANGE $8.40
Thank you for shopping!
"""

# Dense layout where OCR lost every line break
HARDWARE_SINGLE_LINE = (
    "HOME DEPOT 012345678901 DEWALT DRILL 129.00 045678901234 HUSKY TAPE 15.97 "
    "SUBTOTAL 144.97 SALES TAX 11.60 TOTAL 156.57"
)

CAFE_SINGLE_LINE = (
    "Corner Cafe Latte 4.50 Bagel 3.25 Muffin 2.75 Juice 3.50 Cookie 1.50 "
    "Soup 6.00 Tax 1.72 Total 23.22 Thank you come again"
)

NO_TOTAL_RECEIPT = "Acme Plumbing\nService call $45.00\nThank you for your business"


@pytest.fixture
def diner_receipt():
    return DINER_RECEIPT


@pytest.fixture
def grocery_receipt():
    return GROCERY_RECEIPT


@pytest.fixture
def hardware_single_line():
    return HARDWARE_SINGLE_LINE


@pytest.fixture
def cafe_single_line():
    return CAFE_SINGLE_LINE


@pytest.fixture
def no_total_receipt():
    return NO_TOTAL_RECEIPT


@pytest.fixture
def trace_events():
    """Collects ExtractionTraceEvent objects; pass .append as the trace callback"""
    return []
