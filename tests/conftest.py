"""Shared fixtures for the invoice GST test suite."""

from decimal import Decimal

import pytest

from invoice_gst.schemas import Jurisdiction, LineItem, TaxProfile


@pytest.fixture
def registered_company() -> TaxProfile:
    return TaxProfile(gstin="27AABCU9603R1ZM", state="Maharashtra")


@pytest.fixture
def unregistered_company() -> TaxProfile:
    return TaxProfile(gstin=None, state="Maharashtra")


@pytest.fixture
def local_customer() -> TaxProfile:
    return TaxProfile(gstin="27AADCB2230M1ZP", state="Maharashtra")


@pytest.fixture
def gujarat_customer() -> TaxProfile:
    return TaxProfile(gstin="24AADCB2230M1ZQ", state="Gujarat")


@pytest.fixture
def intrastate() -> Jurisdiction:
    return Jurisdiction(applicable=True, interstate=False)


@pytest.fixture
def interstate() -> Jurisdiction:
    return Jurisdiction(applicable=True, interstate=True)


@pytest.fixture
def product_line() -> LineItem:
    """Two laptops at 500 each, 18% GST."""
    return LineItem(
        item_type="product",
        name="Laptop",
        quantity=Decimal("2"),
        unit_price=Decimal("500"),
        amount=Decimal("0"),
        tax_rate_percent=Decimal("18"),
        classification_code="8471",
    )


@pytest.fixture
def service_line() -> LineItem:
    """Installation service billed at 500, 5% GST."""
    return LineItem(
        item_type="service",
        name="Installation",
        amount=Decimal("500"),
        tax_rate_percent=Decimal("5"),
        classification_code="9983",
    )


@pytest.fixture
def sales_record() -> dict:
    """A stored intrastate sales transaction as the form layer saves it."""
    return {
        "_id": "tx-1",
        "type": "sales",
        "date": "2025-06-15T00:00:00.000Z",
        "invoiceNumber": "INV/2025-26/00001",
        "company": {"gstin": "27AABCU9603R1ZM", "addressState": "Maharashtra"},
        "party": {"name": "XYZ Enterprises", "state": "Maharashtra"},
        "items": [
            {
                "itemType": "product",
                "name": "Laptop",
                "quantity": 2,
                "pricePerUnit": 500,
                "amount": 1000,
                "gstPercentage": 18,
                "code": "8471",
                "lineTax": 180,
                "lineTotal": 1180,
            },
            {
                "itemType": "service",
                "serviceName": "Installation",
                "amount": 500,
                "gstPercentage": 5,
                "code": "9983",
                "lineTax": 25,
                "lineTotal": 525,
            },
        ],
        "subTotal": 1500,
        "taxAmount": 205,
        "invoiceTotal": 1705,
    }
