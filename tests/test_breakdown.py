"""Tests for the invoice breakdown used by forms and templates."""

from decimal import Decimal

from invoice_gst.breakdown import build_breakdown, recompute
from invoice_gst.gst import aggregate, resolve
from invoice_gst.schemas import ShippingAddress, Transaction


class TestBuildBreakdown:
    def test_intrastate_flags_and_totals(self, sales_record):
        result = build_breakdown(Transaction.model_validate(sales_record))
        assert result.show_cgst_sgst is True
        assert result.show_igst is False
        assert result.show_no_tax is False
        assert result.totals.sub_total == Decimal("1500.00")
        assert result.totals.tax_amount == Decimal("205.00")
        assert result.totals.invoice_total == Decimal("1705.00")
        assert result.amount_in_words == "ONE THOUSAND SEVEN HUNDRED FIVE RUPEES ONLY"
        assert [row.classification_code for row in result.hsn_summary] == ["8471", "9983"]

    def test_shipping_to_other_state_shows_igst(self, sales_record):
        sales_record["shippingAddress"] = {"city": "Ahmedabad", "state": "Gujarat"}
        result = build_breakdown(Transaction.model_validate(sales_record))
        assert result.show_igst is True
        assert result.totals.igst_total == Decimal("205.00")
        assert result.totals.cgst_total == Decimal("0")

    def test_unregistered_company_shows_no_tax(self, sales_record):
        sales_record["company"] = {"companyName": "Small Shop", "addressState": "Maharashtra"}
        result = build_breakdown(Transaction.model_validate(sales_record))
        assert result.show_no_tax is True
        assert result.show_igst is result.show_cgst_sgst is False
        assert result.totals.invoice_total == Decimal("1500.00")
        assert result.amount_in_words == "ONE THOUSAND FIVE HUNDRED RUPEES ONLY"

    def test_paise_in_words(self, registered_company, local_customer):
        tx = Transaction(
            company=registered_company,
            party=local_customer,
            items=[{"itemType": "service", "amount": "100.50", "gstPercentage": 0}],
        )
        assert build_breakdown(tx).amount_in_words == "ONE HUNDRED RUPEES AND FIFTY PAISE ONLY"


class TestRecompute:
    def test_matches_resolve_then_aggregate(self, registered_company, gujarat_customer, product_line, service_line):
        lines = [product_line, service_line]
        expected = aggregate(lines, resolve(registered_company, gujarat_customer))
        assert recompute(lines, registered_company, gujarat_customer) == expected

    def test_shipping_state_used(self, registered_company, gujarat_customer, product_line):
        shipping = ShippingAddress(state="maharashtra")
        result = recompute([product_line], registered_company, gujarat_customer, shipping)
        assert result.per_line[0].cgst == Decimal("90.00")
        assert result.per_line[0].igst == Decimal("0")
