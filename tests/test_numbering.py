"""Tests for invoice number issuance."""

import json
import threading
from datetime import date

import httpx
import pytest

from invoice_gst.numbering import (
    HttpInvoiceNumberIssuer,
    InMemoryInvoiceNumberIssuer,
    InvoiceNumberError,
    InvoiceNumberRequest,
    InvoiceNumberResponse,
    finalize_transaction,
    fiscal_year,
    requires_invoice_number,
)
from invoice_gst.schemas import Transaction


def _issuer(handler) -> HttpInvoiceNumberIssuer:
    return HttpInvoiceNumberIssuer(
        base_url="http://numbering.test/",
        api_token="secret",
        timeout=1,
        transport=httpx.MockTransport(handler),
    )


class TestFiscalYear:
    @pytest.mark.parametrize(
        "on, expected",
        [
            (date(2025, 3, 31), "2024-25"),
            (date(2025, 4, 1), "2025-26"),
            (date(2025, 12, 31), "2025-26"),
            (date(2099, 5, 1), "2099-00"),
        ],
    )
    def test_april_to_march(self, on, expected):
        assert fiscal_year(on) == expected


class TestRequiresInvoiceNumber:
    def test_sales_and_purchases_only(self):
        assert requires_invoice_number("sales")
        assert requires_invoice_number("purchases")
        for kind in ("receipt", "payment", "journal", "proforma"):
            assert not requires_invoice_number(kind)


class TestInMemoryIssuer:
    def test_sequential_per_series(self):
        issuer = InMemoryInvoiceNumberIssuer()
        on = date(2025, 6, 1)
        first = issuer.issue(InvoiceNumberRequest(company_id="c1", date=on, series="sales"))
        second = issuer.issue(InvoiceNumberRequest(company_id="c1", date=on, series="sales"))
        purchase = issuer.issue(InvoiceNumberRequest(company_id="c1", date=on, series="purchase"))
        assert first.invoice_number == "INV/2025-26/00001"
        assert second.invoice_number == "INV/2025-26/00002"
        assert purchase.invoice_number == "PUR/2025-26/00001"

    def test_counters_are_per_company_and_fiscal_year(self):
        issuer = InMemoryInvoiceNumberIssuer()
        issuer.issue(InvoiceNumberRequest(company_id="c1", date=date(2025, 3, 31), series="sales"))
        other = issuer.issue(InvoiceNumberRequest(company_id="c2", date=date(2025, 3, 31), series="sales"))
        next_year = issuer.issue(InvoiceNumberRequest(company_id="c1", date=date(2025, 4, 1), series="sales"))
        assert other.invoice_number == "INV/2024-25/00001"
        assert next_year.invoice_number == "INV/2025-26/00001"
        assert issuer.last_issued("c1", "sales", date(2025, 1, 1)) == 1

    def test_gap_free_under_concurrency(self):
        issuer = InMemoryInvoiceNumberIssuer()
        request = InvoiceNumberRequest(company_id="c1", date=date(2025, 6, 1), series="sales")
        issued = []
        lock = threading.Lock()

        def worker():
            for _ in range(25):
                number = issuer.issue(request).invoice_number
                with lock:
                    issued.append(number)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        sequences = sorted(int(n.rsplit("/", 1)[1]) for n in issued)
        assert sequences == list(range(1, 201))


class TestHttpIssuer:
    def test_posts_request_and_reads_number(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"invoiceNumber": "INV-0042"})

        response = _issuer(handler).issue(InvoiceNumberRequest(company_id="c1", date=date(2025, 6, 1), series="sales"))
        assert response.invoice_number == "INV-0042"
        request = seen[0]
        assert str(request.url) == "http://numbering.test/invoice-numbers"
        assert request.headers["Authorization"] == "Bearer secret"
        assert json.loads(request.content) == {"companyId": "c1", "date": "2025-06-01", "series": "sales"}

    def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "series locked"})

        with pytest.raises(InvoiceNumberError) as exc_info:
            _issuer(handler).issue(InvoiceNumberRequest(company_id="c1", date=date(2025, 6, 1), series="purchase"))
        assert exc_info.value.status_code == 409
        assert exc_info.value.response == {"message": "series locked"}

    def test_timeout_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(InvoiceNumberError, match="timeout"):
            _issuer(handler).issue(InvoiceNumberRequest(company_id="c1", date=date(2025, 6, 1), series="sales"))

    def test_missing_number_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"ok": True})

        with pytest.raises(InvoiceNumberError, match="no invoice number"):
            _issuer(handler).issue(InvoiceNumberRequest(company_id="c1", date=date(2025, 6, 1), series="sales"))


class _FailingIssuer:
    def issue(self, request: InvoiceNumberRequest) -> InvoiceNumberResponse:
        raise InvoiceNumberError("numbering service down", status_code=503)


class TestFinalizeTransaction:
    def test_sales_gets_number(self, sales_record):
        sales_record.pop("invoiceNumber")
        tx = Transaction.model_validate(sales_record)
        finalized = finalize_transaction(tx, InMemoryInvoiceNumberIssuer(), company_id="c1")
        assert finalized.invoice_number == "INV/2025-26/00001"
        assert tx.invoice_number is None

    def test_purchase_uses_purchase_series(self, sales_record):
        sales_record.pop("invoiceNumber")
        sales_record["type"] = "purchases"
        finalized = finalize_transaction(Transaction.model_validate(sales_record), InMemoryInvoiceNumberIssuer(), company_id="c1")
        assert finalized.invoice_number.startswith("PUR/")

    def test_receipt_is_untouched(self):
        tx = Transaction(type="receipt")
        assert finalize_transaction(tx, _FailingIssuer(), company_id="c1") is tx

    def test_existing_number_is_kept(self, sales_record):
        tx = Transaction.model_validate(sales_record)
        assert finalize_transaction(tx, _FailingIssuer(), company_id="c1") is tx

    def test_issuer_failure_is_fatal(self, sales_record):
        sales_record.pop("invoiceNumber")
        tx = Transaction.model_validate(sales_record)
        with pytest.raises(InvoiceNumberError) as exc_info:
            finalize_transaction(tx, _FailingIssuer(), company_id="c1")
        assert exc_info.value.status_code == 503

    def test_blank_company_id_is_rejected(self, sales_record):
        sales_record.pop("invoiceNumber")
        with pytest.raises(InvoiceNumberError):
            finalize_transaction(Transaction.model_validate(sales_record), InMemoryInvoiceNumberIssuer(), company_id="")
