"""Invoice number issuance for sales and purchase transactions.

Numbers are gap-free and strictly increasing per company, series and
fiscal year. Issuance normally happens in the external numbering service
(``HttpInvoiceNumberIssuer``); ``InMemoryInvoiceNumberIssuer`` keeps the
same contract inside one process.

A transaction that needs a number is never finalized without one: any
issuer failure surfaces as ``InvoiceNumberError`` and nothing is retried
here.
"""
from __future__ import annotations

import datetime as dt
import threading
from collections import defaultdict
from typing import Any, Dict, Literal, Optional, Protocol, Tuple

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import settings
from .schemas import Transaction
from .utils import is_blank, parse_date

InvoiceSeries = Literal["sales", "purchase"]

SERIES_BY_TRANSACTION_TYPE: Dict[str, InvoiceSeries] = {
    "sales": "sales",
    "purchases": "purchase",
}
SERIES_PREFIX = {"sales": "INV", "purchase": "PUR"}


class InvoiceNumberError(Exception):
    """Raised when an invoice number cannot be issued."""

    def __init__(self, message: str, status_code: int = 0, response: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response or {}


class InvoiceNumberRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    company_id: str = Field(..., min_length=1)
    date: dt.date
    series: InvoiceSeries


class InvoiceNumberResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    invoice_number: str = Field(..., min_length=1)


class InvoiceNumberIssuer(Protocol):
    def issue(self, request: InvoiceNumberRequest) -> InvoiceNumberResponse: ...


def requires_invoice_number(transaction_type: str) -> bool:
    """Only sales and purchases draw from a numbering series."""
    return transaction_type in SERIES_BY_TRANSACTION_TYPE


def fiscal_year(on: dt.date) -> str:
    """Indian fiscal year label (April to March) for a date, e.g. ``2025-26``."""
    start = on.year if on.month >= 4 else on.year - 1
    return f"{start}-{(start + 1) % 100:02d}"


class HttpInvoiceNumberIssuer:
    """Client for the external invoice numbering endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base = (base_url or settings.NUMBERING_SERVICE_URL).rstrip("/")
        self.api_token = settings.NUMBERING_API_TOKEN if api_token is None else api_token
        self.timeout = settings.NUMBERING_TIMEOUT if timeout is None else timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    def issue(self, request: InvoiceNumberRequest) -> InvoiceNumberResponse:
        url = f"{self.base}/invoice-numbers"
        payload = {
            "companyId": request.company_id,
            "date": request.date.isoformat(),
            "series": request.series,
        }
        logger.info("Requesting {} invoice number for company {}", request.series, request.company_id)

        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = client.post(url, json=payload, headers=self._headers())
                r.raise_for_status()
                data: Any = r.json()
            except httpx.HTTPStatusError as exc:
                body: dict = {}
                try:
                    body = exc.response.json()
                except ValueError:
                    pass
                logger.error("Invoice numbering HTTP error -> {}", exc.response.status_code)
                raise InvoiceNumberError(
                    f"Invoice numbering error: {exc.response.status_code}",
                    status_code=exc.response.status_code,
                    response=body,
                ) from exc
            except httpx.TimeoutException as exc:
                raise InvoiceNumberError("Invoice numbering timeout") from exc
            except httpx.HTTPError as exc:
                raise InvoiceNumberError(f"Invoice numbering unreachable: {exc}") from exc
            except ValueError as exc:
                raise InvoiceNumberError("Invoice numbering returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise InvoiceNumberError("Invoice numbering returned an unexpected payload")
        try:
            return InvoiceNumberResponse(invoice_number=data.get("invoiceNumber") or data.get("invoice_number") or "")
        except ValidationError as exc:
            raise InvoiceNumberError("Invoice numbering response has no invoice number", response=data) from exc


class InMemoryInvoiceNumberIssuer:
    """Process-local gap-free counter per (company, series, fiscal year)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Dict[Tuple[str, str, str], int] = defaultdict(int)

    def issue(self, request: InvoiceNumberRequest) -> InvoiceNumberResponse:
        period = fiscal_year(request.date)
        key = (request.company_id, request.series, period)
        with self._lock:
            self._counters[key] += 1
            sequence = self._counters[key]
        return InvoiceNumberResponse(invoice_number=f"{SERIES_PREFIX[request.series]}/{period}/{sequence:05d}")

    def last_issued(self, company_id: str, series: InvoiceSeries, on: dt.date) -> int:
        with self._lock:
            return self._counters.get((company_id, series, fiscal_year(on)), 0)


def finalize_transaction(transaction: Transaction, issuer: InvoiceNumberIssuer, company_id: str) -> Transaction:
    """Return a copy of ``transaction`` carrying its issued invoice number.

    Receipts, payments, journals and proforma invoices are returned
    unchanged, as are transactions that already hold a number.
    """
    if not requires_invoice_number(transaction.type) or not is_blank(transaction.invoice_number):
        return transaction

    on = parse_date(transaction.date) or dt.date.today()
    try:
        request = InvoiceNumberRequest(
            company_id=company_id,
            date=on,
            series=SERIES_BY_TRANSACTION_TYPE[transaction.type],
        )
    except ValidationError as exc:
        raise InvoiceNumberError(f"Cannot request invoice number: {exc}") from exc

    response = issuer.issue(request)
    logger.info("Issued invoice number {} for {} transaction", response.invoice_number, transaction.type)
    return transaction.model_copy(update={"invoice_number": response.invoice_number})
