"""FastAPI application exposing the tax engine to forms and PDF renderers."""
from __future__ import annotations

from typing import List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .breakdown import build_breakdown
from .config import settings
from .gst import compute_line_tax, resolve
from .logging_config import setup_logging
from .numbering import HttpInvoiceNumberIssuer, InvoiceNumberError, InvoiceNumberRequest, InvoiceNumberResponse
from .schemas import (
    InvoiceBreakdown,
    Jurisdiction,
    LineTaxRequest,
    ResolveRequest,
    TaxResult,
    Transaction,
    ValidationResponse,
)
from .validator import TotalsValidator

setup_logging()

app = FastAPI(title="Invoice GST Service", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "app": settings.APP_NAME}


@app.post("/resolve", response_model=Jurisdiction)
def resolve_jurisdiction(body: ResolveRequest):
    return resolve(body.company, body.counterparty, body.shipping_address)


@app.post("/line-tax", response_model=TaxResult)
def line_tax(body: LineTaxRequest):
    return compute_line_tax(body.taxable_value, body.tax_rate_percent, body.jurisdiction)


@app.post("/breakdown", response_model=InvoiceBreakdown)
def breakdown(transaction: Transaction):
    return build_breakdown(transaction)


@app.post("/validate-totals", response_model=ValidationResponse)
def validate_totals(transactions: List[Transaction]):
    validator = TotalsValidator()
    return validator.validate_transactions(transactions)


@app.post("/invoice-number", response_model=InvoiceNumberResponse)
def invoice_number(body: InvoiceNumberRequest):
    try:
        return HttpInvoiceNumberIssuer().issue(body)
    except InvoiceNumberError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
