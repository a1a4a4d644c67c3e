"""Data models used across the tax engine, validator, CLI, and API."""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .normalizer import unify_line_rows
from .utils import ZERO, is_blank, parse_date, round_money

ItemType = Literal["product", "service"]
TransactionType = Literal["sales", "purchases", "receipt", "payment", "journal", "proforma"]
GSTIN_KEYS = ("gstin", "gstIn", "gstNumber", "gst_no", "gst", "gstinNumber")


class TaxProfile(BaseModel):
    """GST identity of a company or party; other record fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    gstin: Optional[str] = None
    state: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _first_present_gstin(cls, data: Any) -> Any:
        # first non-null GSTIN across the keys company records use; a null
        # under one key falls through to the next
        if not isinstance(data, dict):
            return data
        tax = data.get("tax")
        candidates = [data.get(key) for key in GSTIN_KEYS]
        candidates.append(tax.get("gstin") if isinstance(tax, dict) else None)
        gstin = next((value for value in candidates if value is not None), None)
        state = data.get("state")
        if state is None:
            state = data.get("addressState")
        return {**data, "gstin": gstin, "state": state}

    @property
    def is_registered(self) -> bool:
        return not is_blank(self.gstin)


class ShippingAddress(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    item_type: ItemType = Field("product", validation_alias=AliasChoices("item_type", "itemType"))
    name: Optional[str] = None
    description: Optional[str] = None
    quantity: Optional[Decimal] = None
    unit_price: Optional[Decimal] = Field(None, validation_alias=AliasChoices("unit_price", "pricePerUnit"))
    amount: Decimal = ZERO
    tax_rate_percent: Decimal = Field(
        ZERO, validation_alias=AliasChoices("tax_rate_percent", "gstPercentage", "gstRate")
    )
    classification_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("classification_code", "code", "hsn", "sac", "hsnCode", "sacCode")
    )
    # figures persisted by the form layer, audited by the validator
    line_tax: Optional[Decimal] = Field(None, validation_alias=AliasChoices("line_tax", "lineTax"))
    line_total: Optional[Decimal] = Field(None, validation_alias=AliasChoices("line_total", "lineTotal"))

    @field_validator("amount")
    @classmethod
    def _round_amount(cls, value: Decimal) -> Decimal:
        return round_money(value)

    @model_validator(mode="after")
    def _check_derived_amount(self) -> "LineItem":
        if self.is_product and self.quantity is not None and self.unit_price is not None:
            round_money(self.quantity * self.unit_price)
        return self

    @property
    def is_product(self) -> bool:
        return self.item_type == "product"


class Jurisdiction(BaseModel):
    model_config = ConfigDict(frozen=True)

    applicable: bool
    interstate: bool


class TaxResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    taxable_value: Decimal
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    total: Decimal
    is_gst_applicable: bool
    is_interstate: bool

    @property
    def tax_amount(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


class TaxedLine(BaseModel):
    """A line item (with its derived amount) paired with its tax result."""

    model_config = ConfigDict(frozen=True)

    item: LineItem
    result: TaxResult


class InvoiceTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    sub_total: Decimal
    tax_amount: Decimal
    invoice_total: Decimal
    cgst_total: Decimal = ZERO
    sgst_total: Decimal = ZERO
    igst_total: Decimal = ZERO
    total_item_count: int = 0
    total_quantity: Decimal = ZERO


class AggregateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: List[TaxedLine] = Field(default_factory=list)
    totals: InvoiceTotals

    @property
    def per_line(self) -> List[TaxResult]:
        return [line.result for line in self.lines]


class HsnSummaryRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    classification_code: str
    tax_rate_percent: Decimal
    taxable_value: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO


class Transaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "_id"))
    type: TransactionType = "sales"
    date: Optional[dt.date] = None
    invoice_number: Optional[str] = Field(None, validation_alias=AliasChoices("invoice_number", "invoiceNumber"))
    company: TaxProfile = Field(default_factory=TaxProfile)
    party: TaxProfile = Field(default_factory=TaxProfile)
    shipping_address: Optional[ShippingAddress] = Field(
        None, validation_alias=AliasChoices("shipping_address", "shippingAddress")
    )
    items: List[LineItem] = Field(default_factory=list)
    sub_total: Optional[Decimal] = Field(None, validation_alias=AliasChoices("sub_total", "subTotal"))
    tax_amount: Optional[Decimal] = Field(None, validation_alias=AliasChoices("tax_amount", "taxAmount"))
    invoice_total: Optional[Decimal] = Field(None, validation_alias=AliasChoices("invoice_total", "invoiceTotal"))

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_lines(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        items = data.get("items")
        if items and not all(isinstance(row, dict) for row in items):
            return data
        data = dict(data)
        data["items"] = unify_line_rows(data)
        return data

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        parsed = parse_date(value)
        return parsed if parsed is not None else value

    @field_validator("company", "party", mode="before")
    @classmethod
    def _absent_profile(cls, value: Any) -> Any:
        # parties are sometimes sent as bare ids
        if value is None or isinstance(value, str):
            return {}
        return value

    @property
    def display_id(self) -> str:
        """Fallback identifier for messages and reports."""
        return self.invoice_number or self.id or "<unknown>"


class InvoiceBreakdown(BaseModel):
    """Everything a form or PDF template displays for one transaction."""

    model_config = ConfigDict(frozen=True)

    jurisdiction: Jurisdiction
    lines: List[TaxedLine]
    totals: InvoiceTotals
    hsn_summary: List[HsnSummaryRow]
    show_igst: bool
    show_cgst_sgst: bool
    show_no_tax: bool
    amount_in_words: str


class ResolveRequest(BaseModel):
    company: TaxProfile
    counterparty: TaxProfile
    shipping_address: Optional[ShippingAddress] = None


class LineTaxRequest(BaseModel):
    taxable_value: Decimal
    tax_rate_percent: Decimal
    jurisdiction: Jurisdiction


class TransactionValidationResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    transaction_id: str
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ValidationSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_transactions: int
    valid_transactions: int
    invalid_transactions: int
    error_counts: Dict[str, int] = Field(default_factory=dict)
    warning_counts: Dict[str, int] = Field(default_factory=dict)


class ValidationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: ValidationSummary
    results: List[TransactionValidationResult]
