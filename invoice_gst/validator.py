"""Audit stored transaction figures against the tax engine's recomputation."""
from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import List, Optional

from loguru import logger

from .config import settings
from .gst import aggregate, effective_state, resolve
from .numbering import requires_invoice_number
from .schemas import Transaction, TransactionValidationResult, ValidationResponse, ValidationSummary
from .utils import approx_equal, is_blank, non_negative

MAX_RATE_PERCENT = Decimal("100")


class TotalsValidator:
    def __init__(self, tolerance: Optional[Decimal] = None, require_invoice_number: bool = True) -> None:
        self.tolerance = settings.TOTALS_TOLERANCE if tolerance is None else tolerance
        self.require_invoice_number = require_invoice_number

    def validate_transaction(self, transaction: Transaction) -> TransactionValidationResult:
        errors: list[str] = []
        warnings: list[str] = []

        # Numbering
        if self.require_invoice_number and requires_invoice_number(transaction.type):
            if is_blank(transaction.invoice_number):
                errors.append("missing_field: invoice_number")

        # Input the calculator accepts as-is
        for item in transaction.items:
            if item.tax_rate_percent < 0 or item.tax_rate_percent > MAX_RATE_PERCENT:
                warnings.append("input: tax_rate_out_of_range")
            if not non_negative(item.quantity):
                warnings.append("input: negative_quantity")
            if not non_negative(item.unit_price):
                warnings.append("input: negative_unit_price")
            if not non_negative(item.amount):
                warnings.append("input: negative_amount")

        # Jurisdiction
        jurisdiction = resolve(transaction.company, transaction.party, transaction.shipping_address)
        if jurisdiction.applicable:
            if is_blank(transaction.company.state) or is_blank(effective_state(transaction.party, transaction.shipping_address)):
                warnings.append("jurisdiction: missing_state_defaulted_intrastate")

        # Stored line figures
        result = aggregate(transaction.items, jurisdiction)
        for original, line in zip(transaction.items, result.lines):
            if original.is_product and not approx_equal(original.amount, line.item.amount, self.tolerance):
                errors.append("business: line_amount_mismatch")
            if original.line_tax is not None and not approx_equal(original.line_tax, line.result.tax_amount, self.tolerance):
                errors.append("business: line_tax_mismatch")
            if original.line_total is not None and not approx_equal(original.line_total, line.result.total, self.tolerance):
                errors.append("business: line_total_mismatch")

        # Stored invoice totals
        totals = result.totals
        if transaction.sub_total is not None and not approx_equal(transaction.sub_total, totals.sub_total, self.tolerance):
            errors.append("business: sub_total_mismatch")
        if transaction.tax_amount is not None and not approx_equal(transaction.tax_amount, totals.tax_amount, self.tolerance):
            errors.append("business: tax_amount_mismatch")
        if transaction.invoice_total is not None and not approx_equal(transaction.invoice_total, totals.invoice_total, self.tolerance):
            errors.append("business: invoice_total_mismatch")

        return TransactionValidationResult(
            transaction_id=transaction.display_id,
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    def validate_transactions(self, transactions: List[Transaction]) -> ValidationResponse:
        results: List[TransactionValidationResult] = []
        error_counter: Counter[str] = Counter()
        warning_counter: Counter[str] = Counter()

        for transaction in transactions:
            result = self.validate_transaction(transaction)
            if not result.is_valid:
                logger.info("Transaction {} failed validation: {}", result.transaction_id, ", ".join(result.errors))
            results.append(result)
            error_counter.update(result.errors)
            warning_counter.update(result.warnings)

        summary = ValidationSummary(
            total_transactions=len(results),
            valid_transactions=sum(1 for r in results if r.is_valid),
            invalid_transactions=sum(1 for r in results if not r.is_valid),
            error_counts=dict(error_counter),
            warning_counts=dict(warning_counter),
        )
        return ValidationResponse(summary=summary, results=results)
