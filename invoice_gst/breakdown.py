"""Invoice breakdown shared by entry forms and every PDF template."""
from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from .formatting import amount_in_words
from .gst import aggregate, resolve, summarize
from .schemas import AggregateResult, InvoiceBreakdown, LineItem, ShippingAddress, TaxProfile, Transaction


def recompute(
    lines: Iterable[LineItem],
    company: TaxProfile,
    counterparty: TaxProfile,
    shipping: Optional[ShippingAddress] = None,
) -> AggregateResult:
    """Recompute line taxes and totals after an edit.

    Forms call this after every line change and replace their totals with
    the returned record.
    """
    jurisdiction = resolve(company, counterparty, shipping)
    return aggregate(lines, jurisdiction)


def build_breakdown(transaction: Transaction) -> InvoiceBreakdown:
    """Prepare everything a template prints for ``transaction``."""
    jurisdiction = resolve(transaction.company, transaction.party, transaction.shipping_address)
    result = aggregate(transaction.items, jurisdiction)
    logger.debug(
        "Breakdown for {}: applicable={} interstate={} lines={} total={}",
        transaction.display_id,
        jurisdiction.applicable,
        jurisdiction.interstate,
        result.totals.total_item_count,
        result.totals.invoice_total,
    )
    return InvoiceBreakdown(
        jurisdiction=jurisdiction,
        lines=result.lines,
        totals=result.totals,
        hsn_summary=summarize(result.lines),
        show_igst=jurisdiction.applicable and jurisdiction.interstate,
        show_cgst_sgst=jurisdiction.applicable and not jurisdiction.interstate,
        show_no_tax=not jurisdiction.applicable,
        amount_in_words=amount_in_words(result.totals.invoice_total),
    )
