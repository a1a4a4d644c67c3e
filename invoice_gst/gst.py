"""GST determination and invoice totals.

Every figure shown on a form or printed by a template comes from the four
functions here:

* ``resolve`` decides once per transaction whether GST applies and whether
  the supply is interstate (IGST) or intrastate (CGST + SGST).
* ``compute_line_tax`` taxes a single taxable value under that decision.
* ``aggregate`` derives line amounts, taxes every line and totals them.
* ``summarize`` groups taxed lines by HSN/SAC code and rate.

Amounts are ``Decimal`` and rounded half-up to paise per line before they
are summed, so ``invoice_total == sub_total + tax_amount`` holds exactly.
The functions are pure; they trust their numeric input and never clamp
rates or reject negative values.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .schemas import (
    AggregateResult,
    HsnSummaryRow,
    InvoiceTotals,
    Jurisdiction,
    LineItem,
    ShippingAddress,
    TaxedLine,
    TaxProfile,
    TaxResult,
)
from .utils import ZERO, is_blank, normalize_state, round_money

UNCLASSIFIED_CODE = "-"
HUNDRED = Decimal("100")
TWO_HUNDRED = Decimal("200")


def effective_state(counterparty: TaxProfile, shipping: Optional[ShippingAddress] = None) -> Optional[str]:
    """State the goods or services are supplied to: shipping state first, then the party's own."""
    if shipping is not None and not is_blank(shipping.state):
        return shipping.state
    return counterparty.state


def resolve(
    company: TaxProfile,
    counterparty: TaxProfile,
    shipping: Optional[ShippingAddress] = None,
) -> Jurisdiction:
    """Decide GST applicability and supply type for a transaction.

    GST applies only when the company holds a GSTIN; the buyer's
    registration does not matter. When either side's state is unknown the
    supply is treated as intrastate.
    """
    if not company.is_registered:
        return Jurisdiction(applicable=False, interstate=False)

    supplier_state = normalize_state(company.state)
    recipient_state = normalize_state(effective_state(counterparty, shipping))
    if supplier_state is None or recipient_state is None:
        return Jurisdiction(applicable=True, interstate=False)
    return Jurisdiction(applicable=True, interstate=supplier_state != recipient_state)


def compute_line_tax(taxable_value: Decimal, rate_percent: Decimal, jurisdiction: Jurisdiction) -> TaxResult:
    """Tax one taxable value at ``rate_percent`` under ``jurisdiction``."""
    taxable_value = Decimal(taxable_value)
    rate_percent = Decimal(rate_percent)
    cgst = sgst = igst = ZERO

    if jurisdiction.applicable and rate_percent > 0:
        if jurisdiction.interstate:
            igst = round_money(taxable_value * rate_percent / HUNDRED)
        else:
            # each half is rounded on its own, not the full tax halved
            cgst = round_money(taxable_value * rate_percent / TWO_HUNDRED)
            sgst = round_money(taxable_value * rate_percent / TWO_HUNDRED)

    return TaxResult(
        taxable_value=taxable_value,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        total=round_money(taxable_value + cgst + sgst + igst),
        is_gst_applicable=jurisdiction.applicable,
        is_interstate=jurisdiction.applicable and jurisdiction.interstate,
    )


def derive_amount(item: LineItem) -> LineItem:
    """Return ``item`` with a product's amount recomputed from quantity and unit price.

    Service amounts are entered by hand and kept as given.
    """
    if not item.is_product or item.quantity is None or item.unit_price is None:
        return item
    amount = round_money(item.quantity * item.unit_price)
    if amount == item.amount:
        return item
    return item.model_copy(update={"amount": amount})


def aggregate(lines: Iterable[LineItem], jurisdiction: Jurisdiction) -> AggregateResult:
    """Tax every line and total the invoice."""
    taxed: List[TaxedLine] = []
    sub_total = tax_amount = ZERO
    cgst_total = sgst_total = igst_total = ZERO
    total_quantity = ZERO

    for line in lines:
        item = derive_amount(line)
        result = compute_line_tax(item.amount, item.tax_rate_percent, jurisdiction)
        taxed.append(TaxedLine(item=item, result=result))

        sub_total += result.taxable_value
        tax_amount += result.tax_amount
        cgst_total += result.cgst
        sgst_total += result.sgst
        igst_total += result.igst
        if item.is_product and item.quantity is not None:
            total_quantity += item.quantity

    sub_total = round_money(sub_total)
    tax_amount = round_money(tax_amount)
    totals = InvoiceTotals(
        sub_total=sub_total,
        tax_amount=tax_amount,
        invoice_total=round_money(sub_total + tax_amount),
        cgst_total=round_money(cgst_total),
        sgst_total=round_money(sgst_total),
        igst_total=round_money(igst_total),
        total_item_count=len(taxed),
        total_quantity=total_quantity,
    )
    return AggregateResult(lines=taxed, totals=totals)


def summarize(lines: Iterable[TaxedLine]) -> List[HsnSummaryRow]:
    """Group taxed lines by (HSN/SAC code, rate) in first-seen order."""
    groups: Dict[Tuple[str, Decimal], dict] = {}

    for line in lines:
        code = UNCLASSIFIED_CODE if is_blank(line.item.classification_code) else line.item.classification_code.strip()
        key = (code, line.item.tax_rate_percent)
        group = groups.get(key)
        if group is None:
            group = groups[key] = {
                "classification_code": code,
                "tax_rate_percent": line.item.tax_rate_percent,
                "taxable_value": ZERO,
                "cgst_amount": ZERO,
                "sgst_amount": ZERO,
                "igst_amount": ZERO,
                "total": ZERO,
            }
        result = line.result
        group["taxable_value"] += result.taxable_value
        group["cgst_amount"] += result.cgst
        group["sgst_amount"] += result.sgst
        group["igst_amount"] += result.igst
        group["total"] += result.total

    rows: List[HsnSummaryRow] = []
    for group in groups.values():
        tax = group["cgst_amount"] + group["sgst_amount"] + group["igst_amount"]
        rows.append(HsnSummaryRow(tax_amount=tax, **group))
    return rows
