"""Command-line entrypoints for tax breakdowns, totals audits and numbering."""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.markup import escape
from rich.table import Table

from .breakdown import build_breakdown
from .formatting import format_currency
from .logging_config import setup_logging
from .numbering import HttpInvoiceNumberIssuer, InvoiceNumberError, InvoiceNumberRequest
from .schemas import InvoiceBreakdown, Transaction
from .validator import TotalsValidator

app = typer.Typer(add_completion=False, help="Invoice GST CLI")


@app.callback()
def _configure(log_level: Optional[str] = typer.Option(None, help="Log level, defaults to LOG_LEVEL")) -> None:
    setup_logging(log_level)


def _load_transactions(json_path: Path) -> list[Transaction]:
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data]
    try:
        return [Transaction.model_validate(item) for item in data]
    except ValidationError as exc:
        print(f"[red]Invalid transaction data:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2)


def _write_report(report: Path, payload: str) -> None:
    report.parent.mkdir(parents=True, exist_ok=True)
    report.write_text(payload, encoding="utf-8")
    print(f"Report written to {report}")


def _print_breakdown(transaction: Transaction, breakdown: InvoiceBreakdown) -> None:
    table = Table(title=f"Invoice {transaction.display_id}")
    table.add_column("Item")
    table.add_column("HSN/SAC")
    table.add_column("Qty", justify="right")
    table.add_column("Taxable", justify="right")
    table.add_column("Rate", justify="right")
    if breakdown.show_igst:
        table.add_column("IGST", justify="right")
    elif breakdown.show_cgst_sgst:
        table.add_column("CGST", justify="right")
        table.add_column("SGST", justify="right")
    table.add_column("Total", justify="right")

    for line in breakdown.lines:
        item, result = line.item, line.result
        row = [
            escape(item.name or "Item"),
            item.classification_code or "-",
            str(item.quantity) if item.is_product and item.quantity is not None else "N/A",
            format_currency(result.taxable_value),
            f"{item.tax_rate_percent}%",
        ]
        if breakdown.show_igst:
            row.append(format_currency(result.igst))
        elif breakdown.show_cgst_sgst:
            row.extend([format_currency(result.cgst), format_currency(result.sgst)])
        row.append(format_currency(result.total))
        table.add_row(*row)
    print(table)

    if breakdown.hsn_summary and not breakdown.show_no_tax:
        summary = Table(title="HSN/SAC summary")
        for column in ("HSN/SAC", "Rate", "Taxable", "Tax", "Total"):
            summary.add_column(column, justify="left" if column == "HSN/SAC" else "right")
        for row in breakdown.hsn_summary:
            summary.add_row(
                row.classification_code,
                f"{row.tax_rate_percent}%",
                format_currency(row.taxable_value),
                format_currency(row.tax_amount),
                format_currency(row.total),
            )
        print(summary)

    totals = breakdown.totals
    print(f"[bold]Items:[/bold] {totals.total_item_count}  [bold]Quantity:[/bold] {totals.total_quantity}")
    print(f"[bold]Sub total:[/bold] {format_currency(totals.sub_total)}")
    print(f"[bold]Tax:[/bold] {format_currency(totals.tax_amount)}")
    print(f"[bold green]Invoice total:[/bold green] {format_currency(totals.invoice_total)}")
    print(breakdown.amount_in_words)


def _print_summary(response) -> None:
    summary = response.summary
    print(f"[bold]Total:[/bold] {summary.total_transactions}")
    print(f"[green]Valid:[/green] {summary.valid_transactions}  [red]Invalid:[/red] {summary.invalid_transactions}")
    if summary.error_counts:
        print("Top errors:")
        for err, count in sorted(summary.error_counts.items(), key=lambda x: x[1], reverse=True):
            print(f"- {err}: {count}")
    if summary.warning_counts:
        print("Warnings:")
        for warning, count in sorted(summary.warning_counts.items(), key=lambda x: x[1], reverse=True):
            print(f"- {warning}: {count}")


@app.command()
def breakdown(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with one transaction or a list"), report: Optional[Path] = typer.Option(None, help="Optional path to write the computed breakdowns")) -> None:
    """Compute GST and totals for transactions in a JSON file."""
    transactions = _load_transactions(input)
    breakdowns = []
    for transaction in transactions:
        result = build_breakdown(transaction)
        breakdowns.append(result)
        _print_breakdown(transaction, result)
    if report:
        _write_report(report, json.dumps([b.model_dump(mode="json") for b in breakdowns], indent=2))


@app.command()
def validate(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with transactions"), report: Optional[Path] = typer.Option(None, help="Optional path to write validation report")) -> None:
    """Check stored line and invoice totals against a fresh computation."""
    transactions = _load_transactions(input)
    validator = TotalsValidator()
    response = validator.validate_transactions(transactions)
    if report:
        _write_report(report, response.model_dump_json(indent=2))
    _print_summary(response)
    if response.summary.invalid_transactions > 0:
        raise typer.Exit(code=1)


@app.command("issue-number")
def issue_number(company_id: str = typer.Option(..., help="Company identifier"), date: str = typer.Option(..., help="Transaction date, YYYY-MM-DD"), series: str = typer.Option("sales", help="sales or purchase")) -> None:
    """Request the next invoice number from the numbering service."""
    try:
        request = InvoiceNumberRequest(company_id=company_id, date=datetime.strptime(date, "%Y-%m-%d").date(), series=series)
    except (ValueError, ValidationError) as exc:
        print(f"[red]Invalid request:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2)
    try:
        response = HttpInvoiceNumberIssuer().issue(request)
    except InvoiceNumberError as exc:
        print(f"[red]Could not issue invoice number:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    print(response.invoice_number)


def main():
    app()


if __name__ == "__main__":
    main()
