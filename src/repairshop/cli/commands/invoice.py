"""Invoice and payment commands."""

import click
from repairshop.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    parse_date_or_exit,
    parse_items_or_exit,
)
from repairshop.domain.entities import Invoice, InvoiceStatus, PaymentMethod
from repairshop.domain.errors import DomainError
from repairshop.domain.invoice import InvoiceService
from repairshop.domain.ledger import ZERO

STATUSES = [s.value for s in InvoiceStatus]
METHODS = [m.value for m in PaymentMethod]


def _summary(inv: Invoice) -> str:
    return (
        f"{inv.invoice_number} | {inv.status.value:14s} | total {inv.total_amount:>10.2f} | "
        f"balance {inv.balance_amount:>10.2f} | due {inv.due_date:%Y-%m-%d}"
    )


@click.group()
def invoice_group():
    """Manage invoices and payments."""
    pass


@invoice_group.command("create")
@click.option("--job", "job_id", type=int, required=True, help="Job ID")
@click.option(
    "--item", "items", multiple=True, required=True,
    help="Line item as DESCRIPTION:QTY:UNIT_PRICE[:TYPE] (repeatable)",
)
@click.option("--tax-rate", help="Tax rate in percent (defaults to the configured rate)")
@click.option("--discount", help="Discount amount")
@click.option("--due", help="Due date (YYYY-MM-DD or relative like 'in 14 days'); defaults to 30 days")
@click.option("--terms", "payment_terms", help="Payment terms, e.g. 'Net 30'")
@click.option("--notes", help="Notes printed on the invoice")
@click.pass_context
def create_invoice(
    ctx,
    job_id: int,
    items: tuple[str, ...],
    tax_rate: str | None,
    discount: str | None,
    due: str | None,
    payment_terms: str | None,
    notes: str | None,
):
    """Create an invoice for a job.

    Examples:
        repairshop invoice create --job 1 --item "Service call:1:100" --tax-rate 15
    """
    service = InvoiceService(ctx.obj["db"])
    line_items = parse_items_or_exit(ctx, items)
    rate = parse_amount_or_exit(ctx, tax_rate, "tax rate")
    discount_amount = parse_amount_or_exit(ctx, discount, "discount")
    due_date = parse_date_or_exit(ctx, due, "due date")
    try:
        invoice = service.create_invoice(
            job_id,
            line_items,
            due_date=due_date,
            tax_rate=rate,
            discount_amount=discount_amount if discount_amount is not None else ZERO,
            notes=notes,
            payment_terms=payment_terms,
        )
        click.echo(f"Created invoice {invoice.invoice_number} (ID: {invoice.id}) for {invoice.total_amount:.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.pass_context
def show_invoice(ctx, invoice_id: int):
    """Show invoice details, items and payments."""
    service = InvoiceService(ctx.obj["db"])
    try:
        inv = service.require_invoice(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Invoice {inv.invoice_number} (ID: {inv.id})")
    click.echo(f"  Status: {inv.status.value}")
    click.echo(f"  Issued: {inv.issue_date:%Y-%m-%d}  Due: {inv.due_date:%Y-%m-%d}")
    if inv.payment_terms:
        click.echo(f"  Terms: {inv.payment_terms}")
    click.echo("  Items:")
    for item in inv.items:
        click.echo(
            f"    {item.description:30s} {item.quantity:>6} x {item.unit_price:>9.2f} = {item.total_price:>10.2f}"
        )
    click.echo(f"  Subtotal: {inv.subtotal:.2f}")
    click.echo(f"  Tax ({inv.tax_rate}%): {inv.tax_amount:.2f}")
    if inv.discount_amount:
        click.echo(f"  Discount: {inv.discount_amount:.2f}")
    click.echo(f"  Total: {inv.total_amount:.2f}")
    click.echo(f"  Paid: {inv.paid_amount:.2f}")
    click.echo(f"  Balance: {inv.balance_amount:.2f}")


@invoice_group.command("list")
@click.option("--status", type=click.Choice(STATUSES, case_sensitive=False), help="Filter by status")
@click.option("--customer", "customer_id", type=int, help="Filter by customer ID")
@click.pass_context
def list_invoices(ctx, status: str | None, customer_id: int | None):
    """List invoices, newest first."""
    invoices = InvoiceService(ctx.obj["db"]).list_invoices(status=status, customer_id=customer_id)
    if not invoices:
        click.echo("No invoices found.")
        return
    for inv in invoices:
        click.echo(_summary(inv))


@invoice_group.command("update")
@click.argument("invoice_id", type=int)
@click.option("--status", type=click.Choice(STATUSES, case_sensitive=False), help="New status")
@click.option("--due", help="New due date")
@click.option("--terms", "payment_terms", help="Payment terms")
@click.option("--notes", help="Notes")
@click.pass_context
def update_invoice(ctx, invoice_id: int, status: str | None, due: str | None, payment_terms: str | None, notes: str | None):
    """Update an invoice.

    PAID and PARTIALLY_PAID follow from payments; a paid invoice can only be
    cancelled.
    """
    service = InvoiceService(ctx.obj["db"])
    due_date = parse_date_or_exit(ctx, due, "due date")
    try:
        inv = service.update_invoice(
            invoice_id, status=status, due_date=due_date, payment_terms=payment_terms, notes=notes
        )
        click.echo(f"Updated invoice {inv.invoice_number} ({inv.status.value})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_invoice(ctx, invoice_id: int, yes: bool):
    """Delete an invoice that has no payments."""
    service = InvoiceService(ctx.obj["db"])
    try:
        inv = service.require_invoice(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(f"Are you sure you want to delete invoice {inv.invoice_number}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_invoice(invoice_id)
        click.echo(f"Deleted invoice {inv.invoice_number}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("send")
@click.argument("invoice_id", type=int)
@click.pass_context
def send_invoice(ctx, invoice_id: int):
    """Email an invoice to the customer; a draft invoice becomes SENT."""
    service = InvoiceService(ctx.obj["db"], email_sender=ctx.obj.get("email_sender"))
    try:
        result = service.send_invoice(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if result.email.success:
        click.echo(f"Sent invoice {result.invoice.invoice_number} ({result.invoice.status.value})")
    else:
        click.echo(f"Error: Invoice not sent: {result.email.error}", err=True)
        ctx.exit(1)


@invoice_group.command("pay")
@click.argument("invoice_id", type=int)
@click.argument("amount")
@click.option(
    "--method", type=click.Choice(METHODS, case_sensitive=False), default="CASH",
    show_default=True, help="Payment method",
)
@click.option("--date", "payment_date", help="Payment date (defaults to now)")
@click.option("--reference", "reference_number", help="Reference number")
@click.option("--notes", help="Notes")
@click.pass_context
def pay_invoice(
    ctx,
    invoice_id: int,
    amount: str,
    method: str,
    payment_date: str | None,
    reference_number: str | None,
    notes: str | None,
):
    """Record a payment against an invoice.

    Examples:
        repairshop invoice pay 1 50.00 --method CREDIT_CARD
    """
    service = InvoiceService(ctx.obj["db"])
    value = parse_amount_or_exit(ctx, amount, "amount")
    paid_on = parse_date_or_exit(ctx, payment_date, "payment date")
    try:
        inv = service.apply_payment(
            invoice_id,
            value,
            method,
            payment_date=paid_on,
            reference_number=reference_number,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Recorded payment of {value:.2f} on invoice {inv.invoice_number}")
    click.echo(f"Balance: {inv.balance_amount:.2f} ({inv.status.value})")


@invoice_group.command("payments")
@click.argument("invoice_id", type=int)
@click.pass_context
def list_payments(ctx, invoice_id: int):
    """List payments recorded against an invoice, newest first."""
    try:
        payments = InvoiceService(ctx.obj["db"]).list_payments(invoice_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not payments:
        click.echo("No payments recorded.")
        return
    for p in payments:
        ref = f" | ref {p.reference_number}" if p.reference_number else ""
        click.echo(f"{p.payment_date:%Y-%m-%d} | {p.method.value:13s} | {p.amount:>10.2f}{ref}")


@invoice_group.command("overdue")
@click.pass_context
def mark_overdue(ctx):
    """Mark unpaid invoices past their due date as overdue."""
    invoices = InvoiceService(ctx.obj["db"]).mark_overdue_invoices()
    click.echo(f"Marked {len(invoices)} invoice{'s' if len(invoices) != 1 else ''} overdue")
    for inv in invoices:
        click.echo(f"  {_summary(inv)}")


@invoice_group.command("outstanding")
@click.pass_context
def outstanding(ctx):
    """Summarize open balances."""
    summary = InvoiceService(ctx.obj["db"]).get_outstanding_summary()
    click.echo(f"Open invoices: {summary.invoice_count}")
    for status, balance in sorted(summary.by_status.items(), key=lambda kv: kv[0].value):
        click.echo(f"  {status.value:14s} {balance:>10.2f}")
    click.echo(f"Total outstanding: {summary.total_balance:.2f}")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
