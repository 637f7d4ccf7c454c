"""Quote commands."""

import click
from repairshop.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    parse_items_or_exit,
    report_email,
)
from repairshop.domain.entities import Quote, QuoteStatus
from repairshop.domain.errors import DomainError
from repairshop.domain.quote import QuoteService

STATUSES = [s.value for s in QuoteStatus]


def _service(ctx) -> QuoteService:
    return QuoteService(ctx.obj["db"], email_sender=ctx.obj.get("email_sender"))


def _summary(q: Quote) -> str:
    return (
        f"{q.quote_number:12s} | {q.status.value:20s} | {q.total_amount:>10.2f} | "
        f"valid until {q.valid_until:%Y-%m-%d} | reminders {q.reminder_count}"
    )


@click.group()
def quote_group():
    """Issue quotes and record customer responses."""
    pass


@quote_group.command("issue")
@click.option("--job", "job_id", type=int, required=True, help="Job ID")
@click.option(
    "--item", "items", multiple=True, required=True,
    help="Line item as DESCRIPTION:QTY:UNIT_PRICE[:TYPE] (repeatable)",
)
@click.option("--tax-rate", help="Tax rate in percent (defaults to the configured rate)")
@click.option("--valid-days", type=int, default=30, show_default=True, help="Days the quote is valid")
@click.option("--notes", help="Notes printed on the quote")
@click.pass_context
def issue_quote(ctx, job_id: int, items: tuple[str, ...], tax_rate: str | None, valid_days: int, notes: str | None):
    """Issue a quote for a job and email it to the customer.

    Examples:
        repairshop quote issue --job 1 --item "Drain pump:1:89.50" --item "Labor:1.5:60:LABOR"
    """
    service = _service(ctx)
    line_items = parse_items_or_exit(ctx, items)
    rate = parse_amount_or_exit(ctx, tax_rate, "tax rate")
    try:
        result = service.issue_quote(
            job_id, line_items, tax_rate=rate, valid_days=valid_days, notes=notes
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    q = result.quote
    click.echo(f"Issued quote {q.quote_number} (ID: {q.id}) for {q.total_amount:.2f}")
    click.echo(f"Valid until {q.valid_until:%Y-%m-%d}")
    report_email(result.email)


@quote_group.command("show")
@click.argument("quote_id", type=int)
@click.pass_context
def show_quote(ctx, quote_id: int):
    """Show quote details and items."""
    service = _service(ctx)
    try:
        q = service.require_quote(quote_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Quote {q.quote_number} (ID: {q.id})")
    click.echo(f"  Status: {q.status.value}")
    click.echo(f"  Issued: {q.issue_date:%Y-%m-%d}  Valid until: {q.valid_until:%Y-%m-%d}")
    click.echo("  Items:")
    for item in q.items:
        click.echo(
            f"    {item.description:30s} {item.quantity:>6} x {item.unit_price:>9.2f} = {item.total_price:>10.2f}"
        )
    click.echo(f"  Subtotal: {q.subtotal:.2f}")
    click.echo(f"  Tax ({q.tax_rate}%): {q.tax_amount:.2f}")
    if q.discount_amount:
        click.echo(f"  Discount: {q.discount_amount:.2f}")
    click.echo(f"  Total: {q.total_amount:.2f}")
    if q.customer_response:
        click.echo(f"  Customer response: {q.customer_response.value} on {q.customer_response_date:%Y-%m-%d}")
    if q.rejection_reason:
        click.echo(f"  Rejection reason: {q.rejection_reason}")
    click.echo(f"  Reminders sent: {q.reminder_count}")


@quote_group.command("list")
@click.option("--status", type=click.Choice(STATUSES, case_sensitive=False), help="Filter by status")
@click.option("--job", "job_id", type=int, help="Filter by job ID")
@click.pass_context
def list_quotes(ctx, status: str | None, job_id: int | None):
    """List quotes, newest first."""
    quotes = _service(ctx).list_quotes(status=status, job_id=job_id)
    if not quotes:
        click.echo("No quotes found.")
        return
    for q in quotes:
        click.echo(_summary(q))


@quote_group.command("accept")
@click.argument("quote_id", type=int)
@click.pass_context
def accept_quote(ctx, quote_id: int):
    """Record that the customer accepted a quote."""
    try:
        q = _service(ctx).accept_quote(quote_id)
        click.echo(f"Quote {q.quote_number} accepted")
    except DomainError as e:
        handle_domain_error(ctx, e)


@quote_group.command("reject")
@click.argument("quote_id", type=int)
@click.option("--reason", help="Why the customer declined")
@click.pass_context
def reject_quote(ctx, quote_id: int, reason: str | None):
    """Record that the customer rejected a quote."""
    try:
        q = _service(ctx).reject_quote(quote_id, reason=reason)
        click.echo(f"Quote {q.quote_number} rejected")
    except DomainError as e:
        handle_domain_error(ctx, e)


@quote_group.command("remind")
@click.argument("quote_id", type=int)
@click.pass_context
def send_reminder(ctx, quote_id: int):
    """Email the customer a reminder about an unanswered quote."""
    try:
        result = _service(ctx).send_reminder(quote_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if result.email.success:
        click.echo(f"Reminder {result.quote.reminder_count} sent for quote {result.quote.quote_number}")
    else:
        click.echo(f"Error: Reminder not sent: {result.email.error}", err=True)
        ctx.exit(1)


@quote_group.command("convert")
@click.argument("quote_id", type=int)
@click.option("--due-days", type=int, default=30, show_default=True, help="Days until payment is due")
@click.pass_context
def convert_quote(ctx, quote_id: int, due_days: int):
    """Convert an accepted quote into an invoice."""
    try:
        invoice = _service(ctx).convert_to_invoice(quote_id, due_days=due_days)
        click.echo(f"Created invoice {invoice.invoice_number} (ID: {invoice.id}) for {invoice.total_amount:.2f}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@quote_group.command("expire")
@click.pass_context
def expire_quotes(ctx):
    """Mark sent quotes past their validity date as expired."""
    expired = _service(ctx).expire_quotes()
    click.echo(f"Expired {len(expired)} quote{'s' if len(expired) != 1 else ''}")
    for q in expired:
        click.echo(f"  {q.quote_number}")


@quote_group.command("due")
@click.pass_context
def reminders_due(ctx):
    """List quotes for which a reminder is due."""
    quotes = _service(ctx).list_reminders_due()
    if not quotes:
        click.echo("No reminders due.")
        return
    for q in quotes:
        click.echo(_summary(q))


def register_commands(cli):
    """Register quote commands with main CLI."""
    cli.add_command(quote_group, name="quote")
