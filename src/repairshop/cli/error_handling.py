"""CLI error handling and parsing helpers."""

from datetime import datetime

import click

from repairshop.domain.entities import LineItem
from repairshop.domain.errors import DomainError
from repairshop.domain.mail import EmailResult
from repairshop.utils.amount_parser import parse_amount, parse_line_item
from repairshop.utils.date_parser import end_of_day, parse_date


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def parse_items_or_exit(ctx: click.Context, specs: tuple[str, ...]) -> list[LineItem]:
    """Parse --item values, or exit with a CLI error."""
    try:
        return [parse_line_item(spec) for spec in specs]
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


def parse_date_or_exit(ctx: click.Context, value: str | None, label: str) -> datetime | None:
    """Parse a date option into the end of that day, or exit with a CLI error."""
    if value is None:
        return None
    try:
        return end_of_day(parse_date(value))
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(ctx: click.Context, value: str | None, label: str):
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def report_email(result: EmailResult | None) -> None:
    """Echo the outcome of a customer email, if one was attempted."""
    if result is None:
        return
    if result.success:
        click.echo("Customer notified by email")
    else:
        click.echo(f"Warning: Email not sent: {result.error}", err=True)
