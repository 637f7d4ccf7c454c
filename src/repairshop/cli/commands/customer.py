"""Customer management commands."""

import click
from repairshop.cli.error_handling import handle_domain_error
from repairshop.domain.customer import CustomerService
from repairshop.domain.entities import CustomerType
from repairshop.domain.errors import DomainError

CUSTOMER_TYPES = [t.value for t in CustomerType]


@click.group()
def customer_group():
    """Manage customers."""
    pass


@customer_group.command("create")
@click.option("--first-name", required=True, help="First name")
@click.option("--last-name", required=True, help="Last name")
@click.option("--email", required=True, help="Email address (must be unique)")
@click.option("--phone", required=True, help="Phone number")
@click.option(
    "--type", "customer_type", type=click.Choice(CUSTOMER_TYPES, case_sensitive=False),
    default="RESIDENTIAL", help="Customer type",
)
@click.option("--address", help="Street address")
@click.option("--city", help="City")
@click.option("--state", help="State")
@click.option("--zip", "zip_code", help="ZIP code")
@click.option("--notes", help="Notes")
@click.pass_context
def create_customer(
    ctx,
    first_name: str,
    last_name: str,
    email: str,
    phone: str,
    customer_type: str,
    address: str | None,
    city: str | None,
    state: str | None,
    zip_code: str | None,
    notes: str | None,
):
    """Create a new customer.

    Examples:
        repairshop customer create --first-name Ada --last-name Lovelace \\
            --email ada@example.com --phone 555-0100
    """
    service = CustomerService(ctx.obj["db"])
    try:
        customer_id = service.create_customer(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            customer_type=customer_type,
            address=address,
            city=city,
            state=state,
            zip_code=zip_code,
            notes=notes,
        )
        click.echo(f"Created customer '{first_name} {last_name}' (ID: {customer_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@customer_group.command("list")
@click.pass_context
def list_customers(ctx):
    """List all customers."""
    service = CustomerService(ctx.obj["db"])

    customers = service.list_customers()
    if not customers:
        click.echo("No customers found.")
        return

    click.echo("\nCustomers:")
    click.echo("-" * 80)
    for c in customers:
        click.echo(f"ID: {c.id:3d} | {c.full_name:25s} | {c.email:30s} | {c.phone}")


@customer_group.command("show")
@click.argument("customer_id", type=int)
@click.pass_context
def show_customer(ctx, customer_id: int):
    """Show a customer and their jobs."""
    db = ctx.obj["db"]
    service = CustomerService(db)
    try:
        customer = service.require_customer(customer_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Customer {customer.id}: {customer.full_name} ({customer.customer_type.value})")
    click.echo(f"  Email: {customer.email}")
    click.echo(f"  Phone: {customer.phone}")
    address = ", ".join(p for p in (customer.address, customer.city, customer.state, customer.zip_code) if p)
    if address:
        click.echo(f"  Address: {address}")
    if customer.notes:
        click.echo(f"  Notes: {customer.notes}")

    jobs = db.list_jobs(customer_id=customer_id)
    if jobs:
        click.echo("  Jobs:")
        for j in jobs:
            click.echo(f"    {j.job_number} | {j.status.value:26s} | {j.appliance_brand} {j.appliance_type}")


@customer_group.command("update")
@click.argument("customer_id", type=int)
@click.option("--first-name", help="First name")
@click.option("--last-name", help="Last name")
@click.option("--email", help="Email address")
@click.option("--phone", help="Phone number")
@click.option("--type", "customer_type", type=click.Choice(CUSTOMER_TYPES, case_sensitive=False))
@click.option("--address", help="Street address")
@click.option("--city", help="City")
@click.option("--state", help="State")
@click.option("--zip", "zip_code", help="ZIP code")
@click.option("--notes", help="Notes")
@click.pass_context
def update_customer(ctx, customer_id: int, **changes):
    """Update a customer.

    Updates only the fields that are provided.
    """
    service = CustomerService(ctx.obj["db"])
    try:
        customer = service.update_customer(customer_id, **changes)
        click.echo(f"Updated customer {customer.id}: {customer.full_name}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@customer_group.command("delete")
@click.argument("customer_id", type=int)
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_customer(ctx, customer_id: int, yes: bool):
    """Delete a customer.

    Customers with jobs or invoices cannot be deleted.
    """
    service = CustomerService(ctx.obj["db"])
    try:
        customer = service.require_customer(customer_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not yes and not click.confirm(
        f"Are you sure you want to delete customer '{customer.full_name}' (ID: {customer_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_customer(customer_id)
        click.echo(f"Deleted customer '{customer.full_name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register customer commands with main CLI."""
    cli.add_command(customer_group, name="customer")
