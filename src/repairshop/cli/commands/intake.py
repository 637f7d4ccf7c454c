"""Public-facing commands: job submission and tracking."""

import click
from repairshop.cli.error_handling import handle_domain_error, report_email
from repairshop.domain.errors import DomainError
from repairshop.domain.intake import IntakeService


@click.command("submit")
@click.option("--first-name", required=True, help="First name")
@click.option("--last-name", required=True, help="Last name")
@click.option("--email", required=True, help="Email address")
@click.option("--phone", required=True, help="Phone number")
@click.option("--type", "appliance_type", required=True, help="Appliance type")
@click.option("--brand", "appliance_brand", required=True, help="Appliance brand")
@click.option("--issue", "issue_description", required=True, help="Describe the problem (at least 10 characters)")
@click.option("--model", "model_number", help="Model number")
@click.option("--serial", "serial_number", help="Serial number")
@click.option("--address", help="Street address")
@click.option("--city", help="City")
@click.option("--state", help="State")
@click.option("--zip", "zip_code", help="ZIP code")
@click.option(
    "--contact", "preferred_contact", type=click.Choice(["EMAIL", "PHONE"], case_sensitive=False),
    default="EMAIL", show_default=True, help="Preferred contact method",
)
@click.pass_context
def submit_job(ctx, **fields):
    """Submit a repair request as a customer.

    Examples:
        repairshop submit --first-name Ada --last-name Lovelace --email ada@example.com \\
            --phone 555-0100 --type Washer --brand Miele --issue "Drum does not spin"
    """
    service = IntakeService(ctx.obj["db"], email_sender=ctx.obj.get("email_sender"))
    try:
        result = service.submit_job(**fields)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Thank you! Your job number is {result.job_number}")
    report_email(result.email)


@click.command("track")
@click.argument("job_number")
@click.pass_context
def track_job(ctx, job_number: str):
    """Look up the progress of a repair by job number."""
    service = IntakeService(ctx.obj["db"])
    try:
        tracking = service.track_job(job_number)
    except DomainError as e:
        handle_domain_error(ctx, e)

    job = tracking.job
    click.echo(f"Job {job.job_number}: {job.appliance_brand} {job.appliance_type}")
    click.echo(f"Status: {job.status.value}")
    if job.estimated_completion:
        click.echo(f"Estimated completion: {job.estimated_completion:%Y-%m-%d}")
    click.echo("History:")
    for entry in tracking.history:
        click.echo(f"  {entry.created_at:%Y-%m-%d %H:%M} | {entry.status.value:26s} | {entry.notes or ''}")


def register_commands(cli):
    """Register public commands with main CLI."""
    cli.add_command(submit_job)
    cli.add_command(track_job)
