"""Repair job commands."""

import click
from repairshop.cli.error_handling import (
    handle_domain_error,
    parse_amount_or_exit,
    parse_date_or_exit,
    report_email,
)
from repairshop.domain.entities import JobPriority, JobStatus
from repairshop.domain.errors import DomainError
from repairshop.domain.job import JobService

PRIORITIES = [p.value for p in JobPriority]
STATUSES = [s.value for s in JobStatus]


def _service(ctx) -> JobService:
    return JobService(ctx.obj["db"], email_sender=ctx.obj.get("email_sender"))


@click.group()
def job_group():
    """Manage repair jobs."""
    pass


@job_group.command("create")
@click.option("--customer", "customer_id", type=int, required=True, help="Customer ID")
@click.option("--type", "appliance_type", required=True, help="Appliance type (e.g. Refrigerator)")
@click.option("--brand", "appliance_brand", required=True, help="Appliance brand")
@click.option("--issue", "issue_description", required=True, help="Description of the problem")
@click.option(
    "--priority", type=click.Choice(PRIORITIES, case_sensitive=False), default="MEDIUM", help="Priority"
)
@click.option("--model", "model_number", help="Model number")
@click.option("--serial", "serial_number", help="Serial number")
@click.option("--notes", "customer_notes", help="Customer notes")
@click.option("--technician", "assigned_technician", help="Assigned technician")
@click.option("--estimated", help="Estimated completion date (YYYY-MM-DD or relative like 'next week')")
@click.pass_context
def create_job(
    ctx,
    customer_id: int,
    appliance_type: str,
    appliance_brand: str,
    issue_description: str,
    priority: str,
    model_number: str | None,
    serial_number: str | None,
    customer_notes: str | None,
    assigned_technician: str | None,
    estimated: str | None,
):
    """Create a repair job.

    Examples:
        repairshop job create --customer 1 --type Dishwasher --brand Bosch \\
            --issue "Does not drain"
    """
    service = _service(ctx)
    estimated_completion = parse_date_or_exit(ctx, estimated, "estimated completion date")
    try:
        job_id = service.create_job(
            customer_id=customer_id,
            appliance_type=appliance_type,
            appliance_brand=appliance_brand,
            issue_description=issue_description,
            priority=priority,
            model_number=model_number,
            serial_number=serial_number,
            customer_notes=customer_notes,
            assigned_technician=assigned_technician,
            estimated_completion=estimated_completion,
        )
        job = service.require_job(job_id)
        click.echo(f"Created job {job.job_number} (ID: {job.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@job_group.command("list")
@click.option("--status", type=click.Choice(STATUSES, case_sensitive=False), help="Filter by status")
@click.option("--customer", "customer_id", type=int, help="Filter by customer ID")
@click.pass_context
def list_jobs(ctx, status: str | None, customer_id: int | None):
    """List jobs, newest first."""
    service = _service(ctx)
    jobs = service.list_jobs(status=status, customer_id=customer_id)
    if not jobs:
        click.echo("No jobs found.")
        return

    click.echo("\nJobs:")
    click.echo("-" * 90)
    for j in jobs:
        click.echo(
            f"{j.job_number} | {j.status.value:26s} | {j.priority.value:6s} | "
            f"{j.appliance_brand} {j.appliance_type}"
        )


@job_group.command("show")
@click.argument("job_id", type=int)
@click.pass_context
def show_job(ctx, job_id: int):
    """Show job details."""
    service = _service(ctx)
    try:
        job = service.require_job(job_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Job {job.job_number} (ID: {job.id})")
    click.echo(f"  Status: {job.status.value}")
    click.echo(f"  Priority: {job.priority.value}")
    click.echo(f"  Customer ID: {job.customer_id}")
    click.echo(f"  Appliance: {job.appliance_brand} {job.appliance_type}")
    for label, value in (
        ("Model", job.model_number),
        ("Serial", job.serial_number),
        ("Issue", job.issue_description),
        ("Diagnosis", job.diagnostic_results),
        ("Notes", job.customer_notes),
        ("Technician", job.assigned_technician),
        ("Labor hours", job.labor_hours),
        ("Estimated completion", job.estimated_completion),
        ("Completed", job.actual_completion),
        ("Last notification", job.last_notification_sent),
    ):
        if value is not None:
            click.echo(f"  {label}: {value}")
    if service.needs_attention(job):
        click.echo("  ! Needs attention: customer has not been updated recently")


@job_group.command("status")
@click.argument("job_id", type=int)
@click.argument("new_status", type=click.Choice(STATUSES, case_sensitive=False))
@click.option("--notes", help="History note")
@click.option("--notify", is_flag=True, help="Email the customer about the change")
@click.pass_context
def change_status(ctx, job_id: int, new_status: str, notes: str | None, notify: bool):
    """Change the status of a job.

    Examples:
        repairshop job status 1 AWAITING_PARTS --notes "Pump on order"
        repairshop job status 1 READY_FOR_PICKUP --notify
    """
    service = _service(ctx)
    try:
        result = service.change_status(job_id, new_status, notes=notes, notify_customer=notify)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Job {result.job.job_number} is now {result.job.status.value}")
    report_email(result.email)
    if result.job.status == JobStatus.CLOSED:
        click.echo(f"Tip: create an invoice with 'repairshop invoice create --job {job_id}'")


@job_group.command("history")
@click.argument("job_id", type=int)
@click.pass_context
def show_history(ctx, job_id: int):
    """Show the status history of a job, oldest first."""
    service = _service(ctx)
    try:
        history = service.get_status_history(job_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for entry in history:
        click.echo(f"{entry.created_at:%Y-%m-%d %H:%M} | {entry.status.value:26s} | {entry.notes or ''}")


@job_group.command("update")
@click.argument("job_id", type=int)
@click.option("--type", "appliance_type", help="Appliance type")
@click.option("--brand", "appliance_brand", help="Appliance brand")
@click.option("--model", "model_number", help="Model number")
@click.option("--serial", "serial_number", help="Serial number")
@click.option("--issue", "issue_description", help="Description of the problem")
@click.option("--diagnosis", "diagnostic_results", help="Diagnostic results")
@click.option("--notes", "customer_notes", help="Customer notes")
@click.option("--priority", type=click.Choice(PRIORITIES, case_sensitive=False), help="Priority")
@click.option("--technician", "assigned_technician", help="Assigned technician")
@click.option("--labor-hours", help="Labor hours spent")
@click.option("--estimated", help="Estimated completion date")
@click.pass_context
def update_job(ctx, job_id: int, labor_hours: str | None, estimated: str | None, **changes):
    """Update job details.

    Updates only the fields that are provided. Use 'job status' to change status.
    """
    service = _service(ctx)
    changes["labor_hours"] = parse_amount_or_exit(ctx, labor_hours, "labor hours")
    changes["estimated_completion"] = parse_date_or_exit(ctx, estimated, "estimated completion date")
    try:
        job = service.update_job(job_id, **changes)
        click.echo(f"Updated job {job.job_number}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@job_group.command("attention")
@click.pass_context
def list_attention(ctx):
    """List open jobs whose customer has not been updated recently."""
    service = _service(ctx)
    jobs = service.list_jobs_needing_attention()
    if not jobs:
        click.echo("No jobs need attention.")
        return

    for j in jobs:
        last = f"{j.last_notification_sent:%Y-%m-%d}" if j.last_notification_sent else "never"
        click.echo(f"{j.job_number} | {j.status.value:26s} | last notified: {last}")


def register_commands(cli):
    """Register job commands with main CLI."""
    cli.add_command(job_group, name="job")
