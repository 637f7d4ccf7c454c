"""Shop settings commands."""

from dataclasses import asdict

import click
from repairshop.cli.error_handling import handle_domain_error
from repairshop.domain.errors import DomainError
from repairshop.domain.settings import SettingsService


@click.group()
def settings_group():
    """View and change shop settings."""
    pass


@settings_group.command("show")
@click.pass_context
def show_settings(ctx):
    """Show the current settings."""
    settings = SettingsService(ctx.obj["db"]).get_settings()
    for name, value in asdict(settings).items():
        click.echo(f"{name}: {value if value is not None else ''}")


@settings_group.command("set")
@click.option("--tax-rate", help="Default tax rate in percent (0-100)")
@click.option("--notification-reminder-days", type=int, help="Days without an update before a job needs attention")
@click.option("--quote-reminder-days", type=int, help="Days after issue before the first quote reminder")
@click.option("--quote-reminder-frequency", type=int, help="Days between quote reminders")
@click.option("--quote-max-reminders", type=int, help="Maximum reminders per quote")
@click.option("--company-name", help="Company name shown on emails and documents")
@click.option("--company-email", help="Company email")
@click.option("--company-phone", help="Company phone")
@click.option("--public-base-url", help="Base URL for customer-facing links")
@click.pass_context
def set_settings(ctx, **changes):
    """Change one or more settings.

    Examples:
        repairshop settings set --tax-rate 8.25 --quote-max-reminders 5
    """
    service = SettingsService(ctx.obj["db"])
    changes = {name: value for name, value in changes.items() if value is not None}
    if not changes:
        click.echo("Error: Specify at least one setting to change", err=True)
        ctx.exit(1)

    try:
        service.update_settings(**changes)
        click.echo(f"Updated {', '.join(sorted(changes))}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register settings commands with main CLI."""
    cli.add_command(settings_group, name="settings")
