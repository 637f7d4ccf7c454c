"""Main CLI entry point."""

import logging

import click
from repairshop.database.factories import create_sqlite_database
from repairshop.domain.mail import LoggingEmailSender

# Import and register all commands at module level
from repairshop.cli.commands import (
    customer,
    job,
    quote,
    invoice,
    settings,
    intake,
)

LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides REPAIRSHOP_DB_PATH environment variable)",
    envvar="REPAIRSHOP_DB_PATH",
)
@click.option("--verbose", "-v", count=True, help="Log business events (-v) or everything (-vv)")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: int):
    """Repairshop - Appliance repair shop management.

    Track customers and repair jobs, send quotes, issue invoices and
    record payments.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["email_sender"] = LoggingEmailSender()


# Register all commands
customer.register_commands(cli)
job.register_commands(cli)
quote.register_commands(cli)
invoice.register_commands(cli)
settings.register_commands(cli)
intake.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
