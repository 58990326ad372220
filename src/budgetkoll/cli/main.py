"""Main CLI entry point."""

import logging

import click
from budgetkoll.database.factories import create_database

# Import and register all commands at module level
from budgetkoll.cli.commands import (
    serve,
    import_cmd,
    init_categories,
    balance,
    transfer,
    diagnose,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to SQLite database file (overrides BUDGETKOLL_DB_PATH environment variable)",
    envvar="BUDGETKOLL_DB_PATH",
)
@click.option(
    "--database-url",
    help="SQLAlchemy database URL; takes precedence over --db-path",
    envvar="BUDGETKOLL_DATABASE_URL",
)
@click.option(
    "--user",
    default="local",
    show_default=True,
    help="User whose data the command works on",
    envvar="BUDGETKOLL_USER",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="BUDGETKOLL_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, database_url: str | None, user: str, log_level: str):
    """Budgetkoll - household budget tracking.

    Import bank statements, categorize transactions with rules and follow
    planned transfers and account balances month by month.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(database_url=database_url, database_path=db_path)
        db.connect()
        db.initialize_schema()
        db.upsert_user(user)
        ctx.obj["db"] = db
        ctx.obj["user_id"] = user
        ctx.obj["db_path"] = db_path
        ctx.obj["database_url"] = database_url
        ctx.call_on_close(db.disconnect)


# Register all commands
serve.register_commands(cli)
import_cmd.register_commands(cli)
init_categories.register_commands(cli)
balance.register_commands(cli)
transfer.register_commands(cli)
diagnose.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
