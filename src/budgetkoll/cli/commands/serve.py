"""Run the REST API server."""

import click
from budgetkoll.api.app import create_app
from budgetkoll.config import AppConfig


@click.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", default=5000, show_default=True, type=int, help="Port to listen on")
@click.option("--debug", is_flag=True, help="Enable the Flask debugger")
@click.pass_context
def serve(ctx, host: str, port: int, debug: bool):
    """Serve the budgetkoll REST API under /api.

    Authentication and other server settings are read from the
    BUDGETKOLL_* environment variables.
    """
    config = AppConfig.from_env()
    config.database_url = ctx.obj["database_url"] or config.database_url
    config.db_path = ctx.obj["db_path"] or config.db_path
    app = create_app(config, db=ctx.obj["db"])

    click.echo(f"Serving budgetkoll on http://{host}:{port}/api")
    # The database keeps one session, so requests are handled one at a time
    app.run(host=host, port=port, debug=debug, threaded=False, use_reloader=False)


def register_commands(cli):
    """Register serve command with main CLI."""
    cli.add_command(serve)
