"""Planned transfer helper commands."""

import click
from budgetkoll.cli.error_handling import handle_domain_error
from budgetkoll.domain.planned_transfer import (
    format_transfer_days,
    parse_transfer_days,
    transfer_days_in_month,
)
from budgetkoll.utils.amount_parser import format_ore, parse_amount_ore
from budgetkoll.utils.date_parser import validate_month_key


@click.command("transfer-days")
@click.argument("month_key", metavar="MONTH")
@click.option(
    "--days",
    required=True,
    help="Weekdays as numbers (0=Sunday..6=Saturday) or names, e.g. '1,3' or 'mån,ons'",
)
@click.option("--daily-amount", help="Amount per transfer day in kronor")
@click.pass_context
def transfer_days(ctx, month_key: str, days: str, daily_amount: str | None):
    """Count transfer days in a month for a daily transfer.

    Examples:
        budgetkoll transfer-days 2025-08 --days 1
        budgetkoll transfer-days 2025-08 --days mån,fre --daily-amount 50
    """
    try:
        validate_month_key(month_key)
        weekdays = parse_transfer_days(days)
        count = transfer_days_in_month(month_key, weekdays)
        per_day = parse_amount_ore(daily_amount) if daily_amount is not None else None
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"{month_key}: {count} transfer days ({format_transfer_days(weekdays)})")
    if per_day is not None:
        click.echo(f"Monthly total: {format_ore(per_day * count)}")


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_days)
