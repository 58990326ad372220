"""Monthly account balance commands."""

import click
from budgetkoll.cli.error_handling import handle_domain_error, resolve_account_or_exit
from budgetkoll.domain.account import AccountService
from budgetkoll.domain.errors import DomainError
from budgetkoll.domain.monthly_balance import MonthlyBalanceService
from budgetkoll.utils.amount_parser import format_ore, parse_amount_ore


def _fmt(value: int | None) -> str:
    return format_ore(value) if value is not None else "-"


@click.group("balance")
def balance_group():
    """Reconcile monthly account balances."""
    pass


@balance_group.command("show")
@click.argument("month_key", metavar="MONTH")
@click.pass_context
def show_balances(ctx, month_key: str):
    """Show calculated, actual and bank balances for a month (YYYY-MM)."""
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    service = MonthlyBalanceService(db, user_id)
    accounts = {acc.id: acc.name for acc in AccountService(db, user_id).list_accounts()}

    try:
        balances = service.list_balances(month_key)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not balances:
        click.echo(f"No balances recorded for {month_key}.")
        return

    click.echo(f"\nBalances for {month_key}:")
    click.echo("-" * 90)
    click.echo(f"{'Account':20s} {'Calculated':>16s} {'Faktiskt':>16s} {'Banken':>16s} {'Difference':>16s}")
    for bal in balances:
        name = accounts.get(bal.account_id, f"#{bal.account_id}")
        click.echo(
            f"{name:20s} {_fmt(bal.calculated_balance):>16s} {_fmt(bal.faktiskt_kontosaldo):>16s} "
            f"{_fmt(bal.bankens_kontosaldo):>16s} {_fmt(bal.difference):>16s}"
        )


@balance_group.command("set")
@click.argument("month_key", metavar="MONTH")
@click.argument("amount", required=False)
@click.option("--account", required=True, help="Account name or ID")
@click.option("--clear", is_flag=True, help="Remove the recorded actual balance")
@click.pass_context
def set_balance(ctx, month_key: str, amount: str | None, account: str, clear: bool):
    """Record the actual account balance (faktiskt kontosaldo) for a month.

    AMOUNT is given in kronor, e.g. "12 345,67".

    Examples:
        budgetkoll balance set 2025-08 "12 345,67" --account Lönekonto
        budgetkoll balance set 2025-08 --account 1 --clear
    """
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    account_id = resolve_account_or_exit(ctx, AccountService(db, user_id), account)

    if clear == (amount is not None):
        click.echo("Error: Give either AMOUNT or --clear.", err=True)
        ctx.exit(1)

    try:
        value = None if clear else parse_amount_ore(amount)
        balance = MonthlyBalanceService(db, user_id).set_faktiskt_kontosaldo(month_key, account_id, value)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Faktiskt kontosaldo for {month_key}: {_fmt(balance.faktiskt_kontosaldo)}")
    if balance.difference is not None:
        click.echo(f"Difference from calculated: {format_ore(balance.difference)}")


@balance_group.command("recalculate")
@click.argument("month_key", metavar="MONTH")
@click.pass_context
def recalculate_balances(ctx, month_key: str):
    """Recompute calculated balances for every account in a month."""
    db = ctx.obj["db"]
    service = MonthlyBalanceService(db, ctx.obj["user_id"])

    try:
        balances = service.recalculate_month(month_key)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Recalculated {len(balances)} account balances for {month_key}.")


def register_commands(cli):
    """Register balance commands with main CLI."""
    cli.add_command(balance_group)
