"""Diagnostic commands for inspecting stored data."""

import click
from budgetkoll.cli.error_handling import handle_domain_error, resolve_account_or_exit
from budgetkoll.client.storage import LocalStore
from budgetkoll.domain.account import AccountService
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.errors import DomainError
from budgetkoll.domain.monthly_balance import MonthlyBalanceService
from budgetkoll.domain.transaction import TransactionService
from budgetkoll.utils.amount_parser import format_ore


@click.group("diagnose")
def diagnose_group():
    """Inspect the database and client state."""
    pass


@diagnose_group.command("table-structure")
@click.pass_context
def table_structure(ctx):
    """List every table and its columns."""
    db = ctx.obj["db"]
    if not db.ping():
        click.echo("Error: Database is not reachable.", err=True)
        ctx.exit(1)

    for table, columns in db.describe_tables().items():
        click.echo(f"{table}:")
        for column in columns:
            click.echo(f"  - {column}")


@diagnose_group.command("balance")
@click.argument("month_key", metavar="MONTH")
@click.option("--account", required=True, help="Account name or ID")
@click.pass_context
def diagnose_balance(ctx, month_key: str, account: str):
    """Compare the stored balance row with a fresh calculation."""
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    account_id = resolve_account_or_exit(ctx, AccountService(db, user_id), account)
    service = MonthlyBalanceService(db, user_id)

    try:
        stored = service.get_balance(month_key, account_id)
        fresh = service.calculate_balance(month_key, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Account {account_id}, {month_key}")
    click.echo(f"  Fresh calculation:   {format_ore(fresh)}")
    if stored is None:
        click.echo("  No stored balance row.")
        return
    click.echo(f"  Stored calculated:   {format_ore(stored.calculated_balance)}")
    for label, value in (
        ("Faktiskt kontosaldo", stored.faktiskt_kontosaldo),
        ("Bankens kontosaldo", stored.bankens_kontosaldo),
    ):
        click.echo(f"  {label + ':':21s}{format_ore(value) if value is not None else '-'}")
    if stored.calculated_balance != fresh:
        click.echo("  Stored calculation is stale; run 'budgetkoll balance recalculate'.")


@diagnose_group.command("transaction")
@click.argument("month_key", metavar="MONTH")
@click.option("--search", help="Only transactions whose description contains this text")
@click.option("--account", help="Account name or ID")
@click.pass_context
def diagnose_transaction(ctx, month_key: str, search: str | None, account: str | None):
    """Show transactions of a month with their bank and app categories."""
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db, user_id), account)

    categories = CategoryService(db, user_id)
    main_names = {c.id: c.name for c in categories.list_huvudkategorier()}
    sub_names = {c.id: c.name for c in categories.list_underkategorier()}

    try:
        transactions = TransactionService(db, user_id).list_transactions(
            account_id=account_id, month_key=month_key
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if search:
        needle = search.lower()
        transactions = [t for t in transactions if needle in t.description.lower()]
    if not transactions:
        click.echo(f"No transactions found in {month_key}.")
        return

    click.echo(f"Found {len(transactions)} transactions in {month_key}")
    for txn in transactions:
        click.echo(f"\nID {txn.id}: {txn.description} ({txn.date.isoformat()})")
        click.echo(f"  Amount: {format_ore(txn.amount)}  Type: {txn.type}  Status: {txn.status}")
        click.echo(f"  Bank category: {txn.bank_category or '-'} / {txn.bank_sub_category or '-'}")
        main = main_names.get(txn.huvudkategori_id, "-")
        sub = sub_names.get(txn.underkategori_id, "-")
        click.echo(f"  App category: {main} / {sub}")
        if txn.is_manually_changed:
            click.echo("  Manually changed")


@diagnose_group.command("legacy-state")
@click.option("--store", "store_path", type=click.Path(dir_okay=False), help="Client store file")
@click.option("--limit", default=10, show_default=True, help="Transactions to list")
def legacy_state(store_path: str | None, limit: int):
    """Show transactions left in the legacy client budget state.

    The legacy state is only read; it is never merged into server data.
    """
    store = LocalStore(store_path)
    transactions = store.legacy_transactions()
    click.echo(f"Legacy state in {store.path}: {len(transactions)} transactions")
    for txn in transactions[:limit]:
        if not isinstance(txn, dict):
            continue
        amount = txn.get("amount")
        shown = format_ore(amount) if isinstance(amount, int) else str(amount)
        click.echo(f"  {txn.get('date', '?')}  {txn.get('description', '')}  {shown}")


def register_commands(cli):
    """Register diagnose commands with main CLI."""
    cli.add_command(diagnose_group)
