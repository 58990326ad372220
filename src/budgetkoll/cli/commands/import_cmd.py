"""Bank statement import command."""

import click
from budgetkoll.cli.error_handling import handle_domain_error, resolve_account_or_exit
from budgetkoll.domain.account import AccountService
from budgetkoll.domain.csv_import import CSVImportService
from budgetkoll.domain.errors import DomainError
from budgetkoll.utils.amount_parser import format_ore


@click.command("import")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--account", required=True, help="Account name or ID")
@click.option("--mapping", "mapping_id", type=int, help="CSV mapping ID to use")
@click.option("--bank", "bank_id", type=int, help="Use this bank's active CSV mapping")
@click.pass_context
def import_statement(ctx, statement_file: str, account: str, mapping_id: int | None, bank_id: int | None):
    """Import transactions from a CSV or XLSX bank statement.

    Without --mapping or --bank the Swedish default column names
    (Datum, Text, Belopp, Saldo, Kategori, Underkategori) are used.

    Examples:
        budgetkoll import kontoutdrag.csv --account "Lönekonto"
        budgetkoll import export.xlsx --account 2 --bank 1
    """
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    account_id = resolve_account_or_exit(ctx, AccountService(db, user_id), account)
    service = CSVImportService(db, user_id)

    try:
        result = service.import_file(
            statement_file, account_id, mapping_id=mapping_id, bank_id=bank_id
        )
    except (DomainError, ValueError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo("\nImport complete:")
    click.echo(f"  Imported: {result['imported']} transactions")
    click.echo(f"  Skipped: {result['skipped']} duplicates")
    click.echo(f"  Categorized by rules: {result['categorized']}")
    if result["linked"]:
        click.echo(f"  Linked transfers: {result['linked']} pair(s)")
    for month_key, balance in sorted(result["balances"].items()):
        click.echo(f"  Bank balance {month_key}: {format_ore(balance)}")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_statement)
