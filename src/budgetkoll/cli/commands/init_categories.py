"""Initialize default categories and income sources."""

import click
from budgetkoll.domain.category import CategoryService
from budgetkoll.domain.errors import DomainError
from budgetkoll.domain.household import HouseholdService


# Huvudkategori -> underkategorier
INITIAL_CATEGORIES = {
    "Inkomst": ["Lön", "Barnbidrag", "Övrig inkomst"],
    "Boende": ["Hyra", "El", "Bredband", "Hemförsäkring"],
    "Mat": ["Livsmedel", "Restaurang", "Kaffe & fika"],
    "Transport": ["Drivmedel", "Kollektivtrafik", "Parkering", "Bilservice"],
    "Shopping": ["Kläder", "Elektronik", "Hem & trädgård"],
    "Hälsa": ["Apotek", "Vård", "Träning"],
    "Nöje": ["Streaming", "Resor", "Evenemang"],
    "Sparande": ["Buffert", "Fonder"],
    "Överföringar": ["Mellan egna konton"],
    "Övrigt": [],
}


@click.command("init-categories")
@click.option("--force", is_flag=True, help="Add missing defaults even if categories already exist")
@click.pass_context
def init_categories(ctx, force: bool):
    """Initialize database with default categories and income sources."""
    db = ctx.obj["db"]
    user_id = ctx.obj["user_id"]
    service = CategoryService(db, user_id)
    household = HouseholdService(db, user_id)

    existing = service.list_huvudkategorier()
    if existing and not force:
        click.echo("Categories already exist. Use --force to add missing defaults.")
        return

    click.echo("Creating initial categories...")

    created = 0
    errors = 0
    for main_name, sub_names in INITIAL_CATEGORIES.items():
        main = service.get_huvudkategori_by_name(main_name)
        try:
            main_id = main.id if main is not None else service.create_huvudkategori(main_name)
        except DomainError as e:
            click.echo(f"Warning: Could not create category '{main_name}': {e}", err=True)
            errors += 1
            continue
        if main is None:
            created += 1

        known = {sub.name for sub in service.list_underkategorier(main_id)}
        for sub_name in sub_names:
            if sub_name in known:
                continue
            try:
                service.create_underkategori(sub_name, main_id)
                created += 1
            except DomainError as e:
                click.echo(f"Warning: Could not create category '{main_name} > {sub_name}': {e}", err=True)
                errors += 1

    sources = household.ensure_default_inkomstkallor()

    if errors == 0:
        click.echo(f"Successfully created {created} categories.")
    else:
        click.echo(f"Created {created} categories with {errors} errors.")
    if sources:
        click.echo(f"Added {len(sources)} default income sources.")


def register_commands(cli):
    """Register init-categories command with main CLI."""
    cli.add_command(init_categories)
