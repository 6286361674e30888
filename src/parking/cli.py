"""Command-line interface for parking invoicing."""

import json
import logging
import sys
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import db
from .collectors import customers, sessions
from .invoices import InvoiceService
from .models import DayClass
from .pricing import price_breakdown
from .reports.invoices import format_invoice_report_text, get_invoice_report
from .sources import SqliteCustomerSource, SqliteScheduleSource, SqliteSessionSource
from .tariffs import list_facilities, load_facilities_from_yaml, save_facilities_to_db

console = Console()


@click.group()
@click.option("--db-path", type=click.Path(), help="Path to SQLite database")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, db_path, verbose):
    """Parking invoicing - price sessions and build customer invoices."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = Path(db_path) if db_path else None


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    sys.exit(1)


# Database commands
@cli.group()
def database():
    """Database management commands."""
    pass


@database.command("init")
@click.pass_context
def db_init(ctx):
    """Initialize the database schema."""
    db.init_db(ctx.obj["db_path"])
    console.print("[green]Database initialized successfully[/green]")


@database.command("stats")
@click.pass_context
def db_stats(ctx):
    """Show database statistics."""
    stats = db.get_stats(ctx.obj["db_path"])

    table = Table(title="Database Statistics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Range")

    table.add_row("Facilities", str(stats["facilities"]["count"]), "")
    table.add_row("Rate bands", str(stats["rate_bands"]["count"]), "")

    sess = stats["sessions"]
    table.add_row(
        "Sessions",
        str(sess["count"]),
        f"{sess['earliest'] or 'N/A'} → {sess['latest'] or 'N/A'}",
    )
    for facility_id, count in stats.get("sessions_by_facility", {}).items():
        table.add_row(f"  └ {facility_id}", str(count), "")

    table.add_row("Customers", str(stats["customers"]["count"]), "")

    console.print(table)


# Tariff commands
@cli.group()
def tariff():
    """Facility tariff commands."""
    pass


@tariff.command("load")
@click.option("--config", type=click.Path(exists=True), help="Path to facilities.yaml")
@click.pass_context
def tariff_load(ctx, config):
    """Load facility tariffs from YAML config."""
    config_path = Path(config) if config else None
    try:
        facilities = load_facilities_from_yaml(config_path)
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))
    count = save_facilities_to_db(facilities, ctx.obj["db_path"])
    console.print(f"[green]Loaded {count} facility tariff(s)[/green]")


@tariff.command("check")
@click.option("--config", type=click.Path(exists=True), help="Path to facilities.yaml")
def tariff_check(config):
    """Validate facility tariffs without loading them."""
    config_path = Path(config) if config else None
    try:
        facilities = load_facilities_from_yaml(config_path)
    except (ValueError, FileNotFoundError) as e:
        _fail(str(e))
    console.print(f"[green]{len(facilities)} facility tariff(s) cover every hour[/green]")


@tariff.command("list")
@click.pass_context
def tariff_list(ctx):
    """Show the tariff bands of every facility."""
    facilities = list_facilities(ctx.obj["db_path"])
    if not facilities:
        console.print("[yellow]No facilities found[/yellow]")
        return

    for facility in facilities:
        title = f"{facility.name} ({facility.facility_id})"
        if facility.schedule.timezone:
            title += f" - {facility.schedule.timezone}"
        table = Table(title=title)
        table.add_column("Days", style="cyan")
        table.add_column("Hours")
        table.add_column("Price/hour", justify="right")

        for day_class in DayClass:
            for band in facility.schedule.bands_for(day_class):
                table.add_row(
                    day_class.value,
                    f"{band.start_hour:02d}:00 - {band.end_hour:02d}:00",
                    str(band.price_per_hour),
                )
        console.print(table)


# Import commands
@cli.group("import")
def import_cmd():
    """Import data from CSV exports."""
    pass


@import_cmd.command("sessions")
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True, help="Path to sessions CSV")
@click.pass_context
def import_sessions(ctx, csv_path):
    """Import parking sessions from CSV."""
    try:
        result = sessions.import_from_csv(Path(csv_path), ctx.obj["db_path"])
    except ValueError as e:
        _fail(str(e))
    console.print(f"[green]Imported {result['imported']} sessions[/green]")
    if result["skipped"]:
        console.print(f"[yellow]Skipped {result['skipped']} duplicates[/yellow]")


@import_cmd.command("customers")
@click.option("--csv", "csv_path", type=click.Path(exists=True), required=True, help="Path to customers CSV")
@click.pass_context
def import_customers(ctx, csv_path):
    """Import customers from CSV."""
    try:
        result = customers.import_from_csv(Path(csv_path), ctx.obj["db_path"])
    except ValueError as e:
        _fail(str(e))
    console.print(f"[green]Imported {result['imported']} customers[/green]")
    if result["updated"]:
        console.print(f"[yellow]Updated {result['updated']} existing[/yellow]")


# Invoice commands
@cli.command()
@click.argument("facility_id")
@click.option("--customer", "customer_id", help="Only invoice this customer")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--breakdown", is_flag=True, help="Show the billed hours of each session")
@click.pass_context
def invoices(ctx, facility_id, customer_id, as_json, breakdown):
    """Generate invoices for a parking facility."""
    db_path = ctx.obj["db_path"]
    session_source = SqliteSessionSource(db_path)
    schedule_source = SqliteScheduleSource(db_path)
    service = InvoiceService(session_source, schedule_source)

    try:
        data = get_invoice_report(facility_id, service, SqliteCustomerSource(db_path), customer_id)
    except (ValueError, LookupError) as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(data, indent=2))
    else:
        console.print(format_invoice_report_text(data))

    if breakdown:
        schedule = schedule_source.get_schedule(facility_id)
        for session in session_source.get_sessions(facility_id):
            if customer_id and session.customer_id != customer_id:
                continue
            _print_breakdown(session, price_breakdown(session, schedule))


def _print_breakdown(session, hours):
    table = Table(
        title=f"{session.customer_id}: {session.start_time:%Y-%m-%d %H:%M} → {session.end_time:%Y-%m-%d %H:%M}"
    )
    table.add_column("Hour", style="cyan")
    table.add_column("Days")
    table.add_column("Rate", justify="right")

    for h in hours:
        table.add_row(h.start.strftime("%a %Y-%m-%d %H:%M"), h.day_class.value, str(h.rate))
    if not hours:
        table.add_row("[dim]empty session[/dim]", "", "0")

    console.print(table)


if __name__ == "__main__":
    cli()
