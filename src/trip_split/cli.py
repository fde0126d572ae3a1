"""CLI for TripSplit using Typer."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

import typer
from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .db import Database
from .money import format_amount, parse_amount
from .models import (
    ExactShareInput,
    ExpenseCreate,
    PercentageShareInput,
    SettlementsResponse,
    SplitType,
    to_fraction,
)
from .service import TripService
from .ui import confirm, select_member_interactive

app = typer.Typer(
    name="trip-split",
    help="Split shared trip expenses and report who owes what",
)

console = Console()


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@contextmanager
def open_service(verbose: bool) -> Iterator[tuple[TripService, Settings]]:
    """
    Load settings, open the database and yield a TripService.

    Errors are printed and turned into exit code 1; --verbose re-raises them.
    """
    setup_logging(verbose)
    db = None
    try:
        settings = load_settings()
        db = Database(settings.database_path)
        yield TripService(settings, db), settings
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)
    finally:
        if db is not None:
            db.close()


def format_money(amount: int, locale: str, use_color: bool = True) -> str:
    """Format an amount, coloring negatives red and positives green."""
    text = format_amount(amount, locale)
    if not use_color or amount == 0:
        return text
    color = "red" if amount < 0 else "green"
    return f"[{color}]{text}[/{color}]"


def parse_share_options(
    service: TripService, trip_id: str, split_type: SplitType, shares: list[str]
) -> list[ExactShareInput | PercentageShareInput] | None:
    """
    Parse repeated --share MEMBER=VALUE options into split input.

    MEMBER is a member id or display name. VALUE is an amount for exact splits
    ("250.000") or a percentage for percentage splits ("33.5", "100/3").
    """
    if split_type is SplitType.EQUAL:
        if shares:
            console.print("[yellow]Ignoring --share for an equal split.[/yellow]")
        return None

    parsed: list[ExactShareInput | PercentageShareInput] = []
    for raw in shares:
        ref, sep, value = raw.partition("=")
        if not sep or not ref.strip() or not value.strip():
            raise typer.BadParameter(f"Expected MEMBER=VALUE, got '{raw}'", param_hint="--share")
        member = service.find_member(trip_id, ref.strip())
        if split_type is SplitType.EXACT:
            parsed.append(ExactShareInput(member_id=member.id, amount=parse_amount(value)))
        else:
            parsed.append(
                PercentageShareInput(member_id=member.id, percentage=to_fraction(value.strip()))
            )
    return parsed


@app.command("create-trip")
def create_trip(
    name: str = typer.Argument(..., help="Trip name"),
    members: list[str] = typer.Option(
        None, "--member", "-m", help="Member display name (repeatable, in order)"
    ),
    destination: str = typer.Option(None, "--destination", "-d", help="Destination"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Create a trip with its initial members."""
    with open_service(verbose) as (service, _settings):
        trip = service.create_trip(name, member_names=members or [], destination=destination)
        console.print(f"\n[bold green]✓ Created trip {trip.name}[/bold green] (id: {trip.id})")
        display_members(trip.members)


@app.command("add-member")
def add_member(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    name: str = typer.Argument(..., help="Member display name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Add a member to a trip."""
    with open_service(verbose) as (service, _settings):
        member = service.add_member(trip_id, name)
        console.print(f"[bold green]✓ Added {member.name}[/bold green] (id: {member.id})")


@app.command()
def members(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List a trip's members in split order."""
    with open_service(verbose) as (service, _settings):
        trip = service.get_trip(trip_id)
        console.print(f"\n[bold]{trip.name}[/bold]")
        display_members(trip.members)


@app.command("add-expense")
def add_expense(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    description: str = typer.Argument(..., help="What was paid for"),
    amount: str = typer.Argument(..., help="Total amount, e.g. 1.500.000"),
    paid_by: str = typer.Option(
        None, "--paid-by", "-p", help="Payer id or name (prompts if omitted)"
    ),
    split: SplitType = typer.Option(
        SplitType.EQUAL, "--split", "-s", case_sensitive=False, help="Split policy"
    ),
    shares: list[str] = typer.Option(
        None, "--share", help="MEMBER=VALUE for exact/percentage splits (repeatable)"
    ),
    expense_date: str = typer.Option(None, "--date", help="Expense date (YYYY-MM-DD)"),
    category: str = typer.Option(None, "--category", "-c", help="Expense category"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Record an expense and split it among the trip's members.

    Equal splits divide the amount among every member, with any remainder
    going to the last member. Exact splits must add up to the amount;
    percentage splits must add up to 100.
    """
    with open_service(verbose) as (service, settings):
        trip = service.get_trip(trip_id)

        if paid_by:
            payer_id = service.find_member(trip_id, paid_by).id
        else:
            console.print("\n[bold]Who paid?[/bold]")
            payer_id = select_member_interactive(trip.members)
            if payer_id is None:
                console.print("[yellow]No payer selected.[/yellow]")
                return

        expense = service.create_expense(
            trip_id,
            ExpenseCreate(
                description=description,
                amount=parse_amount(amount),
                paid_by=payer_id,
                date=date.fromisoformat(expense_date) if expense_date else None,
                category=category,
                split_type=split,
                split_input=parse_share_options(service, trip_id, split, shares or []),
            ),
        )

        names = {m.id: m.name for m in trip.members}
        table = Table(
            title=f"{expense.description} ({expense.split_type})",
            header_style="bold magenta",
        )
        table.add_column("Member", style="cyan")
        table.add_column("Share", justify="right")
        for share in expense.shares:
            table.add_row(
                names.get(share.member_id, share.member_id),
                format_amount(share.amount, settings.locale),
            )
        console.print(table)
        console.print(f"[bold green]✓ Recorded expense {expense.id}[/bold green]")


@app.command()
def expenses(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """List a trip's expenses by date."""
    with open_service(verbose) as (service, settings):
        trip = service.get_trip(trip_id)
        names = {m.id: m.name for m in trip.members}
        items = service.list_expenses(trip_id)

        if not items:
            console.print("[yellow]No expenses recorded yet.[/yellow]")
            return

        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim")
        table.add_column("Date")
        table.add_column("Description", style="cyan", width=30)
        table.add_column("Category", style="yellow")
        table.add_column("Paid by")
        table.add_column("Split")
        table.add_column("Amount", justify="right")

        for exp in items:
            table.add_row(
                exp.id,
                str(exp.date),
                exp.description[:30],
                exp.category or "[dim]—[/dim]",
                names.get(exp.paid_by, exp.paid_by),
                str(exp.split_type),
                format_amount(exp.amount, settings.locale),
            )
        console.print(table)


@app.command("remove-expense")
def remove_expense(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    expense_id: str = typer.Argument(..., help="Expense ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Delete an expense. Run `recalculate` afterwards to refresh settlements."""
    with open_service(verbose) as (service, settings):
        if not yes and not confirm(f"Delete expense {expense_id}?"):
            console.print("[yellow]Cancelled.[/yellow]")
            return
        service.remove_expense(trip_id, expense_id)
        console.print(f"[bold green]✓ Removed expense {expense_id}[/bold green]")
        if not settings.auto_recompute:
            console.print("[dim]Settlements are unchanged until you run recalculate.[/dim]")


@app.command()
def settlements(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show what each member owes across the trip."""
    with open_service(verbose) as (service, settings):
        display_settlements(service.get_settlements(trip_id), settings.locale)


@app.command()
def recalculate(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Recompute settlements from the current expenses."""
    with open_service(verbose) as (service, settings):
        response = service.recalculate(trip_id)
        console.print("[bold green]✓ Settlements recalculated[/bold green]")
        display_settlements(response, settings.locale)


@app.command()
def detail(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    member: str = typer.Argument(..., help="Member id or name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show how a member's settlement total was calculated."""
    with open_service(verbose) as (service, settings):
        result = service.get_settlement_detail(trip_id, member)

        console.print(f"\n[bold]{result.member_name}[/bold]")
        console.print(f"  Total to pay: {format_amount(result.total_amount, settings.locale)}")
        console.print(
            f"  From {len(result.breakdown)} expense{'s' if len(result.breakdown) != 1 else ''}\n"
        )

        if not result.breakdown:
            console.print("[dim]No expenses to contribute to.[/dim]")
            return

        table = Table(title="Expense Breakdown", header_style="bold magenta")
        table.add_column("Date")
        table.add_column("Description", style="cyan")
        table.add_column("Split")
        table.add_column("Share", justify="right")
        for item in result.breakdown:
            table.add_row(
                str(item.expense_date),
                item.description,
                str(item.split_type),
                format_amount(item.share_amount, settings.locale),
            )
        console.print(table)


@app.command()
def report(
    trip_id: str = typer.Argument(..., help="Trip ID"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show spend by category and by day."""
    with open_service(verbose) as (service, settings):
        summary = service.expense_report(trip_id)

        console.print(f"\n[bold]Total spent:[/bold] {format_amount(summary.total, settings.locale)}")
        console.print(f"[bold]Daily average:[/bold] {format_amount(summary.daily_average, settings.locale)}")
        console.print(f"[bold]Expenses:[/bold] {summary.expense_count}\n")

        table = Table(title="Expenses by Category", header_style="bold magenta")
        table.add_column("Category", style="yellow")
        table.add_column("Count", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Share", justify="right")
        for cat in summary.categories:
            table.add_row(
                cat.category,
                str(cat.count),
                format_amount(cat.total, settings.locale),
                f"{cat.percentage}%",
            )
        console.print(table)


@app.command()
def mcp():
    """Start the MCP server exposing trip settlement tools."""
    from .mcp_server import run_server

    run_server()


def display_members(trip_members):
    """Display members in enumeration order."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for i, member in enumerate(trip_members, start=1):
        table.add_row(str(i), member.id, member.name)
    console.print(table)


def display_settlements(response: SettlementsResponse, locale: str):
    """Display a settlement report in a table."""
    table = Table(title="Settlements", show_header=True, header_style="bold magenta")
    table.add_column("Member", style="cyan")
    table.add_column("Owes", justify="right")
    table.add_column("Paid", justify="right")
    table.add_column("Net", justify="right")

    for entry in response.settlements:
        table.add_row(
            entry.member_name,
            format_amount(entry.total_owed, locale),
            format_amount(entry.total_paid, locale),
            format_money(entry.net_balance, locale),
        )

    console.print(table)
    console.print(f"  Total: {format_amount(response.total, locale)}")
    console.print(f"  [dim]Computed at {response.computed_at:%Y-%m-%d %H:%M:%S}[/dim]")

    computed_total = sum(entry.total_owed for entry in response.settlements)
    if computed_total == response.total:
        console.print("  [green]✓ Member totals match the expense total[/green]")
    else:
        console.print(
            f"  [red]✗ Total mismatch: members {computed_total}, "
            f"expected {response.total}[/red]"
        )


if __name__ == "__main__":
    app()
