"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.clock import SystemClock
from ..adapters.logging_notifier import LoggingNotifier
from ..adapters.memory_repository import InMemoryBookingRepository
from ..config import load_config
from ..domain.exceptions import BookingError
from ..domain.models import Booking, DayState
from ..services.booking_service import BookingService

app = typer.Typer(
    name="hallbooking",
    help="Check availability and manage college hall bookings",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", help="Path to the bookings JSON file. Overrides data_file from the config.")]

STATE_STYLES = {
    DayState.PAST: "dim",
    DayState.BOOKED: "bold red",
    DayState.AVAILABLE: "green",
}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show service log output.")] = False,
):
    """Hall booking command line."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(config_file: Optional[Path], data_file: Optional[Path]) -> BookingService:
    """Wire the service from configuration; exits on configuration errors."""
    try:
        config, config_path = load_config(config_file)
        storage_path = data_file or config.resolve_data_file(config_path)
        repository = InMemoryBookingRepository.from_json_file(storage_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    return BookingService.from_config(
        config,
        repository=repository,
        clock=SystemClock(config.timezone),
        notifier=LoggingNotifier(),
    )


def _fail(error: BookingError) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _resolve_month(service: BookingService, year: Optional[int], month: Optional[int]) -> tuple[int, int]:
    today = service.today()
    return (today.year if year is None else year, today.month if month is None else month)


def _bookings_table(title: str, bookings: list[Booking]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Venue")
    table.add_column("Date")
    table.add_column("Time", style="bold yellow")
    table.add_column("Status")
    table.add_column("Name")
    table.add_column("Purpose")

    for booking in bookings:
        table.add_row(
            booking.id,
            booking.venue_id,
            booking.day_key,
            str(booking.slot),
            booking.status.value,
            escape(booking.name),
            escape(booking.purpose),
        )
    return table


@app.command()
def venues(config_file: ConfigOption = None):
    """
    List all configured venues.
    """
    service = _build_service(config_file, None)

    table = Table(title="Configured venues", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold yellow")
    table.add_column("Name")
    table.add_column("Business hours")
    table.add_column("Approval")

    for venue in service.venues:
        table.add_row(
            venue.id,
            venue.name,
            str(venue.business_hours),
            "required" if venue.requires_approval else "auto-confirm",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    venue: Annotated[str, typer.Argument(help="Venue id")],
    date: Annotated[Optional[str], typer.Option("--date", help="Show free slots for this date (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show the business-hours grid of a venue, or its free slots on a date.
    """
    service = _build_service(config_file, data_file)
    try:
        venue_obj = service.get_venue(venue)
        if date is None:
            grid = venue_obj.business_hours.day_slots()
            console.print(f"\n[bold cyan]{venue_obj.name}[/bold cyan] grid ({len(grid)} slots):")
        else:
            grid = asyncio.run(service.free_slots(venue, date))
            console.print(f"\n[bold cyan]{venue_obj.name}[/bold cyan] free slots on {date} ({len(grid)}):")
    except BookingError as e:
        _fail(e)

    for slot in grid:
        console.print(f"  {slot}")
    console.print()


@app.command()
def calendar(
    venue: Annotated[str, typer.Argument(help="Venue id")],
    year: Annotated[Optional[int], typer.Option("--year", help="Year, defaults to the current one")] = None,
    month: Annotated[Optional[int], typer.Option("--month", help="Month 1-12, defaults to the current one")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Render a month calendar with past, fully booked and available days.
    """
    service = _build_service(config_file, data_file)
    year, month = _resolve_month(service, year, month)

    try:
        venue_obj = service.get_venue(venue)
        days = asyncio.run(service.month_calendar(venue, year, month))
    except BookingError as e:
        _fail(e)

    table = Table(
        title=f"{venue_obj.name} - {days[0].date.format('MMMM YYYY')}",
        show_header=True,
        header_style="bold cyan",
    )
    for weekday in ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"):
        table.add_column(weekday, justify="right")

    week = [""] * days[0].date.weekday()
    for day in days:
        week.append(f"[{STATE_STYLES[day.state]}]{day.date.day}[/]")
        if len(week) == 7:
            table.add_row(*week)
            week = []
    if week:
        table.add_row(*(week + [""] * (7 - len(week))))

    booked = [day for day in days if day.state is DayState.BOOKED]

    console.print()
    console.print(table)
    console.print("[green]available[/green]  [bold red]fully booked[/bold red]  [dim]past[/dim]")
    if booked:
        console.print(f"{len(booked)} fully booked date(s) this month")
    console.print()


@app.command("booked-dates")
def booked_dates(
    venue: Annotated[str, typer.Argument(help="Venue id")],
    year: Annotated[Optional[int], typer.Option("--year", help="Year, defaults to the current one")] = None,
    month: Annotated[Optional[int], typer.Option("--month", help="Month 1-12, defaults to the current one")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List the days of a month that have any active booking (admin).
    """
    service = _build_service(config_file, data_file)
    year, month = _resolve_month(service, year, month)

    try:
        days = asyncio.run(service.booked_dates(venue, year, month))
    except BookingError as e:
        _fail(e)

    if not days:
        console.print("[yellow]No booked dates.[/yellow]")
        return
    for day in days:
        console.print(f"  {day}")


@app.command()
def stats(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show dashboard statistics across all venues (admin).
    """
    service = _build_service(config_file, data_file)
    summary = asyncio.run(service.dashboard_stats())

    table = Table(title=f"Dashboard - {summary.day.isoformat()}", show_header=True, header_style="bold cyan")
    table.add_column("Metric")
    table.add_column("Count", justify="right", style="bold yellow")

    table.add_row("Today (confirmed)", str(summary.today_confirmed))
    table.add_row("Today (completed)", str(summary.today_completed))
    table.add_row("Active bookings", str(summary.total_active))
    table.add_row("Upcoming", str(summary.upcoming))
    for booking_status, count in summary.monthly.items():
        table.add_row(f"This month ({booking_status.value})", str(count))
    table.add_row("This month (total)", str(summary.monthly_total))

    console.print()
    console.print(table)
    console.print()


@app.command()
def usage(
    year: Annotated[Optional[int], typer.Option("--year", help="Year, defaults to the current one")] = None,
    month: Annotated[Optional[int], typer.Option("--month", help="Month 1-12, defaults to the current one")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show per-venue booking counts and utilization for a month (admin).
    """
    service = _build_service(config_file, data_file)
    year, month = _resolve_month(service, year, month)

    try:
        venue_usage = asyncio.run(service.venue_utilization(year, month))
    except BookingError as e:
        _fail(e)

    names = {venue.id: venue.name for venue in service.venues}
    table = Table(title=f"Utilization {year}-{month:02d}", show_header=True, header_style="bold cyan")
    table.add_column("Venue")
    table.add_column("Bookings", justify="right")
    table.add_column("Booked days", justify="right")
    table.add_column("Utilization", justify="right", style="bold yellow")

    for row in venue_usage:
        table.add_row(names[row.venue_id], str(row.bookings), f"{row.booked_days}/{row.total_days}", f"{row.utilization}%")

    console.print()
    console.print(table)
    console.print()


@app.command()
def check(
    venue: Annotated[str, typer.Argument(help="Venue id")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    end: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Check whether a time range is free.
    """
    service = _build_service(config_file, data_file)
    try:
        result = asyncio.run(service.check_availability(venue, date, start, end))
    except BookingError as e:
        _fail(e)

    if result.available:
        console.print(f"[bold green]✓ {start}-{end} on {date} is available[/bold green]")
        return

    console.print(f"[bold red]✗ {start}-{end} on {date} is already booked[/bold red]")
    console.print(_bookings_table("Conflicting bookings", result.conflicts))
    raise typer.Exit(1)


@app.command()
def book(
    venue: Annotated[str, typer.Argument(help="Venue id")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    end: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    name: Annotated[str, typer.Option("--name", help="Requester name")] = "",
    department: Annotated[str, typer.Option("--department", help="Requester department")] = "",
    purpose: Annotated[str, typer.Option("--purpose", help="Purpose of the booking")] = "",
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Request a booking.
    """
    service = _build_service(config_file, data_file)
    try:
        booking = asyncio.run(
            service.request_booking(
                venue_id=venue,
                date=date,
                start_time=start,
                end_time=end,
                name=name,
                department=department,
                purpose=purpose,
            )
        )
    except BookingError as e:
        _fail(e)

    console.print(f"[bold green]✓ Booking {booking.id} created ({booking.status.value})[/bold green]")
    console.print(f"   {booking}", markup=False)


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    note: Annotated[str, typer.Option("--note", help="Admin note")] = "",
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Cancel a booking, freeing its slot.
    """
    service = _build_service(config_file, data_file)
    try:
        booking = asyncio.run(service.cancel_booking(booking_id, admin_note=note))
    except BookingError as e:
        _fail(e)

    console.print(f"[green]✓ Booking {booking.id} cancelled.[/green]")


@app.command()
def status(
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    new_status: Annotated[str, typer.Argument(help="pending, confirmed, cancelled or completed")],
    note: Annotated[str, typer.Option("--note", help="Admin note")] = "",
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Update the status of a booking (admin).
    """
    service = _build_service(config_file, data_file)
    try:
        booking = asyncio.run(service.update_status(booking_id, new_status, admin_note=note))
    except BookingError as e:
        _fail(e)

    console.print(f"[green]✓ Booking {booking.id} is now {booking.status.value}.[/green]")


@app.command()
def bookings(
    venue: Annotated[Optional[str], typer.Argument(help="Venue id; all venues when omitted")] = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Only bookings on this date (YYYY-MM-DD), requires a venue")] = None,
    include_cancelled: Annotated[bool, typer.Option("--all", help="Include cancelled bookings")] = False,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List bookings.
    """
    service = _build_service(config_file, data_file)

    if date and not venue:
        console.print("[bold red]Error:[/bold red] --date requires a venue")
        raise typer.Exit(1)

    try:
        if date:
            found = asyncio.run(service.bookings_on(venue, date))
        else:
            found = asyncio.run(service.list_bookings(venue, include_inactive=include_cancelled))
    except BookingError as e:
        _fail(e)

    if not found:
        console.print("[yellow]No bookings found.[/yellow]")
        return

    console.print()
    console.print(_bookings_table("Bookings", found))
    console.print()


@app.command()
def complete(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Mark confirmed bookings that have already ended as completed.
    """
    service = _build_service(config_file, data_file)
    completed = asyncio.run(service.complete_elapsed_bookings())
    console.print(f"[green]✓ {len(completed)} booking(s) marked as completed.[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]hallbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
