"""CLI commands for guest list management."""

import asyncio
from pathlib import Path
from uuid import UUID

import typer

from guestlist.config.logging import setup_logging
from guestlist.config.settings import settings
from guestlist.errors import GuestlistError
from guestlist.guests.dtos import IssuedGuestDTO
from guestlist.guests.features.import_guests.csv_parser import parse_guest_csv
from guestlist.guests.repository.directory import SqlGuestDirectory
from guestlist.seating.repository.read_models import SqlSeatingReadModel

app = typer.Typer(help="CLI commands for guest list management")


def _rsvp_link(raw_token: str) -> str:
    return f"{settings.frontend_url}/rsvp?token={raw_token}"


def _print_credential(issued: IssuedGuestDTO) -> None:
    # Printed once for invitation hand-off; it is not stored anywhere.
    typer.secho(f"  RSVP URL: {_rsvp_link(issued.raw_token)}", fg=typer.colors.CYAN)
    expires = issued.guest.token_expires_at
    if expires is not None:
        typer.secho(f"  Expires: {expires:%Y-%m-%d %H:%M} UTC", fg=typer.colors.BLUE)


@app.callback()
def main():
    setup_logging()


@app.command()
def import_guests(
    wedding_id: str = typer.Argument(
        ...,
        help="Wedding UUID",
    ),
    csv_path: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="CSV file with a name,email,party_size header",
    ),
):
    """Import guests from a CSV file and print each new guest's RSVP link."""
    try:
        rows = parse_guest_csv(csv_path.read_text(encoding="utf-8"))
        results = asyncio.run(SqlGuestDirectory().import_guests_from_csv(UUID(wedding_id), rows))
    except GuestlistError as e:
        typer.secho(f"{e.code}: {e}", fg=typer.colors.RED)
        raise typer.Exit(1)

    for result in results:
        if result.success and result.guest:
            typer.secho(f"Row {result.row}: {result.name} <{result.email}>", fg=typer.colors.GREEN)
            _print_credential(result.guest)
        else:
            typer.secho(
                f"Row {result.row}: skipped ({result.error_code}: {result.error})",
                fg=typer.colors.YELLOW,
            )

    imported = sum(1 for r in results if r.success)
    typer.echo()
    typer.secho(f"{imported} imported, {len(results) - imported} skipped", fg=typer.colors.GREEN)


@app.command()
def regenerate_token(
    guest_id: str = typer.Argument(
        ...,
        help="Guest UUID",
    ),
):
    """Issue a new RSVP link for a guest. The previous link stops working."""
    try:
        issued = asyncio.run(SqlGuestDirectory().regenerate_token(UUID(guest_id)))
    except GuestlistError as e:
        typer.secho(f"{e.code}: {e}", fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho(f"New RSVP link for {issued.guest.name}", fg=typer.colors.GREEN)
    _print_credential(issued)


@app.command()
def cleanup_tokens():
    """Clear every expired RSVP credential."""
    cleared = asyncio.run(SqlGuestDirectory().cleanup_expired_tokens())
    typer.secho(f"Cleared {cleared} expired tokens", fg=typer.colors.GREEN)


@app.command()
def seating_overview(
    wedding_id: str = typer.Argument(
        ...,
        help="Wedding UUID",
    ),
):
    """Show tables, who sits where, and attending guests still without a seat."""
    overview = asyncio.run(SqlSeatingReadModel().seating_overview(UUID(wedding_id)))

    for item in overview.tables:
        table = item.table
        typer.secho(
            f"{table.order}. {table.name} ({len(item.guests)}/{table.capacity})",
            fg=typer.colors.GREEN,
        )
        for guest in item.guests:
            seat = f" seat {guest.seat_number}" if guest.seat_number is not None else ""
            typer.secho(f"  - {guest.name}{seat}", fg=typer.colors.BLUE)

    if overview.unassigned_guests:
        typer.echo()
        typer.secho("Unassigned:", fg=typer.colors.YELLOW)
        for guest in overview.unassigned_guests:
            typer.secho(f"  - {guest.name}", fg=typer.colors.YELLOW)

    summary = overview.summary
    typer.echo()
    typer.secho(
        f"{summary.total_tables} tables, {summary.total_assigned}/{summary.total_capacity} seats "
        f"taken, {summary.total_unassigned} unassigned",
        fg=typer.colors.CYAN,
    )


if __name__ == "__main__":
    app()
