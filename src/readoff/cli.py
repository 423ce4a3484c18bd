"""Command-line interface for readoff.

Built with Typer for commands and Rich for beautiful output.
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .actions import ChallengeManager
from .config import get_config
from .db.schemas import Book, ChallengeDB, PlayerData
from .season import MONTHS, local_now, month_label, month_target
from .stats import dashboard_from_config, player_profile

# Create the main app
app = typer.Typer(
    name="readoff",
    help="Track a monthly reading challenge with scores and penalties.",
    no_args_is_help=True,
)

# Create sub-apps for command groups
player_app = typer.Typer(help="Add, rename, remove and inspect players.")
app.add_typer(player_app, name="player")

book_app = typer.Typer(help="Edit the books in a player's month.")
app.add_typer(book_app, name="book")

# Rich console for pretty output
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Read Off reading challenge."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def resolve_player(db: ChallengeDB, ref: str) -> PlayerData:
    """Find a player by id or (case-insensitive) name, or exit."""
    player = db.get_player(ref)
    if player is not None:
        return player

    matches = [p for p in db.players if p.name.casefold() == ref.strip().casefold()]
    if len(matches) == 1:
        return matches[0]

    if matches:
        print_error(f"Several players are named '{ref}', use the player id")
    else:
        print_error(f"Player not found: {ref}")
    raise typer.Exit(1)


def format_month_table(player: PlayerData, month: int) -> Table:
    """Create a rich table for one player's month."""
    target_year = get_config().target_year
    title = f"{player.name} - {month_label(month, target_year)} (target {month_target(month)})"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("#", style="dim", width=3)
    table.add_column("Done", justify="center")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("Pages", justify="right")
    table.add_column("Score", justify="right")

    for index, book in enumerate(player.month(month).books):
        table.add_row(
            str(index),
            "✓" if book.completed else "",
            book.title or "[dim]-[/dim]",
            book.author or "-",
            f"{book.current_page}/{book.total_pages} ({book.progress_percent}%)",
            f"{book.ai_score:g}" if book.is_scored else "-",
        )

    return table


def show_book(book: Book) -> None:
    """Print a one-line summary of a book."""
    status = "[green]completed[/green]" if book.completed else "in progress"
    title = book.title or "(untitled)"
    console.print(
        f"[cyan]{title}[/cyan] {book.author or ''} - "
        f"{book.current_page}/{book.total_pages} pages, {status}"
    )


def require(result, message: str):
    """Exit with an error when an action was a no-op."""
    if result is None or result is False:
        print_error(message)
        raise typer.Exit(1)
    return result


# ============================================================================
# Overview Commands
# ============================================================================


@app.command()
def dashboard(
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Month to list (0-12)"),
) -> None:
    """Show scores, penalties, payouts and the month's books."""
    manager = ChallengeManager()
    db = manager.load()
    summary = dashboard_from_config(db)

    table = Table(title="Standings", show_header=True, header_style="bold")
    table.add_column("Player", style="cyan")
    table.add_column("Books", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Share", justify="right")
    table.add_column("Penalty", justify="right", style="red")
    table.add_column("Payout", justify="right", style="green")
    table.add_column("Status")
    table.add_column("Dose", justify="right")

    for p in summary.players:
        dose = f"{p.pace.recommended_dose}/day" if p.pace else "-"
        table.add_row(
            p.name,
            f"{p.completed_count}/{p.target_count}",
            str(round(p.reader_score)),
            f"{round(p.score_share * 100)}%",
            f"¥{round(p.penalty)}",
            f"¥{round(p.payout)}",
            "✓ Eligible" if p.eligible else "Not eligible",
            dose,
        )

    console.print(table)
    console.print(f"Penalty pool: [bold]¥{round(summary.penalty_pool)}[/bold]")

    if month is None:
        month = summary.current_month
    if month not in MONTHS:
        print_error(f"Month must be between 0 and 12, got {month}")
        raise typer.Exit(1)

    for player in db.players:
        console.print()
        console.print(format_month_table(player, month))

    if month == 0:
        print_info("Warm-up month, no penalty.")


# ============================================================================
# Player Commands
# ============================================================================


@player_app.command("add")
def player_add(name: str = typer.Argument(..., help="Display name")) -> None:
    """Add a player."""
    player = require(ChallengeManager().add_player(name), "Player name is required")
    print_success(f"Added player {player.name} ({player.id})")


@player_app.command("remove")
def player_remove(player: str = typer.Argument(..., help="Player id or name")) -> None:
    """Remove a player (at least one must remain)."""
    manager = ChallengeManager()
    target = resolve_player(manager.load(), player)
    if not typer.confirm(f"Remove {target.name}?", default=False):
        print_info("Cancelled.")
        raise typer.Exit(0)
    require(manager.remove_player(target.id), "At least one player must remain")
    print_success(f"Removed {target.name}")


@player_app.command("rename")
def player_rename(
    player: str = typer.Argument(..., help="Player id or name"),
    name: str = typer.Argument(..., help="New display name"),
) -> None:
    """Rename a player."""
    manager = ChallengeManager()
    target = resolve_player(manager.load(), player)
    updated = require(manager.rename_player(target.id, name), "Player name is required")
    print_success(f"Renamed {target.name} to {updated.name}")


@player_app.command("show")
def player_show(player: str = typer.Argument(..., help="Player id or name")) -> None:
    """Show a player's profile."""
    target = resolve_player(ChallengeManager().load(), player)
    profile = player_profile(target)

    table = Table(title=f"{target.name} ({target.id})", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Books read", f"{profile.completed_books} / {profile.total_books}")
    table.add_row("Pages read", str(profile.pages_read))
    table.add_row("Reading days", str(profile.reading_days))
    console.print(table)


@player_app.command("list")
def player_list() -> None:
    """List players and their ids."""
    db = ChallengeManager().load()
    for p in db.players:
        console.print(f"[cyan]{p.name}[/cyan] [dim]{p.id}[/dim]")


@app.command()
def read(
    player: str = typer.Argument(..., help="Player id or name"),
    day: Optional[str] = typer.Argument(None, help="Date (YYYY-MM-DD), default today"),
) -> None:
    """Toggle a reading day on a player's calendar."""
    manager = ChallengeManager()
    target = resolve_player(manager.load(), player)
    if day is None:
        day = local_now(get_config().timezone).date().isoformat()

    logged = manager.toggle_reading_date(target.id, day)
    if logged is None:
        print_error(f"Cannot log {day} (invalid or in the future)")
        raise typer.Exit(1)

    verb = "Logged" if logged else "Cleared"
    print_success(f"{verb} {day} for {target.name}")


# ============================================================================
# Book Commands
# ============================================================================

PLAYER_ARG = typer.Argument(..., help="Player id or name")
MONTH_ARG = typer.Argument(..., help="Month (0 = warm-up, 1-12)")
INDEX_ARG = typer.Argument(..., help="Book number within the month (from 0)")


def _target(player: str):
    manager = ChallengeManager()
    return manager, resolve_player(manager.load(), player)


@book_app.command("title")
def book_title(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
    title: str = typer.Argument(..., help="Book title"),
) -> None:
    """Set a book's title (continued books pick up earlier progress)."""
    manager, target = _target(player)
    book = require(manager.update_book_title(target.id, month, index, title), "Book not found")
    show_book(book)
    if book.starting_page:
        print_info(f"Continued from an earlier month at page {book.starting_page}")


@book_app.command("author")
def book_author(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
    author: str = typer.Argument(..., help="Author"),
) -> None:
    """Set a book's author."""
    manager, target = _target(player)
    show_book(require(manager.update_book_author(target.id, month, index, author), "Book not found"))


@book_app.command("pages")
def book_pages(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
    total: float = typer.Argument(..., help="Total pages"),
) -> None:
    """Set a book's total page count."""
    manager, target = _target(player)
    show_book(require(manager.update_book_total_pages(target.id, month, index, total), "Book not found"))


@book_app.command("progress")
def book_progress(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
    page: float = typer.Argument(..., help="Current page"),
) -> None:
    """Set the page a player has reached."""
    manager, target = _target(player)
    show_book(require(manager.update_book_current_page(target.id, month, index, page), "Book not found"))


@book_app.command("notes")
def book_notes(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
    notes: str = typer.Argument(..., help="Notes text"),
) -> None:
    """Replace a book's notes."""
    manager, target = _target(player)
    require(manager.update_book_notes(target.id, month, index, notes), "Book not found")
    print_success("Notes saved")


@book_app.command("toggle")
def book_toggle(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
) -> None:
    """Mark a book completed (or not)."""
    manager, target = _target(player)
    show_book(require(manager.toggle_book_completed(target.id, month, index), "Book not found"))


@book_app.command("add")
def book_add(player: str = PLAYER_ARG, month: int = MONTH_ARG) -> None:
    """Add an empty book slot to a month."""
    manager, target = _target(player)
    require(manager.add_book(target.id, month), "Month not found")
    print_success(f"Added a book to {month_label(month, get_config().target_year)}")


@book_app.command("remove")
def book_remove(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
) -> None:
    """Remove a book from a month."""
    manager, target = _target(player)
    require(manager.remove_book(target.id, month, index), "Book not found")
    print_success("Book removed")


@book_app.command("score")
def book_score(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
    force: bool = typer.Option(False, "--force", "-f", help="Re-score a scored book"),
) -> None:
    """Ask the AI scorer to rate a book's difficulty."""
    manager, target = _target(player)
    if not get_config().has_openrouter_config():
        console.print("[yellow]AI scoring is off: OPENROUTER_API_KEY is not set.[/yellow]")
    else:
        console.print("[dim]Requesting rating...[/dim]")
    book = require(
        manager.request_ai_score(target.id, month, index, force=force),
        "Book not found or has no title",
    )

    if book.is_scored:
        console.print(f"[bold]Score:[/bold] {book.ai_score:g}")
    else:
        console.print("[yellow]No score attached.[/yellow]")
    for label, text in (
        ("Intro", book.intro),
        ("Advice", book.reading_advice),
        ("Why", book.score_explanation),
    ):
        if text:
            console.print(f"[bold]{label}:[/bold] {text}")


@book_app.command("continue")
def book_continue(
    player: str = PLAYER_ARG,
    month: int = MONTH_ARG,
    index: int = INDEX_ARG,
) -> None:
    """Copy details from the same title in an earlier month."""
    manager, target = _target(player)
    match = require(
        manager.detect_continuation(target.id, month, index),
        "No earlier book with this title",
    )
    book = require(manager.copy_from_previous(target.id, month, index), "Book not found")
    print_success(
        f"Copied from {month_label(match.month, get_config().target_year)}, "
        f"starting at page {book.starting_page}"
    )


# ============================================================================
# Server and Info
# ============================================================================


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Bind address"),
    port: int = typer.Option(5000, "--port", "-p", help="Port"),
    debug: bool = typer.Option(False, "--debug", help="Flask debug mode"),
) -> None:
    """Run the JSON web API."""
    from .web import run_server

    errors = get_config().validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)

    logging.getLogger().setLevel(logging.INFO)
    console.print(f"\n📚 Read Off running at http://localhost:{port}")
    console.print("   Press Ctrl+C to stop\n")
    run_server(host=host, port=port, debug=debug)


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"readoff version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
