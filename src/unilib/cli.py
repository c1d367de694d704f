"""Command-line interface for unilib.

Operator tooling for the library database: the periodic overdue status
sync, notification pruning, and read-only reports. Built with Typer for
commands and Rich for output.
"""

from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import get_config
from .db import get_db
from .log import configure_logging
from .pdf_requests.schemas import PdfRequestStatus

# Create the main app
app = typer.Typer(
    name="unilib",
    help="University library circulation tools.",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


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


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


@app.callback()
def main_callback() -> None:
    """University library circulation tools."""
    config = get_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print_error(error)
        raise typer.Exit(1)
    configure_logging(config.log_level)


# ============================================================================
# Maintenance Commands
# ============================================================================


@app.command("init-db")
def init_db() -> None:
    """Create the database tables if they do not exist."""
    db = get_db()
    db.create_tables()
    print_success(f"Database ready at {db.db_path}")


@app.command("sync-overdue")
def sync_overdue() -> None:
    """Mark borrowed loans past their due date as overdue.

    Meant to run periodically (e.g. from cron). Running it again changes
    nothing until more loans fall due.
    """
    from .borrowing import BorrowingManager

    changed = BorrowingManager().sync_overdue_status()
    if changed:
        print_success(f"Marked {changed} loan(s) overdue")
    else:
        print_info("No loans to mark overdue.")


@app.command("prune-notifications")
def prune_notifications(
    days: Optional[int] = typer.Option(
        None, "--days", "-d", min=1, help="Age cutoff in days (default: configured retention)"
    ),
) -> None:
    """Delete read notifications older than the retention period."""
    from .notifications import NotificationManager

    deleted = NotificationManager().delete_old(days_old=days)
    print_success(f"Deleted {deleted} notification(s)")


# ============================================================================
# Report Commands
# ============================================================================


@app.command()
def overdue() -> None:
    """Show loans that are out past their due date."""
    from .borrowing import BorrowingManager

    report = BorrowingManager().get_overdue_report()

    if not report.loans:
        print_info("No overdue loans.")
        return

    table = Table(title="Overdue Loans", show_header=True, header_style="bold magenta")
    table.add_column("Book", style="cyan", max_width=40)
    table.add_column("Borrower", style="green")
    table.add_column("Due", style="yellow")
    table.add_column("Days", justify="right")
    table.add_column("Status")

    for loan in report.loans:
        table.add_row(
            loan.book_title or loan.book_id,
            loan.user_id,
            _fmt_date(loan.due_date),
            str(loan.days_overdue),
            loan.status.value,
        )

    console.print(table)
    console.print(
        f"[dim]{report.total_overdue} overdue, oldest {report.oldest_overdue_days} day(s), "
        f"projected fines {report.projected_fines}[/dim]"
    )


@app.command()
def stats() -> None:
    """Show catalog, borrowing and PDF request statistics."""
    from .borrowing import BorrowingManager
    from .pdf_requests import PdfRequestManager

    db = get_db()
    catalog = db.get_book_stats()
    borrowing = BorrowingManager(db).get_stats()
    pdf = PdfRequestManager(db).get_stats()

    table = Table(title="Library Overview", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    table.add_row("Total copies", str(catalog.total_books))
    table.add_row("Available copies", str(catalog.available_books))
    table.add_row("Borrowed", str(borrowing.total_borrowed))
    table.add_row("Marked overdue", str(borrowing.overdue_count))
    table.add_row("Past due", str(borrowing.past_due_count))
    table.add_row("Fines collected", str(borrowing.total_fines))
    table.add_row("PDF requests pending", str(pdf.pending))
    table.add_row("PDF requests approved", str(pdf.approved))
    table.add_row("PDF requests rejected", str(pdf.rejected))

    console.print(table)


@app.command()
def books(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Match title, author, ISBN or category"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Books per page"),
) -> None:
    """List catalog books with availability."""
    result = get_db().list_books(search=search, category=category, page=page, limit=limit)

    if not result.books:
        print_info("No books found.")
        return

    table = Table(title="Catalog", show_header=True, header_style="bold magenta")
    table.add_column("Title", style="cyan", no_wrap=False, max_width=40)
    table.add_column("Author", style="green", max_width=25)
    table.add_column("ISBN")
    table.add_column("Category", style="yellow")
    table.add_column("Available", justify="center")

    for book in result.books:
        table.add_row(
            book.title,
            book.author,
            book.isbn,
            book.category,
            f"{book.available}/{book.total}",
        )

    console.print(table)
    pagination = result.pagination
    print_info(f"Page {pagination.page} of {pagination.total_pages} ({pagination.total} books)")


@app.command("pdf-requests")
def pdf_requests(
    status: Optional[PdfRequestStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Requests per page"),
) -> None:
    """List PDF requests, newest first."""
    from .pdf_requests import PdfRequestManager

    result = PdfRequestManager().list_all(status=status, page=page, limit=limit)

    if not result.requests:
        print_info("No PDF requests found.")
        return

    table = Table(title="PDF Requests", show_header=True, header_style="bold magenta")
    table.add_column("Book", style="cyan", max_width=40)
    table.add_column("Requester", style="green")
    table.add_column("Requested")
    table.add_column("Status", style="yellow")
    table.add_column("Processed")

    for request in result.requests:
        table.add_row(
            request.book_title or request.book_id,
            request.user_id,
            _fmt_date(request.request_date),
            request.status.value,
            _fmt_date(request.processed_date),
        )

    console.print(table)
    pagination = result.pagination
    print_info(f"Page {pagination.page} of {pagination.total_pages} ({pagination.total} requests)")


@app.command()
def activities(
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Only this user's activity"),
    book: Optional[str] = typer.Option(None, "--book", "-b", help="Only this book's activity"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number"),
    limit: int = typer.Option(20, "--limit", "-l", min=1, help="Entries per page"),
) -> None:
    """Show the activity log, newest first."""
    from .activity import ActivityManager

    result = ActivityManager().list_activities(page=page, limit=limit, user_id=user, book_id=book)

    if not result.activities:
        print_info("No activity recorded.")
        return

    table = Table(title="Activity", show_header=True, header_style="bold magenta")
    table.add_column("When")
    table.add_column("Action", style="cyan")
    table.add_column("User", style="green")
    table.add_column("Book", max_width=40)

    for entry in result.activities:
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M"),
            entry.action,
            entry.user_id,
            entry.book_title or "-",
        )

    console.print(table)
    pagination = result.pagination
    print_info(f"Page {pagination.page} of {pagination.total_pages} ({pagination.total} entries)")


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"unilib version {__version__}")


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
