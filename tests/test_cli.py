"""Tests for the CLI interface."""

from datetime import timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from unilib.borrowing import BorrowingManager, BorrowRequest, LoanStatus
from unilib.cli import app
from unilib.config import Config
from unilib.db import BookCreate, Database
from unilib.pdf_requests import PdfRequestCreate, PdfRequestManager
from unilib.utils import utcnow


@pytest.fixture(autouse=True)
def db_path(tmp_path: Path, monkeypatch) -> Path:
    """Point the CLI at a temporary database for each test."""
    path = tmp_path / "library.db"
    monkeypatch.setenv("UNILIB_DB_PATH", str(path))
    monkeypatch.setenv("UNILIB_LOG_LEVEL", "WARNING")
    return path


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def file_db(db_path: Path) -> Database:
    """Seed database on the same file the CLI will open."""
    database = Database(str(db_path))
    database.create_tables()
    return database


@pytest.fixture
def seeded(file_db: Database):
    """One late loan, one current loan and one pending PDF request."""
    config = Config.from_env()
    manager = BorrowingManager(file_db, config)
    calculus = file_db.create_book(
        BookCreate(title="Calculus", author="Michael Spivak", isbn="9780914098911", category="Mathematics", quantity=2)
    )
    history = file_db.create_book(
        BookCreate(title="Guns, Germs, and Steel", author="Jared Diamond", isbn="9780393317558", category="History")
    )

    late = manager.borrow(
        BorrowRequest(book_id=calculus.id, user_id="student-1"),
        now=utcnow() - timedelta(days=40),
    )
    manager.borrow(BorrowRequest(book_id=history.id, user_id="student-2"))
    PdfRequestManager(file_db).submit(
        PdfRequestCreate(book_id=history.id, user_id="student-3", reason="Distance learning")
    )
    return {"late": late, "manager": manager}


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "University library" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_invalid_config(self, runner: CliRunner, monkeypatch):
        """Test invalid configuration stops the command."""
        monkeypatch.setenv("UNILIB_LOAN_PERIOD_DAYS", "0")
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 1
        assert "Loan period" in result.stdout


class TestMaintenanceCommands:
    """Tests for maintenance commands."""

    def test_init_db(self, runner: CliRunner, db_path: Path):
        """Test creating the database file."""
        result = runner.invoke(app, ["init-db"])
        assert result.exit_code == 0
        assert "Database ready" in result.stdout
        assert db_path.exists()

    def test_sync_overdue(self, runner: CliRunner, seeded):
        """Test the sync marks the late loan and is idempotent."""
        result = runner.invoke(app, ["sync-overdue"])
        assert result.exit_code == 0
        assert "Marked 1 loan(s) overdue" in result.stdout

        loan = seeded["manager"].get_loan(seeded["late"].id)
        assert loan.status == LoanStatus.OVERDUE.value

        result = runner.invoke(app, ["sync-overdue"])
        assert result.exit_code == 0
        assert "No loans to mark overdue" in result.stdout

    def test_prune_notifications(self, runner: CliRunner, file_db):
        """Test pruning with nothing to delete."""
        result = runner.invoke(app, ["prune-notifications", "--days", "7"])
        assert result.exit_code == 0
        assert "Deleted 0 notification(s)" in result.stdout


class TestReportCommands:
    """Tests for report commands."""

    def test_overdue(self, runner: CliRunner, seeded):
        """Test the overdue report lists the late loan."""
        result = runner.invoke(app, ["overdue"])
        assert result.exit_code == 0
        assert "student-1" in result.stdout
        assert "student-2" not in result.stdout

    def test_overdue_empty(self, runner: CliRunner, file_db):
        """Test the overdue report with nothing overdue."""
        result = runner.invoke(app, ["overdue"])
        assert result.exit_code == 0
        assert "No overdue loans" in result.stdout

    def test_stats(self, runner: CliRunner, seeded):
        """Test the overview table."""
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0
        assert "Library Overview" in result.stdout
        assert "Past due" in result.stdout

    def test_books(self, runner: CliRunner, seeded):
        """Test listing the catalog."""
        result = runner.invoke(app, ["books", "--category", "Mathematics"])
        assert result.exit_code == 0
        assert "Calculus" in result.stdout
        assert "1/2" in result.stdout

    def test_books_empty(self, runner: CliRunner, file_db):
        """Test listing an empty catalog."""
        result = runner.invoke(app, ["books", "--search", "nothing"])
        assert result.exit_code == 0
        assert "No books found" in result.stdout

    def test_pdf_requests(self, runner: CliRunner, seeded):
        """Test listing pending PDF requests."""
        result = runner.invoke(app, ["pdf-requests", "--status", "pending"])
        assert result.exit_code == 0
        assert "student-3" in result.stdout

    def test_pdf_requests_filtered_out(self, runner: CliRunner, seeded):
        """Test a status with no requests."""
        result = runner.invoke(app, ["pdf-requests", "--status", "approved"])
        assert result.exit_code == 0
        assert "No PDF requests found" in result.stdout

    def test_activities(self, runner: CliRunner, seeded):
        """Test showing the activity log filtered by user."""
        result = runner.invoke(app, ["activities", "--user", "student-2"])
        assert result.exit_code == 0
        assert "Book borrowed" in result.stdout
        assert "1 entries" in result.stdout
