"""Tests for the CLI interface."""

import pytest
from typer.testing import CliRunner

from readoff.cli import app
from readoff.db.storage import get_storage


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def player_ids() -> list[str]:
    """Ids of the first-run players."""
    return [p.id for p in get_storage().load().players]


class TestCLIBasics:
    """Tests for basic CLI functionality."""

    def test_help(self, runner: CliRunner):
        """Test that help command works."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "reading challenge" in result.stdout

    def test_version(self, runner: CliRunner):
        """Test version command."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.stdout


class TestDashboardCommand:
    """Tests for the dashboard command."""

    def test_dashboard(self, runner: CliRunner):
        result = runner.invoke(app, ["dashboard", "--month", "0"])

        assert result.exit_code == 0
        assert "Standings" in result.stdout
        assert "Player 1" in result.stdout
        assert "Warm-up month" in result.stdout

    def test_dashboard_bad_month(self, runner: CliRunner):
        result = runner.invoke(app, ["dashboard", "--month", "13"])
        assert result.exit_code == 1
        assert "between 0 and 12" in result.stdout


class TestPlayerCommands:
    """Tests for player commands."""

    def test_list(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["player", "list"])
        assert result.exit_code == 0
        assert player_ids[0] in result.stdout

    def test_add(self, runner: CliRunner):
        result = runner.invoke(app, ["player", "add", "Carol"])
        assert result.exit_code == 0
        assert "Added player Carol" in result.stdout

    def test_add_blank(self, runner: CliRunner):
        result = runner.invoke(app, ["player", "add", "  "])
        assert result.exit_code == 1

    def test_rename_by_name(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["player", "rename", "player 1", "Alice"])

        assert result.exit_code == 0
        assert get_storage().load().get_player(player_ids[0]).name == "Alice"

    def test_show(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["player", "show", player_ids[1]])
        assert result.exit_code == 0
        assert "Pages read" in result.stdout

    def test_unknown_player(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["player", "show", "Nobody"])
        assert result.exit_code == 1
        assert "Player not found" in result.stdout

    def test_remove(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["player", "remove", player_ids[1]], input="y\n")
        assert result.exit_code == 0
        assert len(get_storage().load().players) == 1

        result = runner.invoke(app, ["player", "remove", player_ids[0]], input="y\n")
        assert result.exit_code == 1
        assert "At least one player" in result.stdout


class TestReadCommand:
    """Tests for reading-day logging."""

    def test_log_past_day(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["read", player_ids[0], "2025-12-24"])

        assert result.exit_code == 0
        assert "Logged 2025-12-24" in result.stdout

        result = runner.invoke(app, ["read", player_ids[0], "2025-12-24"])
        assert "Cleared 2025-12-24" in result.stdout

    def test_future_day(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["read", player_ids[0], "2999-01-01"])
        assert result.exit_code == 1


class TestBookCommands:
    """Tests for book commands."""

    def test_edit_and_complete(self, runner: CliRunner, player_ids):
        pid = player_ids[0]
        assert runner.invoke(app, ["book", "title", pid, "1", "0", "Dune"]).exit_code == 0
        assert runner.invoke(app, ["book", "author", pid, "1", "0", "Herbert"]).exit_code == 0
        assert runner.invoke(app, ["book", "pages", pid, "1", "0", "400"]).exit_code == 0
        assert runner.invoke(app, ["book", "progress", pid, "1", "0", "120"]).exit_code == 0

        result = runner.invoke(app, ["book", "toggle", pid, "1", "0"])
        assert result.exit_code == 0
        assert "completed" in result.stdout

        book = get_storage().load().get_player(pid).book(1, 0)
        assert book.completed
        assert book.current_page == 400

    def test_missing_book(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["book", "title", player_ids[0], "1", "7", "X"])
        assert result.exit_code == 1
        assert "Book not found" in result.stdout

    def test_add_remove(self, runner: CliRunner, player_ids):
        pid = player_ids[0]
        assert runner.invoke(app, ["book", "add", pid, "2"]).exit_code == 0
        assert runner.invoke(app, ["book", "remove", pid, "2", "2"]).exit_code == 0
        assert runner.invoke(app, ["book", "add", pid, "13"]).exit_code == 1

    def test_notes(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["book", "notes", player_ids[0], "1", "0", "Loved it"])
        assert result.exit_code == 0
        assert get_storage().load().get_player(player_ids[0]).book(1, 0).notes == "Loved it"

    def test_score_without_key(self, runner: CliRunner, player_ids):
        """Test scoring without an API key stores no score."""
        pid = player_ids[0]
        runner.invoke(app, ["book", "title", pid, "1", "0", "Emma"])

        result = runner.invoke(app, ["book", "score", pid, "1", "0"])

        assert result.exit_code == 0
        assert "OPENROUTER_API_KEY is not set" in result.stdout
        assert "No score attached" in result.stdout
        assert get_storage().load().get_player(pid).book(1, 0).ai_score is None

    def test_continue(self, runner: CliRunner, player_ids):
        pid = player_ids[0]
        runner.invoke(app, ["book", "title", pid, "1", "0", "Dune"])
        runner.invoke(app, ["book", "progress", pid, "1", "0", "90"])
        with get_storage().session() as db:
            db.get_player(pid).month(2).books[1].title = "Dune"

        result = runner.invoke(app, ["book", "continue", pid, "2", "1"])

        assert result.exit_code == 0
        assert "page 90" in result.stdout

    def test_continue_without_match(self, runner: CliRunner, player_ids):
        result = runner.invoke(app, ["book", "continue", player_ids[0], "2", "1"])
        assert result.exit_code == 1
