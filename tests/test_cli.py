"""Tests for the Typer CLI."""

import pytest
from typer.testing import CliRunner

from trip_split.cli import app
from trip_split.config import Settings
from trip_split.db import Database
from trip_split.service import TripService

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "cli.db"
    monkeypatch.setenv("DATABASE_PATH", str(path))
    monkeypatch.setenv("LOCALE", "vi-VN")
    monkeypatch.setenv("AUTO_RECOMPUTE", "false")
    return path


@pytest.fixture
def trip_id(db_path):
    """Create a trip through the service and return its id."""
    db = Database(db_path)
    try:
        service = TripService(Settings(database_path=db_path), db)
        return service.create_trip("Nha Trang", ["Anh", "Bao"]).id
    finally:
        db.close()


class TestCommands:
    def test_create_trip(self, db_path):
        result = runner.invoke(app, ["create-trip", "Con Dao", "-m", "Anh", "-m", "Bao"])

        assert result.exit_code == 0
        assert "Created trip Con Dao" in result.output
        assert "Anh" in result.output

    def test_add_expense_and_settle(self, trip_id):
        result = runner.invoke(
            app, ["add-expense", trip_id, "Snorkeling", "1.000.001", "--paid-by", "anh"]
        )
        assert result.exit_code == 0
        assert "Recorded expense" in result.output

        result = runner.invoke(app, ["settlements", trip_id])
        assert result.exit_code == 0
        assert "1.000.001 ₫" in result.output
        assert "500.001 ₫" in result.output

    def test_exact_shares(self, trip_id):
        result = runner.invoke(
            app,
            [
                "add-expense", trip_id, "Dinner", "300000", "-p", "Bao",
                "--split", "exact", "--share", "Anh=100.000", "--share", "Bao=200.000",
            ],
        )

        assert result.exit_code == 0
        assert "200.000 ₫" in result.output

    def test_mismatch_exits_with_error(self, trip_id):
        result = runner.invoke(
            app,
            [
                "add-expense", trip_id, "Dinner", "300000", "-p", "Bao",
                "--split", "exact", "--share", "Anh=1",
            ],
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_unknown_trip(self, db_path):
        result = runner.invoke(app, ["settlements", "missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_report(self, trip_id):
        runner.invoke(
            app, ["add-expense", trip_id, "Hotel", "800000", "-p", "Anh", "-c", "Lodging"]
        )

        result = runner.invoke(app, ["report", trip_id])

        assert result.exit_code == 0
        assert "Lodging" in result.output
        assert "100.0%" in result.output
