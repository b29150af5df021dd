"""
Tests for the Typer command line.
"""

import json

import pendulum
import pytest
from typer.testing import CliRunner

from hallbooking.cli.app import app

runner = CliRunner()


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "timezone: UTC\n"
        "data_file: bookings.json\n"
        "venues:\n"
        "  - id: lab\n"
        "    name: Lab\n"
        "    requires_approval: true\n"
        "  - id: video-conference\n"
        "    name: Video Conference Hall\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def next_week():
    return pendulum.today("UTC").add(days=7).to_date_string()


def _invoke(config_path, *args):
    return runner.invoke(app, [*args, "--config", str(config_path)])


def test_venues_lists_configured_venues(config_path):
    result = _invoke(config_path, "venues")

    assert result.exit_code == 0
    assert "video-conference" in result.output
    assert "auto-confirm" in result.output


def test_slots_shows_grid(config_path):
    result = _invoke(config_path, "slots", "lab")

    assert result.exit_code == 0
    assert "16 slots" in result.output
    assert "16:30-17:00" in result.output


def test_book_check_and_conflict(config_path, next_week, tmp_path):
    booked = _invoke(config_path, "book", "video-conference", next_week, "10:00", "11:00", "--name", "Ravi")
    busy = _invoke(config_path, "check", "video-conference", next_week, "10:15", "10:45")
    free = _invoke(config_path, "check", "video-conference", next_week, "11:00", "11:30")
    conflict = _invoke(config_path, "book", "video-conference", next_week, "10:30", "11:30")

    assert booked.exit_code == 0
    assert "confirmed" in booked.output
    assert busy.exit_code == 1
    assert "already booked" in busy.output
    assert free.exit_code == 0
    assert "is available" in free.output
    assert conflict.exit_code == 1

    records = json.loads((tmp_path / "bookings.json").read_text(encoding="utf-8"))
    assert len(records) == 1
    assert records[0]["name"] == "Ravi"


def test_approve_and_cancel(config_path, next_week, tmp_path):
    _invoke(config_path, "book", "lab", next_week, "09:00", "10:00")
    booking_id = json.loads((tmp_path / "bookings.json").read_text(encoding="utf-8"))[0]["id"]

    approved = _invoke(config_path, "status", booking_id, "confirmed")
    cancelled = _invoke(config_path, "cancel", booking_id)
    listed = _invoke(config_path, "bookings", "lab")

    assert approved.exit_code == 0
    assert "confirmed" in approved.output
    assert cancelled.exit_code == 0
    record = json.loads((tmp_path / "bookings.json").read_text(encoding="utf-8"))[0]
    assert record["status"] == "cancelled"
    assert record["is_active"] is False
    assert "No bookings found" in listed.output


def test_validation_errors_exit_with_code_one(config_path, next_week):
    result = _invoke(config_path, "book", "lab", next_week, "16:00", "17:00")

    assert result.exit_code == 1
    assert "16:30" in result.output


def test_unknown_venue(config_path):
    result = _invoke(config_path, "calendar", "auditorium")

    assert result.exit_code == 1
    assert "Unknown venue" in result.output


def test_calendar_renders_month(config_path):
    result = _invoke(config_path, "calendar", "lab", "--year", "2030", "--month", "1")

    assert result.exit_code == 0
    assert "January 2030" in result.output


def test_missing_config_file(tmp_path):
    result = runner.invoke(app, ["venues", "--config", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


@pytest.mark.parametrize("year", ["0", "10000"])
def test_calendar_rejects_out_of_range_year(config_path, year):
    result = _invoke(config_path, "calendar", "lab", "--year", year, "--month", "1")

    assert result.exit_code == 1
    assert "Year must be between 1 and 9999" in result.output


def test_calendar_rejects_month_zero(config_path):
    result = _invoke(config_path, "calendar", "lab", "--year", "2030", "--month", "0")

    assert result.exit_code == 1
    assert "Month must be between 1 and 12" in result.output


def test_admin_statistics(config_path, next_week):
    day = pendulum.parse(next_week)
    _invoke(config_path, "book", "lab", next_week, "10:00", "11:00")

    booked = _invoke(config_path, "booked-dates", "lab", "--year", str(day.year), "--month", str(day.month))
    stats = _invoke(config_path, "stats")
    usage = _invoke(config_path, "usage", "--year", str(day.year), "--month", str(day.month))

    assert booked.exit_code == 0
    assert next_week in booked.output
    assert stats.exit_code == 0
    assert "Upcoming" in stats.output
    assert usage.exit_code == 0
    assert "Video Conference Hall" in usage.output
