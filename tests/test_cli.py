import json
import textwrap

import pytest

from dinecheck.cli import EXIT_CONFLICTS, EXIT_INPUT_ERROR, EXIT_OK, main

SNAPSHOT = """\
tables:
  - id: 1
    capacity: 4
  - id: 2
    capacity: 6
bookings:
  - id: 101
    date: "2024-06-01"
    start_time: "19:00"
    guest_count: 8
  - id: 102
    date: "2024-06-01"
    start_time: "18:00"
    guest_count: 3
opening_hours:
  - day: saturday
    open: "17:00"
    close: "22:00"
"""


@pytest.fixture
def snapshot_path(tmp_path):
    path = tmp_path / "snapshot.yaml"
    path.write_text(SNAPSHOT, encoding="utf-8")
    return path


def test_reports_conflicts(snapshot_path, capsys):
    assert main([str(snapshot_path)]) == EXIT_CONFLICTS
    out = capsys.readouterr().out
    assert "Booking 101: 8 guests, largest table seats 6" in out


def test_json_output_with_plan(snapshot_path, capsys):
    assert main([str(snapshot_path), "--json", "--plan", "--parallel"]) == EXIT_CONFLICTS
    data = json.loads(capsys.readouterr().out)

    assert [c["id"] for c in data["conflicts"]] == ["capacity-conflict-101"]
    assert data["plan"]["assignments"][0]["booking_id"] == 102
    assert data["plan"]["assignments"][0]["table_id"] == 1
    assert data["plan"]["unplaced"] == [101]


def test_feasible_snapshot_exits_ok(tmp_path, capsys):
    path = tmp_path / "ok.yaml"
    path.write_text("tables:\n  - id: 1\n    capacity: 4\n", encoding="utf-8")

    assert main([str(path)]) == EXIT_OK
    assert "No conflicts found" in capsys.readouterr().out


def test_config_file_and_flag_overrides(snapshot_path, tmp_path, capsys):
    config = tmp_path / "config.yaml"
    config.write_text(
        textwrap.dedent(
            """\
            resolutions:
              split_party:
                confidence: 33
            """
        ),
        encoding="utf-8",
    )

    assert main([str(snapshot_path), "--config", str(config), "--max-slot-bookings", "0", "--json"]) == EXIT_CONFLICTS
    data = json.loads(capsys.readouterr().out)

    assert data["conflicts"][0]["resolutions"][0]["confidence"] == 33
    kinds = [c["kind"] for c in data["conflicts"]]
    assert kinds == ["capacity_exceeded", "time_overlap", "time_overlap"]


def test_availability_for_slot(snapshot_path, capsys):
    assert main([str(snapshot_path), "--availability", "2024-06-01", "--slot", "19:00"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "19:00: Fully booked (11/10 seats booked)" in out


def test_availability_for_closed_day(snapshot_path, capsys):
    assert main([str(snapshot_path), "--availability", "2024-06-02", "--json"]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data[0]["tier"] == "closed"


def test_availability_bad_date(snapshot_path, capsys):
    assert main([str(snapshot_path), "--availability", "June 1st"]) == EXIT_INPUT_ERROR
    assert "invalid date" in capsys.readouterr().err


def test_missing_snapshot(tmp_path, capsys):
    assert main([str(tmp_path / "nope.yaml")]) == EXIT_INPUT_ERROR
    assert "not found" in capsys.readouterr().err


def test_malformed_snapshot(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text("tables:\n  - id: 1\n", encoding="utf-8")

    assert main([str(path)]) == EXIT_INPUT_ERROR
    assert "missing field 'capacity'" in capsys.readouterr().err


def test_output_template(tmp_path, capsys):
    path = tmp_path / "template.yaml"
    assert main(["--output-template", str(path)]) == EXIT_OK
    assert path.exists()
    assert main([str(path)]) == EXIT_OK


def test_plan_with_non_numeric_guest_count(tmp_path, capsys):
    path = tmp_path / "snapshot.yaml"
    path.write_text(
        textwrap.dedent(
            """\
            tables:
              - id: 1
                capacity: 4
            bookings:
              - id: 7
                date: "2024-06-01"
                start_time: "19:00"
                guest_count: "four"
              - id: 8
                date: "2024-06-01"
                start_time: "19:00"
                guest_count: 2
            """
        ),
        encoding="utf-8",
    )

    assert main([str(path), "--plan", "--json"]) == EXIT_CONFLICTS
    data = json.loads(capsys.readouterr().out)

    assert [e["booking_id"] for e in data["errors"]] == [7]
    assert data["plan"]["unplaced"] == [7]
    assert [a["booking_id"] for a in data["plan"]["assignments"]] == [8]


def test_availability_skips_malformed_bookings(tmp_path, capsys):
    path = tmp_path / "snapshot.yaml"
    path.write_text(
        textwrap.dedent(
            """\
            tables:
              - id: 1
                capacity: 10
            bookings:
              - id: 1
                date: "2024-06-01"
                start_time: "7pm"
                guest_count: 2
              - id: 2
                date: "2024-06-01"
                start_time: "19:00"
                guest_count: 4
            """
        ),
        encoding="utf-8",
    )

    assert main([str(path), "--availability", "2024-06-01", "--slot", "19:00"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "19:00: Medium availability (4/10 seats booked)" in out
    assert "Not counted (invalid): bookings 1" in out
