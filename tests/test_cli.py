"""
Tests for the break-tracker command line.
"""

import pytest
from datetime import datetime, timezone
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cli.commands import (
    EXIT_ERROR, EXIT_NEEDS_JUSTIFICATION, EXIT_OK, build_parser, main
)
from domain.clock import ManualClock
from infrastructure.memory_store import InMemoryBreakStore
from openpyxl import load_workbook


START = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return InMemoryBreakStore()


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def cli(store, clock, tmp_path):
    config_path = tmp_path / "config.json"

    def run(*argv):
        return main(["--config", str(config_path), *argv], store=store, clock=clock)
    return run


def active_id(store, user_id="u1"):
    return store.find_active(user_id).id


class TestBreakCommands:
    """start / end / force-end / status."""

    def test_start_and_end(self, cli, store, clock, capsys):
        assert cli("start", "u1", "--type", "prayer") == EXIT_OK
        break_id = active_id(store)
        clock.advance(minutes=12)

        assert cli("end", break_id) == EXIT_OK

        out = capsys.readouterr().out
        assert f"Break started: {break_id} (prayer)" in out
        assert "Duration: 12 minutes" in out
        assert store.find_active("u1") is None

    def test_start_twice_fails(self, cli, capsys):
        cli("start", "u1")
        assert cli("start", "u1") == EXIT_ERROR
        assert "u1" in capsys.readouterr().err

    def test_overrun_needs_justification(self, cli, store, clock, capsys):
        cli("start", "u1")
        break_id = active_id(store)
        clock.advance(minutes=31)

        assert cli("end", break_id) == EXIT_NEEDS_JUSTIFICATION
        assert "exceeded 30 minutes" in capsys.readouterr().err
        assert store.find_active("u1") is not None

        assert cli("end", break_id, "--justification", "printer jam") == EXIT_OK
        assert store.get(break_id).justification == "printer jam"

    def test_force_end(self, cli, store, clock, capsys):
        cli("start", "u1")
        break_id = active_id(store)
        clock.advance(minutes=40)

        assert cli("force-end", break_id, "call with customer") == EXIT_OK
        out = capsys.readouterr().out
        assert "with justification" in out
        assert "Duration: 40 minutes" in out

    def test_force_end_within_limit_says_not_recorded(self, cli, store, clock, capsys):
        cli("start", "u1")
        break_id = active_id(store)
        clock.advance(minutes=10)

        assert cli("force-end", break_id, "just in case") == EXIT_OK

        out = capsys.readouterr().out
        assert "justification not recorded" in out
        assert "with justification" not in out
        assert store.get(break_id).justification is None

    def test_force_end_blank_justification(self, cli, store, clock, capsys):
        cli("start", "u1")
        clock.advance(minutes=40)

        assert cli("force-end", active_id(store), "  ") == EXIT_ERROR
        assert "justification" in capsys.readouterr().err

    def test_end_by_other_employee_rejected(self, cli, store):
        cli("start", "u1")
        assert cli("end", active_id(store), "--actor", "u2", "--role", "employee") == EXIT_ERROR
        assert store.find_active("u1") is not None

    def test_end_unknown_break(self, cli):
        assert cli("end", "missing") == EXIT_ERROR

    def test_status(self, cli, clock, capsys):
        assert cli("status", "u1") == EXIT_OK
        assert "not on a break" in capsys.readouterr().out

        cli("start", "u1")
        clock.advance(minutes=31, seconds=5)
        cli("status", "u1")

        out = capsys.readouterr().out
        assert "31:05" in out
        assert "OVER LIMIT" in out


class TestQueryCommands:
    """tally / live / idle."""

    def test_tally(self, cli, store, clock, capsys):
        cli("start", "u1")
        clock.advance(minutes=25)
        cli("end", active_id(store))
        capsys.readouterr()

        assert cli("tally", "u1") == EXIT_OK

        out = capsys.readouterr().out
        assert "25 / 60 min (ok)" in out
        assert "Remaining" in out
        assert "35 min" in out

    def test_tally_for_date(self, cli, capsys):
        assert cli("tally", "u1", "--date", "2025-03-09") == EXIT_OK
        assert "2025-03-09" in capsys.readouterr().out

    def test_live(self, cli, clock, capsys):
        assert cli("live") == EXIT_OK
        assert "Nobody is on a break" in capsys.readouterr().out

        cli("start", "u1")
        clock.advance(minutes=1)
        cli("start", "u2", "--type", "meeting")
        clock.advance(minutes=35)
        cli("live")

        lines = capsys.readouterr().out.strip().splitlines()
        assert "OVERTIME" in lines[0]
        assert "no limit" in lines[1]

    def test_idle_round_trip(self, cli, store, clock, capsys):
        assert cli("idle-start", "u1") == EXIT_OK
        clock.advance(minutes=6)

        assert cli("idle-end", active_id(store)) == EXIT_OK
        assert "Idle for 6 minutes" in capsys.readouterr().out

    def test_idle_end_rejects_normal_break(self, cli, store, clock, capsys):
        cli("start", "u1")
        break_id = active_id(store)
        clock.advance(minutes=50)

        assert cli("idle-end", break_id) == EXIT_ERROR

        assert "not an idle break" in capsys.readouterr().err
        assert store.get(break_id).end_time is None
        assert cli("end", break_id) == EXIT_NEEDS_JUSTIFICATION

    def test_idle_start_waits_for_threshold(self, cli, store, clock, capsys):
        idle_since = clock.now().isoformat()
        clock.advance(minutes=3)

        assert cli("idle-start", "u1", "--idle-since", idle_since) == EXIT_OK
        assert "not recorded" in capsys.readouterr().out
        assert store.find_active("u1") is None

        clock.advance(minutes=2)
        assert cli("idle-start", "u1", "--idle-since", idle_since) == EXIT_OK
        assert "Idle break started" in capsys.readouterr().out

    def test_idle_exempt_role(self, cli, store, capsys):
        assert cli("idle-start", "boss", "--role", "admin") == EXIT_OK
        assert "not recorded" in capsys.readouterr().out
        assert store.find_active("boss") is None


class TestReportCommand:
    """report."""

    def test_writes_files(self, cli, store, clock, tmp_path, capsys):
        cli("start", "u1")
        clock.advance(minutes=20)
        cli("end", active_id(store))
        excel = tmp_path / "r.xlsx"
        pdf = tmp_path / "r.pdf"

        assert cli("report", "--excel", str(excel), "--pdf", str(pdf)) == EXIT_OK

        assert excel.exists()
        assert pdf.exists()
        assert "1 employees" in capsys.readouterr().out

    def test_excel_only(self, cli, tmp_path):
        excel = tmp_path / "r.xlsx"
        assert cli("report", "--date", "2025-03-10", "--excel", str(excel), "--no-pdf") == EXIT_OK
        assert excel.exists()

    def _three_users_on_break(self, cli, store, clock):
        for user_id in ("u1", "u2", "u3"):
            cli("start", user_id)
            clock.advance(minutes=10)
            cli("end", active_id(store, user_id))

    def test_user_filter(self, cli, store, clock, tmp_path, capsys):
        self._three_users_on_break(cli, store, clock)
        capsys.readouterr()

        assert cli("report", "--user", "u1", "--user", "u3",
                   "--excel", str(tmp_path / "r.xlsx"), "--no-pdf") == EXIT_OK
        assert "2 employees" in capsys.readouterr().out

    def test_team_filter(self, cli, store, clock, tmp_path, capsys):
        self._three_users_on_break(cli, store, clock)
        employees = tmp_path / "employees.csv"
        employees.write_text(
            "user_id,full_name,role,team\n"
            "u1,Amal,employee,Support\n"
            "u2,Badr,employee,Sales\n"
            "u3,Chadi,team_leader,Support\n",
            encoding="utf-8"
        )
        excel = tmp_path / "r.xlsx"
        capsys.readouterr()

        assert cli("--employees", str(employees), "report", "--team", "Support",
                   "--excel", str(excel), "--no-pdf") == EXIT_OK

        assert "2 employees" in capsys.readouterr().out
        ws = load_workbook(excel)["Daily Breaks"]
        assert [ws.cell(row=r, column=1).value for r in (2, 3)] == ["Amal", "Chadi"]

    def test_team_filter_needs_employee_file(self, cli, capsys):
        assert cli("report", "--team", "Support", "--no-excel", "--no-pdf") == EXIT_ERROR
        assert "employee file" in capsys.readouterr().err


class TestParser:
    """Argument parsing."""

    def test_auto_idle_is_not_a_manual_type(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["start", "u1", "--type", "auto_idle"])

    def test_bad_date(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["tally", "u1", "--date", "10/03/2025"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
