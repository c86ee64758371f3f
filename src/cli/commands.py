"""
Command Line Module

argparse front end over BreakService and BreakReportService, backed by the
SQLite store configured in config.json.
"""

import argparse
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from application.break_service import BreakService
from application.report_service import BreakReportService
from config.config_manager import AppConfig, ConfigManager
from domain.break_store import BreakStore
from domain.clock import Clock
from domain.entities import BreakType, DailyBreakTally, EmployeeProfile
from domain.errors import (
    BreakError, JustificationRequiredError, RequiresJustification, StoreUnavailableError
)
from domain.live_monitor import format_elapsed
from infrastructure.employee_directory import load_profiles_from_csv
from infrastructure.sqlite_store import SqliteBreakStore

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NEEDS_JUSTIFICATION = 2

DEFAULT_DB_NAME = "breaks.db"


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


def _parse_datetime(value: str) -> datetime:
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid timestamp '{value}', expected ISO-8601 such as 2025-03-10T09:00:00+03:00"
        )
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="break-tracker",
        description="Track employee breaks, overruns and daily break budgets"
    )
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("--db", help="SQLite database path (overrides config)")
    parser.add_argument("--employees", type=Path,
                        help="Employee CSV (user_id,full_name,role,team), overrides config")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("start", help="Start a break")
    p.add_argument("user")
    p.add_argument("--type", default="normal",
                   choices=[t.value for t in BreakType if t != BreakType.AUTO_IDLE])
    p.add_argument("--notes")

    p = sub.add_parser("end", help="End a break")
    p.add_argument("break_id")
    p.add_argument("--justification", help="Used only if the break overran its limit")
    p.add_argument("--actor", help="User ending the break (default: trusted caller)")
    p.add_argument("--role", help="Role of --actor")

    p = sub.add_parser("force-end", help="End an overrun break with a justification")
    p.add_argument("break_id")
    p.add_argument("justification")
    p.add_argument("--actor")
    p.add_argument("--role")

    p = sub.add_parser("status", help="Show a user's active break")
    p.add_argument("user")

    p = sub.add_parser("tally", help="Show a user's break usage for a day")
    p.add_argument("user")
    p.add_argument("--date", type=_parse_date, help="YYYY-MM-DD (default: today)")

    sub.add_parser("live", help="List everyone currently on a break")

    p = sub.add_parser("idle-start", help="Record system-detected idle time as a break")
    p.add_argument("user")
    p.add_argument("--role")
    p.add_argument("--idle-since", type=_parse_datetime,
                   help="Last activity (ISO-8601); nothing is recorded before the idle threshold")

    p = sub.add_parser("idle-end", help="Close an idle break")
    p.add_argument("break_id")

    p = sub.add_parser("report", help="Write the daily break report")
    p.add_argument("--date", type=_parse_date, help="YYYY-MM-DD (default: today)")
    p.add_argument("--excel", type=Path, help="Excel output path")
    p.add_argument("--pdf", type=Path, help="PDF output path")
    p.add_argument("--no-excel", action="store_true")
    p.add_argument("--no-pdf", action="store_true")
    p.add_argument("--sort-by", choices=["name", "usage"], default="name")
    p.add_argument("--user", action="append", dest="users", metavar="USER",
                   help="Only this employee (repeatable)")
    p.add_argument("--team", help="Only employees of this team (needs an employee file)")
    p.add_argument("--font", help="TTF font for the PDF, overrides config")

    return parser


def open_store(config: AppConfig, db_override: Optional[str] = None) -> SqliteBreakStore:
    """Open the configured SQLite store (breaks.db in the project root by default)."""
    db_path = db_override or config.storage.database_path
    if not db_path:
        db_path = str(Path(__file__).parent.parent.parent / DEFAULT_DB_NAME)
    return SqliteBreakStore(db_path)


def load_profiles(config: AppConfig, csv_override: Optional[Path] = None) -> Dict[str, EmployeeProfile]:
    """Employee profiles from --employees or reports.employees_csv, if either is set."""
    csv_path = csv_override or config.reports.employees_csv
    if not csv_path:
        return {}
    return load_profiles_from_csv(Path(csv_path))


def _print_tally(tally: DailyBreakTally, budget: int) -> None:
    print(f"Breaks for {tally.user_id} on {tally.day.isoformat()}")
    print(f"  Normal breaks used: {tally.normal_total_minutes} / {budget} min ({tally.level.value})")
    print(f"  Meeting time:       {tally.meeting_total_minutes} min")
    print(f"  Remaining:          {tally.remaining_minutes} min")
    print(f"  Ended breaks:       {tally.break_count} (long: {tally.overrun_count})")
    if tally.active_break:
        print(f"  Active:             {tally.active_break.break_type.value} "
              f"({tally.active_elapsed_minutes} min so far)")


def run(
    args: argparse.Namespace,
    service: BreakService,
    reports: BreakReportService,
    profiles: Optional[Dict[str, EmployeeProfile]] = None
) -> int:
    """Execute one parsed command. Returns the process exit code."""
    profiles = profiles or {}
    if args.command == "start":
        record = service.start_break(args.user, args.type, args.notes)
        print(f"Break started: {record.id} ({record.break_type.value})")

    elif args.command == "end":
        try:
            result = service.end_break(args.break_id, args.actor, args.role)
        except RequiresJustification as e:
            if not args.justification:
                print(f"Break exceeded {e.limit_minutes} minutes ({e.elapsed_minutes} min). "
                      f"Re-run with --justification or use force-end.", file=sys.stderr)
                return EXIT_NEEDS_JUSTIFICATION
            result = service.force_end_break(
                args.break_id, args.justification, args.actor, args.role
            )
        print(f"Break ended. Duration: {result.duration_minutes} minutes")

    elif args.command == "force-end":
        result = service.force_end_break(
            args.break_id, args.justification, args.actor, args.role
        )
        if result.record.justification:
            print(f"Break ended with justification. Duration: {result.duration_minutes} minutes")
        else:
            print(f"Break ended within its limit, justification not recorded. "
                  f"Duration: {result.duration_minutes} minutes")

    elif args.command == "status":
        record = service.get_active_break(args.user)
        if record is None:
            print(f"{args.user} is not on a break")
        else:
            elapsed = record.elapsed_seconds(service.clock.now())
            overrun = " OVER LIMIT" if service.session.is_overrun(record) else ""
            print(f"{args.user} on {record.break_type.value} break {record.id} "
                  f"for {format_elapsed(elapsed)}{overrun}")

    elif args.command == "tally":
        day = args.date or service.clock.today()
        _print_tally(service.get_daily_tally(args.user, day),
                     service.policy.daily_normal_budget_minutes)

    elif args.command == "live":
        rows = service.get_live_breaks(profiles)
        if not rows:
            print("Nobody is on a break")
        for row in rows:
            limit = f"{row.allowed_limit_minutes} min" if row.allowed_limit_minutes else "no limit"
            flag = " OVERTIME" if row.is_overtime else ""
            name = row.full_name if row.record.user_id in profiles else row.record.user_id
            print(f"{name:<20} {row.record.break_type.value:<10} "
                  f"{format_elapsed(row.duration_seconds):>8}  ({limit}){flag}")

    elif args.command == "idle-start":
        record = service.start_auto_idle_break(args.user, args.role, args.idle_since)
        print(f"Idle break started: {record.id}" if record else "Idle break not recorded")

    elif args.command == "idle-end":
        result = service.end_auto_idle_break(args.break_id)
        minutes = result.duration_minutes
        print(f"Idle for {minutes} minute{'s' if minutes != 1 else ''}. "
              f"This time has been recorded as a break.")

    elif args.command == "report":
        if args.team and not profiles:
            print("--team needs an employee file (--employees or reports.employees_csv)",
                  file=sys.stderr)
            return EXIT_ERROR
        if args.font:
            reports.custom_font_path = args.font
        result = reports.generate_reports(
            day=args.date,
            excel_path=args.excel,
            pdf_path=args.pdf,
            generate_excel=not args.no_excel,
            generate_pdf=not args.no_pdf,
            sort_by=args.sort_by,
            profiles=profiles,
            user_ids=args.users,
            team=args.team
        )
        print(f"Report for {result.day.isoformat()}: {len(result.rows)} employees")
        if result.excel_path:
            print(f"  Excel: {result.excel_path}")
        if result.pdf_path:
            print(f"  PDF:   {result.pdf_path}")
        if result.error_message:
            print(f"  {result.error_message}", file=sys.stderr)
            return EXIT_ERROR

    return EXIT_OK


def main(
    argv: Optional[List[str]] = None,
    store: Optional[BreakStore] = None,
    clock: Optional[Clock] = None
) -> int:
    """CLI entry point. store/clock may be injected by embedding callers."""
    args = build_parser().parse_args(argv)
    config = ConfigManager(args.config).load()

    try:
        store = store or open_store(config, args.db)
        service = BreakService.from_config(config, store, clock)
        reports = BreakReportService.from_config(config, store, service.clock)
        return run(args, service, reports, load_profiles(config, args.employees))
    except JustificationRequiredError:
        print("Please provide a justification", file=sys.stderr)
        return EXIT_ERROR
    except BreakError as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR
    except StoreUnavailableError as e:
        print(f"Break database unavailable, please try again ({e})", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
