"""CLI commands for edustat."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path

from edustat.config import (
    get_roster_path,
    get_stale_after_hours,
    get_timeline_days,
    get_week_start,
    get_window_days,
    set_setting,
)
from edustat.db import Database, is_stale
from edustat.display import (
    console,
    print_calendar_grid,
    print_leaderboard,
    print_no_data_message,
    print_setup_result,
    print_streak,
    print_sync_result,
    print_timeline,
)
from edustat.errors import DataIntegrityError, InputShapeError
from edustat.leaderboard import build_entry, rank_entries, write_leaderboard
from edustat.report import ActivityReport, build_batch, build_report, safe_build_report
from edustat.sources import (
    PLATFORMS,
    StudentRecord,
    filter_students,
    find_student,
    load_roster,
    raw_calendar,
    subjects_for,
)

logger = logging.getLogger(__name__)

VIEWS = ("streak", "graph", "timeline")


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from None


def _utc_today() -> date:
    return datetime.now(tz=timezone.utc).date()


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="edustat",
        description="Streaks, activity graphs and leaderboards for student coding activity",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    setup_p = subparsers.add_parser("setup", help="Save roster path and window settings")
    setup_p.add_argument("--roster", "-r", default=None, help="Path to roster JSON export")
    setup_p.add_argument("--window-days", type=int, default=None, help="Daily window length")
    setup_p.add_argument("--week-start", choices=["sunday", "monday"], default=None)
    setup_p.add_argument("--stale-after-hours", type=float, default=None)

    for view, help_text in (
        ("streak", "Current and longest streak for a student"),
        ("graph", "Contribution graph for the last year"),
        ("timeline", "Weekly activity over the last 52 weeks"),
    ):
        view_p = subparsers.add_parser(view, help=help_text)
        view_p.add_argument("student", help="Student USN or name")
        view_p.add_argument("--platform", "-p", choices=list(PLATFORMS), default="leetcode")
        _add_common(view_p)

    analyze_p = subparsers.add_parser("analyze", help="Analyze a raw calendar JSON file")
    analyze_p.add_argument("file", help="Calendar JSON (day -> count mapping or list of records)")
    analyze_p.add_argument("--platform", "-p", default="", help="Label used for colors and counts")
    analyze_p.add_argument("--view", choices=list(VIEWS), default="streak")
    analyze_p.add_argument("--today", type=_iso_date, default=None, help="Reference date (UTC)")
    analyze_p.add_argument("--json", action="store_true", help="Print JSON instead of tables")

    sync_p = subparsers.add_parser("sync", help="Recompute and store streaks for all students")
    sync_p.add_argument("--force", "-f", action="store_true", help="Recompute even if fresh")
    _add_common(sync_p)

    lb_p = subparsers.add_parser("leaderboard", help="Ranked student leaderboard")
    lb_p.add_argument("--export", "-o", default=None, help="Write ranked entries to a JSON file")
    lb_p.add_argument("--highlight", default=None, help="USN to highlight")
    lb_p.add_argument("--batch", type=int, default=None, help="Only students of this batch year")
    lb_p.add_argument("--section", default=None, help="Only students of this section")
    lb_p.add_argument("--search", default=None, help="Match name or USN (case-insensitive)")
    lb_p.add_argument(
        "--tracked-only", action="store_true", help="Only students with a platform username"
    )
    _add_common(lb_p)
    return parser


def _add_common(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--roster", "-r", default=None, help="Override roster path")
    sub.add_argument("--today", type=_iso_date, default=None, help="Reference date (UTC)")
    sub.add_argument("--json", action="store_true", help="Print JSON instead of tables")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    command = args.command
    if command is None:
        parser.print_help()
        return

    if command == "setup":
        do_setup(
            roster=args.roster,
            window_days=args.window_days,
            week_start=args.week_start,
            stale_after_hours=args.stale_after_hours,
        )
    elif command in VIEWS:
        do_student_view(
            command, args.student, platform=args.platform,
            roster=args.roster, today=args.today, as_json=args.json,
        )
    elif command == "analyze":
        do_analyze(args.file, view=args.view, platform=args.platform, today=args.today, as_json=args.json)
    elif command == "sync":
        db = Database()
        try:
            do_sync(db, roster=args.roster, today=args.today, force=args.force, as_json=args.json)
        finally:
            db.close()
    elif command == "leaderboard":
        do_leaderboard(
            roster=args.roster, today=args.today, export=args.export,
            highlight=args.highlight, as_json=args.json,
            batch=args.batch, section=args.section,
            search=args.search, tracked_only=args.tracked_only,
        )


def _load_students(roster: str | None) -> list[StudentRecord] | None:
    path = Path(roster).expanduser() if roster else get_roster_path()
    if path is None:
        print_no_data_message()
        return None
    students = load_roster(path)
    if students is None:
        print_no_data_message(f"Could not read roster file: {path}")
        return None
    return students


def _report_kwargs() -> dict:
    return {
        "window_days": get_window_days(),
        "timeline_days": get_timeline_days(),
        "week_start": get_week_start(),
    }


def _render(view: str, data: dict, as_json: bool) -> None:
    if as_json:
        console.print_json(json.dumps(data))
    elif view == "graph":
        print_calendar_grid(data, week_start=get_week_start())
    elif view == "timeline":
        print_timeline(data)
    else:
        print_streak(data)


def do_setup(
    roster: str | None = None,
    window_days: int | None = None,
    week_start: str | None = None,
    stale_after_hours: float | None = None,
) -> dict:
    """Persist the given settings; unset arguments are left alone."""
    settings: dict = {}
    if roster:
        settings["roster_path"] = str(Path(roster).expanduser().resolve())
    if window_days is not None:
        if window_days < 1:
            console.print("[red]--window-days must be at least 1[/]")
            return {"ok": False, "reason": "bad_window"}
        settings["window_days"] = window_days
    if week_start:
        settings["week_start"] = week_start
    if stale_after_hours is not None:
        settings["stale_after_hours"] = stale_after_hours
    for key, value in settings.items():
        set_setting(key, value)
    result = {"ok": True, "settings": settings}
    print_setup_result(result)
    return result


def do_student_view(
    view: str,
    student_key: str,
    platform: str = "leetcode",
    roster: str | None = None,
    today: date | None = None,
    as_json: bool = False,
) -> dict:
    """Show streak, graph or timeline for one student on one platform."""
    students = _load_students(roster)
    if students is None:
        return {"ok": False, "reason": "no_roster"}
    student = find_student(students, student_key)
    if student is None:
        console.print(f"[red]No student matching {student_key!r} in roster.[/]")
        return {"ok": False, "reason": "not_found"}

    report = safe_build_report(
        raw_calendar(student, platform),
        today or _utc_today(),
        subject=student.usn,
        platform=platform,
        **_report_kwargs(),
    )
    data = {"name": student.name, **report.to_dict()}
    _render(view, data, as_json)
    return {"ok": True, **data}


def do_analyze(
    file: str,
    view: str = "streak",
    platform: str = "",
    today: date | None = None,
    as_json: bool = False,
) -> dict:
    """Run the pipeline on a raw calendar file. Bad data is reported, not zeroed."""
    path = Path(file).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Cannot read {path}: {exc}[/]")
        return {"ok": False, "reason": "unreadable"}
    try:
        report = build_report(text, today or _utc_today(), subject=path.stem, platform=platform, **_report_kwargs())
    except (InputShapeError, DataIntegrityError) as exc:
        console.print(f"[red]{type(exc).__name__}: {exc}[/]")
        return {"ok": False, "reason": "bad_data", "error": str(exc)}
    data = {"name": path.stem, **report.to_dict()}
    _render(view, data, as_json)
    return {"ok": True, **data}


def do_sync(
    db: Database,
    roster: str | None = None,
    today: date | None = None,
    force: bool = False,
    as_json: bool = False,
    now: datetime | None = None,
) -> dict:
    """Recompute streaks for every stale subject and store them.

    A stored snapshot is fresh when it was computed for the same reference
    date within the configured staleness window.
    """
    students = _load_students(roster)
    if students is None:
        return {"ok": False, "reason": "no_roster"}

    now = now or datetime.now(tz=timezone.utc)
    ref = today or now.date()
    max_age = get_stale_after_hours()

    pending = []
    fresh = 0
    for subject, platform, raw in subjects_for(students):
        snapshot = db.get_snapshot(subject, platform)
        if (
            not force
            and not is_stale(snapshot, now, max_age)
            and snapshot.get("reference_date") == ref.isoformat()
        ):
            fresh += 1
            continue
        pending.append((subject, platform, raw))

    logger.info("Sync %s: %d to recompute, %d fresh", ref.isoformat(), len(pending), fresh)
    batch = build_batch(pending, ref, **_report_kwargs())
    computed_at = now.isoformat()
    for report in batch.reports:
        db.save_snapshot(
            report.subject,
            report.platform,
            report.streak,
            computed_at=computed_at,
            reference_date=ref.isoformat(),
            error=report.error,
        )

    result = {
        "ok": True,
        "students": len(students),
        "recomputed": len(batch.reports),
        "fresh": fresh,
        "failures": batch.failures,
    }
    if as_json:
        console.print_json(json.dumps(result))
    else:
        print_sync_result(result)
    return result


def compute_leaderboard(students: list[StudentRecord], today: date) -> list[dict]:
    """Build ranked leaderboard entries for all students."""
    batch = build_batch(subjects_for(students), today, **_report_kwargs())
    by_student: dict[str, dict[str, ActivityReport]] = {}
    for report in batch.reports:
        by_student.setdefault(report.subject, {})[report.platform] = report
    entries = [build_entry(student, by_student.get(student.usn, {})) for student in students]
    return rank_entries(entries)


def do_leaderboard(
    roster: str | None = None,
    today: date | None = None,
    export: str | None = None,
    highlight: str | None = None,
    as_json: bool = False,
    batch: int | None = None,
    section: str | None = None,
    search: str | None = None,
    tracked_only: bool = False,
) -> dict:
    """Show the leaderboard and optionally export it.

    The roster can be narrowed by batch, section, a name/usn search and
    tracked status before ranking.
    """
    students = _load_students(roster)
    if students is None:
        return {"ok": False, "reason": "no_roster"}
    students = filter_students(
        students, batch=batch, section=section, search=search, tracked_only=tracked_only
    )

    ref = today or _utc_today()
    ranked = compute_leaderboard(students, ref)

    result: dict = {"ok": True, "entries": ranked, "count": len(ranked)}
    if export:
        output_path = Path(export).expanduser()
        write_leaderboard(ranked, output_path, generated_at=datetime.now(tz=timezone.utc).isoformat())
        result["output"] = str(output_path)

    if as_json:
        console.print_json(json.dumps(ranked))
    else:
        print_leaderboard(ranked, highlight_usn=highlight)
        if export:
            console.print(f"Leaderboard written to [bold]{result['output']}[/]")
    return result
