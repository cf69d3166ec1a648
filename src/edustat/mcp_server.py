"""MCP server for edustat.

Exposes student streaks, activity calendars and the leaderboard as MCP tools.
Run via: python3 -m edustat.mcp_server
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from mcp.server.fastmcp import FastMCP

mcp = FastMCP(name="edustat")


def _today(today: str) -> date:
    if today:
        return date.fromisoformat(today)
    return datetime.now(tz=timezone.utc).date()


def _get_db():
    from edustat.db import Database
    return Database()


def _load_students(roster: str):
    from pathlib import Path

    from edustat.config import get_roster_path
    from edustat.sources import load_roster

    path = Path(roster).expanduser() if roster else get_roster_path()
    if path is None:
        return None, {"error": "No roster configured. Run: edustat setup --roster <file>"}
    students = load_roster(path)
    if students is None:
        return None, {"error": f"Could not read roster file: {path}"}
    return students, None


def _student_report(student_key: str, platform: str, roster: str, today: str) -> dict[str, Any]:
    from edustat.config import get_timeline_days, get_week_start, get_window_days
    from edustat.report import safe_build_report
    from edustat.sources import PLATFORMS, find_student, raw_calendar

    if platform not in PLATFORMS:
        return {"error": f"Invalid platform. Must be one of: {', '.join(PLATFORMS)}"}
    try:
        ref = _today(today)
    except ValueError:
        return {"error": f"Invalid date {today!r}; expected YYYY-MM-DD"}
    students, error = _load_students(roster)
    if error:
        return error
    student = find_student(students, student_key)
    if student is None:
        return {"error": f"No student matching {student_key!r}"}
    report = safe_build_report(
        raw_calendar(student, platform),
        ref,
        subject=student.usn,
        platform=platform,
        window_days=get_window_days(),
        timeline_days=get_timeline_days(),
        week_start=get_week_start(),
    )
    return {"name": student.name, **report.to_dict()}


@mcp.tool()
def get_streaks(student: str, platform: str = "leetcode", roster: str = "", today: str = "") -> dict[str, Any]:
    """Get current streak, longest streak and total activity for a student.

    student: USN or name. platform: "leetcode" or "github".
    today: reference date YYYY-MM-DD (defaults to the current UTC date).
    """
    data = _student_report(student, platform, roster, today)
    if "error" in data and "subject" not in data:
        return data
    result = {
        key: data[key]
        for key in (
            "name", "subject", "platform", "referenceDate", "currentStreak",
            "longestStreak", "totalActivity", "activeToday", "lastActiveDate", "error",
        )
    }
    # Fall back to the last stored value when the calendar was unusable
    if data.get("error"):
        db = _get_db()
        try:
            snapshot = db.get_snapshot(data["subject"], platform)
        finally:
            db.close()
        if snapshot and not snapshot.get("error"):
            result["lastStored"] = {
                "currentStreak": snapshot["current_streak"],
                "longestStreak": snapshot["longest_streak"],
                "totalActivity": snapshot["total_activity"],
                "computedAt": snapshot["computed_at"],
            }
    return result


@mcp.tool()
def get_activity_calendar(student: str, platform: str = "leetcode", roster: str = "", today: str = "") -> dict[str, Any]:
    """Get the contribution-graph grid (week columns of day cells) for a student."""
    data = _student_report(student, platform, roster, today)
    if "error" in data and "subject" not in data:
        return data
    return {
        "name": data["name"],
        "platform": platform,
        "totalActivity": data["totalActivity"],
        "grid": data["grid"],
        "monthLabels": data["monthLabels"],
    }


@mcp.tool()
def get_weekly_timeline(student: str, platform: str = "leetcode", roster: str = "", today: str = "") -> dict[str, Any]:
    """Get weekly activity sums over the last 52 weeks for a student."""
    data = _student_report(student, platform, roster, today)
    if "error" in data and "subject" not in data:
        return data
    return {"name": data["name"], "platform": platform, "weekly": data["weekly"]}


@mcp.tool()
def get_leaderboard(
    roster: str = "",
    today: str = "",
    batch: int | None = None,
    section: str = "",
    search: str = "",
    tracked_only: bool = False,
) -> dict[str, Any]:
    """Get the ranked student leaderboard with scores, streaks and badges.

    Optionally narrowed to one batch year or section, to students whose name
    or USN contains ``search``, or to students with a platform username.
    """
    from edustat.cli import compute_leaderboard
    from edustat.sources import filter_students

    try:
        ref = _today(today)
    except ValueError:
        return {"error": f"Invalid date {today!r}; expected YYYY-MM-DD"}
    students, error = _load_students(roster)
    if error:
        return error
    students = filter_students(
        students,
        batch=batch,
        section=section or None,
        search=search or None,
        tracked_only=tracked_only,
    )
    ranked = compute_leaderboard(students, ref)
    return {"entries": ranked, "count": len(ranked)}


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
