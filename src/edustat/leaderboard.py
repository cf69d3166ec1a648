"""Leaderboard entry building, ranking and export.

Pure functions apart from the atomic JSON write.
"""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from edustat.report import ActivityReport
from edustat.scoring import check_badges, performance_score
from edustat.sources import StudentRecord

LEADERBOARD_SCHEMA_VERSION = 1


def build_entry(student: StudentRecord, reports: dict[str, ActivityReport]) -> dict:
    """Construct a leaderboard entry from a student and their per-platform reports.

    reports maps platform name ("leetcode", "github") to that platform's
    ActivityReport. A missing platform counts as no activity.
    """
    streaks = {
        platform: report.streak.to_dict() for platform, report in sorted(reports.items())
    }
    lc = reports.get("leetcode")
    gh = reports.get("github")
    # Prefer the all-time total from the export over the windowed calendar sum
    if student.github.total_contributions is not None:
        github_contributions = student.github.total_contributions
    else:
        github_contributions = gh.streak.total_activity if gh else 0

    stats = {
        "total_solved": student.leetcode.total_solved,
        "best_current_streak": max(
            (r.streak.current_streak for r in reports.values()), default=0
        ),
        "github_contributions": github_contributions,
    }
    badges = [s.definition.name for s in check_badges(stats) if s.earned]

    return {
        "schema_version": LEADERBOARD_SCHEMA_VERSION,
        "usn": student.usn,
        "name": student.name,
        "performance_score": performance_score(
            easy=student.leetcode.easy_solved,
            medium=student.leetcode.medium_solved,
            hard=student.leetcode.hard_solved,
            contributions=github_contributions,
            stars=student.github.stars,
        ),
        "total_solved": student.leetcode.total_solved,
        "leetcode_submissions": lc.streak.total_activity if lc else 0,
        "github_contributions": github_contributions,
        "best_longest_streak": max(
            (r.streak.longest_streak for r in reports.values()), default=0
        ),
        "streaks": streaks,
        "badges": badges,
        "errors": {p: r.error for p, r in reports.items() if r.error},
    }


def rank_entries(entries: list[dict]) -> list[dict]:
    """Sort entries by performance_score descending. Adds 'rank' key (1-based).

    Tie-break: best_longest_streak desc, then name asc.
    """
    sorted_entries = sorted(
        entries,
        key=lambda e: (
            -e.get("performance_score", 0),
            -e.get("best_longest_streak", 0),
            e.get("name", ""),
        ),
    )
    for i, entry in enumerate(sorted_entries):
        entry["rank"] = i + 1
    return sorted_entries


def write_leaderboard(entries: list[dict], output_path: Path, generated_at: str) -> None:
    """Write ranked entries to output_path as JSON using atomic write."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "schema_version": LEADERBOARD_SCHEMA_VERSION,
        "generated_at": generated_at,
        "entries": entries,
    }
    tmp_fd, tmp_path = tempfile.mkstemp(dir=output_path.parent, suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, output_path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
