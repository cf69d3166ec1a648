"""Read student roster snapshots exported from the tracker database.

A roster file is JSON, either ``{"students": [...]}`` or a bare list. Each
student carries cached LeetCode and GitHub stats, including the raw activity
calendars in whatever shape the platform returned them.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

PLATFORMS = ("leetcode", "github")


@dataclass
class LeetCodeStats:
    username: str | None = None
    total_solved: int = 0
    easy_solved: int = 0
    medium_solved: int = 0
    hard_solved: int = 0
    submission_calendar: Any = None  # JSON string or mapping keyed by Unix seconds


@dataclass
class GitHubStats:
    username: str | None = None
    stars: int = 0
    public_repos: int = 0
    contributions: Any = None  # list of {date, count} records
    total_contributions: int | None = None  # all-time total, when the export has one


@dataclass
class StudentRecord:
    name: str
    usn: str
    section: str | None = None
    batch: int | None = None
    leetcode: LeetCodeStats = field(default_factory=LeetCodeStats)
    github: GitHubStats = field(default_factory=GitHubStats)


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, str) and not value.strip().lstrip("+-").isdigit():
        return None
    return _int(value)


def extract_github_total(block: Any) -> int | None:
    """All-time contribution total from a GitHub stats block, if it has one.

    The tracker stores it as an integer ``contributions`` (or
    ``totalContributions``); the contributions-API response carries it as a
    per-year ``total`` mapping.
    """
    if not isinstance(block, dict):
        return None
    for key in ("totalContributions", "contributions"):
        value = block.get(key)
        if isinstance(value, (int, float, str)) and not isinstance(value, bool):
            total = _optional_int(value)
            if total is not None:
                return max(total, 0)
    response = block.get("contributions")
    if isinstance(response, dict) and isinstance(response.get("total"), dict):
        return sum(max(_int(v), 0) for v in response["total"].values())
    return None


def extract_github_calendar(block: Any) -> Any:
    """Pull the contribution calendar out of a GitHub stats block.

    Handles the contributions-API response shape ({"contributions": [...]}),
    a bare list of records, and a ``submissionCalendar`` that may be JSON text.
    """
    if not isinstance(block, dict):
        return None
    contributions = block.get("contributions")
    if isinstance(contributions, dict) and "contributions" in contributions:
        return contributions["contributions"]
    if isinstance(contributions, list):
        return contributions
    calendar = block.get("submissionCalendar")
    if calendar in ("", [], {}):
        return None
    return calendar


def parse_student(entry: dict) -> StudentRecord | None:
    """Build a StudentRecord from one roster entry, or None if it has no identity."""
    usn = entry.get("usn") or entry.get("id")
    name = entry.get("name") or usn
    if not usn:
        return None

    lc_raw = entry.get("leetcode") or entry.get("leetcodeStats") or {}
    gh_raw = entry.get("github") or entry.get("githubStats") or {}
    if not isinstance(lc_raw, dict):
        lc_raw = {}
    if not isinstance(gh_raw, dict):
        gh_raw = {}

    leetcode = LeetCodeStats(
        username=lc_raw.get("username") or entry.get("leetcodeUsername"),
        total_solved=_int(lc_raw.get("totalSolved", 0)),
        easy_solved=_int(lc_raw.get("easySolved", 0)),
        medium_solved=_int(lc_raw.get("mediumSolved", 0)),
        hard_solved=_int(lc_raw.get("hardSolved", 0)),
        submission_calendar=lc_raw.get("submissionCalendar"),
    )
    github = GitHubStats(
        username=gh_raw.get("username") or entry.get("githubUsername"),
        stars=_int(gh_raw.get("stars", 0)),
        public_repos=_int(gh_raw.get("publicRepos", 0)),
        contributions=extract_github_calendar(gh_raw),
        total_contributions=extract_github_total(gh_raw),
    )
    section = entry.get("section")
    return StudentRecord(
        name=str(name),
        usn=str(usn),
        section=str(section).strip() if section not in (None, "") else None,
        batch=_optional_int(entry.get("batch")),
        leetcode=leetcode,
        github=github,
    )


def load_roster(path: Path) -> list[StudentRecord] | None:
    """Parse a roster JSON file.

    Returns None if the file doesn't exist or can't be parsed. Entries without
    a usn are skipped.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, OSError, json.JSONDecodeError):
        return None

    entries = raw.get("students", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        return None

    students: list[StudentRecord] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        student = parse_student(entry)
        if student is None:
            logger.debug("Skipping roster entry without usn: %r", entry.get("name"))
            continue
        students.append(student)
    return students


def find_student(students: list[StudentRecord], key: str) -> StudentRecord | None:
    """Look a student up by usn (case-insensitive), then by exact name."""
    lowered = key.lower()
    for student in students:
        if student.usn.lower() == lowered:
            return student
    return next((s for s in students if s.name == key), None)


def is_tracked(student: StudentRecord) -> bool:
    """True when the student has at least one platform username."""
    return bool(student.leetcode.username or student.github.username)


def filter_students(
    students: list[StudentRecord],
    batch: int | None = None,
    section: str | None = None,
    search: str | None = None,
    tracked_only: bool = False,
) -> list[StudentRecord]:
    """Narrow a roster by batch, section, name/usn search and tracked status.

    ``search`` is a case-insensitive substring match on name or usn. Filters
    left as None are not applied.
    """
    needle = search.strip().lower() if search else ""
    result = []
    for student in students:
        if batch is not None and student.batch != batch:
            continue
        if section and student.section != section.strip():
            continue
        if tracked_only and not is_tracked(student):
            continue
        if needle and needle not in student.name.lower() and needle not in student.usn.lower():
            continue
        result.append(student)
    return result


def raw_calendar(student: StudentRecord, platform: str) -> Any:
    """Raw calendar for a platform, or None when the source has nothing."""
    if platform == "leetcode":
        return student.leetcode.submission_calendar
    if platform == "github":
        return student.github.contributions
    raise ValueError(f"Unknown platform {platform!r}; expected one of {', '.join(PLATFORMS)}")


def subjects_for(students: list[StudentRecord], platforms: tuple[str, ...] = PLATFORMS) -> list[tuple[str, str, Any]]:
    """(usn, platform, raw calendar) triples for batch computation."""
    return [
        (student.usn, platform, raw_calendar(student, platform))
        for student in students
        for platform in platforms
    ]
