"""Streak derivation over a canonical daily sequence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from edustat.errors import DataIntegrityError
from edustat.normalizer import CanonicalDay


@dataclass
class StreakResult:
    current_streak: int = 0
    longest_streak: int = 0
    total_activity: int = 0

    def to_dict(self) -> dict:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalActivity": self.total_activity,
        }


def _check_days(days: list[CanonicalDay]) -> None:
    for day in days:
        count = day.count
        if isinstance(count, bool) or not isinstance(count, int):
            raise DataIntegrityError(f"Count on {day.date} is not an integer: {count!r}")
        if count < 0:
            raise DataIntegrityError(f"Count on {day.date} is negative: {count}")


def total_activity(days: list[CanonicalDay]) -> int:
    return sum(d.count for d in days)


def longest_streak(days: list[CanonicalDay]) -> int:
    """Longest run of consecutive active days, oldest to newest."""
    longest = 0
    run = 0
    for day in days:
        if day.count > 0:
            run += 1
            longest = max(longest, run)
        else:
            run = 0
    return longest


def streak_ending_at(days: list[CanonicalDay], index: int) -> int:
    """Count consecutive active days backwards from days[index]."""
    streak = 0
    while index >= 0 and days[index].count > 0:
        streak += 1
        index -= 1
    return streak


def current_streak(days: list[CanonicalDay]) -> int:
    """Streak still alive at the reference date (the last day of the sequence).

    Rules:
    - Today counts if active
    - If today has no activity yet, yesterday may carry the streak (one grace day)
    - Two inactive days at the end break it to 0
    """
    if not days:
        return 0
    last = len(days) - 1
    if days[last].count > 0:
        return streak_ending_at(days, last)
    if last >= 1 and days[last - 1].count > 0:
        return streak_ending_at(days, last - 1)
    return 0


def calculate_streaks(days: list[CanonicalDay]) -> StreakResult:
    """Derive current streak, longest streak and total activity.

    Raises DataIntegrityError on negative or non-integer counts. The longest
    streak is never reported below the current one.
    """
    _check_days(days)
    current = current_streak(days)
    longest = max(longest_streak(days), current)
    return StreakResult(
        current_streak=current,
        longest_streak=longest,
        total_activity=total_activity(days),
    )


def last_active_date(days: list[CanonicalDay]) -> date | None:
    for day in reversed(days):
        if day.count > 0:
            return day.date
    return None


def is_active_today(days: list[CanonicalDay]) -> bool:
    return bool(days) and days[-1].count > 0
