"""Weekly sums and contribution-graph grid layout.

Pure reshaping of a canonical daily sequence; no streak logic lives here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from edustat.normalizer import CanonicalDay

DAYS_PER_WEEK = 7
WEEK_STARTS = ("sunday", "monday")

# Fixed English abbreviations so labels do not depend on the process locale
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

GridCell = Optional[CanonicalDay]
CalendarGrid = list[list[GridCell]]


@dataclass
class WeekBucket:
    label: str
    start_date: date
    days: int
    total: int

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "startDate": self.start_date.isoformat(),
            "days": self.days,
            "total": self.total,
        }


def format_day_label(day: date) -> str:
    """'Nov 14' style label."""
    return f"{MONTH_ABBR[day.month - 1]} {day.day}"


def weekly_sums(days: list[CanonicalDay], week_length: int = DAYS_PER_WEEK) -> list[WeekBucket]:
    """Sum consecutive week_length-day blocks, oldest first.

    A trailing block shorter than week_length is kept as a partial bucket.
    """
    if week_length < 1:
        raise ValueError(f"week_length must be at least 1, got {week_length}")
    buckets: list[WeekBucket] = []
    for start in range(0, len(days), week_length):
        block = days[start:start + week_length]
        buckets.append(
            WeekBucket(
                label=format_day_label(block[0].date),
                start_date=block[0].date,
                days=len(block),
                total=sum(d.count for d in block),
            )
        )
    return buckets


def weekday_index(day: date, week_start: str = "sunday") -> int:
    """Row of a date in the grid: 0 is the first day of the week."""
    if week_start == "sunday":
        return (day.weekday() + 1) % 7
    if week_start == "monday":
        return day.weekday()
    raise ValueError(f"week_start must be one of {', '.join(WEEK_STARTS)}, got {week_start!r}")


def calendar_grid(days: list[CanonicalDay], week_start: str = "sunday") -> CalendarGrid:
    """Group days into week columns for a contribution graph.

    The first column is left-padded with None so the first day sits in its
    weekday row. The last column is not padded.
    """
    if not days:
        return []
    weeks: CalendarGrid = []
    current: list[GridCell] = [None] * weekday_index(days[0].date, week_start)
    for day in days:
        current.append(day)
        if len(current) == DAYS_PER_WEEK:
            weeks.append(current)
            current = []
    if current:
        weeks.append(current)
    return weeks


def activity_level(count: int) -> int:
    """Binary intensity: any activity is level 1, none is level 0."""
    return 1 if count > 0 else 0


def grid_month_labels(grid: CalendarGrid) -> list[str]:
    """Month abbreviation under each column whose first real day is in the first week of a month."""
    labels: list[str] = []
    for week in grid:
        first = next((d for d in week if d is not None), None)
        if first is not None and first.date.day <= 7:
            labels.append(MONTH_ABBR[first.date.month - 1])
        else:
            labels.append("")
    return labels


def grid_to_dict(grid: CalendarGrid) -> list[list[dict | None]]:
    """JSON-ready grid: cells carry date, count and activity level."""
    return [
        [
            None if cell is None else {**cell.to_dict(), "level": activity_level(cell.count)}
            for cell in week
        ]
        for week in grid
    ]
