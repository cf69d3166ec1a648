"""Per-subject activity reports and batch computation.

A subject is one student on one platform. Each report is computed
independently; a malformed calendar for one subject yields a zeroed report
for that subject and never aborts the rest of a batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from edustat.aggregate import (
    CalendarGrid,
    WeekBucket,
    calendar_grid,
    grid_month_labels,
    grid_to_dict,
    weekly_sums,
)
from edustat.errors import DataIntegrityError, InputShapeError
from edustat.normalizer import (
    DAILY_WINDOW_DAYS,
    WEEKLY_WINDOW_DAYS,
    NormalizedCalendar,
    normalize_calendar,
    to_reference_date,
)
from edustat.streaks import StreakResult, calculate_streaks, is_active_today, last_active_date

logger = logging.getLogger(__name__)


@dataclass
class ActivityReport:
    subject: str
    platform: str
    streak: StreakResult
    calendar: NormalizedCalendar
    grid: CalendarGrid
    weekly: list[WeekBucket]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        last_active = last_active_date(self.calendar.days)
        return {
            "subject": self.subject,
            "platform": self.platform,
            "referenceDate": self.calendar.reference_date.isoformat(),
            "windowDays": self.calendar.window_days,
            **self.streak.to_dict(),
            "activeToday": is_active_today(self.calendar.days),
            "lastActiveDate": last_active.isoformat() if last_active else None,
            "skippedKeys": self.calendar.skipped_keys,
            "calendar": [d.to_dict() for d in self.calendar.days],
            "grid": grid_to_dict(self.grid),
            "monthLabels": grid_month_labels(self.grid),
            "weekly": [w.to_dict() for w in self.weekly],
            "error": self.error,
        }


@dataclass
class BatchResult:
    reports: list[ActivityReport] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    def get(self, subject: str, platform: str) -> ActivityReport | None:
        return next(
            (r for r in self.reports if r.subject == subject and r.platform == platform),
            None,
        )


def build_report(
    raw: Any,
    reference_date: date | datetime | str,
    *,
    subject: str = "",
    platform: str = "",
    window_days: int = DAILY_WINDOW_DAYS,
    timeline_days: int = WEEKLY_WINDOW_DAYS,
    week_start: str = "sunday",
) -> ActivityReport:
    """Normalize a raw calendar and derive streaks, grid and weekly sums.

    Streaks and the grid use the daily window; weekly sums use the timeline
    window (52 x 7 days by default). Raises InputShapeError or
    DataIntegrityError on bad input.
    """
    ref = to_reference_date(reference_date)
    calendar = normalize_calendar(raw, ref, window_days)
    if timeline_days == window_days:
        timeline = calendar
    else:
        timeline = normalize_calendar(raw, ref, timeline_days)

    return ActivityReport(
        subject=subject,
        platform=platform,
        streak=calculate_streaks(calendar.days),
        calendar=calendar,
        grid=calendar_grid(calendar.days, week_start),
        weekly=weekly_sums(timeline.days),
    )


def zeroed_report(
    reference_date: date | datetime | str,
    *,
    subject: str = "",
    platform: str = "",
    window_days: int = DAILY_WINDOW_DAYS,
    timeline_days: int = WEEKLY_WINDOW_DAYS,
    week_start: str = "sunday",
    error: str | None = None,
) -> ActivityReport:
    """All-zero report over the same windows, used in place of a failed one."""
    report = build_report(
        None,
        reference_date,
        subject=subject,
        platform=platform,
        window_days=window_days,
        timeline_days=timeline_days,
        week_start=week_start,
    )
    report.error = error
    return report


def safe_build_report(
    raw: Any,
    reference_date: date | datetime | str,
    *,
    subject: str = "",
    platform: str = "",
    window_days: int = DAILY_WINDOW_DAYS,
    timeline_days: int = WEEKLY_WINDOW_DAYS,
    week_start: str = "sunday",
) -> ActivityReport:
    """Like build_report, but bad data yields a zeroed report with ``error`` set."""
    try:
        return build_report(
            raw,
            reference_date,
            subject=subject,
            platform=platform,
            window_days=window_days,
            timeline_days=timeline_days,
            week_start=week_start,
        )
    except (InputShapeError, DataIntegrityError) as exc:
        logger.warning("Zeroing %s/%s: %s", subject or "?", platform or "?", exc)
        return zeroed_report(
            reference_date,
            subject=subject,
            platform=platform,
            window_days=window_days,
            timeline_days=timeline_days,
            week_start=week_start,
            error=f"{type(exc).__name__}: {exc}",
        )


def build_batch(
    subjects: list[tuple[str, str, Any]],
    reference_date: date | datetime | str,
    *,
    window_days: int = DAILY_WINDOW_DAYS,
    timeline_days: int = WEEKLY_WINDOW_DAYS,
    week_start: str = "sunday",
) -> BatchResult:
    """Compute one report per (subject, platform, raw) triple.

    Failures are recorded in ``failures`` keyed by "subject/platform" and
    replaced by zeroed reports.
    """
    ref = to_reference_date(reference_date)
    result = BatchResult()
    for subject, platform, raw in subjects:
        report = safe_build_report(
            raw,
            ref,
            subject=subject,
            platform=platform,
            window_days=window_days,
            timeline_days=timeline_days,
            week_start=week_start,
        )
        if report.error is not None:
            result.failures[f"{subject}/{platform}"] = report.error
        result.reports.append(report)
    if result.failures:
        logger.warning("%d of %d subjects zeroed", len(result.failures), len(subjects))
    return result
