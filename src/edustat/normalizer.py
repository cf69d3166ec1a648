"""Normalize raw activity calendars into a gap-free daily sequence.

LeetCode reports a submission calendar keyed by Unix timestamps (seconds),
GitHub reports a list of ``{"date": "YYYY-MM-DD", "count": n}`` records. Both
end up here as exactly one CanonicalDay per calendar date over a trailing
window ending at an injected reference date. All dates are UTC calendar dates.
"""

from __future__ import annotations

import json
import logging
import math
import re
import warnings
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Union

from edustat.errors import DataIntegrityError, InputShapeError, UnparseableKeyWarning

logger = logging.getLogger(__name__)

DAILY_WINDOW_DAYS = 365
WEEKLY_WINDOW_DAYS = 364  # 52 weeks

SECONDS_PER_DAY = 86_400
_EPOCH = date(1970, 1, 1)

_NUMERIC_KEY = re.compile(r"^\+?(\d+)(?:\.\d*)?$")
_ISO_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DateKey:
    day: date


@dataclass(frozen=True)
class TimestampKey:
    seconds: int
    day: date


@dataclass(frozen=True)
class UnparseableKey:
    raw: str


DayKey = Union[DateKey, TimestampKey, UnparseableKey]


@dataclass(frozen=True)
class CanonicalDay:
    date: date
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "count": self.count}


@dataclass
class NormalizedCalendar:
    days: list[CanonicalDay]
    reference_date: date
    window_days: int
    skipped_keys: int = 0

    @property
    def start_date(self) -> date:
        return self.reference_date - timedelta(days=self.window_days - 1)

    def to_dict(self) -> dict:
        return {
            "referenceDate": self.reference_date.isoformat(),
            "windowDays": self.window_days,
            "skippedKeys": self.skipped_keys,
            "days": [d.to_dict() for d in self.days],
        }


def day_from_timestamp(seconds: int) -> date:
    """Floor a Unix timestamp (seconds) to its UTC calendar date."""
    return _EPOCH + timedelta(days=seconds // SECONDS_PER_DAY)


def _timestamp_key(seconds: int, raw: str) -> DayKey:
    try:
        return TimestampKey(seconds=seconds, day=day_from_timestamp(seconds))
    except OverflowError:
        return UnparseableKey(raw)


def parse_day_key(key: Any) -> DayKey:
    """Resolve a raw calendar key to a date key, a timestamp key or neither.

    A key is a Unix timestamp in seconds when it is entirely numeric and has
    no ``-`` in it; otherwise it has to be an ISO ``YYYY-MM-DD`` date.
    """
    if isinstance(key, bool):
        return UnparseableKey(str(key))
    if isinstance(key, int):
        return _timestamp_key(key, str(key))
    if isinstance(key, float):
        if not math.isfinite(key):
            return UnparseableKey(str(key))
        return _timestamp_key(math.floor(key), str(key))
    if not isinstance(key, str):
        return UnparseableKey(repr(key))

    text = key.strip()
    match = _NUMERIC_KEY.match(text)
    if match:
        return _timestamp_key(int(match.group(1)), key)
    if _ISO_KEY.match(text):
        try:
            return DateKey(date.fromisoformat(text))
        except ValueError:
            pass
    return UnparseableKey(key)


def to_reference_date(value: date | datetime | str) -> date:
    """Coerce a reference date to a plain date. Aware datetimes are read in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise TypeError(f"Reference date must be a date, datetime or ISO string, got {type(value).__name__}")


def load_raw_calendar(raw: Any) -> list[tuple[Any, Any]]:
    """Flatten any accepted raw calendar shape into (key, count) pairs.

    Accepts a mapping, a list of {date, count} records (or 2-item pairs), the
    JSON text of either, or None for "source unavailable".
    """
    if raw is None:
        return []
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InputShapeError(f"Calendar bytes are not UTF-8: {exc}") from exc
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise InputShapeError(f"Calendar text is not valid JSON: {exc}") from exc
        if raw is None:
            return []

    if isinstance(raw, Mapping):
        return list(raw.items())

    if isinstance(raw, (list, tuple)):
        pairs: list[tuple[Any, Any]] = []
        for index, record in enumerate(raw):
            if isinstance(record, Mapping):
                if "date" not in record or "count" not in record:
                    raise InputShapeError(f"Day record {index} needs 'date' and 'count' fields")
                pairs.append((record["date"], record["count"]))
            elif isinstance(record, (list, tuple)) and len(record) == 2:
                pairs.append((record[0], record[1]))
            else:
                raise InputShapeError(f"Day record {index} is not a record or a (day, count) pair")
        return pairs

    raise InputShapeError(f"Expected a mapping of day -> count, got {type(raw).__name__}")


def validate_count(key: Any, count: Any) -> int:
    """Return count if it is a non-negative int, else raise DataIntegrityError."""
    if isinstance(count, bool) or not isinstance(count, int):
        raise DataIntegrityError(f"Count for day {key!r} is not an integer: {count!r}")
    if count < 0:
        raise DataIntegrityError(f"Count for day {key!r} is negative: {count}")
    return count


def normalize_calendar(
    raw: Any,
    reference_date: date | datetime | str,
    window_days: int = DAILY_WINDOW_DAYS,
) -> NormalizedCalendar:
    """Build the canonical sequence for [reference_date - window_days + 1, reference_date].

    Counts of keys resolving to the same date are summed. Unparseable keys are
    skipped and reported through ``skipped_keys`` and an UnparseableKeyWarning.
    """
    if window_days < 1:
        raise ValueError(f"window_days must be at least 1, got {window_days}")

    ref = to_reference_date(reference_date)
    start = ref - timedelta(days=window_days - 1)

    totals: dict[date, int] = {}
    skipped: list[str] = []
    for key, count in load_raw_calendar(raw):
        parsed = parse_day_key(key)
        if isinstance(parsed, UnparseableKey):
            logger.debug("Skipping unparseable day key %r", key)
            skipped.append(parsed.raw)
            continue
        totals[parsed.day] = totals.get(parsed.day, 0) + validate_count(key, count)

    if skipped:
        logger.warning("Skipped %d unparseable day key(s)", len(skipped))
        warnings.warn(UnparseableKeyWarning(len(skipped), skipped[:3]), stacklevel=2)

    days = []
    for offset in range(window_days):
        day = start + timedelta(days=offset)
        days.append(CanonicalDay(date=day, count=totals.get(day, 0)))

    return NormalizedCalendar(
        days=days,
        reference_date=ref,
        window_days=window_days,
        skipped_keys=len(skipped),
    )


def calendar_from_days(days: list[CanonicalDay]) -> dict[str, int]:
    """ISO-keyed raw mapping for a canonical sequence."""
    return {d.date.isoformat(): d.count for d in days}
