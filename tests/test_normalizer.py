"""Tests for calendar normalization."""

import json
import warnings
from datetime import date, datetime, timedelta, timezone

import pytest

from edustat.errors import DataIntegrityError, InputShapeError, UnparseableKeyWarning
from edustat.normalizer import (
    DateKey,
    TimestampKey,
    UnparseableKey,
    calendar_from_days,
    day_from_timestamp,
    load_raw_calendar,
    normalize_calendar,
    parse_day_key,
    to_reference_date,
)

TODAY = date(2026, 1, 10)


def _ts(d: date) -> int:
    """Unix seconds at UTC midnight of d."""
    return int(datetime(d.year, d.month, d.day, tzinfo=timezone.utc).timestamp())


class TestParseDayKey:
    def test_iso_date(self):
        assert parse_day_key("2026-01-05") == DateKey(date(2026, 1, 5))

    def test_timestamp_string(self):
        key = parse_day_key("1700000000")
        assert isinstance(key, TimestampKey)
        assert key.seconds == 1700000000
        assert key.day == date(2023, 11, 14)

    def test_timestamp_with_whitespace(self):
        assert parse_day_key(" 1700000000 ").day == date(2023, 11, 14)

    def test_int_key(self):
        assert parse_day_key(1700000000).day == date(2023, 11, 14)

    def test_float_key_floors(self):
        assert parse_day_key(1700000000.9).day == date(2023, 11, 14)

    def test_seconds_not_milliseconds(self):
        # 1700000000000 read as seconds lands far in the future, not in 2023
        key = parse_day_key("1700000000000")
        assert not (isinstance(key, TimestampKey) and key.day == date(2023, 11, 14))

    def test_late_timestamp_floors_to_same_day(self):
        midnight = _ts(date(2026, 1, 5))
        assert parse_day_key(str(midnight + 86_399)).day == date(2026, 1, 5)

    def test_garbage_is_unparseable(self):
        assert parse_day_key("yesterday") == UnparseableKey("yesterday")

    def test_invalid_iso_is_unparseable(self):
        assert isinstance(parse_day_key("2026-02-30"), UnparseableKey)

    def test_negative_string_is_not_a_timestamp(self):
        assert isinstance(parse_day_key("-86400"), UnparseableKey)

    def test_bool_is_unparseable(self):
        assert isinstance(parse_day_key(True), UnparseableKey)

    def test_huge_timestamp_is_unparseable(self):
        assert isinstance(parse_day_key("9" * 30), UnparseableKey)


class TestDayFromTimestamp:
    def test_epoch(self):
        assert day_from_timestamp(0) == date(1970, 1, 1)

    def test_one_second_before_epoch(self):
        assert day_from_timestamp(-1) == date(1969, 12, 31)


class TestToReferenceDate:
    def test_iso_string(self):
        assert to_reference_date("2026-01-10") == TODAY

    def test_aware_datetime_is_read_in_utc(self):
        tz = timezone(timedelta(hours=5))
        # 02:00 at +05:00 is still the previous day in UTC
        assert to_reference_date(datetime(2026, 1, 10, 2, 0, tzinfo=tz)) == date(2026, 1, 9)

    def test_date_passthrough(self):
        assert to_reference_date(TODAY) == TODAY

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            to_reference_date(20260110)


class TestLoadRawCalendar:
    def test_none_is_empty(self):
        assert load_raw_calendar(None) == []

    def test_json_text(self):
        assert load_raw_calendar('{"1700000000": 3}') == [("1700000000", 3)]

    def test_blank_text_is_empty(self):
        assert load_raw_calendar("  ") == []

    def test_records(self):
        records = [{"date": "2026-01-01", "count": 2, "level": 1}]
        assert load_raw_calendar(records) == [("2026-01-01", 2)]

    def test_record_missing_count(self):
        with pytest.raises(InputShapeError):
            load_raw_calendar([{"date": "2026-01-01"}])

    def test_invalid_json(self):
        with pytest.raises(InputShapeError):
            load_raw_calendar("{not json")

    def test_scalar_rejected(self):
        with pytest.raises(InputShapeError):
            load_raw_calendar(42)

    def test_list_of_scalars_rejected(self):
        with pytest.raises(InputShapeError):
            load_raw_calendar([1, 2, 3])


class TestNormalizeCalendar:
    def test_window_length_and_bounds(self):
        cal = normalize_calendar({}, TODAY, window_days=10)
        assert len(cal.days) == 10
        assert cal.days[0].date == date(2026, 1, 1)
        assert cal.days[-1].date == TODAY
        assert cal.start_date == date(2026, 1, 1)

    def test_contiguous_ascending(self):
        raw = {"2025-03-01": 1, str(_ts(date(2025, 12, 25))): 4, "2026-01-10": 2}
        cal = normalize_calendar(raw, TODAY, window_days=365)
        assert len(cal.days) == 365
        for prev, curr in zip(cal.days, cal.days[1:]):
            assert (curr.date - prev.date).days == 1

    def test_zero_fill(self):
        cal = normalize_calendar({"2026-01-05": 3}, TODAY, window_days=10)
        counts = {d.date: d.count for d in cal.days}
        assert counts[date(2026, 1, 5)] == 3
        assert sum(counts.values()) == 3

    def test_entries_outside_window_are_dropped(self):
        raw = {"2025-01-01": 9, "2026-01-11": 9, "2026-01-10": 1}
        cal = normalize_calendar(raw, TODAY, window_days=10)
        assert sum(d.count for d in cal.days) == 1

    def test_unix_timestamp_key(self):
        cal = normalize_calendar({"1700000000": 3}, date(2023, 11, 20), window_days=10)
        day = next(d for d in cal.days if d.count)
        assert day.date == date(2023, 11, 14)
        assert day.count == 3

    def test_mixed_keys_sum_into_one_day(self):
        same_day = date(2026, 1, 8)
        raw = {"2026-01-08": 2, str(_ts(same_day) + 3600): 5}
        cal = normalize_calendar(raw, TODAY, window_days=5)
        assert [d.count for d in cal.days if d.date == same_day] == [7]
        assert sum(d.count for d in cal.days) == 7

    def test_records_shape(self):
        records = [{"date": "2026-01-09", "count": 4}, {"date": "2026-01-10", "count": 1}]
        cal = normalize_calendar(records, TODAY, window_days=3)
        assert [d.count for d in cal.days] == [0, 4, 1]

    def test_leetcode_json_string(self):
        raw = json.dumps({str(_ts(TODAY)): 2})
        cal = normalize_calendar(raw, TODAY, window_days=2)
        assert [d.count for d in cal.days] == [0, 2]

    def test_unparseable_keys_counted_and_warned(self):
        with pytest.warns(UnparseableKeyWarning) as record:
            cal = normalize_calendar({"bogus": 1, "nope": 2, "2026-01-10": 1}, TODAY, window_days=3)
        assert cal.skipped_keys == 2
        assert record[0].message.skipped == 2
        assert [d.count for d in cal.days] == [0, 0, 1]

    def test_no_warning_when_all_keys_parse(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            cal = normalize_calendar({"2026-01-10": 1}, TODAY, window_days=3)
        assert cal.skipped_keys == 0

    def test_negative_count_rejected(self):
        with pytest.raises(DataIntegrityError):
            normalize_calendar({"2026-01-10": -1}, TODAY, window_days=3)

    def test_non_integer_count_rejected(self):
        with pytest.raises(DataIntegrityError):
            normalize_calendar({"2026-01-10": "3"}, TODAY, window_days=3)

    def test_bool_count_rejected(self):
        with pytest.raises(DataIntegrityError):
            normalize_calendar({"2026-01-10": True}, TODAY, window_days=3)

    def test_none_raw_is_all_zero(self):
        cal = normalize_calendar(None, TODAY, window_days=7)
        assert len(cal.days) == 7
        assert all(d.count == 0 for d in cal.days)

    def test_bad_shape_raises(self):
        with pytest.raises(InputShapeError):
            normalize_calendar(3.5, TODAY, window_days=7)

    def test_zero_window_rejected(self):
        with pytest.raises(ValueError):
            normalize_calendar({}, TODAY, window_days=0)

    def test_reference_as_string(self):
        cal = normalize_calendar({}, "2026-01-10", window_days=1)
        assert cal.days[0].date == TODAY

    def test_idempotent_on_canonical_input(self):
        raw = {"2026-01-02": 1, str(_ts(date(2026, 1, 6))): 3, "2026-01-10": 2}
        first = normalize_calendar(raw, TODAY, window_days=30)
        second = normalize_calendar(calendar_from_days(first.days), TODAY, window_days=30)
        assert second.days == first.days

    def test_to_dict_is_plain(self):
        cal = normalize_calendar({"2026-01-10": 1}, TODAY, window_days=2)
        data = cal.to_dict()
        assert data["days"] == [{"date": "2026-01-09", "count": 0}, {"date": "2026-01-10", "count": 1}]
        json.dumps(data)
