"""Tests for streak derivation."""

from datetime import date, timedelta

import pytest

from edustat.errors import DataIntegrityError
from edustat.normalizer import CanonicalDay, normalize_calendar
from edustat.streaks import (
    StreakResult,
    calculate_streaks,
    current_streak,
    is_active_today,
    last_active_date,
    longest_streak,
    streak_ending_at,
    total_activity,
)

TODAY = date(2026, 1, 31)


def _days(counts: list[int], end: date = TODAY) -> list[CanonicalDay]:
    """Canonical sequence ending at `end` with the given counts, oldest first."""
    start = end - timedelta(days=len(counts) - 1)
    return [CanonicalDay(date=start + timedelta(days=i), count=c) for i, c in enumerate(counts)]


def _active(*offsets: int, window: int = 30) -> list[CanonicalDay]:
    """Window of `window` days with activity `offsets` days before TODAY."""
    raw = {(TODAY - timedelta(days=o)).isoformat(): 1 for o in offsets}
    return normalize_calendar(raw, TODAY, window_days=window).days


class TestLongestStreak:
    def test_empty(self):
        assert longest_streak([]) == 0

    def test_all_zero(self):
        assert longest_streak(_days([0, 0, 0])) == 0

    def test_single_run(self):
        assert longest_streak(_days([0, 1, 2, 3, 0])) == 3

    def test_picks_maximum_run(self):
        assert longest_streak(_days([1, 1, 0, 1, 1, 1, 1, 0, 1])) == 4

    def test_run_at_end(self):
        assert longest_streak(_days([0, 1, 1])) == 2


class TestStreakEndingAt:
    def test_counts_back_until_zero(self):
        days = _days([1, 0, 1, 1, 1])
        assert streak_ending_at(days, 4) == 3

    def test_zero_at_index(self):
        assert streak_ending_at(_days([1, 0]), 1) == 0

    def test_runs_to_start(self):
        assert streak_ending_at(_days([1, 1, 1]), 2) == 3


class TestCurrentStreak:
    def test_empty(self):
        assert current_streak([]) == 0

    def test_last_five_days_including_today(self):
        assert current_streak(_active(0, 1, 2, 3, 4)) == 5

    def test_yesterday_only_is_grace(self):
        assert current_streak(_active(1)) == 1

    def test_two_days_ago_only_is_broken(self):
        assert current_streak(_active(2)) == 0

    def test_grace_day_run(self):
        # Today empty, the three days before active
        assert current_streak(_active(1, 2, 3)) == 3

    def test_gap_ends_streak(self):
        assert current_streak(_active(0, 1, 3, 4, 5)) == 2

    def test_single_day_window(self):
        assert current_streak(_days([4])) == 1
        assert current_streak(_days([0])) == 0


class TestCalculateStreaks:
    def test_empty_sequence(self):
        assert calculate_streaks([]) == StreakResult(0, 0, 0)

    def test_all_zero_window(self):
        days = normalize_calendar({}, TODAY, window_days=10).days
        assert calculate_streaks(days) == StreakResult(0, 0, 0)

    def test_five_day_streak(self):
        result = calculate_streaks(_active(0, 1, 2, 3, 4))
        assert result.current_streak == 5
        assert result.longest_streak == 5
        assert result.total_activity == 5

    def test_historical_longest_with_short_current(self):
        historical = range(10, 20)  # a 10-day run ending 10 days ago
        days = _active(0, 1, *historical)
        result = calculate_streaks(days)
        assert result.longest_streak == 10
        assert result.current_streak == 2
        assert result.longest_streak >= result.current_streak

    def test_total_sums_counts(self):
        result = calculate_streaks(_days([3, 0, 7, 2]))
        assert result.total_activity == 12

    def test_current_never_exceeds_longest(self):
        patterns = [
            [1] * 7,
            [0, 1, 1, 1, 0],
            [1, 1, 0, 1, 0, 1, 1, 1],
            [1, 0, 0, 1],
            [0] * 6 + [1],
            [1, 1, 1, 1, 0, 0],
        ]
        for counts in patterns:
            result = calculate_streaks(_days(counts))
            assert result.current_streak <= result.longest_streak, counts

    def test_negative_count_raises(self):
        with pytest.raises(DataIntegrityError):
            calculate_streaks(_days([1, -2, 1]))

    def test_non_integer_count_raises(self):
        with pytest.raises(DataIntegrityError):
            calculate_streaks(_days([1, 1.5, 1]))

    def test_to_dict_keys(self):
        assert StreakResult(2, 10, 40).to_dict() == {
            "currentStreak": 2,
            "longestStreak": 10,
            "totalActivity": 40,
        }


class TestActivityHelpers:
    def test_total_activity(self):
        assert total_activity(_days([1, 2, 3])) == 6

    def test_last_active_date(self):
        assert last_active_date(_active(3, 7)) == TODAY - timedelta(days=3)

    def test_last_active_date_none(self):
        assert last_active_date(_days([0, 0])) is None

    def test_is_active_today(self):
        assert is_active_today(_active(0)) is True
        assert is_active_today(_active(1)) is False
        assert is_active_today([]) is False
