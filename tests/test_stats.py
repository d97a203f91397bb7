"""Tests for the streak & rate engine."""

from datetime import date, timedelta

import pytest

from habitflow.dates import to_key
from habitflow.models import Frequency, Habit
from habitflow.stats import (
    completion_rate,
    current_streak,
    longest_run,
    longest_streak,
    percent,
    target_achievement,
)

TODAY = date(2026, 3, 18)  # a Wednesday


def _days_ago(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=n) for n in offsets]


def _habit(days=(), frequency: Frequency | None = None) -> Habit:
    return Habit(
        id="h1",
        name="Read",
        created_at=date(2025, 1, 1),
        frequency=frequency or Frequency(),
        logs={to_key(d): True for d in days},
    )


# ═══════════════════════════════════════════════════════════════════════════
# Empty logs
# ═══════════════════════════════════════════════════════════════════════════

class TestEmptyLog:
    def test_all_zero(self):
        h = _habit()
        assert current_streak(h, TODAY) == 0
        assert longest_streak(h) == 0
        assert completion_rate(h, 30, TODAY) == 0

    def test_target_achievement_zero(self):
        for freq in (Frequency("daily", 1), Frequency("weekly", 2), Frequency("monthly", 3)):
            result = target_achievement(_habit(frequency=freq), TODAY)
            assert result.rate == 0
            assert result.type == freq.type
            assert result.goal == freq.goal


# ═══════════════════════════════════════════════════════════════════════════
# Current streak
# ═══════════════════════════════════════════════════════════════════════════

class TestCurrentStreak:
    def test_today_and_yesterday_with_gap_before(self):
        h = _habit(_days_ago(0, 1, 3, 4, 5))
        assert current_streak(h, TODAY) == 2

    def test_grace_day_when_today_not_logged(self):
        h = _habit(_days_ago(1, 2))
        assert current_streak(h, TODAY) == 2

    def test_broken_when_today_and_yesterday_missing(self):
        h = _habit(_days_ago(*range(2, 40)))
        assert current_streak(h, TODAY) == 0

    def test_only_today(self):
        assert current_streak(_habit(_days_ago(0)), TODAY) == 1

    def test_long_run_through_yesterday(self):
        h = _habit(_days_ago(*range(1, 101)))
        assert current_streak(h, TODAY) == 100

    def test_future_logs_do_not_count(self):
        h = _habit([TODAY + timedelta(days=1)] + _days_ago(0))
        assert current_streak(h, TODAY) == 1


# ═══════════════════════════════════════════════════════════════════════════
# Longest streak
# ═══════════════════════════════════════════════════════════════════════════

class TestLongestStreak:
    def test_three_consecutive(self):
        d = date(2025, 6, 10)
        h = _habit([d, d + timedelta(days=1), d + timedelta(days=2)])
        assert longest_streak(h) == 3

    def test_picks_longest_run(self):
        h = _habit(_days_ago(0, 1, 10, 11, 12, 13, 20))
        assert longest_streak(h) == 4

    def test_single_day(self):
        assert longest_streak(_habit(_days_ago(50))) == 1

    def test_run_crosses_month_boundary(self):
        h = _habit([date(2026, 1, 30), date(2026, 1, 31), date(2026, 2, 1)])
        assert longest_streak(h) == 3

    def test_duplicate_day_is_ignored(self):
        d = date(2026, 1, 1)
        assert longest_run([d, d, d + timedelta(days=1)]) == 2

    def test_unsorted_log_keys(self):
        h = _habit(_days_ago(5, 0, 4, 1, 3))
        assert longest_streak(h) == 3

    @pytest.mark.parametrize("offsets", [
        (0, 1, 2),
        (1, 2, 3, 7, 8, 9, 10),
        (0, 5, 6, 7),
        (3, 4),
        (),
    ])
    def test_longest_at_least_current(self, offsets):
        h = _habit(_days_ago(*offsets))
        assert longest_streak(h) >= current_streak(h, TODAY)


# ═══════════════════════════════════════════════════════════════════════════
# Completion rate
# ═══════════════════════════════════════════════════════════════════════════

class TestCompletionRate:
    def test_every_day_is_100(self):
        for window in (7, 30, 90):
            h = _habit(_days_ago(*range(window)))
            assert completion_rate(h, window, TODAY) == 100

    def test_half(self):
        h = _habit(_days_ago(*range(0, 30, 2)))
        assert completion_rate(h, 30, TODAY) == 50

    def test_days_outside_window_ignored(self):
        h = _habit(_days_ago(30, 31, 45) + [TODAY + timedelta(days=1)])
        assert completion_rate(h, 30, TODAY) == 0

    def test_rounds_half_up(self):
        # 1/8 = 12.5%
        assert completion_rate(_habit(_days_ago(0)), 8, TODAY) == 13

    def test_no_grace_day(self):
        # A one-day window is just today; yesterday's log earns no grace
        assert completion_rate(_habit(_days_ago(1)), 1, TODAY) == 0

    def test_not_clipped_to_creation_date(self):
        h = _habit(_days_ago(0, 1, 2))
        h.created_at = TODAY - timedelta(days=2)
        assert completion_rate(h, 30, TODAY) == 10

    def test_zero_window(self):
        assert completion_rate(_habit(_days_ago(0)), 0, TODAY) == 0


class TestPercent:
    def test_basic(self):
        assert percent(1, 4) == 25
        assert percent(2, 3) == 67
        assert percent(1, 3) == 33

    def test_zero_denominator(self):
        assert percent(5, 0) == 0


# ═══════════════════════════════════════════════════════════════════════════
# Target achievement
# ═══════════════════════════════════════════════════════════════════════════

class TestTargetAchievement:
    def test_daily_uses_trailing_30_days(self):
        h = _habit(_days_ago(*range(15)) + _days_ago(40, 41))
        result = target_achievement(h, TODAY)
        assert result.rate == 50
        assert result.type == "daily"
        assert result.goal == 1

    def test_weekly_all_weeks_met(self):
        monday = TODAY - timedelta(days=TODAY.weekday())
        days = []
        for w in range(8):
            start = monday - timedelta(weeks=w)
            days += [start, start + timedelta(days=1), start + timedelta(days=2)]
        h = _habit(days, Frequency("weekly", 3))
        assert target_achievement(h, TODAY).rate == 100

    def test_weekly_half_of_weeks_met(self):
        monday = TODAY - timedelta(days=TODAY.weekday())
        days = []
        for w in range(4):
            start = monday - timedelta(weeks=w)
            days += [start, start + timedelta(days=1)]
        h = _habit(days, Frequency("weekly", 2))
        assert target_achievement(h, TODAY).rate == 50

    def test_weekly_ignores_weeks_before_window(self):
        monday = TODAY - timedelta(days=TODAY.weekday())
        old = monday - timedelta(weeks=8)
        h = _habit([old, old + timedelta(days=1)], Frequency("weekly", 1))
        assert target_achievement(h, TODAY).rate == 0

    def test_weekly_week_boundary_is_monday(self):
        # Sunday before this week's Monday belongs to last week
        monday = TODAY - timedelta(days=TODAY.weekday())
        sunday = monday - timedelta(days=1)
        h = _habit([sunday, monday], Frequency("weekly", 2))
        assert target_achievement(h, TODAY).rate == 0

    def test_monthly_half_of_months_met(self):
        days = [
            date(2026, 3, 1), date(2026, 3, 2),
            date(2026, 1, 10), date(2026, 1, 20),
            date(2025, 10, 5), date(2025, 10, 6),
            date(2025, 9, 1), date(2025, 9, 2),   # seventh month back, ignored
        ]
        h = _habit(days, Frequency("monthly", 2))
        result = target_achievement(h, TODAY)
        assert result.rate == 50
        assert result.type == "monthly"
        assert result.goal == 2

    def test_monthly_below_goal(self):
        h = _habit([date(2026, 3, 1)], Frequency("monthly", 2))
        assert target_achievement(h, TODAY).rate == 0
