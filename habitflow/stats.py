"""Streak & rate engine — pure functions over a habit's completion log.

Zero I/O, no clock reads unless the caller omits the reference date. Every
function can be re-run on each render with identical results.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta

from habitflow.config import COMPLETION_WINDOW_DAYS
from habitflow.dates import (
    ONE_DAY, add_months, date_range, end_of_month, start_of_month,
    start_of_week, today as local_today,
)
from habitflow.models import Habit

log = logging.getLogger(__name__)

# Trailing periods evaluated by target_achievement()
_DAILY_TARGET_DAYS = 30
_WEEKLY_TARGET_WEEKS = 8
_MONTHLY_TARGET_MONTHS = 6


def percent(numerator: float, denominator: float) -> int:
    """100 * numerator / denominator, rounded half-up. 0 if denominator is 0."""
    if not denominator:
        return 0
    return int(math.floor(100 * numerator / denominator + 0.5))


def current_streak(habit: Habit, today: date | None = None) -> int:
    """Consecutive logged days ending today, or ending yesterday if today
    isn't logged yet (the day isn't over).

    Missing both today and yesterday means the streak is broken.
    """
    today = today or local_today()
    yesterday = today - ONE_DAY

    if not habit.is_logged(today) and not habit.is_logged(yesterday):
        return 0

    check = today if habit.is_logged(today) else yesterday
    streak = 0
    while habit.is_logged(check):
        streak += 1
        check -= ONE_DAY
    return streak


def longest_streak(habit: Habit) -> int:
    """Longest run of consecutive logged days anywhere in the history."""
    return longest_run(habit.logged_dates())


def longest_run(days: list[date]) -> int:
    """Longest consecutive run in an ascending list of days."""
    best = 0
    run = 0
    prev: date | None = None
    for d in days:
        if prev is None:
            run = 1
        else:
            gap = (d - prev).days
            if gap == 1:
                run += 1
            elif gap > 1:
                run = 1
            # gap == 0: duplicate day, leave the run alone
        best = max(best, run)
        prev = d
    return best


def count_logged(habit: Habit, start: date, end: date) -> int:
    """Logged days in [start, end], both inclusive."""
    return sum(1 for d in date_range(start, end) if habit.is_logged(d))


def completion_rate(habit: Habit, window_days: int = COMPLETION_WINDOW_DAYS,
                    today: date | None = None) -> int:
    """Percentage (0..100) of the last `window_days` days that were logged.

    The window ends today, inclusive, and is not clipped to the habit's
    creation date, so young habits score low until history fills in.
    """
    if window_days <= 0:
        return 0
    today = today or local_today()
    start = today - timedelta(days=window_days - 1)
    return percent(count_logged(habit, start, today), window_days)


@dataclass
class TargetAchievement:
    rate: int     # 0..100, share of periods that met the goal
    type: str
    goal: int

    def to_dict(self) -> dict:
        return {"rate": self.rate, "type": self.type, "goal": self.goal}


def target_achievement(habit: Habit, now: date | None = None) -> TargetAchievement:
    """How often the habit hit its frequency goal over recent periods.

    daily:   last 30 days, each logged day is a success
    weekly:  last 8 Monday-start weeks (current week included), success when
             the week has >= goal logged days
    monthly: last 6 calendar months (current month included), success when
             the month has >= goal logged days
    """
    now = now or local_today()
    freq = habit.frequency
    success = 0
    total = 0

    if freq.type == "daily":
        start = now - timedelta(days=_DAILY_TARGET_DAYS - 1)
        success = count_logged(habit, start, now)
        total = _DAILY_TARGET_DAYS

    elif freq.type == "weekly":
        current_week = start_of_week(now)
        for i in range(_WEEKLY_TARGET_WEEKS - 1, -1, -1):
            week_start = current_week - timedelta(weeks=i)
            week_end = week_start + timedelta(days=6)
            if count_logged(habit, week_start, week_end) >= freq.goal:
                success += 1
            total += 1

    elif freq.type == "monthly":
        current_month = start_of_month(now)
        for i in range(_MONTHLY_TARGET_MONTHS - 1, -1, -1):
            month_start = add_months(current_month, -i)
            if count_logged(habit, month_start, end_of_month(month_start)) >= freq.goal:
                success += 1
            total += 1

    log.debug("Target achievement %s: %d/%d (%s)", habit.id, success, total, freq.type)
    return TargetAchievement(
        rate=percent(success, total) if total > 0 else 0,
        type=freq.type,
        goal=freq.goal,
    )
