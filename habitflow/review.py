"""Monthly review — summarize last month and decide what to keep.

The review always looks at the calendar month before `now`. Only the
summary is computed here; storing the user's decisions goes through the
habit repository (upsert by period).
"""

import logging
import math
import uuid
from datetime import date, datetime

from habitflow.dates import (
    TZ, add_months, date_range, end_of_month, month_label, period_key, start_of_month,
    today as local_today,
)
from habitflow.models import Habit, HabitReviewStat, MonthlyReview, ReviewItem, ReviewSummary
from habitflow.stats import percent

log = logging.getLogger(__name__)

# Daily habits need this share of the month's days to count as on target
_DAILY_TARGET_RATE = 0.8
# Below this monthly rate a habit is flagged as declining
_DECLINING_RATE = 0.3


def previous_month(now: date | None = None) -> date:
    """First day of the month before `now`."""
    now = now or local_today()
    return add_months(start_of_month(now), -1)


def previous_month_period(now: date | None = None) -> str:
    return period_key(previous_month(now))


def _habit_stat(habit: Habit, days: list[date]) -> HabitReviewStat:
    logged = sum(1 for d in days if habit.is_logged(d))
    rate = logged / len(days)
    freq = habit.frequency

    if freq.type == "daily":
        target_met = rate >= _DAILY_TARGET_RATE
    elif freq.type == "weekly":
        weeks = math.ceil(len(days) / 7)
        target_met = logged / weeks >= freq.goal
    else:
        target_met = logged >= freq.goal

    return HabitReviewStat(habit=habit, rate=rate, target_met=target_met, logged_days=logged)


def generate_review_summary(habits: list[Habit], now: date | None = None) -> ReviewSummary:
    """Per-habit stats for last month plus the best/declining/missed picks.

    Habits that are archived or were created after the month ended are left
    out entirely.
    """
    month = previous_month(now)
    month_end = end_of_month(month)
    summary = ReviewSummary(
        period=period_key(month),
        period_label=month_label(month),
    )

    eligible = [h for h in habits if not h.archived and h.created_at <= month_end]
    if not eligible:
        return summary

    days = date_range(month, month_end)
    stats = [_habit_stat(h, days) for h in eligible]

    # max() returns the first maximal element, so ties go to the earlier habit
    best = max(stats, key=lambda s: s.rate)

    summary.best_habit = best.habit
    summary.declining_habits = [s.habit for s in stats if s.rate < _DECLINING_RATE]
    summary.missed_targets = [s.habit for s in stats if not s.target_met]
    summary.total_completion_rate = percent(sum(s.rate for s in stats), len(stats))
    summary.habit_stats = stats

    log.debug(
        "Review %s: %d habits, total=%d%%, best=%s",
        summary.period, len(stats), summary.total_completion_rate, best.habit.id,
    )
    return summary


def is_review_due(reviews: list[MonthlyReview], now: date | None = None) -> bool:
    """True when last month hasn't been reviewed yet."""
    period = previous_month_period(now)
    return not any(r.period == period for r in reviews)


def build_review(period: str, decisions: list[ReviewItem],
                 completed_at: datetime | None = None) -> MonthlyReview:
    """Wrap the user's per-habit decisions into a storable review record."""
    completed_at = completed_at or datetime.now(TZ)
    return MonthlyReview(
        id=uuid.uuid4().hex,
        period=period,
        completed_at=completed_at.isoformat(),
        items=list(decisions),
    )
