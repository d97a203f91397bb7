"""Insight heuristics — rule-based observations over the last 4 weeks.

Zero LLM calls. Aggregates completions per day-of-week across all active
habits and flags patterns:
  - "Weekdays strong, weekends weak"  → weekend drop
  - "Tue–Thu beats Mon/Fri"           → mid-week peak
  - "Done often, never twice in a row" → inconsistent habit
  - "Barely done at all"               → struggling habit
  - "Weekdays near-perfect"            → positive reinforcement

Each rule is evaluated independently; output is ordered by score.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta

from habitflow.config import INSIGHT_DISPLAY_LIMIT, INSIGHT_WINDOW_DAYS
from habitflow.dates import date_range, day_of_week, today as local_today
from habitflow.models import Habit, Insight, active_habits
from habitflow.stats import longest_run, percent

log = logging.getLogger(__name__)

SUNDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY = range(7)

# Weekend drop: weekdays at least this active, and this far ahead of weekends
_WEEKEND_MIN_WEEKDAY_RATE = 0.15
_WEEKEND_MIN_GAP = 0.15

# Mid-week peak: Tue–Thu at least this active, and this far ahead of Mon/Fri
_MIDWEEK_MIN_RATE = 0.2
_MIDWEEK_MIN_GAP = 0.12

# Inconsistent: moderate rate but streaks never get going
_INCONSISTENT_MIN_RATE = 0.35
_INCONSISTENT_MAX_RATE = 0.75
_INCONSISTENT_MAX_STREAK = 2

# Struggling: done at least once, but rarely
_STRUGGLING_MAX_RATE = 0.2

_WEEKDAY_WARRIOR_RATE = 0.8

SCORE_INCONSISTENT = 90
SCORE_STRUGGLING = 88
SCORE_WEEKEND_DROP = 85
SCORE_MIDWEEK_PEAK = 70
SCORE_WEEKDAY_WARRIOR = 55


@dataclass
class WeekdayRates:
    """Fraction of possible completions achieved, per weekday (0=Sunday)."""
    by_day: list[float]
    weekday: float   # Mon–Fri
    weekend: float   # Sat, Sun
    midweek: float   # Tue–Thu
    edges: float     # Mon, Fri


def _window(today: date, period_days: int) -> tuple[date, date]:
    return today - timedelta(days=period_days - 1), today


def _in_window_dates(habit: Habit, start: date, end: date) -> list[date]:
    return [d for d in habit.logged_dates() if start <= d <= end]


def weekday_rates(habits: list[Habit], today: date | None = None,
                  period_days: int = INSIGHT_WINDOW_DAYS) -> WeekdayRates:
    """Per-weekday completion rates for the active habits over the window."""
    today = today or local_today()
    active = active_habits(habits)
    start, end = _window(today, max(1, period_days))

    # Windows that aren't a multiple of 7 see some weekdays more often
    day_counts = [0] * 7
    for d in date_range(start, end):
        day_counts[day_of_week(d)] += 1

    completion_counts = [0] * 7
    for habit in active:
        for d in _in_window_dates(habit, start, end):
            completion_counts[day_of_week(d)] += 1

    by_day = [
        completion_counts[dow] / max(1, day_counts[dow] * len(active))
        for dow in range(7)
    ]

    def mean(days: tuple[int, ...]) -> float:
        return sum(by_day[d] for d in days) / len(days)

    return WeekdayRates(
        by_day=by_day,
        weekday=mean((MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY)),
        weekend=mean((SUNDAY, SATURDAY)),
        midweek=mean((TUESDAY, WEDNESDAY, THURSDAY)),
        edges=mean((MONDAY, FRIDAY)),
    )


def generate_insights(habits: list[Habit], today: date | None = None,
                      period_days: int = INSIGHT_WINDOW_DAYS) -> list[Insight]:
    """Run every heuristic and return insights sorted by score, highest first.

    Ties keep rule order. Same habits + same `today` → same output.
    """
    today = today or local_today()
    period_days = max(1, period_days)
    active = active_habits(habits)
    if not active:
        return []

    insights: list[Insight] = []
    rates = weekday_rates(active, today, period_days)
    start, end = _window(today, period_days)

    # 1. Weekend drop
    if (rates.weekday >= _WEEKEND_MIN_WEEKDAY_RATE
            and rates.weekday - rates.weekend >= _WEEKEND_MIN_GAP):
        insights.append(Insight(
            id="weekend-drop",
            type="warning",
            title="Weekend drops are hurting momentum",
            description=(
                f"Your completion rate is about {percent(rates.weekday, 1)}% on weekdays "
                f"vs {percent(rates.weekend, 1)}% on weekends. "
                f"Try a lighter “minimum version” for Sat/Sun."
            ),
            score=SCORE_WEEKEND_DROP,
        ))

    # 2. Mid-week peak
    if (rates.midweek >= _MIDWEEK_MIN_RATE
            and rates.midweek - rates.edges >= _MIDWEEK_MIN_GAP):
        insights.append(Insight(
            id="midweek-peak",
            type="success",
            title="Mid-week is your peak window",
            description=(
                f"Tue–Thu runs hotter ({percent(rates.midweek, 1)}%) than Mon/Fri "
                f"({percent(rates.edges, 1)}%). Schedule harder habits mid-week "
                f"and keep Mon/Fri simple."
            ),
            score=SCORE_MIDWEEK_PEAK,
        ))

    # Per-habit numbers shared by rules 3 and 4
    per_habit = []
    for habit in active:
        days = _in_window_dates(habit, start, end)
        per_habit.append((habit, len(days) / period_days, longest_run(days)))

    # 3. Inconsistent habit — only the best-performing candidate
    inconsistent = sorted(
        (
            (habit, rate)
            for habit, rate, streak in per_habit
            if _INCONSISTENT_MIN_RATE <= rate <= _INCONSISTENT_MAX_RATE
            and streak <= _INCONSISTENT_MAX_STREAK
        ),
        key=lambda x: x[1],
        reverse=True,
    )
    if inconsistent:
        habit, rate = inconsistent[0]
        insights.append(Insight(
            id=f"inconsistent-{habit.id}",
            type="tip",
            title=f"Make “{habit.name}” easier to repeat",
            description=(
                f"You’re doing it sometimes ({percent(rate, 1)}%), but streaks stay short. "
                f"Pick a daily trigger (same time/place) or shrink the task to keep "
                f"streaks going."
            ),
            habit_id=habit.id,
            score=SCORE_INCONSISTENT,
        ))

    # 4. Struggling habit — first match wins
    struggling = next(
        (habit for habit, rate, _ in per_habit if 0 < rate < _STRUGGLING_MAX_RATE),
        None,
    )
    if struggling is not None:
        insights.append(Insight(
            id=f"struggle-{struggling.id}",
            type="warning",
            title=f"Trouble with “{struggling.name}”",
            description=(
                "This habit is under 20% lately. Try reducing the scope (2-minute "
                "version), or set a fixed time window to make it automatic."
            ),
            habit_id=struggling.id,
            score=SCORE_STRUGGLING,
        ))

    # 5. Positive reinforcement
    if rates.weekday >= _WEEKDAY_WARRIOR_RATE:
        insights.append(Insight(
            id="weekday-warrior",
            type="success",
            title="Weekday consistency is strong",
            description=(
                "Weekdays are consistently high. Protect that routine and keep "
                "weekends intentionally lighter."
            ),
            score=SCORE_WEEKDAY_WARRIOR,
        ))

    log.debug("Generated %d insights for %d active habits", len(insights), len(active))
    return sorted(insights, key=lambda i: i.score, reverse=True)


def select_insights(insights: list[Insight], dismissed: set[str] | None = None,
                    limit: int = INSIGHT_DISPLAY_LIMIT) -> list[Insight]:
    """Top `limit` insights the user hasn't dismissed."""
    dismissed = dismissed or set()
    return [i for i in insights if i.id not in dismissed][:limit]
