"""Dashboard analytics — the numbers behind the charts, without the charts.

Each function returns plain dicts/lists ready for JSON. Archived habits are
included: they still carry history worth showing.
"""

import logging
from datetime import date, timedelta

from habitflow.config import COMPLETION_WINDOW_DAYS
from habitflow.dates import date_range, day_of_week, start_of_week, to_key, today as local_today
from habitflow.models import Habit
from habitflow.stats import completion_rate, longest_streak, percent

log = logging.getLogger(__name__)

_WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

# (minimum completions that day, intensity) — GitHub-style 0..4 scale
_HEATMAP_LEVELS = [(10, 4), (6, 3), (3, 2), (1, 1)]


def overview(habits: list[Habit], today: date | None = None) -> dict:
    """Headline numbers: total completions, average rate, active count, best streak."""
    today = today or local_today()
    total_rate = 0.0
    best = 0
    if habits:
        total_rate = sum(
            completion_rate(h, COMPLETION_WINDOW_DAYS, today) for h in habits
        ) / len(habits)
        best = max(longest_streak(h) for h in habits)

    return {
        "total_completions": sum(len(h.logs) for h in habits),
        "avg_success_rate": percent(total_rate, 100),
        "total_active": sum(1 for h in habits if not h.archived),
        "best_streak": best,
    }


def completions_on(habits: list[Habit], day: date) -> int:
    """How many habits were logged on `day`."""
    return sum(1 for h in habits if h.is_logged(day))


def daily_trend(habits: list[Habit], today: date | None = None,
                days: int = COMPLETION_WINDOW_DAYS) -> list[dict]:
    """Per-day completion counts for the last `days` days, oldest first."""
    today = today or local_today()
    start = today - timedelta(days=days - 1)
    return [
        {"date": to_key(d), "count": completions_on(habits, d)}
        for d in date_range(start, today)
    ]


def day_of_week_totals(habits: list[Habit]) -> list[dict]:
    """All-time completions per weekday, Monday first."""
    counts = [0] * 7
    for h in habits:
        for d in h.logged_dates():
            counts[day_of_week(d)] += 1
    order = [1, 2, 3, 4, 5, 6, 0]
    return [{"name": _WEEKDAY_NAMES[i], "value": counts[i]} for i in order]


def category_distribution(habits: list[Habit]) -> list[dict]:
    """Completions per category, largest first. Empty categories are omitted."""
    totals: dict[str, int] = {}
    for h in habits:
        if h.logs:
            totals[h.category] = totals.get(h.category, 0) + len(h.logs)
    return [
        {"name": name, "value": value}
        for name, value in sorted(totals.items(), key=lambda kv: kv[1], reverse=True)
    ]


def consistency_ranking(habits: list[Habit], today: date | None = None,
                        limit: int = 10) -> list[dict]:
    today = today or local_today()
    ranked = sorted(
        (
            {"habit_id": h.id, "name": h.name,
             "rate": completion_rate(h, COMPLETION_WINDOW_DAYS, today)}
            for h in habits
        ),
        key=lambda r: r["rate"],
        reverse=True,
    )
    return ranked[:limit]


def _intensity(count: int) -> int:
    for threshold, level in _HEATMAP_LEVELS:
        if count >= threshold:
            return level
    return 0


def heatmap(habits: list[Habit], today: date | None = None, weeks: int = 53) -> list[list[dict]]:
    """Year-long contribution grid: `weeks` columns of 7 Sunday-start days.

    Starts at the week containing today-364, so the last column may run
    past today; those cells are flagged future.
    """
    today = today or local_today()
    current = start_of_week(today - timedelta(days=364), monday=False)

    grid = []
    for _ in range(weeks):
        week = []
        for _ in range(7):
            count = completions_on(habits, current)
            week.append({
                "date": to_key(current),
                "count": count,
                "intensity": _intensity(count),
                "future": current > today,
            })
            current += timedelta(days=1)
        grid.append(week)
    return grid
