"""Data model — habits, insights and monthly reviews.

Habits arrive from collaborators (storage, UI) as plain dicts. from_dict()
is the single normalization point: defaults are filled in here so the
engines never have to second-guess their input.
"""

from dataclasses import dataclass, field
from datetime import date

from habitflow.dates import as_date, parse_key, to_key, today as local_today


FREQUENCY_TYPES = ("daily", "weekly", "monthly")
INSIGHT_TYPES = ("warning", "success", "neutral", "tip")
REVIEW_DECISIONS = ("keep", "modify", "drop")

DEFAULT_CATEGORY = "General"
DEFAULT_COLOR = "#6366f1"


@dataclass
class Frequency:
    """How often a habit should happen: `goal` completions per `type` period."""
    type: str = "daily"
    goal: int = 1

    def __post_init__(self) -> None:
        if self.type not in FREQUENCY_TYPES:
            raise ValueError(
                f"Unknown frequency type: {self.type!r}. "
                f"Supported: {', '.join(FREQUENCY_TYPES)}"
            )
        if self.goal < 1:
            raise ValueError(f"Frequency goal must be positive, got {self.goal}")

    def to_dict(self) -> dict:
        return {"type": self.type, "goal": self.goal}


@dataclass
class Habit:
    """A user-defined recurring action and its completion log.

    logs maps YYYY-MM-DD -> True. Key presence means "done that day";
    un-marking a day removes the key.
    """
    id: str
    name: str
    category: str = DEFAULT_CATEGORY
    color: str = DEFAULT_COLOR
    created_at: date = field(default_factory=local_today)
    frequency: Frequency = field(default_factory=Frequency)
    archived: bool = False
    logs: dict[str, bool] = field(default_factory=dict)
    description: str = ""
    icon: str = ""
    reminder_time: str = ""  # "HH:MM", only used by notification collaborators

    def is_logged(self, day: date) -> bool:
        return to_key(day) in self.logs

    def toggle(self, day: date) -> bool:
        """Flip the completion for `day`. Returns the new state."""
        key = to_key(day)
        if key in self.logs:
            del self.logs[key]
            return False
        self.logs[key] = True
        return True

    def logged_dates(self) -> list[date]:
        """All logged days, ascending."""
        return sorted(parse_key(k) for k in self.logs)

    @classmethod
    def from_dict(cls, raw: dict) -> "Habit":
        """Build a Habit from a stored/imported record, filling defaults.

        Raises ValueError for an unknown frequency type, a non-positive goal
        or a log key that is not a calendar date.
        """
        freq_raw = raw.get("frequency") or {"type": "daily", "goal": 1}
        frequency = Frequency(
            type=freq_raw.get("type", "daily"),
            goal=int(freq_raw.get("goal", 1)),
        )

        logs_raw = raw.get("logs")
        if not isinstance(logs_raw, dict):
            logs_raw = {}
        logs = {}
        for key, done in logs_raw.items():
            if not done:
                continue
            # Re-key through date parsing so "2026-3-1"-style keys fail loudly
            logs[to_key(parse_key(key))] = True

        archived = raw.get("archived")
        created = raw.get("created_at") or raw.get("createdAt")

        return cls(
            id=str(raw["id"]),
            name=raw["name"],
            category=raw.get("category") or DEFAULT_CATEGORY,
            color=raw.get("color") or DEFAULT_COLOR,
            created_at=as_date(created) if created else local_today(),
            frequency=frequency,
            archived=archived if isinstance(archived, bool) else False,
            logs=logs,
            description=raw.get("description") or "",
            icon=raw.get("icon") or "",
            reminder_time=raw.get("reminder_time") or raw.get("reminderTime") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "color": self.color,
            "icon": self.icon,
            "frequency": self.frequency.to_dict(),
            "reminder_time": self.reminder_time,
            "created_at": to_key(self.created_at),
            "archived": self.archived,
            "logs": dict(sorted(self.logs.items())),
        }


def active_habits(habits: list[Habit]) -> list[Habit]:
    return [h for h in habits if not h.archived]


@dataclass
class Insight:
    """A human-readable observation. score only orders insights."""
    id: str
    type: str
    title: str
    description: str
    score: int = 0
    habit_id: str | None = None

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "score": self.score,
        }
        if self.habit_id is not None:
            d["habit_id"] = self.habit_id
        return d


@dataclass
class ReviewItem:
    habit_id: str
    decision: str = "keep"
    notes: str = ""

    def __post_init__(self) -> None:
        if self.decision not in REVIEW_DECISIONS:
            raise ValueError(f"Unknown review decision: {self.decision!r}")


@dataclass
class MonthlyReview:
    """A completed review for one YYYY-MM period. One per period."""
    id: str
    period: str
    completed_at: str
    items: list[ReviewItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "period": self.period,
            "completed_at": self.completed_at,
            "items": [
                {"habit_id": i.habit_id, "decision": i.decision, "notes": i.notes}
                for i in self.items
            ],
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "MonthlyReview":
        return cls(
            id=str(raw.get("id") or raw["period"]),
            period=raw["period"],
            completed_at=raw.get("completed_at") or raw.get("completedAt") or "",
            items=[
                ReviewItem(
                    habit_id=str(i.get("habit_id") or i.get("habitId")),
                    decision=i.get("decision", "keep"),
                    notes=i.get("notes") or "",
                )
                for i in raw.get("items", [])
            ],
        )


@dataclass
class HabitReviewStat:
    habit: Habit
    rate: float          # 0..1, logged days / days in month
    target_met: bool
    logged_days: int


@dataclass
class ReviewSummary:
    period: str
    period_label: str
    best_habit: Habit | None = None
    declining_habits: list[Habit] = field(default_factory=list)
    missed_targets: list[Habit] = field(default_factory=list)
    total_completion_rate: int = 0
    habit_stats: list[HabitReviewStat] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "period_label": self.period_label,
            "best_habit": self.best_habit.id if self.best_habit else None,
            "declining_habits": [h.id for h in self.declining_habits],
            "missed_targets": [h.id for h in self.missed_targets],
            "total_completion_rate": self.total_completion_rate,
            "habits": [
                {
                    "habit_id": s.habit.id,
                    "rate": round(s.rate, 4),
                    "target_met": s.target_met,
                    "logged_days": s.logged_days,
                }
                for s in self.habit_stats
            ],
        }
