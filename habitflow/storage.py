"""Habit repository — persistent storage for habits, logs and reviews.

The engines never touch storage; callers load habits through a
HabitRepository and pass them in. Two implementations:
  - SQLiteHabitRepository: local file, tables created on first use
  - InMemoryHabitRepository: dict-backed, for tests and embedding
"""

import copy
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path

from habitflow.config import DB_PATH
from habitflow.dates import to_key, today as local_today
from habitflow.models import Habit, MonthlyReview

log = logging.getLogger(__name__)


class UnknownHabitError(KeyError):
    """No habit in the repository has the requested id."""


class HabitRepository(ABC):
    """Load/save contract for the habit collection and review history."""

    @abstractmethod
    def load_habits(self) -> list[Habit]:
        ...

    @abstractmethod
    def save_habits(self, habits: list[Habit]) -> None:
        """Replace the stored collection with `habits`."""
        ...

    @abstractmethod
    def get_reviews(self) -> list[MonthlyReview]:
        """All saved reviews, newest period first."""
        ...

    @abstractmethod
    def save_review(self, review: MonthlyReview) -> None:
        """Insert, or overwrite the review already stored for review.period."""
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class InMemoryHabitRepository(HabitRepository):

    def __init__(self, habits: list[Habit] | None = None) -> None:
        self._habits: list[Habit] = copy.deepcopy(habits or [])
        self._reviews: dict[str, MonthlyReview] = {}

    def load_habits(self) -> list[Habit]:
        return copy.deepcopy(self._habits)

    def save_habits(self, habits: list[Habit]) -> None:
        self._habits = copy.deepcopy(habits)

    def get_reviews(self) -> list[MonthlyReview]:
        return [self._reviews[p] for p in sorted(self._reviews, reverse=True)]

    def save_review(self, review: MonthlyReview) -> None:
        self._reviews[review.period] = copy.deepcopy(review)

    def clear(self) -> None:
        self._habits = []
        self._reviews = {}


class SQLiteHabitRepository(HabitRepository):
    """SQLite-backed repository. One connection per operation."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path) if db_path else DB_PATH
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        """Return a connection with row_factory set."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        if not self._initialized:
            self._init_schema(conn)
            self._initialized = True
        return conn

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        """Create tables if they don't exist."""
        conn.executescript("""
            -- Habits (defined by user)
            CREATE TABLE IF NOT EXISTS habits (
                id            TEXT    PRIMARY KEY,
                position      INTEGER NOT NULL DEFAULT 0,
                name          TEXT    NOT NULL,
                description   TEXT    NOT NULL DEFAULT '',
                category      TEXT    NOT NULL DEFAULT 'General',
                color         TEXT    NOT NULL DEFAULT '',
                icon          TEXT    NOT NULL DEFAULT '',
                freq_type     TEXT    NOT NULL DEFAULT 'daily',
                freq_goal     INTEGER NOT NULL DEFAULT 1,
                reminder_time TEXT    NOT NULL DEFAULT '',
                archived      INTEGER NOT NULL DEFAULT 0,
                created_at    TEXT    NOT NULL
            );

            -- Habit log entries (one row per completed day)
            CREATE TABLE IF NOT EXISTS habit_logs (
                habit_id TEXT NOT NULL REFERENCES habits(id) ON DELETE CASCADE,
                day      TEXT NOT NULL,
                PRIMARY KEY (habit_id, day)
            );

            -- Monthly reviews (one per YYYY-MM period)
            CREATE TABLE IF NOT EXISTS reviews (
                period       TEXT PRIMARY KEY,
                id           TEXT NOT NULL,
                completed_at TEXT NOT NULL,
                items        TEXT NOT NULL DEFAULT '[]'
            );
        """)
        log.info("Database initialized at %s", self.db_path)

    # ═══════════════════════════════════════════════════════════════════════
    # Habits
    # ═══════════════════════════════════════════════════════════════════════

    def load_habits(self) -> list[Habit]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT * FROM habits ORDER BY position, id").fetchall()
            logs: dict[str, dict[str, bool]] = {}
            for r in conn.execute("SELECT habit_id, day FROM habit_logs ORDER BY day"):
                logs.setdefault(r["habit_id"], {})[r["day"]] = True
        finally:
            conn.close()

        return [
            Habit.from_dict({
                "id": r["id"],
                "name": r["name"],
                "description": r["description"],
                "category": r["category"],
                "color": r["color"],
                "icon": r["icon"],
                "frequency": {"type": r["freq_type"], "goal": r["freq_goal"]},
                "reminder_time": r["reminder_time"],
                "archived": bool(r["archived"]),
                "created_at": r["created_at"],
                "logs": logs.get(r["id"], {}),
            })
            for r in rows
        ]

    def save_habits(self, habits: list[Habit]) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM habit_logs")
                conn.execute("DELETE FROM habits")
                for position, h in enumerate(habits):
                    conn.execute(
                        """INSERT INTO habits (id, position, name, description, category, color,
                           icon, freq_type, freq_goal, reminder_time, archived, created_at)
                           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        (h.id, position, h.name, h.description, h.category, h.color,
                         h.icon, h.frequency.type, h.frequency.goal, h.reminder_time,
                         int(h.archived), to_key(h.created_at)),
                    )
                    conn.executemany(
                        "INSERT INTO habit_logs (habit_id, day) VALUES (?, ?)",
                        [(h.id, day) for day in h.logs],
                    )
        finally:
            conn.close()
        log.debug("Saved %d habits", len(habits))

    # ═══════════════════════════════════════════════════════════════════════
    # Reviews
    # ═══════════════════════════════════════════════════════════════════════

    def get_reviews(self) -> list[MonthlyReview]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT period, id, completed_at, items FROM reviews ORDER BY period DESC"
            ).fetchall()
        finally:
            conn.close()
        return [
            MonthlyReview.from_dict({
                "period": r["period"],
                "id": r["id"],
                "completed_at": r["completed_at"],
                "items": json.loads(r["items"]),
            })
            for r in rows
        ]

    def save_review(self, review: MonthlyReview) -> None:
        items = json.dumps(review.to_dict()["items"], ensure_ascii=False)
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    """INSERT INTO reviews (period, id, completed_at, items) VALUES (?, ?, ?, ?)
                       ON CONFLICT(period) DO UPDATE SET id = excluded.id,
                           completed_at = excluded.completed_at, items = excluded.items""",
                    (review.period, review.id, review.completed_at, items),
                )
        finally:
            conn.close()
        log.info("Saved review for %s (%d decisions)", review.period, len(review.items))

    def clear(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM habit_logs")
                conn.execute("DELETE FROM habits")
                conn.execute("DELETE FROM reviews")
        finally:
            conn.close()
        log.info("Cleared all habit data at %s", self.db_path)


def toggle_log(repo: HabitRepository, habit_id: str, day: date | None = None) -> bool:
    """Flip one habit's completion for `day` and persist. Returns the new state.

    Raises UnknownHabitError (a KeyError) if no habit has `habit_id`.
    """
    day = day or local_today()
    habits = repo.load_habits()
    habit = next((h for h in habits if h.id == habit_id), None)
    if habit is None:
        raise UnknownHabitError(habit_id)
    done = habit.toggle(day)
    repo.save_habits(habits)
    log.debug("Toggled %s on %s -> %s", habit_id, to_key(day), done)
    return done
