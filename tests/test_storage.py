"""Tests for the habit repositories."""

from datetime import date

import pytest

from habitflow.models import Frequency, Habit, MonthlyReview, ReviewItem
from habitflow.storage import (
    InMemoryHabitRepository,
    SQLiteHabitRepository,
    UnknownHabitError,
    toggle_log,
)


def _habits() -> list[Habit]:
    return [
        Habit(
            id="run",
            name="Morning run",
            category="Health",
            color="#10b981",
            created_at=date(2026, 1, 5),
            frequency=Frequency("weekly", 3),
            logs={"2026-03-01": True, "2026-03-03": True},
            description="5k around the park",
            icon="🏃",
            reminder_time="07:00",
        ),
        Habit(id="read", name="Read", created_at=date(2026, 2, 1), archived=True),
    ]


@pytest.fixture(params=["sqlite", "memory"])
def repo(request, tmp_path):
    """Each test runs against both implementations."""
    if request.param == "sqlite":
        return SQLiteHabitRepository(tmp_path / "test.db")
    return InMemoryHabitRepository()


class TestHabits:
    def test_empty(self, repo):
        assert repo.load_habits() == []

    def test_round_trip(self, repo):
        repo.save_habits(_habits())
        loaded = repo.load_habits()
        assert loaded == _habits()

    def test_order_preserved(self, repo):
        habits = list(reversed(_habits()))
        repo.save_habits(habits)
        assert [h.id for h in repo.load_habits()] == ["read", "run"]

    def test_save_replaces_collection(self, repo):
        repo.save_habits(_habits())
        repo.save_habits(_habits()[:1])
        loaded = repo.load_habits()
        assert [h.id for h in loaded] == ["run"]

    def test_loaded_habits_are_copies(self, repo):
        repo.save_habits(_habits())
        loaded = repo.load_habits()
        loaded[0].logs["2026-03-10"] = True
        assert "2026-03-10" not in repo.load_habits()[0].logs

    def test_clear(self, repo):
        repo.save_habits(_habits())
        repo.save_review(MonthlyReview(id="r1", period="2026-02", completed_at="x"))
        repo.clear()
        assert repo.load_habits() == []
        assert repo.get_reviews() == []


class TestToggleLog:
    def test_toggle_on_then_off(self, repo):
        repo.save_habits(_habits())
        day = date(2026, 3, 5)

        assert toggle_log(repo, "run", day) is True
        assert "2026-03-05" in repo.load_habits()[0].logs

        assert toggle_log(repo, "run", day) is False
        assert "2026-03-05" not in repo.load_habits()[0].logs

    def test_untoggle_existing(self, repo):
        repo.save_habits(_habits())
        assert toggle_log(repo, "run", date(2026, 3, 1)) is False
        assert repo.load_habits()[0].logs == {"2026-03-03": True}

    def test_other_habits_untouched(self, repo):
        repo.save_habits(_habits())
        toggle_log(repo, "run", date(2026, 3, 5))
        assert repo.load_habits()[1].logs == {}

    def test_unknown_habit(self, repo):
        repo.save_habits(_habits())
        with pytest.raises(KeyError):
            toggle_log(repo, "nope", date(2026, 3, 5))


class TestReviews:
    def test_save_and_get(self, repo):
        review = MonthlyReview(
            id="r1", period="2026-02", completed_at="2026-03-01T09:00:00+00:00",
            items=[ReviewItem("run", "keep"), ReviewItem("read", "drop", "no time")],
        )
        repo.save_review(review)
        assert repo.get_reviews() == [review]

    def test_newest_first(self, repo):
        for period in ("2025-12", "2026-02", "2026-01"):
            repo.save_review(MonthlyReview(id=period, period=period, completed_at="x"))
        assert [r.period for r in repo.get_reviews()] == ["2026-02", "2026-01", "2025-12"]

    def test_upsert_by_period(self, repo):
        repo.save_review(MonthlyReview(id="r1", period="2026-02", completed_at="a",
                                       items=[ReviewItem("run", "keep")]))
        repo.save_review(MonthlyReview(id="r2", period="2026-02", completed_at="b",
                                       items=[ReviewItem("run", "modify", "2x/week")]))
        reviews = repo.get_reviews()
        assert len(reviews) == 1
        assert reviews[0].id == "r2"
        assert reviews[0].items[0].decision == "modify"
        assert reviews[0].items[0].notes == "2x/week"


class TestSQLite:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "habits.db"
        SQLiteHabitRepository(path).save_habits(_habits())
        assert SQLiteHabitRepository(path).load_habits() == _habits()

    def test_default_path_from_config(self, tmp_path, monkeypatch):
        import habitflow.storage as storage_module
        monkeypatch.setattr(storage_module, "DB_PATH", tmp_path / "default.db")
        repo = SQLiteHabitRepository()
        repo.save_habits(_habits())
        assert (tmp_path / "default.db").exists()


class TestInMemory:
    def test_initial_habits_copied(self):
        habits = _habits()
        repo = InMemoryHabitRepository(habits)
        habits[0].name = "changed"
        assert repo.load_habits()[0].name == "Morning run"


class TestUnknownHabitError:
    def test_is_a_key_error(self):
        repo = InMemoryHabitRepository(_habits())
        with pytest.raises(UnknownHabitError) as exc:
            toggle_log(repo, "nope", date(2026, 3, 5))
        assert isinstance(exc.value, KeyError)
        assert exc.value.args == ("nope",)
