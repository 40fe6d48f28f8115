"""
Tests for the event store: habits, completions (streak updates) and moods.
"""
from __future__ import annotations

import threading

import pytest
from datetime import date, timedelta

from mindtrack.core.errors import (
    AlreadyCompletedError,
    ConcurrentUpdateError,
    ForbiddenError,
    InvalidArgumentError,
    NotFoundError,
)
from mindtrack.models.completion import Completion
from mindtrack.services import store

D = date(2024, 1, 1)


def _days(n: int) -> date:
    return D + timedelta(days=n)


def _in_threads(session_factory, *jobs):
    """
    Run each `job(session)` in its own thread with its own session.
    Returns one `(outcome, value)` per job, in job order; outcome is "ok"
    or the name of the exception raised.
    """
    outcomes = [None] * len(jobs)

    def run(i, job):
        session = session_factory()
        try:
            outcomes[i] = ("ok", job(session))
        except Exception as exc:
            outcomes[i] = (type(exc).__name__, exc)
        finally:
            session.close()

    threads = [threading.Thread(target=run, args=(i, job)) for i, job in enumerate(jobs)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------

class TestHabits:
    def test_create_habit_defaults(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        assert habit.id > 0
        assert habit.streak == 0
        assert habit.last_completed is None

    def test_create_habit_strips_whitespace(self, db, user_id):
        habit = store.create_habit(db, user_id, "  Read  ", " reading ")
        assert habit.name == "Read"
        assert habit.category == "reading"

    @pytest.mark.parametrize("name,category", [("", "exercise"), ("Yoga", "   "), (None, "x")])
    def test_create_habit_rejects_empty_fields(self, db, user_id, name, category):
        with pytest.raises(InvalidArgumentError):
            store.create_habit(db, user_id, name, category)

    def test_create_habit_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            store.create_habit(db, 999_999, "Yoga", "exercise")

    def test_category_is_open_tag(self, db, user_id):
        habit = store.create_habit(db, user_id, "Piano", "music practice")
        assert habit.category == "music practice"

    def test_get_habits_scoped_to_user(self, db, make_user):
        a, b = make_user(), make_user()
        store.create_habit(db, a, "Yoga", "exercise")
        store.create_habit(db, a, "Read", "reading")
        store.create_habit(db, b, "Walk", "exercise")
        assert [h.name for h in store.get_habits(db, a)] == ["Yoga", "Read"]
        assert [h.name for h in store.get_habits(db, b)] == ["Walk"]

    def test_get_habit_not_found(self, db):
        with pytest.raises(NotFoundError):
            store.get_habit(db, 999_999)

    def test_get_owned_habit_forbidden_for_other_user(self, db, make_user):
        owner, other = make_user(), make_user()
        habit = store.create_habit(db, owner, "Yoga", "exercise")
        with pytest.raises(ForbiddenError):
            store.get_owned_habit(db, other, habit.id)

    def test_update_habit(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        updated = store.update_habit(db, user_id, habit.id, name="Hot Yoga")
        assert updated.name == "Hot Yoga"
        assert updated.category == "exercise"

    def test_delete_habit_removes_completions(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        store.record_completion(db, habit.id, D)
        habit_id = habit.id
        store.delete_habit(db, user_id, habit_id)
        with pytest.raises(NotFoundError):
            store.get_habit(db, habit_id)
        assert db.query(Completion).filter(Completion.habit_id == habit_id).count() == 0


# ---------------------------------------------------------------------------
# Completions and streaks
# ---------------------------------------------------------------------------

class TestRecordCompletion:
    def test_consecutive_days_grow_streak(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        streaks = []
        for i in range(3):
            store.record_completion(db, habit.id, _days(i))
            streaks.append(store.get_habit(db, habit.id).streak)
        assert streaks == [1, 2, 3]
        assert store.get_habit(db, habit.id).last_completed == _days(2)

    def test_same_day_twice_is_idempotent(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        first = store.record_completion(db, habit.id, D)
        second = store.record_completion(db, habit.id, D)
        refreshed = store.get_habit(db, habit.id)
        assert first.id == second.id
        assert refreshed.streak == 1
        assert refreshed.last_completed == D
        assert len(store.get_completions(db, user_id, habit.id)) == 1

    def test_gap_resets_streak(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        for i in range(3):
            store.record_completion(db, habit.id, _days(i))
        store.record_completion(db, habit.id, _days(4))
        refreshed = store.get_habit(db, habit.id)
        assert refreshed.streak == 1
        assert refreshed.last_completed == _days(4)

    def test_backfill_overwrites_last_completed(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        store.record_completion(db, habit.id, _days(5))
        store.record_completion(db, habit.id, _days(6))
        store.record_completion(db, habit.id, _days(1))
        refreshed = store.get_habit(db, habit.id)
        assert refreshed.streak == 1
        assert refreshed.last_completed == _days(1)

    def test_unknown_habit(self, db):
        with pytest.raises(NotFoundError):
            store.record_completion(db, 999_999, D)

    def test_completion_carries_owner(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        completion = store.record_completion(db, habit.id, D)
        assert completion.user_id == user_id
        assert completion.completed is True

    def test_cas_exhaustion_raises_and_leaves_state(self, db, user_id, monkeypatch):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        monkeypatch.setattr(store, "_swap_streak", lambda *a, **kw: False)
        with pytest.raises(ConcurrentUpdateError):
            store.record_completion(db, habit.id, D)
        refreshed = store.get_habit(db, habit.id)
        assert refreshed.streak == 0
        assert refreshed.last_completed is None
        assert store.get_completions(db, user_id, habit.id) == []

    def test_cas_retries_until_swap_succeeds(self, db, user_id, monkeypatch):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        real_swap = store._swap_streak
        calls = []

        def flaky_swap(*args, **kwargs):
            calls.append(1)
            if len(calls) < 3:
                return False
            return real_swap(*args, **kwargs)

        monkeypatch.setattr(store, "_swap_streak", flaky_swap)
        store.record_completion(db, habit.id, D)
        assert len(calls) == 3
        assert store.get_habit(db, habit.id).streak == 1

    def test_concurrent_days_end_in_a_serial_outcome(self, db, user_id, session_factory):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        store.record_completion(db, habit.id, D)
        barrier = threading.Barrier(2, timeout=10)

        def record(day):
            def job(session):
                barrier.wait()
                return store.record_completion(session, habit.id, day).id
            return job

        outcomes = _in_threads(session_factory, record(_days(1)), record(_days(2)))
        assert [o[0] for o in outcomes] == ["ok", "ok"]

        db.expire_all()
        refreshed = store.get_habit(db, habit.id)
        # D+1 then D+2 chains to 3; D+2 then D+1 resets to 1 on D+1
        assert (refreshed.streak, refreshed.last_completed) in {(3, _days(2)), (1, _days(1))}
        assert len(store.get_completions(db, user_id, habit.id)) == 3


class TestCompleteHabit:
    def test_rejects_day_equal_to_last_completed(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        store.complete_habit(db, user_id, habit.id, D)
        with pytest.raises(AlreadyCompletedError):
            store.complete_habit(db, user_id, habit.id, D)

    def test_rejects_day_already_recorded(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        store.complete_habit(db, user_id, habit.id, _days(0))
        store.complete_habit(db, user_id, habit.id, _days(1))
        with pytest.raises(AlreadyCompletedError):
            store.complete_habit(db, user_id, habit.id, _days(0))

    def test_forbidden_for_other_user(self, db, make_user):
        owner, other = make_user(), make_user()
        habit = store.create_habit(db, owner, "Yoga", "exercise")
        with pytest.raises(ForbiddenError):
            store.complete_habit(db, other, habit.id, D)

    def test_returns_updated_habit(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        store.complete_habit(db, user_id, habit.id, _days(0))
        result = store.complete_habit(db, user_id, habit.id, _days(1))
        assert result.habit.streak == 2
        assert result.completion.day == _days(1)

    def test_defaults_to_today(self, db, user_id):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        result = store.complete_habit(db, user_id, habit.id)
        assert result.completion.day == store._today()

    def test_concurrent_duplicate_submissions_reject_one(
        self, db, user_id, session_factory, monkeypatch
    ):
        habit = store.create_habit(db, user_id, "Yoga", "exercise")
        barrier = threading.Barrier(2, timeout=10)
        real_record = store._record

        def record_after_both_checked(session, habit_id, day):
            barrier.wait()
            return real_record(session, habit_id, day)

        monkeypatch.setattr(store, "_record", record_after_both_checked)

        def submit(session):
            return store.complete_habit(session, user_id, habit.id, D).completion.id

        outcomes = _in_threads(session_factory, submit, submit)
        assert sorted(o[0] for o in outcomes) == ["AlreadyCompletedError", "ok"]

        db.expire_all()
        assert len(store.get_completions(db, user_id, habit.id)) == 1
        refreshed = store.get_habit(db, habit.id)
        assert (refreshed.streak, refreshed.last_completed) == (1, D)


class TestCompletionQueries:
    def test_filter_by_habit_and_date(self, db, user_id):
        yoga = store.create_habit(db, user_id, "Yoga", "exercise")
        read = store.create_habit(db, user_id, "Read", "reading")
        store.record_completion(db, yoga.id, D)
        store.record_completion(db, read.id, D)
        store.record_completion(db, read.id, _days(1))

        assert len(store.get_completions(db, user_id)) == 3
        assert len(store.get_completions(db, user_id, read.id)) == 2
        assert {c.habit_id for c in store.get_completions_by_date(db, user_id, D)} == {yoga.id, read.id}


# ---------------------------------------------------------------------------
# Moods
# ---------------------------------------------------------------------------

class TestMoods:
    def test_save_and_list_in_storage_order(self, db, user_id):
        store.save_mood(db, user_id, 3, _days(2))
        store.save_mood(db, user_id, 5, _days(0), note="sunny")
        moods = store.get_moods(db, user_id)
        assert [m.mood for m in moods] == [3, 5]
        assert moods[1].note == "sunny"

    def test_same_day_upserts(self, db, user_id):
        first = store.save_mood(db, user_id, 2, D)
        second = store.save_mood(db, user_id, 4, D, note="better")
        assert first.id == second.id
        moods = store.get_moods(db, user_id)
        assert len(moods) == 1
        assert moods[0].mood == 4
        assert store.get_mood_by_date(db, user_id, D).note == "better"

    @pytest.mark.parametrize("mood", [0, 6, -1, True])
    def test_out_of_range_rejected(self, db, user_id, mood):
        with pytest.raises(InvalidArgumentError):
            store.save_mood(db, user_id, mood, D)

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundError):
            store.save_mood(db, 999_999, 3, D)

    def test_concurrent_same_day_saves_upsert(self, db, user_id, session_factory, monkeypatch):
        barrier = threading.Barrier(2, timeout=10)
        real_lookup = store.get_mood_by_date
        seen = threading.local()

        def lookup_then_wait(session, uid, day):
            entry = real_lookup(session, uid, day)
            if not getattr(seen, "waited", False):
                seen.waited = True
                barrier.wait()
            return entry

        monkeypatch.setattr(store, "get_mood_by_date", lookup_then_wait)

        def save(mood):
            return lambda session: store.save_mood(session, user_id, mood, D).id

        outcomes = _in_threads(session_factory, save(2), save(4))
        assert [o[0] for o in outcomes] == ["ok", "ok"]
        assert outcomes[0][1] == outcomes[1][1]

        moods = store.get_moods(db, user_id)
        assert len(moods) == 1
        assert moods[0].mood in (2, 4)
