import pytest

from history_manager import HistoryManager


def test_undo_on_empty_history_returns_current(sample_week):
    history = HistoryManager()
    assert history.undo(sample_week) is sample_week
    assert not history.can_undo


def test_snapshot_is_independent_copy(sample_week):
    history = HistoryManager()
    history.record_snapshot(sample_week)

    # Even an in-place change to the live value must not leak into the snapshot.
    sample_week.optimized_weekly_schedule[0].tasks[0].is_completed = True
    sample_week.optimized_weekly_schedule[0].tasks.clear()

    restored = history.undo(None)
    assert len(restored.optimized_weekly_schedule[0].tasks) == 3
    assert restored.optimized_weekly_schedule[0].tasks[0].is_completed is False


def test_oldest_snapshot_evicted_past_limit(make_week, make_task):
    history = HistoryManager(limit=3)
    weeks = [make_week({0: [make_task(id=f"t{i}")]}) for i in range(5)]
    for w in weeks:
        history.record_snapshot(w)

    assert len(history) == 3
    popped = [history.undo(None).optimized_weekly_schedule[0].tasks[0].id for _ in range(3)]
    assert popped == ["t4", "t3", "t2"]
    assert history.undo("current") == "current"


def test_none_is_not_recorded():
    history = HistoryManager()
    history.record_snapshot(None)
    assert len(history) == 0


def test_clear(sample_week):
    history = HistoryManager()
    history.record_snapshot(sample_week)
    history.clear()
    assert len(history) == 0


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        HistoryManager(limit=0)
