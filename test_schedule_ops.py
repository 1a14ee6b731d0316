import pytest
from pydantic import ValidationError

import schedule_ops
from models import TaskDraft, TaskUpdate


def _day(schedule, index=0):
    return schedule.optimized_weekly_schedule[index]


def _starts(schedule, index=0):
    return [t.time_start for t in _day(schedule, index).tasks]


# ── duration ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("start,end,expected", [
    ("09:00", "10:30", 90),
    ("10:00", "09:00", 60),
    ("10:00", "10:00", 60),
    ("00:00", "23:59", 1439),
])
def test_compute_duration(start, end, expected):
    assert schedule_ops.compute_duration(start, end) == expected


# ── toggle ────────────────────────────────────────────────────────────

def test_toggle_flips_flag_without_resorting(make_week, make_task):
    week = make_week({0: [make_task(id="late", time_start="15:00"), make_task(id="early", time_start="08:00")]})

    result = schedule_ops.toggle_completion(week, 0, "late")

    assert result.applied
    assert _day(result.schedule).tasks[0].is_completed is True
    assert _starts(result.schedule) == ["15:00", "08:00"]
    # Original value untouched.
    assert _day(week).tasks[0].is_completed is False


def test_toggle_unknown_targets(sample_week):
    assert schedule_ops.toggle_completion(sample_week, 0, "nope").status == "not_found"
    assert schedule_ops.toggle_completion(sample_week, 7, "mon-math").status == "not_found"
    assert schedule_ops.toggle_completion(sample_week, -1, "mon-math").status == "not_found"
    result = schedule_ops.toggle_completion(sample_week, 1, "mon-math")
    assert result.status == "not_found"
    assert result.schedule is sample_week


# ── add ───────────────────────────────────────────────────────────────

def test_add_forces_user_origin_and_sorts(sample_week, make_task):
    task = make_task(id="new", time_start="10:30", time_end="10:40", duration_minutes=999,
                     subject_or_task="Call mom", activity_type="Personal", is_ai_generated=True)

    result = schedule_ops.add_task(sample_week, 0, task)

    day = _day(result.schedule)
    assert _starts(result.schedule) == ["09:00", "10:30", "10:30", "11:00"]
    # Stable sort: the existing 10:30 break stays ahead of the new task.
    assert [t.id for t in day.tasks][1:3] == ["mon-break", "new"]
    added = day.tasks[2]
    assert added.is_ai_generated is False
    assert added.duration_minutes == 10
    assert len(_day(sample_week).tasks) == 3


def test_add_out_of_range_day(sample_week, make_task):
    result = schedule_ops.add_task(sample_week, 9, make_task())
    assert result.status == "not_found"
    assert result.schedule is sample_week


def test_task_from_draft_defaults():
    task = schedule_ops.task_from_draft(TaskDraft(subject_or_task="Gym", time_start="18:00", time_end="17:00"))
    assert task.id
    assert task.duration_minutes == 60
    assert task.notes == "Added manually"
    assert task.activity_type == "Personal"
    assert task.priority_level == "Medium"
    assert task.is_completed is False and task.is_ai_generated is False


def test_draft_requires_a_name():
    with pytest.raises(ValidationError):
        TaskDraft(subject_or_task="")


def test_update_rejects_empty_name():
    with pytest.raises(ValidationError):
        TaskUpdate(subject_or_task="")
    assert TaskUpdate(notes="x").changes() == {"notes": "x"}


# ── update ────────────────────────────────────────────────────────────

def test_update_reversed_times_coerces_duration(sample_week):
    result = schedule_ops.update_task(sample_week, 0, "mon-physics",
                                      TaskUpdate(time_start="10:00", time_end="09:00"))
    task = next(t for t in _day(result.schedule).tasks if t.id == "mon-physics")
    assert task.duration_minutes == 60


def test_update_start_time_resorts_day(sample_week):
    result = schedule_ops.update_task(sample_week, 0, "mon-physics",
                                      TaskUpdate(time_start="07:30", time_end="08:30"))
    assert [t.id for t in _day(result.schedule).tasks] == ["mon-physics", "mon-math", "mon-break"]
    assert _starts(result.schedule) == sorted(_starts(result.schedule))


def test_update_marks_task_user_owned_and_keeps_untouched_fields(sample_week):
    result = schedule_ops.update_task(sample_week, 0, "mon-math", TaskUpdate(notes="Chapter 5"))
    task = _day(result.schedule).tasks[0]
    assert task.notes == "Chapter 5"
    assert task.is_ai_generated is False
    assert task.subject_or_task == "Mathematics"
    assert task.duration_minutes == 90
    assert task.id == "mon-math"


def test_update_end_time_only_recomputes_duration(sample_week):
    result = schedule_ops.update_task(sample_week, 0, "mon-math", TaskUpdate(time_end="11:00"))
    assert _day(result.schedule).tasks[0].duration_minutes == 120


def test_update_explicit_duration_overrides_times(sample_week):
    result = schedule_ops.update_task(sample_week, 0, "mon-math",
                                      TaskUpdate(time_end="11:00", duration_minutes=45))
    assert _day(result.schedule).tasks[0].duration_minutes == 45

    result = schedule_ops.update_task(sample_week, 0, "mon-math", TaskUpdate(duration_minutes=-5))
    assert _day(result.schedule).tasks[0].duration_minutes == 60


def test_update_can_complete_task(sample_week):
    result = schedule_ops.update_task(sample_week, 0, "mon-math", TaskUpdate(is_completed=True))
    assert _day(result.schedule).tasks[0].is_completed is True


def test_update_missing_task(sample_week):
    result = schedule_ops.update_task(sample_week, 2, "mon-math", TaskUpdate(notes="x"))
    assert result.status == "not_found"


# ── delete / resort ───────────────────────────────────────────────────

def test_delete_removes_only_target(sample_week):
    result = schedule_ops.delete_task(sample_week, 0, "mon-break")
    assert [t.id for t in _day(result.schedule).tasks] == ["mon-math", "mon-physics"]
    assert _day(result.schedule, 2) == _day(sample_week, 2)
    assert schedule_ops.delete_task(sample_week, 0, "mon-break").applied
    assert schedule_ops.delete_task(result.schedule, 0, "mon-break").status == "not_found"


def test_resort_days(make_week, make_task):
    week = make_week({
        1: [make_task(id="b", time_start="14:00"), make_task(id="a", time_start="08:00")],
        4: [make_task(id="d", time_start="20:00"), make_task(id="c", time_start="19:00")],
    })
    result = schedule_ops.resort_days(week)
    assert [t.id for t in _day(result.schedule, 1).tasks] == ["a", "b"]
    assert [t.id for t in _day(result.schedule, 4).tasks] == ["c", "d"]
    assert [t.id for t in _day(week, 1).tasks] == ["b", "a"]
