"""
schedule_ops.py
---------------
The edit operations a user can apply to a week.

Every operation is a pure function of the current schedule: it returns a
MutationResult carrying a *new* GeneratedSchedule and never touches the one
it was given. Snapshots for undo are the caller's job (see session.py).

Day ordering invariant: after an add, or an update that moves a task's
start time, the day's tasks are sorted by ``time_start`` (stable sort, so
tasks starting together keep their insertion order).
"""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel

from models import (
    DaySchedule, GeneratedSchedule, ScheduleTask, TaskDraft, TaskUpdate, new_id,
)

FALLBACK_DURATION_MINUTES = 60

MutationStatus = Literal["applied", "not_found", "no_schedule"]


class MutationResult(BaseModel):
    status: MutationStatus
    schedule: Optional[GeneratedSchedule] = None
    task_id: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.status == "applied"


# ── time helpers ──────────────────────────────────────────────────────────────

def _to_minutes(t: str) -> int:
    """'HH:MM' -> total minutes since midnight."""
    h, m = t.strip().split(":")
    return int(h) * 60 + int(m)


def compute_duration(time_start: str, time_end: str) -> int:
    """Minutes from start to end. Non-positive spans fall back to an hour."""
    duration = _to_minutes(time_end) - _to_minutes(time_start)
    return duration if duration > 0 else FALLBACK_DURATION_MINUTES


def _sorted_by_start(tasks: List[ScheduleTask]) -> List[ScheduleTask]:
    return sorted(tasks, key=lambda t: t.time_start)


# ── plumbing ──────────────────────────────────────────────────────────────────

def _with_day(schedule: GeneratedSchedule, day_index: int, day: DaySchedule) -> GeneratedSchedule:
    days = list(schedule.optimized_weekly_schedule)
    days[day_index] = day
    return schedule.model_copy(update={"optimized_weekly_schedule": days})


def _locate(schedule: GeneratedSchedule, day_index: int,
            task_id: str) -> Tuple[Optional[DaySchedule], int]:
    days = schedule.optimized_weekly_schedule
    if not 0 <= day_index < len(days):
        return None, -1
    day = days[day_index]
    for pos, task in enumerate(day.tasks):
        if task.id == task_id:
            return day, pos
    return day, -1


def _not_found(schedule: GeneratedSchedule, task_id: Optional[str] = None) -> MutationResult:
    return MutationResult(status="not_found", schedule=schedule, task_id=task_id)


# ── operations ────────────────────────────────────────────────────────────────

def toggle_completion(schedule: GeneratedSchedule, day_index: int, task_id: str) -> MutationResult:
    day, pos = _locate(schedule, day_index, task_id)
    if day is None or pos < 0:
        return _not_found(schedule, task_id)

    tasks = list(day.tasks)
    tasks[pos] = tasks[pos].model_copy(update={"is_completed": not tasks[pos].is_completed})
    new_day = day.model_copy(update={"tasks": tasks})
    return MutationResult(status="applied", schedule=_with_day(schedule, day_index, new_day), task_id=task_id)


def add_task(schedule: GeneratedSchedule, day_index: int, task: ScheduleTask) -> MutationResult:
    """Append ``task`` to a day as a user-authored entry and re-sort the day."""
    days = schedule.optimized_weekly_schedule
    if not 0 <= day_index < len(days):
        return _not_found(schedule, task.id)

    new_task = task.model_copy(update={
        "is_ai_generated": False,
        "duration_minutes": compute_duration(task.time_start, task.time_end),
    })
    day = days[day_index]
    new_day = day.model_copy(update={"tasks": _sorted_by_start([*day.tasks, new_task])})
    return MutationResult(status="applied", schedule=_with_day(schedule, day_index, new_day), task_id=new_task.id)


def task_from_draft(draft: TaskDraft) -> ScheduleTask:
    return ScheduleTask(
        id=new_id(),
        time_start=draft.time_start,
        time_end=draft.time_end,
        duration_minutes=compute_duration(draft.time_start, draft.time_end),
        activity_type=draft.activity_type,
        subject_or_task=draft.subject_or_task,
        priority_level=draft.priority_level,
        notes=draft.notes,
        is_completed=False,
        is_ai_generated=False,
    )


def update_task(schedule: GeneratedSchedule, day_index: int, task_id: str,
                changes: TaskUpdate) -> MutationResult:
    """
    Apply the fields set on ``changes`` to one task and mark it user-owned.

    Duration follows the times unless the caller passed one explicitly;
    either way it never ends up non-positive.
    """
    day, pos = _locate(schedule, day_index, task_id)
    if day is None or pos < 0:
        return _not_found(schedule, task_id)

    fields = changes.changes()
    updated = day.tasks[pos].model_copy(update={**fields, "is_ai_generated": False})

    if "duration_minutes" in fields:
        if updated.duration_minutes <= 0:
            updated = updated.model_copy(update={"duration_minutes": FALLBACK_DURATION_MINUTES})
    elif "time_start" in fields or "time_end" in fields:
        updated = updated.model_copy(update={
            "duration_minutes": compute_duration(updated.time_start, updated.time_end),
        })

    tasks = list(day.tasks)
    tasks[pos] = updated
    if "time_start" in fields:
        tasks = _sorted_by_start(tasks)

    new_day = day.model_copy(update={"tasks": tasks})
    return MutationResult(status="applied", schedule=_with_day(schedule, day_index, new_day), task_id=task_id)


def delete_task(schedule: GeneratedSchedule, day_index: int, task_id: str) -> MutationResult:
    day, pos = _locate(schedule, day_index, task_id)
    if day is None or pos < 0:
        return _not_found(schedule, task_id)

    tasks = [t for t in day.tasks if t.id != task_id]
    new_day = day.model_copy(update={"tasks": tasks})
    return MutationResult(status="applied", schedule=_with_day(schedule, day_index, new_day), task_id=task_id)


def resort_days(schedule: GeneratedSchedule) -> MutationResult:
    """Re-sort every day by start time (the "soft refresh" action)."""
    days = [
        d.model_copy(update={"tasks": _sorted_by_start(d.tasks)})
        for d in schedule.optimized_weekly_schedule
    ]
    return MutationResult(
        status="applied",
        schedule=schedule.model_copy(update={"optimized_weekly_schedule": days}),
    )
