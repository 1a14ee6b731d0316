"""
schedule_merger.py
------------------
Pure-logic reconciliation of a freshly generated week with the tasks the
user already has.

Responsibilities:
  1. Give every generated task a stable id.
  2. Re-identify tasks that survived a regeneration by their merge key
     (day label, start time, trimmed lower-cased name) and carry over the
     id, completion flag and origin flag the user already had.
  3. Collect the user-authored tasks that a regeneration must keep as-is.

The merge key is a heuristic: two tasks with the same name at the same
start time on the same day collide, and the first one indexed wins.

No LLM calls, no I/O.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from models import DaySchedule, GeneratedSchedule, ScheduleTask, new_id

MergeKey = Tuple[str, str, str]


def merge_key(day_label: str, task: ScheduleTask) -> MergeKey:
    return (day_label, task.time_start, task.subject_or_task.strip().lower())


def build_task_index(schedule: Optional[GeneratedSchedule]) -> Dict[MergeKey, ScheduleTask]:
    """Map merge key -> existing task for every task in ``schedule``."""
    index: Dict[MergeKey, ScheduleTask] = {}
    if schedule is None:
        return index
    for day in schedule.optimized_weekly_schedule:
        for task in day.tasks:
            index.setdefault(merge_key(day.day, task), task)
    return index


def _reconcile(day_label: str, task: ScheduleTask,
               existing_index: Optional[Dict[MergeKey, ScheduleTask]]) -> ScheduleTask:
    existing = existing_index.get(merge_key(day_label, task)) if existing_index else None
    if existing is None:
        return task.model_copy(update={"id": new_id(), "is_completed": False})
    return task.model_copy(update={
        "id": existing.id,
        "is_completed": existing.is_completed,
        "is_ai_generated": existing.is_ai_generated,
    })


def process_schedule(
    schedule: GeneratedSchedule,
    existing_index: Optional[Dict[MergeKey, ScheduleTask]] = None,
) -> GeneratedSchedule:
    """
    Return a copy of ``schedule`` where each task has an id and, when it
    matches an entry of ``existing_index``, that entry's user state.

    One output task per input task, same order; ``schedule`` is not modified.
    """
    days = [
        DaySchedule(
            day=day.day,
            date=day.date,
            tasks=[_reconcile(day.day, t, existing_index) for t in day.tasks],
        )
        for day in schedule.optimized_weekly_schedule
    ]
    return GeneratedSchedule(
        optimized_weekly_schedule=days,
        summary_review=schedule.summary_review.model_copy(),
    )


def locked_tasks(schedule: Optional[GeneratedSchedule]) -> List[Tuple[str, ScheduleTask]]:
    """(day label, task) for every user-authored task, in calendar order."""
    if schedule is None:
        return []
    return [
        (day.day, task)
        for day in schedule.optimized_weekly_schedule
        for task in day.tasks
        if not task.is_ai_generated
    ]
