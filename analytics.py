from typing import Dict, List, Optional

from pydantic import BaseModel

from models import GeneratedSchedule, SummaryReview

TRACKED_TYPES = ("Study", "Personal", "Chore", "Work", "Fixed")
PRIORITY_ORDER = ("High", "Medium", "Low")
LABEL_MAX_CHARS = 20


class TimeDistributionEntry(BaseModel):
    name: str             # full (trimmed) task name
    label: str            # axis label, truncated
    hours: float
    activity_type: str


class PriorityBucket(BaseModel):
    name: str
    value: int


class Dashboard(BaseModel):
    week_start: Optional[str] = None
    time_distribution: List[TimeDistributionEntry]
    priority_breakdown: List[PriorityBucket]
    summary_review: SummaryReview


def _label(name: str) -> str:
    return name[:LABEL_MAX_CHARS] + "..." if len(name) > LABEL_MAX_CHARS else name


def time_distribution(schedule: GeneratedSchedule) -> List[TimeDistributionEntry]:
    """
    Hours per task name across the week, largest first.
    Breaks are left out; a name keeps the activity type it was first seen with.
    """
    minutes: Dict[str, float] = {}
    types: Dict[str, str] = {}
    for day in schedule.optimized_weekly_schedule:
        for task in day.tasks:
            if task.activity_type not in TRACKED_TYPES:
                continue
            name = task.subject_or_task.strip()
            minutes[name] = minutes.get(name, 0) + task.duration_minutes
            types.setdefault(name, task.activity_type)

    entries = [
        TimeDistributionEntry(
            name=name,
            label=_label(name),
            hours=round(total / 60, 1),
            activity_type=types[name],
        )
        for name, total in minutes.items()
    ]
    # sorted() is stable: equal totals keep first-seen order.
    return sorted(entries, key=lambda e: e.hours, reverse=True)


def priority_breakdown(schedule: GeneratedSchedule) -> List[PriorityBucket]:
    counts = {p: 0 for p in PRIORITY_ORDER}
    for day in schedule.optimized_weekly_schedule:
        for task in day.tasks:
            if task.activity_type in TRACKED_TYPES and task.priority_level in counts:
                counts[task.priority_level] += 1
    return [PriorityBucket(name=p, value=counts[p]) for p in PRIORITY_ORDER if counts[p] > 0]


def build_dashboard(schedule: GeneratedSchedule) -> Dashboard:
    return Dashboard(
        week_start=schedule.week_start,
        time_distribution=time_distribution(schedule),
        priority_breakdown=priority_breakdown(schedule),
        summary_review=schedule.summary_review,
    )
