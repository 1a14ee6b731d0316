import pytest

from models import DaySchedule, GeneratedSchedule, ScheduleTask, SummaryReview, UserInputData

WEEK = [
    ("Monday", "2026-03-02"),
    ("Tuesday", "2026-03-03"),
    ("Wednesday", "2026-03-04"),
    ("Thursday", "2026-03-05"),
    ("Friday", "2026-03-06"),
    ("Saturday", "2026-03-07"),
    ("Sunday", "2026-03-08"),
]


def _task(**overrides) -> ScheduleTask:
    fields = {
        "time_start": "09:00",
        "time_end": "10:00",
        "duration_minutes": 60,
        "activity_type": "Study",
        "subject_or_task": "Mathematics",
        "priority_level": "High",
        "notes": "",
        "is_ai_generated": True,
    }
    fields.update(overrides)
    return ScheduleTask(**fields)


def _week(tasks_by_day=None) -> GeneratedSchedule:
    tasks_by_day = tasks_by_day or {}
    return GeneratedSchedule(
        optimized_weekly_schedule=[
            DaySchedule(day=day, date=date, tasks=list(tasks_by_day.get(i, [])))
            for i, (day, date) in enumerate(WEEK)
        ],
        summary_review=SummaryReview(
            total_study_hours="12",
            deadlines_met="All",
            high_priority_focus="Mathematics",
            life_balance_score="8/10",
        ),
    )


@pytest.fixture
def make_task():
    return _task


@pytest.fixture
def make_week():
    return _week


@pytest.fixture
def sample_week():
    """Monday: two study blocks and a break; Wednesday: a chore."""
    return _week({
        0: [
            _task(id="mon-math", time_start="09:00", time_end="10:30", duration_minutes=90),
            _task(id="mon-break", time_start="10:30", time_end="10:45", duration_minutes=15,
                  activity_type="Break", subject_or_task="Break", priority_level="N/A"),
            _task(id="mon-physics", time_start="11:00", time_end="12:00",
                  subject_or_task="Physics", priority_level="Medium"),
        ],
        2: [
            _task(id="wed-laundry", time_start="18:00", time_end="18:30", duration_minutes=30,
                  activity_type="Chore", subject_or_task="Laundry", priority_level="Low",
                  is_ai_generated=False),
        ],
    })


@pytest.fixture
def sample_input():
    return UserInputData.model_validate({
        "week_start_date": "2026-03-02",
        "sleep_start": "23:00",
        "sleep_end": "7:00",
        "fixed_events": [
            {"id": "fe1", "day": "Monday", "start_time": "13:00", "end_time": "15:00", "title": "Lab"},
        ],
        "subjects": [
            {"id": "s1", "name": "Mathematics", "priority": "High", "hours_needed": 5},
            {"id": "s2", "name": "Physics", "priority": "Medium", "hours_needed": 3},
        ],
        "assignments": [
            {"id": "a1", "name": "Problem Set 4", "description": "Chapters 3-4",
             "deadline": "2026-03-05", "estimated_hours": 3, "subject_id": "s1"},
            {"id": "a2", "name": "Essay", "deadline": "2026-03-06",
             "estimated_hours": 2, "subject_id": "missing"},
        ],
        "personal_tasks": [
            {"id": "p1", "name": "Groceries", "deadline": "2026-03-04",
             "estimated_hours": 1, "priority": "Low"},
        ],
    })
