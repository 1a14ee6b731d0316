import re
import uuid
from pydantic import BaseModel, Field, field_validator
from typing import List, Literal, Optional


ActivityType = Literal["Study", "Work", "Fixed", "Break", "Personal", "Chore"]
Priority = Literal["High", "Medium", "Low"]
PriorityLevel = Literal["High", "Medium", "Low", "N/A"]

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def normalize_hhmm(value: str) -> str:
    """'9:05' -> '09:05'. Raises ValueError for anything that is not a wall-clock time."""
    match = _HHMM.match(value or "")
    if not match:
        raise ValueError(f"expected HH:MM, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"time out of range: {value!r}")
    return f"{hours:02d}:{minutes:02d}"


def new_id() -> str:
    return str(uuid.uuid4())


# ── Schedule (generated output + user edits) ─────────────────────────

class ScheduleTask(BaseModel):
    id: str = Field(default_factory=new_id)
    time_start: str                  # "09:00"
    time_end: str                    # "10:30"
    duration_minutes: int
    activity_type: ActivityType
    subject_or_task: str
    priority_level: PriorityLevel
    notes: str = ""
    is_completed: bool = False
    is_ai_generated: bool = False    # True only for generator-invented entries

    @field_validator("time_start", "time_end")
    @classmethod
    def _clock_time(cls, v: str) -> str:
        return normalize_hhmm(v)


class DaySchedule(BaseModel):
    day: str                         # Monday
    date: str                        # YYYY-MM-DD
    tasks: List[ScheduleTask] = Field(default_factory=list)


class SummaryReview(BaseModel):
    total_study_hours: str
    deadlines_met: str
    high_priority_focus: str
    life_balance_score: str


class GeneratedSchedule(BaseModel):
    """A full week: exactly seven days plus the generator's summary review."""
    optimized_weekly_schedule: List[DaySchedule] = Field(..., min_length=7, max_length=7)
    summary_review: SummaryReview

    @property
    def week_start(self) -> Optional[str]:
        days = self.optimized_weekly_schedule
        return days[0].date if days else None

    def task_count(self) -> int:
        return sum(len(d.tasks) for d in self.optimized_weekly_schedule)


# ── Input Models ─────────────────────────────────────────────────────

class FixedEvent(BaseModel):
    id: str = Field(default_factory=new_id)
    day: str                         # Monday
    start_time: str                  # "09:00"
    end_time: str                    # "10:00"
    title: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _clock_time(cls, v: str) -> str:
        return normalize_hhmm(v)


class Subject(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    priority: Priority = "Medium"
    hours_needed: float = 2


class Assignment(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    deadline: str                    # YYYY-MM-DD
    estimated_hours: float = 2
    subject_id: str                  # -> Subject.id


class PersonalTask(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    deadline: str                    # YYYY-MM-DD
    estimated_hours: float = 1
    priority: Priority = "Medium"


class UserInputData(BaseModel):
    week_start_date: str             # YYYY-MM-DD
    sleep_start: str = "23:00"
    sleep_end: str = "07:00"
    fixed_events: List[FixedEvent] = Field(default_factory=list)
    subjects: List[Subject] = Field(default_factory=list)
    assignments: List[Assignment] = Field(default_factory=list)
    personal_tasks: List[PersonalTask] = Field(default_factory=list)

    @field_validator("sleep_start", "sleep_end")
    @classmethod
    def _clock_time(cls, v: str) -> str:
        return normalize_hhmm(v)

    def subject_name(self, subject_id: str) -> str:
        for s in self.subjects:
            if s.id == subject_id:
                return s.name
        return "Unknown Subject"


# ── Edit payloads ────────────────────────────────────────────────────

class TaskDraft(BaseModel):
    """Payload of the "add task" form; defaults match a fresh form."""
    time_start: str = "09:00"
    time_end: str = "10:00"
    activity_type: ActivityType = "Personal"
    subject_or_task: str = Field(..., min_length=1)
    priority_level: PriorityLevel = "Medium"
    notes: str = "Added manually"

    @field_validator("time_start", "time_end")
    @classmethod
    def _clock_time(cls, v: str) -> str:
        return normalize_hhmm(v)


class TaskUpdate(BaseModel):
    """Partial edit. Only fields the caller actually sets are applied."""
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    duration_minutes: Optional[int] = None
    activity_type: Optional[ActivityType] = None
    subject_or_task: Optional[str] = Field(None, min_length=1)
    priority_level: Optional[PriorityLevel] = None
    notes: Optional[str] = None
    is_completed: Optional[bool] = None

    @field_validator("time_start", "time_end")
    @classmethod
    def _clock_time(cls, v: Optional[str]) -> Optional[str]:
        return normalize_hhmm(v) if v is not None else None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# ── API envelopes ────────────────────────────────────────────────────

class ScheduleResponse(BaseModel):
    """Top-level API response envelope."""
    success: bool = True
    state: str
    schedule: Optional[GeneratedSchedule] = None
    can_undo: bool = False
    history_depth: int = 0
    archived_weeks: int = 0
    message: str = ""
