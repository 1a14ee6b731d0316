import logging
from enum import Enum
from typing import List, Optional, Protocol, Sequence, Tuple

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from models import GeneratedSchedule, ScheduleTask, UserInputData

logger = logging.getLogger("planner.llm")

FAILURE_MESSAGE = "Failed to generate schedule. Please try again."

LockedTask = Tuple[str, ScheduleTask]     # (day label, task)


class GenerationError(Exception):
    """Raised when the generation service fails; ``str()`` is safe to show users."""

    def __init__(self, message: str = FAILURE_MESSAGE):
        super().__init__(message)


class ScheduleGenerator(Protocol):
    async def generate(
        self,
        input_data: UserInputData,
        locked_tasks: Sequence[LockedTask] = (),
    ) -> GeneratedSchedule: ...


# ── Internal LLM output schema (what the LLM actually generates) ─────

class _ActivityType(str, Enum):
    STUDY = "Study"
    WORK = "Work"
    FIXED = "Fixed"
    BREAK = "Break"
    PERSONAL = "Personal"
    CHORE = "Chore"


class _PriorityLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    NA = "N/A"


class _LLMTask(BaseModel):
    time_start: str
    time_end: str
    duration_minutes: int
    activity_type: _ActivityType
    subject_or_task: str
    priority_level: _PriorityLevel
    notes: str
    is_ai_generated: bool


class _LLMDay(BaseModel):
    day: str
    date: str
    tasks: List[_LLMTask]


class _LLMSummary(BaseModel):
    total_study_hours: str
    deadlines_met: str
    high_priority_focus: str
    life_balance_score: str


class _LLMOutput(BaseModel):
    """Schema the LLM must return; converted to GeneratedSchedule."""
    optimized_weekly_schedule: List[_LLMDay]
    summary_review: _LLMSummary


# ── Prompt ───────────────────────────────────────────────────────────

def _bullets(lines: List[str]) -> str:
    return "\n".join(lines) or "None"


def build_prompt(input_data: UserInputData, locked_tasks: Sequence[LockedTask] = ()) -> str:
    """Render the planning request as the natural-language prompt sent to the model."""
    d = input_data

    fixed_events = _bullets([
        f"- {e.day} {e.start_time}-{e.end_time}: {e.title}" for e in d.fixed_events
    ])
    subjects = _bullets([f"- {s.name}: {s.priority}" for s in d.subjects])
    hours = _bullets([f"- {s.name}: {s.hours_needed:g} hours" for s in d.subjects])
    assignments = _bullets([
        f"- Academic Task: {a.name} ({d.subject_name(a.subject_id)}), "
        f"Details: {a.description or 'None'}, Deadline: {a.deadline}, "
        f"Est. Hours: {a.estimated_hours:g}"
        for a in d.assignments
    ])
    personal = _bullets([
        f"- Personal Task: {p.name}, Priority: {p.priority}, Deadline: {p.deadline}, "
        f"Est. Hours: {p.estimated_hours:g}"
        for p in d.personal_tasks
    ])

    locked_block = ""
    if locked_tasks:
        locked_lines = "\n".join(
            f"- {day} [{t.activity_type}] {t.time_start}-{t.time_end}: "
            f"{t.subject_or_task} (Priority: {t.priority_level})"
            for day, t in locked_tasks
        )
        locked_block = (
            "\n**LOCKED TASKS (MUST PRESERVE):**\n"
            "The following tasks are already scheduled by the user and MUST appear in the "
            "schedule at their exact times. Do not move, remove, or modify them. "
            "Fill gaps around them.\n"
            f"{locked_lines}\n"
        )

    return f"""
You are an Expert Life & Academic Planner.
Generate a fully optimized, 7-day Weekly Schedule starting from {d.week_start_date}.

**User Context:**
- **Week Start:** {d.week_start_date}
- **Sleep Schedule:** {d.sleep_start} to {d.sleep_end} (Strictly OFF LIMITS)

**Inputs:**
1. **Fixed Commitments:**
{fixed_events}

2. **Academic Focus:**
{subjects}
(Target Hours:
{hours})

3. **Academic Assignments:**
{assignments}

4. **Personal Tasks & Chores:**
{personal}
{locked_block}
**Optimization Rules:**
1. **Prioritization:** Deadlines first. Then High Priority items (Academic or Personal).
2. **Breaks:** Insert a 15-minute 'Break' for every 90-120 mins of deep work.
3. **Session Length:** Academic blocks: 60-120 mins. Personal tasks: 30-60 mins.
4. **Balance:** Ensure personal tasks are scheduled during lighter academic days if possible.
5. **Activity Types:** Use 'Study' for academic, 'Personal' or 'Chore' for life tasks.
6. **Origin Flagging:** Set 'is_ai_generated' to FALSE for tasks that come directly from User Inputs (Fixed Events, Assignments, Personal Tasks, or Locked Tasks). Set 'is_ai_generated' to TRUE for suggestions you create (Breaks, Meals, Filler Study Blocks).

Output strictly valid JSON matching the schema.
"""


def to_schedule(raw: _LLMOutput) -> GeneratedSchedule:
    """Validate the model's output against the domain schema (7 days, HH:MM times)."""
    return GeneratedSchedule.model_validate(raw.model_dump(mode="json"))


class GeminiScheduleGenerator:
    def __init__(self, api_key: Optional[str] = None, model: str = "gemini-2.5-flash",
                 temperature: float = 0.3):
        self.client = genai.Client(api_key=api_key)
        self.model = model
        self.temperature = temperature

    async def generate(
        self,
        input_data: UserInputData,
        locked_tasks: Sequence[LockedTask] = (),
    ) -> GeneratedSchedule:
        """
        Ask the model for a week and return it as a GeneratedSchedule.

        Any failure (transport error, empty body, schema mismatch) is logged and
        surfaces as a single GenerationError.
        """
        prompt = build_prompt(input_data, locked_tasks)
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=_LLMOutput,
                    temperature=self.temperature,
                ),
            )

            if isinstance(response.parsed, _LLMOutput):
                raw = response.parsed
            elif response.text:
                raw = _LLMOutput.model_validate_json(response.text)
            else:
                finish_reason = (
                    response.candidates[0].finish_reason if response.candidates else "no candidates"
                )
                raise ValueError(f"No response generated. Finish reason: {finish_reason}")

            return to_schedule(raw)
        except ValidationError as e:
            logger.error("Gemini response did not match the schedule schema: %s", e)
            raise GenerationError() from e
        except Exception as e:
            logger.exception("Gemini API Error: %s", e)
            raise GenerationError() from e
