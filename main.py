import config  # loads .env and configures logging before anything else

from functools import lru_cache
from typing import Callable, Dict, List

from fastapi import Depends, FastAPI, HTTPException

from analytics import Dashboard
from llm_engine import GeminiScheduleGenerator, ScheduleGenerator
from models import GeneratedSchedule, ScheduleResponse, TaskDraft, TaskUpdate, UserInputData
from schedule_ops import MutationResult
from session import PlannerSession
from storage import JsonFileStore, PlannerStorage

logger = config.logger

app = FastAPI(title="NovaraMe Weekly Planner")


class SessionRegistry:
    """One PlannerSession per user, restored from storage on first use."""

    def __init__(self, storage_factory: Callable[[str], PlannerStorage],
                 history_limit: int = config.PLANNER_HISTORY_LIMIT):
        self.storage_factory = storage_factory
        self.history_limit = history_limit
        self._sessions: Dict[str, PlannerSession] = {}

    def get(self, user_id: str) -> PlannerSession:
        session = self._sessions.get(user_id)
        if session is None:
            session = PlannerSession(self.storage_factory(user_id), history_limit=self.history_limit)
            session.restore()
            self._sessions[user_id] = session
        return session


def _file_storage(user_id: str) -> PlannerStorage:
    return PlannerStorage(JsonFileStore(config.PLANNER_DATA_DIR / f"planner_{user_id}.json"))


_registry = SessionRegistry(_file_storage)


def get_registry() -> SessionRegistry:
    return _registry


@lru_cache(maxsize=1)
def get_generator() -> ScheduleGenerator:
    return GeminiScheduleGenerator(
        api_key=config.GEMINI_API_KEY,
        model=config.PLANNER_MODEL,
        temperature=config.PLANNER_TEMPERATURE,
    )


# ── helpers ──────────────────────────────────────────────────────────

def _envelope(session: PlannerSession, message: str = "") -> ScheduleResponse:
    return ScheduleResponse(
        state=session.state.value,
        schedule=session.schedule,
        can_undo=session.history.can_undo,
        history_depth=len(session.history),
        archived_weeks=len(session.archive),
        message=message,
    )


def _edit_response(session: PlannerSession, result: MutationResult) -> ScheduleResponse:
    if result.status == "no_schedule":
        raise HTTPException(status_code=404, detail="No active schedule. Generate one first.")
    if result.status == "not_found":
        raise HTTPException(status_code=404, detail=f"Task {result.task_id} not found on that day.")
    return _envelope(session, message="Schedule updated")


# ── Generation ───────────────────────────────────────────────────────

@app.post("/users/{user_id}/generate", response_model=ScheduleResponse)
async def generate_schedule(
    user_id: str,
    input_data: UserInputData,
    keep_existing: bool = False,
    registry: SessionRegistry = Depends(get_registry),
    generator: ScheduleGenerator = Depends(get_generator),
):
    """
    Generate an optimised week from the submitted input form.

    With ``keep_existing=true`` the user's own tasks in the current week are
    passed to the generator as locked tasks.
    """
    session = registry.get(user_id)
    logger.debug("Generate input for %s: %s", user_id, input_data.model_dump_json())

    outcome = await session.generate(generator, input_data, keep_existing=keep_existing)
    if outcome.status == "failed":
        raise HTTPException(status_code=502, detail=outcome.error)
    if outcome.status == "stale":
        return _envelope(session, message="Superseded by a newer generation request")
    return _envelope(session, message="Schedule generated")


# ── Reads ────────────────────────────────────────────────────────────

@app.get("/users/{user_id}/schedule", response_model=ScheduleResponse)
async def view_schedule(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _envelope(registry.get(user_id))


@app.get("/users/{user_id}/input", response_model=UserInputData)
async def view_input(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Last submitted input form, used to re-populate the form after a reset."""
    session = registry.get(user_id)
    if session.input_data is None:
        raise HTTPException(status_code=404, detail="No saved input for this user.")
    return session.input_data


@app.get("/users/{user_id}/dashboard", response_model=Dashboard)
async def view_dashboard(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    dashboard = registry.get(user_id).dashboard()
    if dashboard is None:
        raise HTTPException(status_code=404, detail="No active schedule. Generate one first.")
    return dashboard


@app.get("/users/{user_id}/archive", response_model=List[GeneratedSchedule])
async def view_archive(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    return registry.get(user_id).archive


# ── Task edits ───────────────────────────────────────────────────────

@app.post("/users/{user_id}/days/{day_index}/tasks", response_model=ScheduleResponse)
async def add_task(user_id: str, day_index: int, draft: TaskDraft,
                   registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(user_id)
    return _edit_response(session, session.add_task(day_index, draft))


@app.patch("/users/{user_id}/days/{day_index}/tasks/{task_id}", response_model=ScheduleResponse)
async def update_task(user_id: str, day_index: int, task_id: str, changes: TaskUpdate,
                      registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(user_id)
    return _edit_response(session, session.update_task(day_index, task_id, changes))


@app.delete("/users/{user_id}/days/{day_index}/tasks/{task_id}", response_model=ScheduleResponse)
async def delete_task(user_id: str, day_index: int, task_id: str,
                      registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(user_id)
    return _edit_response(session, session.delete_task(day_index, task_id))


@app.post("/users/{user_id}/days/{day_index}/tasks/{task_id}/toggle", response_model=ScheduleResponse)
async def toggle_task(user_id: str, day_index: int, task_id: str,
                      registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(user_id)
    return _edit_response(session, session.toggle_task(day_index, task_id))


@app.post("/users/{user_id}/refresh", response_model=ScheduleResponse)
async def refresh_schedule(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Re-sort every day by start time."""
    session = registry.get(user_id)
    return _edit_response(session, session.refresh())


@app.post("/users/{user_id}/undo", response_model=ScheduleResponse)
async def undo(user_id: str, registry: SessionRegistry = Depends(get_registry)):
    session = registry.get(user_id)
    undone = session.undo()
    return _envelope(session, message="Undone" if undone else "Nothing to undo")


# ── Lifecycle ────────────────────────────────────────────────────────

@app.post("/users/{user_id}/new_week", response_model=ScheduleResponse)
async def start_new_week(user_id: str, confirm: bool = False,
                         registry: SessionRegistry = Depends(get_registry)):
    """Archive the current week and return to setup. Requires ``confirm=true``."""
    session = registry.get(user_id)
    if not session.start_new_week(confirmed=confirm):
        raise HTTPException(status_code=400, detail="Starting a new week archives the current schedule. Pass confirm=true.")
    return _envelope(session, message="Week archived")


@app.post("/users/{user_id}/reset", response_model=ScheduleResponse)
async def reset(user_id: str, confirm: bool = False,
                registry: SessionRegistry = Depends(get_registry)):
    """Discard the current week without archiving it. Requires ``confirm=true``."""
    session = registry.get(user_id)
    if not session.reset(confirmed=confirm):
        raise HTTPException(status_code=400, detail="Reset discards the current schedule. Pass confirm=true.")
    return _envelope(session, message="Schedule discarded")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=config.PORT, reload=True)
