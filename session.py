"""
session.py
----------
PlannerSession: the explicit state of one planning session.

It owns the active week, the undo history, the archive of past weeks, the
last submitted input form and the generation status (loading / error), and
mirrors every change to the injected storage.

Lifecycle:
    NO_ACTIVE_SCHEDULE --generate ok--> ACTIVE_SCHEDULE
    ACTIVE_SCHEDULE --start_new_week(confirmed)--> NO_ACTIVE_SCHEDULE  (week archived)
    ACTIVE_SCHEDULE --reset(confirmed)---------> NO_ACTIVE_SCHEDULE  (week discarded)

Both exits clear the undo history, so they cannot be undone.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Literal, Optional, Union

from pydantic import BaseModel

import schedule_ops
from analytics import Dashboard, build_dashboard
from history_manager import DEFAULT_HISTORY_LIMIT, HistoryManager
from llm_engine import GenerationError, ScheduleGenerator
from models import GeneratedSchedule, ScheduleTask, TaskDraft, TaskUpdate, UserInputData
from schedule_merger import build_task_index, locked_tasks, process_schedule
from schedule_ops import MutationResult
from storage import InMemoryStore, PlannerStorage

logger = logging.getLogger("planner.session")


class SessionState(str, Enum):
    NO_ACTIVE_SCHEDULE = "no_active_schedule"
    ACTIVE_SCHEDULE = "active_schedule"


class GenerationOutcome(BaseModel):
    status: Literal["applied", "failed", "stale"]
    sequence: int
    error: Optional[str] = None


class PlannerSession:
    def __init__(self, storage: Optional[PlannerStorage] = None,
                 history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.storage = storage or PlannerStorage(InMemoryStore())
        self.schedule: Optional[GeneratedSchedule] = None
        self.input_data: Optional[UserInputData] = None
        self.history = HistoryManager(limit=history_limit)
        self.archive: List[GeneratedSchedule] = []
        self.loading = False
        self.error: Optional[str] = None
        self._issued_seq = 0        # last generation request handed out
        self._completed_seq = 0     # newest generation request resolved

    @property
    def state(self) -> SessionState:
        if self.schedule is None:
            return SessionState.NO_ACTIVE_SCHEDULE
        return SessionState.ACTIVE_SCHEDULE

    # ── persistence ──────────────────────────────────────────────────

    def restore(self) -> None:
        """Load the saved week and input form. Unreadable records are dropped."""
        self.schedule = self.storage.load_schedule()
        self.input_data = self.storage.load_input()
        logger.info("Session restored (state=%s, input=%s)",
                    self.state.value, "yes" if self.input_data else "no")

    def _set_schedule(self, schedule: Optional[GeneratedSchedule]) -> None:
        self.schedule = schedule
        if schedule is not None:
            self.storage.save_schedule(schedule)

    def set_input(self, input_data: UserInputData) -> None:
        self.input_data = input_data
        self.storage.save_input(input_data)

    # ── generation ───────────────────────────────────────────────────

    async def generate(
        self,
        generator: ScheduleGenerator,
        input_data: UserInputData,
        keep_existing: bool = False,
    ) -> GenerationOutcome:
        """
        Request a new week from ``generator`` and make it the active schedule.

        Tasks that match one of the current week keep its id and completion
        state. With ``keep_existing`` the user's own tasks are also sent as
        locked tasks. A result is dropped when a newer request has already
        resolved, and a failure is dropped when a newer request has been
        issued. Otherwise a failure leaves the current schedule as it was and
        sets ``error``.
        """
        self._issued_seq += 1
        seq = self._issued_seq
        self.loading = True
        self.error = None
        self.set_input(input_data)
        locked = locked_tasks(self.schedule) if keep_existing else []

        try:
            result = await generator.generate(input_data, locked)
        except GenerationError as e:
            # A newer request is still pending or has already resolved.
            if seq < self._issued_seq:
                logger.info("Ignoring failure of superseded generation request #%d", seq)
                return GenerationOutcome(status="stale", sequence=seq)
            self._completed_seq = seq
            self.error = str(e)
            logger.warning("Generation request #%d failed: %s", seq, e)
            return GenerationOutcome(status="failed", sequence=seq, error=self.error)
        finally:
            if seq == self._issued_seq:
                self.loading = False

        if seq < self._completed_seq:
            logger.info("Discarding stale generation result #%d (newest completed #%d)",
                        seq, self._completed_seq)
            return GenerationOutcome(status="stale", sequence=seq)

        existing_index = build_task_index(self.schedule) if self.schedule is not None else None
        self._completed_seq = seq
        self._set_schedule(process_schedule(result, existing_index))
        self.history.clear()
        self.error = None
        logger.info("Applied generation request #%d: %d tasks for week of %s",
                    seq, self.schedule.task_count(), self.schedule.week_start)
        return GenerationOutcome(status="applied", sequence=seq)

    # ── edits ────────────────────────────────────────────────────────

    def _mutate(self, op: Callable[[GeneratedSchedule], MutationResult]
                ) -> MutationResult:
        if self.schedule is None:
            return MutationResult(status="no_schedule")
        self.history.record_snapshot(self.schedule)
        result = op(self.schedule)
        if result.applied:
            self._set_schedule(result.schedule)
        else:
            logger.debug("Edit target not found: %s", result.task_id)
        return result

    def toggle_task(self, day_index: int, task_id: str) -> MutationResult:
        return self._mutate(lambda s: schedule_ops.toggle_completion(s, day_index, task_id))

    def add_task(self, day_index: int,
                 task: Union[ScheduleTask, TaskDraft]) -> MutationResult:
        if isinstance(task, TaskDraft):
            task = schedule_ops.task_from_draft(task)
        return self._mutate(lambda s: schedule_ops.add_task(s, day_index, task))

    def update_task(self, day_index: int, task_id: str,
                    changes: TaskUpdate) -> MutationResult:
        return self._mutate(lambda s: schedule_ops.update_task(s, day_index, task_id, changes))

    def delete_task(self, day_index: int, task_id: str) -> MutationResult:
        return self._mutate(lambda s: schedule_ops.delete_task(s, day_index, task_id))

    def refresh(self) -> MutationResult:
        return self._mutate(schedule_ops.resort_days)

    def undo(self) -> bool:
        if not self.history.can_undo:
            return False
        self._set_schedule(self.history.undo(self.schedule))
        return True

    # ── lifecycle ────────────────────────────────────────────────────

    def start_new_week(self, confirmed: bool = False) -> bool:
        """Archive the active week and go back to setup. Needs ``confirmed``."""
        if not confirmed:
            return False
        if self.schedule is not None:
            self.archive.append(self.schedule)
        self._leave_schedule()
        logger.info("Started a new week (%d archived)", len(self.archive))
        return True

    def reset(self, confirmed: bool = False) -> bool:
        """Throw the active week away without archiving it. Needs ``confirmed``."""
        if not confirmed:
            return False
        self._leave_schedule()
        logger.info("Session reset")
        return True

    def _leave_schedule(self) -> None:
        self.schedule = None
        self.error = None
        self.history.clear()
        self.storage.clear_schedule()

    # ── views ────────────────────────────────────────────────────────

    def dashboard(self) -> Optional[Dashboard]:
        if self.schedule is None:
            return None
        return build_dashboard(self.schedule)
