import logging
from typing import List, Optional

from models import GeneratedSchedule

logger = logging.getLogger("planner.history")

DEFAULT_HISTORY_LIMIT = 20


class HistoryManager:
    """
    Bounded undo stack of whole-schedule snapshots.
    Oldest snapshot is evicted once the stack grows past ``limit``.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.limit = limit
        self._snapshots: List[GeneratedSchedule] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return bool(self._snapshots)

    def record_snapshot(self, schedule: Optional[GeneratedSchedule]) -> None:
        if schedule is None:
            return
        self._snapshots.append(schedule.model_copy(deep=True))
        if len(self._snapshots) > self.limit:
            del self._snapshots[0]

    def undo(self, current: Optional[GeneratedSchedule]) -> Optional[GeneratedSchedule]:
        """Pop the latest snapshot; with nothing to undo, hand back ``current``."""
        if not self._snapshots:
            return current
        previous = self._snapshots.pop()
        logger.debug("Undo: %d snapshot(s) left", len(self._snapshots))
        return previous

    def clear(self) -> None:
        self._snapshots = []
