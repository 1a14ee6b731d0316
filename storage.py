import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol

from pydantic import ValidationError

from models import GeneratedSchedule, UserInputData

logger = logging.getLogger("planner.storage")

SCHEDULE_KEY = "novarame_schedule"
INPUT_KEY = "novarame_input"


class KeyValueStore(Protocol):
    def load(self, key: str) -> Optional[str]: ...
    def save(self, key: str, blob: str) -> None: ...
    def remove(self, key: str) -> None: ...


class InMemoryStore:
    """Dict-backed store. Used by tests and as a throwaway default."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def save(self, key: str, blob: str) -> None:
        self.data[key] = blob

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore:
    """
    Persistent store backed by a single JSON file: {key: blob}.
    The whole document is rewritten on every save.
    """

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    # ── persistence ──────────────────────────────────────────────────

    def _read(self) -> Dict[str, str]:
        if not self.file_path.exists():
            return {}
        try:
            with open(self.file_path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Unreadable store %s, starting empty: %s", self.file_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        # Write beside the target, then swap it in so a crash never leaves half a file.
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.file_path)

    # ── KeyValueStore ────────────────────────────────────────────────

    def load(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def save(self, key: str, blob: str) -> None:
        data = self._read()
        data[key] = blob
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class PlannerStorage:
    """Typed view over a KeyValueStore holding the active week and the last input form."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load_model(self, key: str, model):
        blob = self.store.load(key)
        if blob is None:
            return None
        try:
            return model.model_validate_json(blob)
        except ValidationError as e:
            # Covers malformed JSON as well as shape mismatches.
            logger.error("Failed to parse saved %s, discarding it: %s", key, e)
            self.store.remove(key)
            return None

    def load_schedule(self) -> Optional[GeneratedSchedule]:
        return self._load_model(SCHEDULE_KEY, GeneratedSchedule)

    def save_schedule(self, schedule: GeneratedSchedule) -> None:
        self.store.save(SCHEDULE_KEY, schedule.model_dump_json())

    def clear_schedule(self) -> None:
        self.store.remove(SCHEDULE_KEY)

    def load_input(self) -> Optional[UserInputData]:
        return self._load_model(INPUT_KEY, UserInputData)

    def save_input(self, input_data: UserInputData) -> None:
        self.store.save(INPUT_KEY, input_data.model_dump_json())
