"""
Day-bucketed emotion counters, capped to a trailing window and persisted
through a pluggable backend.

Stored layout (JSON), oldest day first:
    [{"date": "2026-10-19", "happy": 3, "sad": 0, "angry": 0, "surprised": 1, "neutral": 7}, ...]
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date as date_cls
from pathlib import Path
from typing import List, Optional, Union
import json
import logging
import os
import tempfile
import threading

from pydantic import TypeAdapter, ValidationError

from vibecraft.errors import PersistenceError
from vibecraft.models import DailyMoodEntry, EmotionLabel, MoodSummary

logger = logging.getLogger(__name__)

DEFAULT_MAX_DAYS = 7

_entries_adapter = TypeAdapter(List[DailyMoodEntry])

DateKey = Union[str, date_cls]


def day_key(day: Optional[date_cls] = None) -> str:
    """ISO calendar-day key such as "2026-10-19"; carries the year so keys never repeat."""
    day = day or date_cls.today()
    return day.isoformat()


# -----------------------------------------------------------------------------
# Backends: a single durable slot holding the serialized history
# -----------------------------------------------------------------------------
class HistoryBackend(ABC):
    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored payload, or None when nothing was stored yet."""

    @abstractmethod
    def write(self, payload: str) -> None:
        """Replace the stored payload atomically."""


class InMemoryBackend(HistoryBackend):
    def __init__(self, payload: Optional[str] = None):
        self.payload = payload
        self.writes = 0

    def read(self) -> Optional[str]:
        return self.payload

    def write(self, payload: str) -> None:
        self.payload = payload
        self.writes += 1


class JsonFileBackend(HistoryBackend):
    """JSON file replaced via temp file + os.replace, so readers never see a partial write."""
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"could not read {self.path}: {e}") from e

    def write(self, payload: str) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent,
                prefix=f".{self.path.name}.", suffix=".tmp", delete=False,
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError(f"could not write {self.path}: {e}") from e


# -----------------------------------------------------------------------------
# Store
# -----------------------------------------------------------------------------
class MoodHistoryStore:
    """
    Read-modify-write access to the persisted mood history.

    Increments are serialized with a lock so several pipelines can share one
    store without losing updates.
    """
    def __init__(self, backend: HistoryBackend, max_days: int = DEFAULT_MAX_DAYS):
        self.backend = backend
        self.max_days = max(1, int(max_days))
        self._lock = threading.Lock()

    def load(self) -> List[DailyMoodEntry]:
        """Stored history, oldest first. Absent or unreadable payloads yield []."""
        try:
            return self._decode(self.backend.read())
        except PersistenceError as e:
            logger.warning(f"[history] discarding stored history: {e}")
            return []

    def save(self, history: List[DailyMoodEntry]) -> None:
        history = list(history)[-self.max_days:]
        payload = json.dumps([e.model_dump() for e in history], ensure_ascii=False)
        self.backend.write(payload)
        logger.debug(f"[history] saved days={len(history)}")

    def increment(self, label: EmotionLabel, today: DateKey) -> DailyMoodEntry:
        """Count one `label` for `today`, creating the day if needed and trimming old days."""
        label = EmotionLabel(label)
        key = day_key(today) if isinstance(today, date_cls) else str(today)
        with self._lock:
            history = self.load()
            entry = next((e for e in history if e.date == key), None)
            if entry is None:
                entry = DailyMoodEntry(date=key)
                history.append(entry)
            entry.bump(label)
            history = history[-self.max_days:]
            self.save(history)
        logger.debug(f"[history] {key} {label.value} -> {getattr(entry, label.value)}")
        return entry

    def clear(self) -> None:
        with self._lock:
            self.save([])

    def summary(self) -> MoodSummary:
        return summarize(self.load())

    # ---- helpers ----
    def _decode(self, raw: Optional[str]) -> List[DailyMoodEntry]:
        if raw is None or not raw.strip():
            return []
        try:
            history = _entries_adapter.validate_json(raw)
        except ValidationError as e:
            raise PersistenceError(f"malformed history payload ({e.error_count()} errors)") from e
        dates = [e.date for e in history]
        if len(set(dates)) != len(dates):
            raise PersistenceError("duplicate dates in history payload")
        return history[-self.max_days:]


def summarize(history: List[DailyMoodEntry]) -> MoodSummary:
    """Totals per label across the stored days and the most frequent label."""
    totals = {label: 0 for label in EmotionLabel}
    for entry in history:
        for label, n in entry.counts.items():
            totals[label] += n
    dominant = None
    if any(totals.values()):
        dominant = max(EmotionLabel, key=lambda label: totals[label])
    return MoodSummary(days=len(history), totals=totals, dominant=dominant)
