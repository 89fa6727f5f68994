"""
Pydantic data models for frames, features, labels and history.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field


class EmotionLabel(str, Enum):
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    NEUTRAL = "neutral"


class PipelineState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    SCANNING = "scanning"
    CAPTURED = "captured"
    ERROR = "error"


class Landmark(BaseModel):
    x: float
    y: float
    z: float = 0.0


class LandmarkFrame(BaseModel):
    """One face worth of normalized landmarks, indexed by Face Mesh topology."""
    points: List[Landmark] = Field(default_factory=list)

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "LandmarkFrame":
        out = []
        for p in points:
            out.append(Landmark(x=p[0], y=p[1], z=p[2] if len(p) > 2 else 0.0))
        return cls(points=out)

    def is_empty(self) -> bool:
        return not self.points

    def as_array(self) -> np.ndarray:
        """(N, 3) float array of x, y, z."""
        if not self.points:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([(p.x, p.y, p.z) for p in self.points], dtype=np.float64)


class FeatureVector(BaseModel):
    model_config = ConfigDict(frozen=True)

    mouth_ratio: float
    eye_openness: float
    brow_raised: bool
    is_smiling: bool


class DailyMoodEntry(BaseModel):
    """Per-day counters; serialized flat as {date, happy, sad, angry, surprised, neutral}."""
    date: str
    happy: int = Field(default=0, ge=0)
    sad: int = Field(default=0, ge=0)
    angry: int = Field(default=0, ge=0)
    surprised: int = Field(default=0, ge=0)
    neutral: int = Field(default=0, ge=0)

    @property
    def counts(self) -> Dict[EmotionLabel, int]:
        return {label: getattr(self, label.value) for label in EmotionLabel}

    def bump(self, label: EmotionLabel, by: int = 1) -> None:
        label = EmotionLabel(label)
        setattr(self, label.value, getattr(self, label.value) + by)


class MoodSummary(BaseModel):
    days: int
    totals: Dict[EmotionLabel, int]
    dominant: Optional[EmotionLabel] = None


# api payloads


class FrameResult(BaseModel):
    state: PipelineState
    emotion: Optional[EmotionLabel] = None


class LiveStatus(BaseModel):
    running: bool
    state: PipelineState
    started_at: float | None = None
    emotion: Optional[EmotionLabel] = None
    frames: int = 0
