"""
Small helpers for smoothing and debouncing per-frame results.
"""
from __future__ import annotations
from collections import Counter, deque
from typing import Deque, List, Optional

from vibecraft.models import EmotionLabel

DEFAULT_WINDOW = 5


class TemporalSmoother:
    """
    Majority vote over the last `window` labels.

    Ties go to the most recently observed label: the buffer is scanned from
    newest to oldest and the first label holding the top count wins.
    """
    def __init__(self, window: int = DEFAULT_WINDOW):
        if window < 1:
            raise ValueError("window must be >= 1")
        self.window = int(window)
        self._buf: Deque[EmotionLabel] = deque(maxlen=self.window)

    def push(self, label: EmotionLabel) -> EmotionLabel:
        self._buf.append(EmotionLabel(label))
        return self.current()

    def current(self) -> Optional[EmotionLabel]:
        if not self._buf:
            return None
        counts = Counter(self._buf)
        top = max(counts.values())
        for label in reversed(self._buf):
            if counts[label] == top:
                return label
        return None

    def snapshot(self) -> List[EmotionLabel]:
        return list(self._buf)

    def reset(self) -> None:
        self._buf.clear()

    def __len__(self) -> int:
        return len(self._buf)


class NoFaceHysteresis:
    """Debounce NO_FACE with consecutive confirmations."""
    def __init__(self, needed: int = 3):
        self.needed = int(needed)
        self.count = 0
        self.cur: Optional[str] = None

    def step(self, face_seen: Optional[bool]) -> Optional[str]:
        """
        Update debounced flag state.
        - False: increment counter and latch "NO_FACE" when met
        - True: explicit clear
        - None: keep counter and current latched state
        """
        if face_seen is None:
            return self.cur
        if face_seen:
            self.count = 0
            self.cur = None
        else:
            self.count += 1
            if self.count >= self.needed:
                self.cur = "NO_FACE"
        return self.cur
