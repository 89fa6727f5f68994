"""
Configuration for the mood pipeline.
"""
from pydantic import BaseModel
import os

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    SMOOTHING_WINDOW: int = int(os.getenv("SMOOTHING_WINDOW", "5"))
    HISTORY_DAYS: int = int(os.getenv("HISTORY_DAYS", "7"))
    HISTORY_WRITE_INTERVAL: float = float(os.getenv("HISTORY_WRITE_INTERVAL", "5"))
    HISTORY_PATH: str = os.getenv("HISTORY_PATH", "data/mood_history.json")

    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    CAMERA_WIDTH: int = int(os.getenv("CAMERA_WIDTH", "640"))
    CAMERA_HEIGHT: int = int(os.getenv("CAMERA_HEIGHT", "480"))
    MIN_DETECTION_CONFIDENCE: float = float(os.getenv("MIN_DETECTION_CONFIDENCE", "0.5"))
    MIN_TRACKING_CONFIDENCE: float = float(os.getenv("MIN_TRACKING_CONFIDENCE", "0.5"))

    LOG_LEVEL: str = (os.getenv("LOG_LEVEL", "INFO") or "INFO")

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize LOG_LEVEL: strip comments/extra words, upper-case, validate
        level = ((self.LOG_LEVEL or "INFO").strip().split() or ["INFO"])[0].upper()
        if level not in _LOG_LEVELS:
            level = "INFO"
        object.__setattr__(self, "LOG_LEVEL", level)
        object.__setattr__(self, "SMOOTHING_WINDOW", max(1, int(self.SMOOTHING_WINDOW)))
        object.__setattr__(self, "HISTORY_DAYS", max(1, int(self.HISTORY_DAYS)))
