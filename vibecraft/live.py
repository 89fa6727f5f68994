# vibecraft/live.py
"""
Live (continuous) emotion tracking.

- LiveSession: a continuous pipeline fed by frames pushed from outside (the
  HTTP API); start / push / status / stop.
- run_live_overlay: webcam + Face Mesh window that draws the HUD
  (emotion ring, landmark dots, label; NO_FACE debounced with hysteresis).
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Callable, Optional

import cv2

from vibecraft.config import Settings
from vibecraft.history import JsonFileBackend, MoodHistoryStore
from vibecraft.models import EmotionLabel, FrameResult, LandmarkFrame, LiveStatus, PipelineState
from vibecraft.pipeline import CapturePipeline
from vibecraft.smoothing import NoFaceHysteresis
from vibecraft.vision import FaceMeshProvider, QueuedFrameProvider, VisionProvider
from vibecraft.visual import draw_overlays

logger = logging.getLogger(__name__)

NO_FACE_HYSTERESIS = 3         # Require N consecutive faceless frames before flagging
WINDOW_TITLE = "VibeCraft Live (q to quit)"


class LiveSession:
    """Continuous pipeline whose frames arrive through push()."""
    def __init__(self, store: MoodHistoryStore, settings: Settings,
                 provider_factory: Callable[[], VisionProvider] = QueuedFrameProvider):
        self.s = settings
        self.store = store
        self._provider_factory = provider_factory
        self._pipeline: Optional[CapturePipeline] = None
        self._started_at: Optional[float] = None
        self._push_lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._pipeline is not None

    async def start(self) -> bool:
        """Acquire a fresh pipeline. Returns False if already running."""
        if self.running:
            return False
        pipeline = CapturePipeline(self._provider_factory(), self.store, self.s)
        await pipeline.start()
        self._pipeline = pipeline
        self._started_at = time.time()
        logger.debug("[live] session started")
        return True

    def push(self, frame: LandmarkFrame) -> FrameResult:
        """Feed one frame. Safe to call from worker threads; frames are processed one at a time."""
        with self._push_lock:
            pipeline = self._pipeline
            if pipeline is None:
                return FrameResult(state=PipelineState.IDLE)
            label = pipeline.on_frame(frame)
            return FrameResult(state=pipeline.state, emotion=label or pipeline.current)

    async def stop(self) -> bool:
        if self._pipeline is None:
            return False
        pipeline, self._pipeline = self._pipeline, None
        await pipeline.stop()
        self._started_at = None
        logger.debug("[live] session stopped")
        return True

    def status(self) -> LiveStatus:
        p = self._pipeline
        return LiveStatus(
            running=p is not None,
            state=p.state if p else PipelineState.IDLE,
            started_at=self._started_at,
            emotion=p.current if p else None,
            frames=p.frames_seen if p else 0,
        )


# -----------------------------------------------------------------------------
# Live camera overlay (Face Mesh + OpenCV)
# -----------------------------------------------------------------------------
def run_live_overlay(settings: Settings,
                     camera_index: Optional[int] = None,
                     store: Optional[MoodHistoryStore] = None) -> int:
    """
    Open webcam, classify every frame, draw the HUD and keep the mood history
    updated on the throttled cadence. Press 'q' to quit.

    Returns the number of frames processed.
    """
    if store is None:
        store = MoodHistoryStore(JsonFileBackend(settings.HISTORY_PATH), settings.HISTORY_DAYS)
    provider = FaceMeshProvider(settings, camera_index=camera_index)
    return asyncio.run(_overlay_loop(provider, store, settings))


async def _overlay_loop(provider: VisionProvider, store: MoodHistoryStore, settings: Settings) -> int:
    pipeline = CapturePipeline(provider, store, settings)
    debouncer = NoFaceHysteresis(needed=NO_FACE_HYSTERESIS)
    pipeline.add_listener(lambda label: logger.info(f"[live] mood -> {label.value}"))

    def tick(frame: Optional[LandmarkFrame], label: Optional[EmotionLabel]) -> bool:
        flag = debouncer.step(frame is not None and not frame.is_empty())
        image = provider.last_image
        if image is not None:
            annotated = draw_overlays(image, frame, pipeline.current, flag)
            cv2.imshow(WINDOW_TITLE, annotated)
        return (cv2.waitKey(1) & 0xFF) != ord("q")

    await pipeline.start()
    try:
        return await pipeline.run_live(on_tick=tick)
    finally:
        await pipeline.stop()
        cv2.destroyAllWindows()
