# vibecraft/pipeline.py
"""
Capture pipeline: landmarks -> features -> label -> smoothed label -> history.

Two ways to drive it:
  - discrete capture: start() -> capture() -> reset(), one history increment
    per successful capture;
  - continuous (live HUD): start() -> on_frame() per frame (or run_live()),
    history increments throttled to HISTORY_WRITE_INTERVAL.
"""
from __future__ import annotations
from contextlib import AsyncExitStack
from datetime import date
from typing import Callable, Dict, List, Optional, Set
import asyncio
import logging
import time

from vibecraft.classifier import classify_frame
from vibecraft.config import Settings
from vibecraft.errors import (
    CapabilityAcquisitionError,
    CapabilityError,
    CapabilityLostError,
    FrameError,
    InvalidTransitionError,
    PersistenceError,
)
from vibecraft.history import MoodHistoryStore, day_key
from vibecraft.models import EmotionLabel, LandmarkFrame, PipelineState
from vibecraft.smoothing import TemporalSmoother
from vibecraft.vision import VisionProvider, acquire

logger = logging.getLogger(__name__)

S = PipelineState
Listener = Callable[[EmotionLabel], None]
TickHook = Callable[[Optional[LandmarkFrame], Optional[EmotionLabel]], Optional[bool]]

TRANSITIONS: Dict[PipelineState, Set[PipelineState]] = {
    S.IDLE: {S.INITIALIZING},
    S.INITIALIZING: {S.READY, S.ERROR, S.IDLE},
    S.READY: {S.SCANNING, S.ERROR, S.IDLE},
    S.SCANNING: {S.CAPTURED, S.READY, S.ERROR, S.IDLE},
    S.CAPTURED: {S.IDLE},
    S.ERROR: {S.IDLE},
}


class CapturePipeline:
    """Owns one capture session: provider handle, smoothing buffer and write throttle."""
    def __init__(
        self,
        provider: VisionProvider,
        store: MoodHistoryStore,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
    ):
        self.s = settings or Settings()
        self.provider = provider
        self.store = store
        self._clock = clock
        self._today = today
        self._smoother = TemporalSmoother(self.s.SMOOTHING_WINDOW)
        self._listeners: List[Listener] = []
        self._state = S.IDLE
        self._stack: Optional[AsyncExitStack] = None
        self._init_task: Optional[asyncio.Task] = None
        self._stop_requested = False
        self._last_write: Optional[float] = None
        self.current: Optional[EmotionLabel] = None
        self.captured: Optional[EmotionLabel] = None
        self.error: Optional[str] = None
        self.frames_seen = 0

    # ---- state ----
    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def smoother(self) -> TemporalSmoother:
        return self._smoother

    def _transition(self, new: PipelineState) -> None:
        if new not in TRANSITIONS[self._state]:
            raise InvalidTransitionError(self._state.value, new.value)
        logger.debug(f"[pipeline] {self._state.value} -> {new.value}")
        self._state = new

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ---- lifecycle ----
    async def start(self) -> None:
        """Acquire the provider; ends in READY or raises CapabilityAcquisitionError (state ERROR)."""
        self._transition(S.INITIALIZING)
        self._clear_session()
        self._init_task = asyncio.current_task()
        stack = AsyncExitStack()
        try:
            await stack.enter_async_context(acquire(self.provider))
        except asyncio.CancelledError:
            logger.debug("[pipeline] initialization cancelled")
            self._state = S.IDLE
            raise
        except CapabilityAcquisitionError as e:
            self._fail(str(e))
            raise
        except Exception as e:
            self._fail(f"Initialization failed: {e}")
            raise CapabilityAcquisitionError(self.error) from e
        finally:
            self._init_task = None
        self._stack = stack
        self._transition(S.READY)
        logger.debug("[pipeline] capability acquired")

    async def capture(self) -> Optional[EmotionLabel]:
        """
        Classify one snapshot frame.

        Returns the captured label, or None when no face / no usable landmarks
        were found (state goes back to READY for another attempt).
        """
        self._transition(S.SCANNING)
        try:
            ok, frame = await self.provider.read()
        except Exception as e:
            raise await self._lose(e) from e
        label = self._classify(frame) if ok else None
        if label is None:
            logger.debug("[pipeline] no face detected; back to ready")
            self._transition(S.READY)
            return None

        smoothed = self._smoother.push(label)
        self.captured = smoothed
        self.current = smoothed
        self._transition(S.CAPTURED)
        await asyncio.to_thread(self._record, smoothed)
        await self._release()
        self._emit(smoothed)
        return smoothed

    async def reset(self) -> None:
        """CAPTURED / ERROR -> IDLE, releasing the capability and session state."""
        if self._state not in (S.CAPTURED, S.ERROR):
            raise InvalidTransitionError(self._state.value, S.IDLE.value)
        await self._release()
        self._clear_session()
        self.error = None
        self._transition(S.IDLE)

    async def stop(self) -> None:
        """Return to IDLE from any state. Cancels an acquisition still in flight."""
        self._stop_requested = True
        task = self._init_task
        if self._state is S.INITIALIZING and task is not None and task is not asyncio.current_task():
            task.cancel()
            return
        await self._release()
        self._clear_session()
        if self._state is not S.IDLE:
            self._state = S.IDLE
            logger.debug("[pipeline] stopped")

    # ---- continuous mode ----
    def on_frame(self, frame: Optional[LandmarkFrame]) -> Optional[EmotionLabel]:
        """
        Process one live frame. Returns the smoothed label, or None if the
        frame was skipped (no face or unusable landmarks).
        """
        self._transition(S.SCANNING)
        try:
            self.frames_seen += 1
            label = self._classify(frame)
            if label is None:
                return None
            smoothed = self._smoother.push(label)
            if smoothed != self.current:
                self.current = smoothed
                self._emit(smoothed)
            self._maybe_record(smoothed)
            return smoothed
        finally:
            if self._state is S.SCANNING:
                self._transition(S.READY)

    async def run_live(
        self,
        max_frames: Optional[int] = None,
        on_tick: Optional[TickHook] = None,
    ) -> int:
        """
        Pull frames from the provider until it ends, stop() is called or
        max_frames is hit. `on_tick(frame, label)` runs after every frame and
        may return False to end the loop. Returns the number of frames read.
        """
        self._stop_requested = False
        n = 0
        while self._state is S.READY and not self._stop_requested:
            try:
                ok, frame = await self.provider.read()
            except Exception as e:
                raise await self._lose(e) from e
            if not ok:
                logger.debug("[pipeline] frame stream ended")
                break
            label = self.on_frame(frame)
            n += 1
            if on_tick is not None and on_tick(frame, label) is False:
                break
            if max_frames is not None and n >= max_frames:
                break
            await asyncio.sleep(0)
        return n

    # ---- helpers ----
    def _classify(self, frame: Optional[LandmarkFrame]) -> Optional[EmotionLabel]:
        if frame is None or frame.is_empty():
            return None
        try:
            return classify_frame(frame)
        except FrameError as e:
            logger.debug(f"[pipeline] skipping frame: {type(e).__name__}: {e}")
            return None

    def _emit(self, label: EmotionLabel) -> None:
        for listener in list(self._listeners):
            try:
                listener(label)
            except Exception:
                logger.exception("[pipeline] emotion listener failed")

    def _record(self, label: EmotionLabel) -> None:
        try:
            self.store.increment(label, day_key(self._today()))
        except PersistenceError as e:
            logger.warning(f"[pipeline] history write skipped: {e}")

    def _maybe_record(self, label: EmotionLabel) -> None:
        now = self._clock()
        if self._last_write is not None and (now - self._last_write) < self.s.HISTORY_WRITE_INTERVAL:
            return
        self._last_write = now
        self._record(label)

    def _fail(self, cause: str) -> None:
        self.error = cause
        self._state = S.ERROR
        logger.warning(f"[pipeline] session error: {cause}")

    async def _lose(self, exc: Exception) -> CapabilityLostError:
        cause = str(exc) if isinstance(exc, CapabilityError) else f"Detection failed: {exc}"
        self._fail(cause)
        await self._release()
        return CapabilityLostError(cause)

    async def _release(self) -> None:
        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.aclose()

    def _clear_session(self) -> None:
        self._smoother.reset()
        self._last_write = None
        self.current = None
        self.captured = None
        self.frames_seen = 0
