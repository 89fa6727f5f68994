"""
Landmark providers: the external "camera + landmark model" capability.

A provider is opened once per session, read once per frame and closed once.
`read()` follows the cv2 `cap.read()` convention and returns `(ok, frame)`:
ok=False means the stream ended, frame=None means no face in this frame.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Deque, Iterable, Optional, Tuple, TypeVar
import asyncio
import logging

import cv2
import numpy as np

from vibecraft.config import Settings
from vibecraft.errors import CapabilityAcquisitionError, CapabilityLostError
from vibecraft.models import LandmarkFrame

logger = logging.getLogger(__name__)

ReadResult = Tuple[bool, Optional[LandmarkFrame]]
T = TypeVar("T")


class VisionProvider(ABC):
    # BGR image behind the latest read, for overlays; None if the provider has no pixels
    last_image: Optional[np.ndarray] = None

    @abstractmethod
    async def open(self) -> None:
        """Acquire device and model. Raise CapabilityAcquisitionError on failure."""

    @abstractmethod
    async def read(self) -> ReadResult:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


@asynccontextmanager
async def acquire(provider: VisionProvider) -> AsyncIterator[VisionProvider]:
    """Open `provider` and close it exactly once, whether open fails, is cancelled or succeeds."""
    try:
        await provider.open()
        yield provider
    finally:
        provider.close()
        logger.debug(f"[vision] released {type(provider).__name__}")


async def _in_worker(fn: Callable[..., T], *args: Any, on_orphan: Callable[[T], Any]) -> T:
    """
    Run blocking `fn` in a worker thread. If the caller is cancelled while the
    call is still running, its eventual result is handed to `on_orphan`.
    """
    job = asyncio.ensure_future(asyncio.to_thread(fn, *args))
    try:
        return await asyncio.shield(job)
    except asyncio.CancelledError:
        def _cleanup(done: asyncio.Future) -> None:
            if not done.cancelled() and done.exception() is None:
                on_orphan(done.result())
        job.add_done_callback(_cleanup)
        raise


class QueuedFrameProvider(VisionProvider):
    """Frames pushed in by the caller (HTTP clients, tests); ends when the queue is drained."""
    def __init__(self, frames: Iterable[Optional[LandmarkFrame]] = ()):
        self._frames: Deque[Optional[LandmarkFrame]] = deque(frames)
        self.opened = False
        self.open_calls = 0
        self.close_calls = 0

    def push(self, frame: Optional[LandmarkFrame]) -> None:
        self._frames.append(frame)

    async def open(self) -> None:
        self.open_calls += 1
        self.opened = True

    async def read(self) -> ReadResult:
        if not self._frames:
            return False, None
        return True, self._frames.popleft()

    def close(self) -> None:
        self.close_calls += 1
        self.opened = False


class FaceMeshProvider(VisionProvider):
    """Webcam frames through MediaPipe Face Mesh (single face)."""
    def __init__(self, settings: Settings, camera_index: Optional[int] = None):
        self.s = settings
        self.camera_index = settings.CAMERA_INDEX if camera_index is None else camera_index
        self._cap = None
        self._mesh = None
        self.last_image = None

    async def open(self) -> None:
        logger.debug(f"[vision] opening camera index={self.camera_index} "
                     f"size={self.s.CAMERA_WIDTH}x{self.s.CAMERA_HEIGHT}")
        # Device and model setup block; run them in a worker so stop() can cancel the wait
        self._cap = await _in_worker(cv2.VideoCapture, self.camera_index, on_orphan=lambda cap: cap.release())
        if not self._cap.isOpened():
            raise CapabilityAcquisitionError(f"Camera access denied (index {self.camera_index})")
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.s.CAMERA_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.s.CAMERA_HEIGHT)

        try:
            self._mesh = await _in_worker(self._load_mesh, on_orphan=lambda mesh: mesh.close())
        except Exception as e:
            raise CapabilityAcquisitionError(f"Failed to initialize face detection: {e}") from e

    def _load_mesh(self):
        # Lazy import so the rest of the package works without the model stack
        import mediapipe as mp
        return mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=self.s.MIN_DETECTION_CONFIDENCE,
            min_tracking_confidence=self.s.MIN_TRACKING_CONFIDENCE,
        )

    async def read(self) -> ReadResult:
        if self._cap is None or self._mesh is None:
            raise CapabilityLostError("provider is not open")
        ok, image = await asyncio.to_thread(self._cap.read)
        if not ok:
            return False, None
        self.last_image = image
        try:
            res = await asyncio.to_thread(self._detect, image)
        except Exception as e:
            raise CapabilityLostError(f"Detection failed: {e}") from e
        if not res.multi_face_landmarks:
            return True, None
        lm = res.multi_face_landmarks[0].landmark
        return True, LandmarkFrame.from_points((p.x, p.y, p.z) for p in lm)

    def _detect(self, image: np.ndarray):
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        return self._mesh.process(rgb)

    def close(self) -> None:
        if self._mesh is not None:
            self._mesh.close()
            self._mesh = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
