
import asyncio

import numpy as np
import pytest

import vibecraft.live as live
from vibecraft.errors import CapabilityAcquisitionError
from vibecraft.models import EmotionLabel, LandmarkFrame, PipelineState
from vibecraft.vision import QueuedFrameProvider


def test_LiveSession(happy_frame, memory_store, settings):
    session = live.LiveSession(memory_store, settings)

    async def scenario():
        assert session.status().running is False
        assert session.push(happy_frame).state is PipelineState.IDLE

        assert await session.start() is True
        assert await session.start() is False

        res = session.push(happy_frame)
        assert res.emotion is EmotionLabel.HAPPY and res.state is PipelineState.READY
        # faceless frame keeps the last smoothed label
        res = session.push(LandmarkFrame())
        assert res.emotion is EmotionLabel.HAPPY

        st = session.status()
        assert st.running and st.frames == 2 and st.emotion is EmotionLabel.HAPPY
        assert st.started_at is not None

        assert await session.stop() is True
        assert await session.stop() is False

    asyncio.run(scenario())
    assert session.status().state is PipelineState.IDLE
    assert memory_store.load()[0].happy == 1


def test_LiveSession_start_failure(memory_store, settings):
    class Denied(QueuedFrameProvider):
        async def open(self):
            raise CapabilityAcquisitionError("Camera access denied")

    session = live.LiveSession(memory_store, settings, provider_factory=Denied)
    with pytest.raises(CapabilityAcquisitionError):
        asyncio.run(session.start())
    assert session.running is False


class ImageQueueProvider(QueuedFrameProvider):
    """Queued frames plus a fake camera image for the overlay."""
    last_image = None

    async def read(self):
        ok, frame = await super().read()
        self.last_image = np.zeros((32, 32, 3), dtype=np.uint8) if ok else None
        return ok, frame


def test_run_live_overlay_monkeypatch(monkeypatch, happy_frame, memory_store, settings):
    provider = ImageQueueProvider([happy_frame, None, happy_frame, happy_frame, happy_frame])
    monkeypatch.setattr(live, "FaceMeshProvider", lambda s, camera_index=None: provider)
    shown = []
    monkeypatch.setattr(live.cv2, "imshow", lambda title, img: shown.append(img))
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: None)
    calls = {"n": 0}
    def fake_waitKey(delay):
        calls["n"] += 1
        return ord("q") if calls["n"] > 3 else -1
    monkeypatch.setattr(live.cv2, "waitKey", fake_waitKey)

    n = live.run_live_overlay(settings, camera_index=0, store=memory_store)

    assert n == 4
    assert len(shown) == 4
    assert provider.open_calls == 1 and provider.close_calls == 1
    assert memory_store.load()[0].happy == 1


def test_LiveSession_push_from_worker_threads(happy_frame, memory_store, settings):
    session = live.LiveSession(memory_store, settings)

    def push_many():
        return [session.push(happy_frame).emotion for _ in range(25)]

    async def scenario():
        await session.start()
        results = await asyncio.gather(*(asyncio.to_thread(push_many) for _ in range(4)))
        frames = session.status().frames
        await session.stop()
        return results, frames

    results, frames = asyncio.run(scenario())
    assert frames == 100
    assert all(label is EmotionLabel.HAPPY for batch in results for label in batch)
