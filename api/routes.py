"""
REST endpoints for mood capture, live tracking and history.
"""
from typing import List
import logging

from fastapi import APIRouter, HTTPException

from vibecraft.config import Settings
from vibecraft.errors import CapabilityError, InvalidTransitionError
from vibecraft.history import JsonFileBackend, MoodHistoryStore
from vibecraft.live import LiveSession
from vibecraft.models import DailyMoodEntry, FrameResult, LandmarkFrame, LiveStatus, MoodSummary
from vibecraft.pipeline import CapturePipeline
from vibecraft.vision import QueuedFrameProvider


router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

store = MoodHistoryStore(JsonFileBackend(settings.HISTORY_PATH), settings.HISTORY_DAYS)
live_session = LiveSession(store, settings)


@router.get("/history", response_model=List[DailyMoodEntry])
def history():
    """
    Stored daily mood counters, oldest day first (empty list when nothing is stored).
    """
    return store.load()


@router.get("/history/summary", response_model=MoodSummary)
def history_summary():
    return store.summary()


@router.post("/capture", response_model=FrameResult)
async def capture(frame: LandmarkFrame):
    """
    Single-capture analysis: classify one landmark frame and record it in the history.

    Args:
        frame: Normalized Face Mesh landmarks of the captured snapshot.

    Returns:
        FrameResult: captured emotion and final pipeline state.
    """
    logger.debug(f"[api] /capture points={len(frame.points)}")
    pipeline = CapturePipeline(QueuedFrameProvider([frame]), store, settings)
    try:
        await pipeline.start()
        label = await pipeline.capture()
        state = pipeline.state
    except CapabilityError as e:
        logger.exception("[api] capture failed")
        raise HTTPException(status_code=503, detail=str(e))
    finally:
        await pipeline.stop()
    if label is None:
        raise HTTPException(status_code=422, detail="No face detected. Please try again.")
    return FrameResult(state=state, emotion=label)


@router.post("/live/start")
async def live_start():
    try:
        started = await live_session.start()
    except CapabilityError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"status": "started" if started else "already_running"}


@router.post("/live/frame", response_model=FrameResult)
def live_frame(frame: LandmarkFrame):
    if not live_session.running:
        raise HTTPException(status_code=409, detail="Live session is not running")
    try:
        return live_session.push(frame)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/live/status", response_model=LiveStatus)
async def live_status():
    return live_session.status()


@router.post("/live/stop")
async def live_stop():
    stopped = await live_session.stop()
    return {"status": "stopped" if stopped else "not_running"}
