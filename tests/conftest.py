import pytest

from vibecraft.config import Settings
from vibecraft.history import InMemoryBackend, MoodHistoryStore

from faces import ANGRY, HAPPY, NEUTRAL, SAD, SURPRISED, build_frame


@pytest.fixture
def make_frame():
    return build_frame


@pytest.fixture
def happy_frame():
    return build_frame(HAPPY)


@pytest.fixture
def neutral_frame():
    return build_frame(NEUTRAL)


@pytest.fixture
def sad_frame():
    return build_frame(SAD)


@pytest.fixture
def surprised_frame():
    return build_frame(SURPRISED)


@pytest.fixture
def angry_frame():
    return build_frame(ANGRY)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        HISTORY_WRITE_INTERVAL=5.0,
        SMOOTHING_WINDOW=5,
        HISTORY_DAYS=7,
        HISTORY_PATH=str(tmp_path / "mood_history.json"),
    )


@pytest.fixture
def memory_store():
    return MoodHistoryStore(InMemoryBackend(), max_days=7)
