
import pytest
from pydantic import ValidationError

from vibecraft.models import DailyMoodEntry, EmotionLabel, FeatureVector, LandmarkFrame

def test_models():
    frame = LandmarkFrame.from_points([(0.1, 0.2), (0.3, 0.4, -0.05)])
    assert frame.points[0].z == 0.0
    assert frame.as_array().shape == (2, 3)
    assert LandmarkFrame().is_empty()
    assert LandmarkFrame().as_array().shape == (0, 3)

    entry = DailyMoodEntry(date="Jan 1")
    assert set(entry.counts) == set(EmotionLabel)
    assert all(v == 0 for v in entry.counts.values())
    entry.bump(EmotionLabel.HAPPY)
    entry.bump("sad")
    assert entry.happy == 1 and entry.sad == 1
    assert entry.model_dump() == {"date": "Jan 1", "happy": 1, "sad": 1, "angry": 0, "surprised": 0, "neutral": 0}

def test_feature_vector_is_frozen():
    fv = FeatureVector(mouth_ratio=0.3, eye_openness=0.01, brow_raised=False, is_smiling=True)
    with pytest.raises(ValidationError):
        fv.mouth_ratio = 0.1

def test_daily_entry_rejects_negative_counts():
    with pytest.raises(ValidationError):
        DailyMoodEntry(date="Jan 1", happy=-1)
