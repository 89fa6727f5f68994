# vibecraft/classifier.py
"""
Rule-based emotion classification over a FeatureVector.

The rules are checked in order and the first match wins; all comparisons
are strict.
"""
from __future__ import annotations
from typing import Callable, List, Tuple

from vibecraft.features import extract
from vibecraft.models import EmotionLabel, FeatureVector, LandmarkFrame

HAPPY_MOUTH_RATIO = 0.15
SURPRISED_EYE_OPENNESS = 0.02
SAD_MOUTH_RATIO = 0.08
ANGRY_MOUTH_RATIO = 0.2

Rule = Tuple[Callable[[FeatureVector], bool], EmotionLabel]

RULES: List[Rule] = [
    (lambda f: f.is_smiling and f.mouth_ratio > HAPPY_MOUTH_RATIO, EmotionLabel.HAPPY),
    (lambda f: f.brow_raised and f.eye_openness > SURPRISED_EYE_OPENNESS, EmotionLabel.SURPRISED),
    (lambda f: f.mouth_ratio < SAD_MOUTH_RATIO and not f.is_smiling, EmotionLabel.SAD),
    (lambda f: f.mouth_ratio > ANGRY_MOUTH_RATIO and not f.is_smiling, EmotionLabel.ANGRY),
]


def classify(features: FeatureVector) -> EmotionLabel:
    for matches, label in RULES:
        if matches(features):
            return label
    return EmotionLabel.NEUTRAL


def classify_frame(frame: LandmarkFrame) -> EmotionLabel:
    """extract() + classify(); propagates FrameError subclasses."""
    return classify(extract(frame))
