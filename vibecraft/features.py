"""
Geometric features from Face Mesh landmarks.

Coordinates are normalized to [0, 1] with Y growing downward, so a mouth
corner "below" the lip midline has the larger y.
"""
from __future__ import annotations

import numpy as np

from vibecraft.errors import DegenerateGeometryError, MissingLandmarksError
from vibecraft.models import FeatureVector, LandmarkFrame

# Face Mesh indices
LEFT_MOUTH = 61
RIGHT_MOUTH = 291
TOP_LIP = 13
BOTTOM_LIP = 14
LEFT_EYE_TOP = 159
LEFT_EYE_BOTTOM = 145
RIGHT_EYE_TOP = 386
RIGHT_EYE_BOTTOM = 374
LEFT_BROW = 70
RIGHT_BROW = 300

REQUIRED_INDICES = (
    LEFT_MOUTH, RIGHT_MOUTH, TOP_LIP, BOTTOM_LIP,
    LEFT_EYE_TOP, LEFT_EYE_BOTTOM, RIGHT_EYE_TOP, RIGHT_EYE_BOTTOM,
    LEFT_BROW, RIGHT_BROW,
)

BROW_RAISE_MARGIN = 0.03


def extract(frame: LandmarkFrame) -> FeatureVector:
    """
    Compute the feature vector for one frame.

    Raises:
        MissingLandmarksError: frame is empty or shorter than the highest required index.
        DegenerateGeometryError: zero mouth width or non-finite coordinates.
    """
    pts = frame.as_array()
    if pts.shape[0] == 0:
        raise MissingLandmarksError("empty landmark frame")
    if pts.shape[0] <= max(REQUIRED_INDICES):
        raise MissingLandmarksError(
            f"frame has {pts.shape[0]} points, need index {max(REQUIRED_INDICES)}"
        )

    needed = pts[list(REQUIRED_INDICES), :2]
    if not np.all(np.isfinite(needed)):
        raise DegenerateGeometryError("non-finite landmark coordinates")

    def x(i: int) -> float:
        return float(pts[i, 0])

    def y(i: int) -> float:
        return float(pts[i, 1])

    mouth_width = abs(x(RIGHT_MOUTH) - x(LEFT_MOUTH))
    if mouth_width == 0.0:
        raise DegenerateGeometryError("mouth corners share an x coordinate")
    mouth_height = abs(y(BOTTOM_LIP) - y(TOP_LIP))
    mouth_ratio = mouth_height / mouth_width

    left_open = abs(y(LEFT_EYE_TOP) - y(LEFT_EYE_BOTTOM))
    right_open = abs(y(RIGHT_EYE_TOP) - y(RIGHT_EYE_BOTTOM))
    eye_openness = (left_open + right_open) / 2

    mouth_center_y = (y(TOP_LIP) + y(BOTTOM_LIP)) / 2
    is_smiling = y(LEFT_MOUTH) > mouth_center_y and y(RIGHT_MOUTH) > mouth_center_y

    brow_height = (y(LEFT_BROW) + y(RIGHT_BROW)) / 2
    eye_height = (y(LEFT_EYE_TOP) + y(RIGHT_EYE_TOP)) / 2
    brow_raised = (eye_height - brow_height) > BROW_RAISE_MARGIN

    return FeatureVector(
        mouth_ratio=mouth_ratio,
        eye_openness=eye_openness,
        brow_raised=brow_raised,
        is_smiling=is_smiling,
    )
