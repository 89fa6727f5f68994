"""Visualization helpers for the live HUD.

- draw_overlays: emotion-colored ring around the face, landmark dots, neon border
  and label, OR a flag banner (NO_FACE)

Landmarks are normalized, so they are scaled to the frame size before drawing.
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Dict, Optional, Tuple

from vibecraft.models import EmotionLabel, LandmarkFrame

# BGR
EMOTION_COLORS: Dict[EmotionLabel, Tuple[int, int, int]] = {
    EmotionLabel.HAPPY: (36, 191, 251),
    EmotionLabel.SAD: (246, 130, 59),
    EmotionLabel.ANGRY: (68, 68, 239),
    EmotionLabel.SURPRISED: (247, 85, 168),
    EmotionLabel.NEUTRAL: (128, 114, 107),
}
HUD_RADIUS = 150


def draw_overlays(frame: np.ndarray,
                  landmarks: Optional[LandmarkFrame] = None,
                  emotion: Optional[EmotionLabel] = None,
                  flag: Optional[str] = None) -> np.ndarray:
    """Draw the HUD on a copy of `frame`.

    Args:
        frame: BGR image
        landmarks: normalized landmarks of the tracked face, if any
        emotion: smoothed label to display
        flag: optional flag string (e.g., "NO_FACE")

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]

    if flag:
        cv2.putText(out, flag, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (0, 0, 255), 2, cv2.LINE_AA)
        return out
    if emotion is None:
        return out

    color = EMOTION_COLORS[EmotionLabel(emotion)]
    if landmarks is not None and not landmarks.is_empty():
        pts = landmarks.as_array()[:, :2] * np.array([w, h], dtype=np.float64)
        cx, cy = pts.mean(axis=0)
        cv2.circle(out, (int(cx), int(cy)), HUD_RADIUS, color, 4, cv2.LINE_AA)
        for px, py in pts.astype(int):
            # skip points outside the frame
            if 0 <= px < w and 0 <= py < h:
                cv2.circle(out, (int(px), int(py)), 1, color, -1)

    cv2.rectangle(out, (0, 0), (w - 1, h - 1), color, 3)
    cv2.putText(out, EmotionLabel(emotion).value, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 1.0, color, 2, cv2.LINE_AA)
    return out
