from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from loguru import logger

from posturai.utils.structures import MISSING_LANDMARK, KeypointFrame, Landmark

# MediaPipe Pose emits 33 landmarks per detected body.
POSE_LANDMARK_COUNT = 33

KEYPOINT_INDEXES: Dict[str, int] = {
    "nose": 0,
    "left_ear": 7,
    "right_ear": 8,
    "left_shoulder": 11,
    "right_shoulder": 12,
    "left_elbow": 13,
    "right_elbow": 14,
    "left_wrist": 15,
    "right_wrist": 16,
    "left_hip": 23,
    "right_hip": 24,
    "left_knee": 25,
    "right_knee": 26,
    "left_ankle": 27,
    "right_ankle": 28,
}


def _coerce(raw: Any, name: str) -> Landmark:
    try:
        return Landmark.from_any(raw)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        logger.debug("Landmark {} unreadable ({}); marking as not visible", name, exc)
        return MISSING_LANDMARK


def extract(landmarks: Optional[Sequence[Any]]) -> Optional[KeypointFrame]:
    """Project a raw pose-model landmark list onto the named keypoints used by the rules.

    Returns ``None`` when fewer than 33 landmarks are supplied; the caller should
    skip the frame entirely.
    """
    if landmarks is None or len(landmarks) < POSE_LANDMARK_COUNT:
        return None
    return KeypointFrame(**{name: _coerce(landmarks[idx], name) for name, idx in KEYPOINT_INDEXES.items()})
