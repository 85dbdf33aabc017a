from __future__ import annotations

from typing import Dict, List, Tuple

import pytest

from posturai.logic.keypoints import KEYPOINT_INDEXES, POSE_LANDMARK_COUNT

Point = Tuple[float, float]


def build_landmarks(points: Dict[str, Point], visibility: float = 0.9) -> List[dict]:
    """33 landmark dicts with the named keypoints placed at ``points``; everything else sits at the origin."""
    landmarks = [{"x": 0.0, "y": 0.0, "z": 0.0, "visibility": visibility} for _ in range(POSE_LANDMARK_COUNT)]
    for name, (x, y) in points.items():
        landmarks[KEYPOINT_INDEXES[name]] = {"x": x, "y": y, "z": 0.0, "visibility": visibility}
    return landmarks


# Upright side view: hips above knees, knees stacked over ankles, head over shoulders.
SQUAT_CLEAN: Dict[str, Point] = {
    "left_shoulder": (0.5, 0.2),
    "left_hip": (0.5, 0.5),
    "left_knee": (0.5, 0.7),
    "left_ankle": (0.5, 0.9),
}

# Nose about 27 degrees off the ear-shoulder ray; shoulders level with the hips so the tilt is 0.
DESK_CLEAN: Dict[str, Point] = {
    "nose": (0.55, 0.3),
    "left_ear": (0.5, 0.2),
    "left_shoulder": (0.5, 0.4),
    "right_shoulder": (0.5, 0.6),
    "left_hip": (0.3, 0.4),
    "right_hip": (0.3, 0.6),
}


@pytest.fixture
def squat_clean() -> Dict[str, Point]:
    return dict(SQUAT_CLEAN)


@pytest.fixture
def desk_clean() -> Dict[str, Point]:
    return dict(DESK_CLEAN)
