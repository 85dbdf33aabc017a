from __future__ import annotations

from typing import Iterable

import numpy as np

from posturai.utils.structures import Landmark

VISIBILITY_THRESHOLD = 0.5


def _xy(point: Landmark) -> np.ndarray:
    return np.array([point.x, point.y], dtype=np.float64)


def angle_at(a: Landmark, b: Landmark, c: Landmark) -> float:
    """Unsigned angle in degrees at vertex ``b`` between rays b->a and b->c, in [0, 180]."""
    ba = _xy(a) - _xy(b)
    bc = _xy(c) - _xy(b)
    radians = np.arctan2(bc[1], bc[0]) - np.arctan2(ba[1], ba[0])
    angle = float(np.abs(np.degrees(radians)))
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def midpoint(p: Landmark, q: Landmark) -> Landmark:
    # The midpoint is only as reliable as the weaker of its two endpoints.
    return Landmark(
        x=(p.x + q.x) / 2,
        y=(p.y + q.y) / 2,
        z=(p.z + q.z) / 2,
        visibility=min(p.visibility, q.visibility),
    )


def signed_tilt(p: Landmark, q: Landmark) -> float:
    delta = _xy(p) - _xy(q)
    return float(np.degrees(np.arctan2(delta[1], delta[0])))


def horizontal_offset(p: Landmark, q: Landmark) -> float:
    return float(p.x - q.x)


def vertical_offset(p: Landmark, q: Landmark) -> float:
    return float(p.y - q.y)


def is_visible(points: Iterable[Landmark], threshold: float = VISIBILITY_THRESHOLD) -> bool:
    return all(p is not None and p.visibility > threshold for p in points)
