from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, List, Optional

import numpy as np


class Mode(str, enum.Enum):
    DESK = "desk"
    SQUAT = "squat"


class Severity(str, enum.Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Landmark:
    x: float
    y: float
    z: float = 0.0
    visibility: float = 0.0

    @classmethod
    def from_any(cls, raw: Any) -> "Landmark":
        """Coerce a mapping, a (x, y, z, visibility) sequence or a landmark-like object."""
        if isinstance(raw, Landmark):
            return raw
        if isinstance(raw, dict):
            return cls(
                x=float(raw["x"]),
                y=float(raw["y"]),
                z=float(raw.get("z", 0.0)),
                visibility=float(raw.get("visibility", 0.0)),
            )
        if isinstance(raw, (np.ndarray, Sequence)) and not isinstance(raw, (str, bytes)):
            values = np.asarray(raw, dtype=np.float64).ravel().tolist()
            if len(values) < 2:
                raise ValueError(f"Landmark needs at least x and y, got {raw!r}")
            values.extend([0.0] * (4 - len(values)))
            return cls(*values[:4])
        return cls(
            x=float(raw.x),
            y=float(raw.y),
            z=float(getattr(raw, "z", 0.0)),
            visibility=float(getattr(raw, "visibility", 0.0)),
        )


# Stand-in for a slot that could not be read; visibility 0 makes every dependent rule skip.
MISSING_LANDMARK = Landmark(x=0.0, y=0.0, z=0.0, visibility=0.0)


@dataclass(frozen=True)
class KeypointFrame:
    nose: Landmark
    left_ear: Landmark
    right_ear: Landmark
    left_shoulder: Landmark
    right_shoulder: Landmark
    left_elbow: Landmark
    right_elbow: Landmark
    left_wrist: Landmark
    right_wrist: Landmark
    left_hip: Landmark
    right_hip: Landmark
    left_knee: Landmark
    right_knee: Landmark
    left_ankle: Landmark
    right_ankle: Landmark

    def get(self, name: str) -> Optional[Landmark]:
        return getattr(self, name, None)


@dataclass(frozen=True)
class Violation:
    type: str
    severity: Severity
    message: str
    rule_description: str
    angle: Optional[float] = None
    threshold: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "message": self.message,
            "rule": self.rule_description,
            "angle": self.angle,
            "threshold": self.threshold,
        }


@dataclass(frozen=True)
class SessionStats:
    total_frames: int = 0
    violating_frames: int = 0
    accuracy_percent: int = 100

    def to_dict(self) -> dict:
        return {
            "total_frames": self.total_frames,
            "violating_frames": self.violating_frames,
            "accuracy_percent": self.accuracy_percent,
        }


@dataclass(frozen=True)
class FrameResult:
    violations: List[Violation]
    stats: SessionStats


@dataclass
class SessionSummary:
    session_id: str
    mode: Mode
    stats: SessionStats
    duration_seconds: int
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "mode": self.mode.value,
            "stats": self.stats.to_dict(),
            "duration_seconds": self.duration_seconds,
            "metadata": dict(self.metadata),
        }
