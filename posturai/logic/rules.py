from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from posturai.logic.geometry import (
    VISIBILITY_THRESHOLD,
    angle_at,
    horizontal_offset,
    is_visible,
    midpoint,
    signed_tilt,
    vertical_offset,
)
from posturai.utils.structures import KeypointFrame, Mode, Severity, Violation

NECK_ANGLE_MAX = 30.0
NECK_ANGLE_ERROR = 45.0
SLOUCH_TILT_MAX = 15.0
SLOUCH_TILT_ERROR = 25.0
KNEE_OVER_TOE_MAX = 0.05
BACK_ANGLE_MIN = 150.0
BACK_ANGLE_ERROR = 130.0
SQUAT_DEPTH_MAX = -0.02


@dataclass(frozen=True)
class PostureRule:
    """A single mode-scoped check.

    ``required`` names the keypoints the rule reads; if any of them is not
    reliably observed the rule is skipped for that frame. ``check`` receives the
    frame and returns at most one violation.
    """

    name: str
    title: str
    description: str
    required: Tuple[str, ...]
    check: Callable[[KeypointFrame], Optional[Violation]]

    def precondition(self, frame: KeypointFrame) -> bool:
        return is_visible((frame.get(name) for name in self.required), VISIBILITY_THRESHOLD)

    def apply(self, frame: KeypointFrame) -> Optional[Violation]:
        if not self.precondition(frame):
            return None
        return self.check(frame)


def _check_neck_angle(lm: KeypointFrame) -> Optional[Violation]:
    neck_angle = angle_at(lm.left_shoulder, lm.left_ear, lm.nose)
    if neck_angle <= NECK_ANGLE_MAX:
        return None
    return Violation(
        type="neck_angle",
        severity=Severity.ERROR if neck_angle > NECK_ANGLE_ERROR else Severity.WARNING,
        message="Forward head posture detected",
        rule_description="Keep your head aligned with your spine",
        angle=neck_angle,
        threshold=NECK_ANGLE_MAX,
    )


def _check_back_slouch(lm: KeypointFrame) -> Optional[Violation]:
    shoulders = midpoint(lm.left_shoulder, lm.right_shoulder)
    hips = midpoint(lm.left_hip, lm.right_hip)
    tilt = abs(signed_tilt(shoulders, hips))
    if tilt <= SLOUCH_TILT_MAX:
        return None
    return Violation(
        type="back_slouch",
        severity=Severity.ERROR if tilt > SLOUCH_TILT_ERROR else Severity.WARNING,
        message="Slouching detected",
        rule_description="Keep your back straight and shoulders aligned",
        angle=tilt,
        threshold=SLOUCH_TILT_MAX,
    )


def _check_knee_over_toe(lm: KeypointFrame) -> Optional[Violation]:
    offset = abs(horizontal_offset(lm.left_knee, lm.left_ankle))
    if offset <= KNEE_OVER_TOE_MAX:
        return None
    return Violation(
        type="knee_over_toe",
        severity=Severity.ERROR,
        message="Knee tracking issue - adjust stance!",
        rule_description="Keep knees aligned with toes",
        angle=offset,
        threshold=KNEE_OVER_TOE_MAX,
    )


def _check_back_angle(lm: KeypointFrame) -> Optional[Violation]:
    back_angle = angle_at(lm.left_knee, lm.left_hip, lm.left_shoulder)
    if back_angle >= BACK_ANGLE_MIN:
        return None
    return Violation(
        type="back_angle",
        severity=Severity.ERROR if back_angle < BACK_ANGLE_ERROR else Severity.WARNING,
        message="Keep chest up during squat!",
        rule_description="Maintain upright torso during squat",
        angle=back_angle,
        threshold=BACK_ANGLE_MIN,
    )


def _check_squat_depth(lm: KeypointFrame) -> Optional[Violation]:
    # Image y grows downward, so the hip must sit at a larger y than the knee.
    depth = vertical_offset(lm.left_hip, lm.left_knee)
    if depth <= SQUAT_DEPTH_MAX:
        return None
    return Violation(
        type="squat_depth",
        severity=Severity.WARNING,
        message="Squat deeper for full range of motion",
        rule_description="Descend until hips are below knees",
        angle=depth,
        threshold=SQUAT_DEPTH_MAX,
    )


DESK_RULES: Tuple[PostureRule, ...] = (
    PostureRule(
        name="neck_angle",
        title="Neck Alignment",
        description="Keep your neck angle < 30°",
        required=("nose", "left_shoulder", "left_ear"),
        check=_check_neck_angle,
    ),
    PostureRule(
        name="back_slouch",
        title="Back Straightness",
        description="Maintain straight back posture",
        required=("left_shoulder", "right_shoulder", "left_hip", "right_hip"),
        check=_check_back_slouch,
    ),
)

SQUAT_RULES: Tuple[PostureRule, ...] = (
    PostureRule(
        name="knee_over_toe",
        title="Knee Tracking",
        description="Knees should not go past toes",
        required=("left_knee", "left_ankle"),
        check=_check_knee_over_toe,
    ),
    PostureRule(
        name="back_angle",
        title="Back Angle",
        description="Maintain back angle > 150°",
        required=("left_shoulder", "left_hip", "left_knee"),
        check=_check_back_angle,
    ),
    PostureRule(
        name="squat_depth",
        title="Hip Depth",
        description="Descend until hips are below knees",
        required=("left_hip", "left_knee"),
        check=_check_squat_depth,
    ),
)

RULE_SETS: Dict[Mode, Tuple[PostureRule, ...]] = {
    Mode.DESK: DESK_RULES,
    Mode.SQUAT: SQUAT_RULES,
}


def rules_for(mode: Mode) -> Tuple[PostureRule, ...]:
    return RULE_SETS[Mode(mode)]


class RuleEngine:
    """Stateless evaluator: every frame is judged on its own, with no carry-over between frames."""

    def evaluate(self, mode: Mode, frame: KeypointFrame) -> List[Violation]:
        violations: List[Violation] = []
        for rule in rules_for(mode):
            try:
                violation = rule.apply(frame)
            except (AttributeError, TypeError, ValueError, ArithmeticError) as exc:
                logger.debug("Rule {} skipped: {}", rule.name, exc)
                continue
            if violation is None:
                continue
            if violation.angle is not None and not math.isfinite(violation.angle):
                logger.debug("Rule {} skipped: non-finite measurement", rule.name)
                continue
            violations.append(violation)
        return violations
