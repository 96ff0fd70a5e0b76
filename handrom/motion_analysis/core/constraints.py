"""
Constraints Module for HANDROM.

Anatomical Constraint & Temporal Consistency Layer. Rejects angles beyond
physiological joint limits and withholds sudden jumps until enough
consecutive frames corroborate them.

Author: HANDROM Team
Version: 1.0.0
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, Dict, List, Mapping, Optional, Tuple, Union

from .data_types import AngleResult, Direction, JointId, JointKind


class RejectionReason(Enum):
    """Why an angle was withheld from aggregation."""
    OCCLUDED = "occluded"
    ANATOMICAL_LIMIT = "anatomical_limit"
    TEMPORAL_DISCONTINUITY = "temporal_discontinuity"
    INSUFFICIENT_LANDMARKS = "insufficient_landmarks"


@dataclass(frozen=True)
class Rejection:
    """
    A withheld measurement.

    Attributes:
        joint: Joint the angle belongs to.
        reason: Rejection category.
        detail: Human-readable explanation.
        angle: The rejected angle, when one was computed.
    """
    joint: JointId
    reason: RejectionReason
    detail: str = ""
    angle: Optional[AngleResult] = None

    def to_dict(self) -> dict:
        return {
            "joint": self.joint.value,
            "reason": self.reason.value,
            "detail": self.detail,
            "angle": self.angle.to_dict() if self.angle is not None else None,
        }


@dataclass(frozen=True)
class JointLimit:
    """Physiological ceilings (degrees) for the two directions of one joint."""
    positive: float
    negative: float

    def ceiling(self, direction: Direction) -> Optional[float]:
        if direction in (Direction.FLEXION, Direction.RADIAL):
            return self.positive
        if direction in (Direction.EXTENSION, Direction.ULNAR):
            return self.negative
        return None


# Flexion/extension ceilings; radial/ulnar for deviation
DEFAULT_JOINT_LIMITS: Dict[JointKind, JointLimit] = {
    JointKind.MCP: JointLimit(positive=90.0, negative=45.0),
    JointKind.PIP: JointLimit(positive=110.0, negative=30.0),
    JointKind.DIP: JointLimit(positive=90.0, negative=30.0),
    JointKind.WRIST_FLEXION: JointLimit(positive=80.0, negative=70.0),
    JointKind.WRIST_DEVIATION: JointLimit(positive=25.0, negative=35.0),
}

ValidationResult = Union[AngleResult, Rejection]


def check_anatomical_limit(
    joint: JointId,
    angle: AngleResult,
    limits: Mapping[JointKind, JointLimit] = DEFAULT_JOINT_LIMITS
) -> Optional[Rejection]:
    """Rejection when ``angle`` exceeds the joint's ceiling for its direction, else None."""
    limit = limits.get(joint.kind)
    if limit is None:
        return None

    ceiling = limit.ceiling(angle.direction)
    if ceiling is None or angle.magnitude_degrees <= ceiling:
        return None

    return Rejection(
        joint=joint,
        reason=RejectionReason.ANATOMICAL_LIMIT,
        detail=f"{angle.direction.value} {angle.magnitude_degrees:.1f} exceeds limit {ceiling:.1f}",
        angle=angle,
    )


class TemporalValidator:
    """
    Per-joint anatomical and temporal gate.

    A value more than ``max_delta`` degrees away from the last accepted one
    is withheld. It is accepted once ``persistence_frames`` consecutive
    values agree with each other within ``max_delta``, which then becomes the
    new baseline.
    """

    def __init__(
        self,
        max_delta: float = 30.0,
        persistence_frames: int = 3,
        history_size: int = 5,
        limits: Optional[Mapping[JointKind, JointLimit]] = None
    ):
        self.max_delta = max_delta
        self.persistence_frames = persistence_frames
        self.history_size = history_size
        self.limits = dict(limits) if limits is not None else dict(DEFAULT_JOINT_LIMITS)

        self._history: Dict[JointId, Deque[float]] = {}
        self._pending: Dict[JointId, List[float]] = {}

    def history(self, joint: JointId) -> Tuple[float, ...]:
        """Accepted signed values for ``joint``, oldest first."""
        return tuple(self._history.get(joint, ()))

    def pending(self, joint: JointId) -> Tuple[float, ...]:
        return tuple(self._pending.get(joint, ()))

    def reset(self):
        self._history.clear()
        self._pending.clear()

    def _accept(self, joint: JointId, value: float):
        history = self._history.setdefault(joint, deque(maxlen=self.history_size))
        history.append(value)
        self._pending.pop(joint, None)

    def validate(self, joint: JointId, angle: AngleResult) -> ValidationResult:
        """
        Accept or reject one angle.

        Rejected values never enter the accepted history.

        Returns:
            The same AngleResult when accepted, otherwise a Rejection.
        """
        if not angle.inputs_valid:
            return Rejection(joint, RejectionReason.INSUFFICIENT_LANDMARKS, "invalid angle inputs", angle)

        rejection = check_anatomical_limit(joint, angle, self.limits)
        if rejection is not None:
            return rejection

        value = angle.signed_degrees
        history = self._history.get(joint)

        if not history:
            self._accept(joint, value)
            return angle

        delta = abs(value - history[-1])
        if delta <= self.max_delta:
            self._accept(joint, value)
            return angle

        pending = self._pending.setdefault(joint, [])
        if pending and abs(value - pending[-1]) > self.max_delta:
            pending.clear()
        pending.append(value)

        if len(pending) >= self.persistence_frames:
            self._accept(joint, value)
            return angle

        return Rejection(
            joint=joint,
            reason=RejectionReason.TEMPORAL_DISCONTINUITY,
            detail=f"jump of {delta:.1f} from {history[-1]:.1f} ({len(pending)}/{self.persistence_frames})",
            angle=angle,
        )
