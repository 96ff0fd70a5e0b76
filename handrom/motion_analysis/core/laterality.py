"""
Laterality Module for HANDROM.

Determines, once per session, whether the tracked hand is LEFT or RIGHT by
comparing the hand base against both pose wrists. After locking, the value
never changes for the rest of the session.

Author: HANDROM Team
Version: 1.0.0
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from .data_types import LandmarkFrame, Laterality, PoseLandmarkIndex, SessionLaterality, HandLandmarkIndex
from .kinematics import landmark_distance

logger = logging.getLogger(__name__)

DEFAULT_MIN_VISIBILITY = 0.5
DEFAULT_MARGIN = 1.2


def _candidate(
    frame: LandmarkFrame,
    min_visibility: float,
    margin: float
) -> Tuple[Optional[Laterality], float]:
    """
    Side whose pose wrist is nearer the hand base, with its confidence.

    Returns:
        (side, confidence) where side is None when the evidence is ambiguous.
    """
    base = frame.hand(HandLandmarkIndex.WRIST)
    d_left = landmark_distance(base, frame.pose(PoseLandmarkIndex.LEFT_WRIST))
    d_right = landmark_distance(base, frame.pose(PoseLandmarkIndex.RIGHT_WRIST))

    side = Laterality.LEFT if d_left < d_right else Laterality.RIGHT
    closer, farther = min(d_left, d_right), max(d_left, d_right)

    wrist = frame.pose(PoseLandmarkIndex.wrist(side))
    elbow = frame.pose(PoseLandmarkIndex.elbow(side))
    confidence = (wrist.score + elbow.score) / 2

    if wrist.score <= min_visibility or elbow.score <= min_visibility:
        return None, confidence

    ratio = float("inf") if closer == 0 else farther / closer
    if ratio <= margin:
        return None, confidence

    return side, confidence


def resolve(
    frame: LandmarkFrame,
    state: SessionLaterality,
    min_visibility: float = DEFAULT_MIN_VISIBILITY,
    margin: float = DEFAULT_MARGIN
) -> SessionLaterality:
    """
    Advance the session laterality with one frame.

    Args:
        frame: Current observation.
        state: Laterality so far.
        min_visibility: Pose wrist and elbow visibility required on the candidate side.
        margin: Required ratio of the farther to the nearer wrist distance.

    Returns:
        ``state`` itself when already locked or when the frame lacks hand or
        pose landmarks; otherwise a new, possibly locked, SessionLaterality.
    """
    if state.locked:
        return state
    if not frame.has_hand() or not frame.has_pose():
        return state

    side, confidence = _candidate(frame, min_visibility, margin)
    if side is None:
        if confidence > state.confidence_accumulated:
            return replace(state, confidence_accumulated=confidence)
        return state

    return SessionLaterality(
        value=side,
        locked=True,
        confidence_accumulated=confidence,
        locked_at_ms=frame.timestamp_ms,
    )


class LateralityResolver:
    """
    Session-scoped wrapper around :func:`resolve`.

    Usage:
        resolver = LateralityResolver()
        for frame in frames:
            laterality = resolver.update(frame)
    """

    def __init__(
        self,
        min_visibility: float = DEFAULT_MIN_VISIBILITY,
        margin: float = DEFAULT_MARGIN,
        initial: Optional[SessionLaterality] = None
    ):
        self.min_visibility = min_visibility
        self.margin = margin
        self.state = initial or SessionLaterality()

    @property
    def value(self) -> Laterality:
        return self.state.value

    @property
    def locked(self) -> bool:
        return self.state.locked

    def update(self, frame: LandmarkFrame) -> SessionLaterality:
        was_locked = self.state.locked
        self.state = resolve(frame, self.state, self.min_visibility, self.margin)

        if self.state.locked and not was_locked:
            logger.info(
                f"[LATERALITY] Locked {self.state.value.value.upper()} at {self.state.locked_at_ms}ms "
                f"(confidence={self.state.confidence_accumulated:.2f})"
            )
        return self.state
