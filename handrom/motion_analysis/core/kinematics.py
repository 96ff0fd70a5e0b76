"""
Kinematics Module for HANDROM.

Angle Calculator: builds reference/measurement vectors from landmarks and
computes signed, classified joint angles.

Angle convention:
    Both vectors point distally (reference = proximal bone, measurement =
    distal bone), so arccos of their normalized dot product is the deflection
    from full alignment. A straight finger or a neutral wrist measures 0 deg.
"""

import logging
from typing import Optional, Sequence, Tuple
import numpy as np

from .data_types import (
    HAND_LANDMARK_COUNT, AngleResult, Direction, HandLandmarkIndex, JointId, Landmark, Laterality,
    PoseLandmarkIndex, SegmentId,
)

logger = logging.getLogger(__name__)

# Shorter vectors are treated as degenerate
MIN_VECTOR_LENGTH = 1e-6

# Sign of (reference x measurement) . knuckle_axis that means flexion in the
# detector frame (x right, y down, z away from the camera). A right hand bends
# toward its palm with a positive triple product; a left hand is its mirror.
FLEXION_SIGN = {
    Laterality.RIGHT: 1.0,
    Laterality.LEFT: -1.0,
}


def to_vector(start: Landmark, end: Landmark) -> np.ndarray:
    """Vector from ``start`` to ``end``."""
    return end.to_array() - start.to_array()


def vector_angle(v1: np.ndarray, v2: np.ndarray) -> float:
    """
    Angle between two vectors in degrees.

    Returns:
        Angle in [0, 180], or 0.0 if either vector is degenerate.
    """
    n1 = np.linalg.norm(v1)
    n2 = np.linalg.norm(v2)
    if n1 < MIN_VECTOR_LENGTH or n2 < MIN_VECTOR_LENGTH:
        return 0.0

    cos_angle = np.clip(np.dot(v1 / n1, v2 / n2), -1.0, 1.0)  # Handle floating point errors
    return float(np.degrees(np.arccos(cos_angle)))


def classify_direction(
    reference: np.ndarray,
    measurement: np.ndarray,
    axis: np.ndarray,
    laterality: Laterality
) -> Direction:
    """
    Flexion or extension from the cross product projected on the bending axis.

    Args:
        reference: Proximal segment vector.
        measurement: Distal segment vector.
        axis: Medio-lateral knuckle axis (index MCP minus pinky MCP).
        laterality: Locked side of the hand.

    Returns:
        FLEXION, EXTENSION, or NEUTRAL when the projection vanishes.
    """
    if laterality is Laterality.UNKNOWN:
        return Direction.NEUTRAL

    projection = float(np.dot(np.cross(reference, measurement), axis)) * FLEXION_SIGN[laterality]
    if abs(projection) < MIN_VECTOR_LENGTH ** 2:
        return Direction.NEUTRAL
    return Direction.FLEXION if projection > 0 else Direction.EXTENSION


def _invalid(laterality: Laterality) -> AngleResult:
    return AngleResult(
        magnitude_degrees=0.0,
        direction=Direction.NEUTRAL,
        confidence=0.0,
        laterality_used=laterality,
        inputs_valid=False,
    )


def _is_degenerate(*vectors: np.ndarray) -> bool:
    return any(np.linalg.norm(v) < MIN_VECTOR_LENGTH for v in vectors)


def compute_angle(
    reference: np.ndarray,
    measurement: np.ndarray,
    axis: np.ndarray,
    laterality: Laterality,
    deadband: float = 5.0,
    confidence: float = 1.0
) -> AngleResult:
    """
    Signed, classified angle between a reference and a measurement vector.

    Magnitudes within ``deadband`` of alignment resolve to NEUTRAL with a
    zero magnitude so micro-jitter does not oscillate between directions.

    Returns:
        AngleResult with ``inputs_valid=False`` for degenerate vectors or an
        undetermined laterality.
    """
    if laterality is Laterality.UNKNOWN or _is_degenerate(reference, measurement, axis):
        return _invalid(laterality)

    raw = vector_angle(reference, measurement)
    if raw <= deadband:
        direction = Direction.NEUTRAL
    else:
        direction = classify_direction(reference, measurement, axis, laterality)

    return AngleResult(
        magnitude_degrees=0.0 if direction is Direction.NEUTRAL else raw,
        direction=direction,
        confidence=confidence,
        laterality_used=laterality,
        inputs_valid=True,
        raw_degrees=raw,
    )


def knuckle_axis(hand: Sequence[Landmark]) -> np.ndarray:
    """Medio-lateral hand axis, from the pinky MCP to the index MCP."""
    return to_vector(hand[HandLandmarkIndex.PINKY_MCP], hand[HandLandmarkIndex.INDEX_MCP])


def finger_joint_vectors(
    hand: Sequence[Landmark],
    joint: JointId
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reference and measurement bone vectors for a finger joint.

    MCP uses wrist->MCP (metacarpal) and MCP->PIP, PIP uses MCP->PIP and
    PIP->DIP, DIP uses PIP->DIP and DIP->TIP.
    """
    mcp, pip, dip, tip = HandLandmarkIndex.FINGER_CHAINS[joint.segment]
    chain = (HandLandmarkIndex.WRIST, mcp, pip, dip, tip)
    offset = {"mcp": 0, "pip": 1, "dip": 2}[joint.kind.value]

    reference = to_vector(hand[chain[offset]], hand[chain[offset + 1]])
    measurement = to_vector(hand[chain[offset + 1]], hand[chain[offset + 2]])
    return reference, measurement


def finger_joint_angle(
    hand: Sequence[Landmark],
    joint: JointId,
    laterality: Laterality,
    deadband: float = 5.0,
    confidence: float = 1.0
) -> AngleResult:
    """Flexion/extension of one finger joint."""
    if len(hand) != HAND_LANDMARK_COUNT:
        return _invalid(laterality)

    reference, measurement = finger_joint_vectors(hand, joint)
    return compute_angle(
        reference, measurement, knuckle_axis(hand), laterality,
        deadband=deadband, confidence=confidence,
    )


def _locked_elbow(pose: Sequence[Landmark], laterality: Laterality) -> Optional[Landmark]:
    if laterality is Laterality.UNKNOWN or not pose:
        return None
    return pose[PoseLandmarkIndex.elbow(laterality)]


def wrist_flexion_angle(
    hand: Sequence[Landmark],
    pose: Sequence[Landmark],
    laterality: Laterality,
    deadband: float = 3.0,
    confidence: float = 1.0
) -> AngleResult:
    """
    Wrist flexion/extension.

    Reference is the forearm line (locked-side pose elbow to hand base),
    measurement is the hand orientation (hand base to middle MCP).
    """
    elbow = _locked_elbow(pose, laterality)
    if elbow is None or not hand:
        return _invalid(laterality)

    base = hand[HandLandmarkIndex.WRIST]
    reference = to_vector(elbow, base)
    measurement = to_vector(base, hand[HandLandmarkIndex.MIDDLE_MCP])
    return compute_angle(
        reference, measurement, knuckle_axis(hand), laterality,
        deadband=deadband, confidence=confidence,
    )


def wrist_deviation_angle(
    hand: Sequence[Landmark],
    pose: Sequence[Landmark],
    laterality: Laterality,
    deadband: float = 3.0,
    confidence: float = 1.0
) -> AngleResult:
    """
    Wrist radial/ulnar deviation.

    Measurement runs from the hand base to the midpoint of the index and
    pinky MCPs. The side of the bend is the sign of the measurement's
    off-forearm component along the knuckle axis: toward the index is radial.
    Both vectors are polar, so the test needs no mirror correction.
    """
    elbow = _locked_elbow(pose, laterality)
    if elbow is None or not hand:
        return _invalid(laterality)

    base = hand[HandLandmarkIndex.WRIST].to_array()
    knuckles_mid = (hand[HandLandmarkIndex.INDEX_MCP].to_array() + hand[HandLandmarkIndex.PINKY_MCP].to_array()) / 2
    reference = base - elbow.to_array()
    measurement = knuckles_mid - base
    axis = knuckle_axis(hand)

    if _is_degenerate(reference, measurement, axis):
        return _invalid(laterality)

    raw = vector_angle(reference, measurement)
    if raw <= deadband:
        direction = Direction.NEUTRAL
    else:
        forearm = reference / np.linalg.norm(reference)
        perpendicular = measurement - np.dot(measurement, forearm) * forearm
        side = float(np.dot(perpendicular, axis))
        if abs(side) < MIN_VECTOR_LENGTH ** 2:
            direction = Direction.NEUTRAL
        else:
            direction = Direction.RADIAL if side > 0 else Direction.ULNAR

    return AngleResult(
        magnitude_degrees=0.0 if direction is Direction.NEUTRAL else raw,
        direction=direction,
        confidence=confidence,
        laterality_used=laterality,
        inputs_valid=True,
        raw_degrees=raw,
    )


def joint_angle(
    joint: JointId,
    hand: Sequence[Landmark],
    pose: Sequence[Landmark],
    laterality: Laterality,
    deadband: float,
    confidence: float = 1.0
) -> AngleResult:
    """Dispatch to the calculator for ``joint``."""
    if joint is JointId.WRIST_FLEXION:
        return wrist_flexion_angle(hand, pose, laterality, deadband, confidence)
    if joint is JointId.WRIST_DEVIATION:
        return wrist_deviation_angle(hand, pose, laterality, deadband, confidence)
    if joint.segment is SegmentId.WRIST:
        logger.warning(f"No calculator for joint {joint.value}")
        return _invalid(laterality)
    return finger_joint_angle(hand, joint, laterality, deadband, confidence)


def landmark_distance(a: Landmark, b: Landmark) -> float:
    """Euclidean distance in 3D."""
    return float(np.linalg.norm(a.to_array() - b.to_array()))
