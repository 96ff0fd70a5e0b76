"""
Core Module for HANDROM Motion Analysis.

Contains the landmark model, angle geometry, laterality, occlusion and
constraint layers.
"""

from .data_types import (
    Landmark, LandmarkFrame, MalformedFrameError, Laterality, SegmentId, ConfidenceClass,
    Direction, JointKind, JointId, FINGER_SEGMENTS, HandLandmarkIndex, PoseLandmarkIndex,
    SessionLaterality, SegmentConfidence, AngleResult, SegmentRom, SessionRomResult
)
from .kinematics import (
    compute_angle, classify_direction, finger_joint_vectors, finger_joint_angle,
    wrist_flexion_angle, wrist_deviation_angle, joint_angle
)
from .laterality import resolve, LateralityResolver
from .occlusion import OcclusionFilter
from .constraints import (
    RejectionReason, Rejection, JointLimit, DEFAULT_JOINT_LIMITS, TemporalValidator,
    check_anatomical_limit
)

__all__ = [
    # Data types
    'Landmark', 'LandmarkFrame', 'MalformedFrameError', 'Laterality', 'SegmentId', 'ConfidenceClass',
    'Direction', 'JointKind', 'JointId', 'FINGER_SEGMENTS', 'HandLandmarkIndex', 'PoseLandmarkIndex',
    'SessionLaterality', 'SegmentConfidence', 'AngleResult', 'SegmentRom', 'SessionRomResult',

    # Kinematics
    'compute_angle', 'classify_direction', 'finger_joint_vectors', 'finger_joint_angle',
    'wrist_flexion_angle', 'wrist_deviation_angle', 'joint_angle',

    # Laterality
    'resolve', 'LateralityResolver',

    # Occlusion
    'OcclusionFilter',

    # Constraints
    'RejectionReason', 'Rejection', 'JointLimit', 'DEFAULT_JOINT_LIMITS', 'TemporalValidator',
    'check_anatomical_limit',
]
