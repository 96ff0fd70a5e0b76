"""
Assessment Module for HANDROM.

Per-assessment-type configuration: which joints are measured, which
segments are scored, and every threshold the pipeline applies.

Author: HANDROM Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from handrom.core.config import Settings, settings as default_settings
from handrom.helpers.enums import AssessmentType

from ..core.data_types import FINGER_SEGMENTS, JointId, JointKind, SegmentId
from ..core.constraints import DEFAULT_JOINT_LIMITS, JointLimit


@dataclass(frozen=True)
class QualityWeights:
    """Weights of the session quality score components."""
    accepted_fraction: float = 0.5
    mean_confidence: float = 0.3
    laterality_locked: float = 0.2


@dataclass(frozen=True)
class AssessmentConfig:
    """
    Configuration of one ROM assessment.

    Attributes:
        assessment_type: Assessment being run.
        joints: Joints whose angles are measured each frame.
        segments: Segments scored by the occlusion filter.
        min_confidence: Segment confidence required to measure its joints.
        low_movement_threshold: Below this mean displacement a segment is STABLE.
        high_movement_threshold: At or above this a segment is OCCLUDED.
        depth_threshold: Fingertip depth gap that marks the rear finger occluded.
        deadband: Degrees around alignment reported as NEUTRAL.
        max_delta: Largest accepted frame-to-frame change (degrees).
        persistence_frames: Agreeing frames needed to accept a jump.
        history_size: Accepted values kept per joint.
        joint_limits: Physiological ceilings per joint kind.
        requires_laterality: Whether frames wait for a locked laterality.
        quality_weights: Quality score weights.
    """
    assessment_type: AssessmentType
    joints: Tuple[JointId, ...]
    segments: Tuple[SegmentId, ...]
    min_confidence: float = 0.7
    low_movement_threshold: float = 0.02
    high_movement_threshold: float = 0.15
    depth_threshold: float = 0.05
    deadband: float = 5.0
    max_delta: float = 30.0
    persistence_frames: int = 3
    history_size: int = 5
    joint_limits: Dict[JointKind, JointLimit] = field(default_factory=lambda: dict(DEFAULT_JOINT_LIMITS))
    requires_laterality: bool = True
    quality_weights: QualityWeights = field(default_factory=QualityWeights)
    laterality_min_visibility: float = 0.5
    laterality_margin: float = 1.2

    @property
    def scores_kapandji(self) -> bool:
        return self.assessment_type is AssessmentType.KAPANDJI

    @classmethod
    def for_type(cls, assessment_type: AssessmentType, config: Optional[Settings] = None) -> "AssessmentConfig":
        """
        Defaults for ``assessment_type`` with thresholds taken from settings.

        Args:
            assessment_type: Assessment to configure.
            config: Settings to read; the process-wide settings when omitted.
        """
        config = config or default_settings
        assessment_type = AssessmentType(assessment_type)

        common = dict(
            assessment_type=assessment_type,
            low_movement_threshold=config.ROM_LOW_MOVEMENT_THRESHOLD,
            high_movement_threshold=config.ROM_HIGH_MOVEMENT_THRESHOLD,
            depth_threshold=config.ROM_DEPTH_THRESHOLD,
            max_delta=config.ROM_MAX_DELTA_DEGREES,
            persistence_frames=config.ROM_PERSISTENCE_FRAMES,
            history_size=config.ROM_HISTORY_SIZE,
            laterality_min_visibility=config.ROM_LATERALITY_MIN_VISIBILITY,
            laterality_margin=config.ROM_LATERALITY_MARGIN,
        )

        if assessment_type is AssessmentType.FINGER_ROM:
            joints = tuple(joint for finger in FINGER_SEGMENTS for joint in JointId.for_finger(finger))
            return cls(
                joints=joints,
                segments=FINGER_SEGMENTS,
                min_confidence=config.ROM_FINGER_MIN_CONFIDENCE,
                deadband=config.ROM_FINGER_DEADBAND,
                **common,
            )

        if assessment_type is AssessmentType.WRIST_FLEXION_EXTENSION:
            return cls(
                joints=(JointId.WRIST_FLEXION,),
                segments=(SegmentId.WRIST,),
                min_confidence=config.ROM_WRIST_MIN_CONFIDENCE,
                deadband=config.ROM_WRIST_DEADBAND,
                **common,
            )

        if assessment_type is AssessmentType.WRIST_DEVIATION:
            return cls(
                joints=(JointId.WRIST_DEVIATION,),
                segments=(SegmentId.WRIST,),
                min_confidence=config.ROM_WRIST_MIN_CONFIDENCE,
                deadband=config.ROM_WRIST_DEADBAND,
                **common,
            )

        # Kapandji: thumb opposition only, no laterality needed
        return cls(
            joints=(),
            segments=(SegmentId.THUMB,),
            min_confidence=config.ROM_FINGER_MIN_CONFIDENCE,
            deadband=config.ROM_FINGER_DEADBAND,
            requires_laterality=False,
            quality_weights=QualityWeights(accepted_fraction=0.6, mean_confidence=0.4, laterality_locked=0.0),
            **common,
        )
