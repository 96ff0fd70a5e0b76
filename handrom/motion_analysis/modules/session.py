"""
Session Module for HANDROM.

RomSession owns every piece of per-session state (laterality, previous
frame, temporal history, aggregator, diagnostic log) and runs the per-frame
pipeline synchronously:

    laterality -> segment confidence -> angles -> validation -> aggregation

Author: HANDROM Team
Version: 1.0.0
"""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from handrom.helpers.enums import FrameStatus

from ..core.constraints import Rejection, RejectionReason, TemporalValidator
from ..core.data_types import (
    AngleResult, JointId, LandmarkFrame, Laterality, MalformedFrameError, SegmentConfidence,
    SegmentId, SessionLaterality, SessionRomResult,
)
from ..core.kinematics import joint_angle
from ..core.laterality import LateralityResolver
from ..core.occlusion import OcclusionFilter
from ..utils.logger import LogCategory, SessionLogger, create_session_logger
from .aggregator import SessionAggregator
from .assessment import AssessmentConfig
from .kapandji import KapandjiScore, KapandjiScorer

logger = logging.getLogger(__name__)

_REJECTION_CATEGORY = {
    RejectionReason.ANATOMICAL_LIMIT: LogCategory.ANATOMICAL,
    RejectionReason.TEMPORAL_DISCONTINUITY: LogCategory.TEMPORAL,
}


class SessionClosedError(RuntimeError):
    """Raised when a finalized or aborted session receives more work."""


@dataclass
class FrameAnalysis:
    """
    Outcome of one processed frame.

    Attributes:
        timestamp_ms: Frame timestamp.
        status: ACCEPTED, REJECTED or SKIPPED.
        laterality: Session laterality after this frame.
        confidences: Per-segment confidence.
        angles: Accepted angles per joint.
        rejections: Withheld joints with the reason.
        occluded_segments: Segments too unreliable to measure.
        kapandji: Thumb opposition result, for Kapandji sessions.
        reason: Why the frame was skipped.
    """
    timestamp_ms: int
    status: FrameStatus
    laterality: Laterality
    confidences: Dict[SegmentId, SegmentConfidence] = field(default_factory=dict)
    angles: Dict[JointId, AngleResult] = field(default_factory=dict)
    rejections: List[Rejection] = field(default_factory=list)
    occluded_segments: Tuple[SegmentId, ...] = ()
    kapandji: Optional[KapandjiScore] = None
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "timestamp_ms": self.timestamp_ms,
            "status": self.status.value,
            "laterality": self.laterality.value,
            "confidences": {
                segment.value: {
                    "confidence": round(conf.confidence, 3),
                    "classification": conf.classification.value,
                    "reason": conf.reason,
                }
                for segment, conf in self.confidences.items()
            },
            "angles": {joint.value: angle.to_dict() for joint, angle in self.angles.items()},
            "rejections": [rejection.to_dict() for rejection in self.rejections],
            "kapandji": self.kapandji.to_dict() if self.kapandji is not None else None,
            "reason": self.reason,
        }


class RomSession:
    """
    One ROM recording session for a single assessment.

    Usage:
        session = RomSession(AssessmentConfig.for_type(AssessmentType.FINGER_ROM))
        for frame in frames:
            session.process_frame(frame)
        result = session.finalize()
    """

    def __init__(
        self,
        config: AssessmentConfig,
        session_id: Optional[str] = None,
        laterality: Optional[Laterality] = None,
        log_dir: str = "./data/logs",
        save_log: bool = False
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.config = config
        self.save_log = save_log

        initial = None
        if laterality is not None and laterality is not Laterality.UNKNOWN:
            initial = SessionLaterality.preset(laterality)

        self.resolver = LateralityResolver(
            min_visibility=config.laterality_min_visibility,
            margin=config.laterality_margin,
            initial=initial,
        )
        self.occlusion = OcclusionFilter(
            low_threshold=config.low_movement_threshold,
            high_threshold=config.high_movement_threshold,
            depth_threshold=config.depth_threshold,
        )
        self.validator = TemporalValidator(
            max_delta=config.max_delta,
            persistence_frames=config.persistence_frames,
            history_size=config.history_size,
            limits=config.joint_limits,
        )
        self.aggregator = SessionAggregator(config.quality_weights)
        self.kapandji = KapandjiScorer() if config.scores_kapandji else None
        self.session_logger: SessionLogger = create_session_logger(self.session_id, log_dir)

        self._previous: Optional[LandmarkFrame] = None
        self._last_timestamp: Optional[int] = None
        self.closed = False
        # Guards all mutable session state
        self._lock = threading.RLock()

        self.session_logger.info(LogCategory.SESSION, "Session started", {
            'assessment_type': config.assessment_type.value,
            'preset_laterality': initial.value.value if initial else None,
        })

    @property
    def laterality(self) -> SessionLaterality:
        return self.resolver.state

    def _ensure_open(self):
        if self.closed:
            raise SessionClosedError(f"Session {self.session_id} is closed")

    def _skip(self, frame: LandmarkFrame, reason: str) -> FrameAnalysis:
        self.aggregator.count_skipped()
        return FrameAnalysis(
            timestamp_ms=frame.timestamp_ms,
            status=FrameStatus.SKIPPED,
            laterality=self.laterality.value,
            reason=reason,
        )

    def _usable(self, confidence: SegmentConfidence) -> bool:
        return not confidence.is_occluded and confidence.confidence >= self.config.min_confidence

    def _record_rejection(self, frame: LandmarkFrame, rejection: Rejection):
        category = _REJECTION_CATEGORY.get(rejection.reason)
        if category is None:
            return
        self.session_logger.log_rejection(
            category,
            timestamp_ms=frame.timestamp_ms,
            joint=rejection.joint.value,
            detail=rejection.detail,
            angle=rejection.angle.to_dict() if rejection.angle is not None else None,
            landmarks=frame.segment_landmarks(rejection.joint.segment),
        )

    def process_frame(self, frame: LandmarkFrame) -> FrameAnalysis:
        """
        Run the pipeline on one frame.

        Raises:
            MalformedFrameError: If the frame is older than the previous one.
            SessionClosedError: If the session was finalized or aborted.
        """
        with self._lock:
            self._ensure_open()
            return self._process_frame(frame)

    def _process_frame(self, frame: LandmarkFrame) -> FrameAnalysis:
        if self._last_timestamp is not None and frame.timestamp_ms < self._last_timestamp:
            raise MalformedFrameError(
                f"Frame at {frame.timestamp_ms}ms arrived after {self._last_timestamp}ms"
            )
        self._last_timestamp = frame.timestamp_ms

        previous, self._previous = self._previous, frame

        was_locked = self.laterality.locked
        state = self.resolver.update(frame)
        if state.locked and not was_locked:
            self.session_logger.info(LogCategory.LATERALITY, f"Laterality locked: {state.value.value}", {
                'timestamp_ms': state.locked_at_ms,
                'confidence': state.confidence_accumulated,
            })

        if not frame.has_hand():
            return self._skip(frame, "no hand detected")
        if self.config.requires_laterality and not state.locked:
            return self._skip(frame, "laterality undetermined")

        confidences = self.occlusion.assess_frame(previous, frame, self.config.segments)
        analysis = FrameAnalysis(
            timestamp_ms=frame.timestamp_ms,
            status=FrameStatus.ACCEPTED,
            laterality=state.value,
            confidences=confidences,
        )
        analysis.occluded_segments = tuple(
            segment for segment, conf in confidences.items() if not self._usable(conf)
        )

        for joint in self.config.joints:
            confidence = confidences[joint.segment]
            if joint.segment in analysis.occluded_segments:
                analysis.rejections.append(Rejection(joint, RejectionReason.OCCLUDED, confidence.reason))
                continue

            angle = joint_angle(
                joint, frame.hand_landmarks, frame.pose_landmarks, state.value,
                deadband=self.config.deadband, confidence=confidence.confidence,
            )
            result = self.validator.validate(joint, angle)
            if isinstance(result, Rejection):
                analysis.rejections.append(result)
                self._record_rejection(frame, result)
                continue

            analysis.angles[joint] = result
            self.aggregator.add_angle(joint, result)

        if self.kapandji is not None and SegmentId.THUMB not in analysis.occluded_segments:
            analysis.kapandji = self.kapandji.score(frame.hand_landmarks)
            self.aggregator.add_confidence(confidences[SegmentId.THUMB].confidence)

        if analysis.rejections or analysis.occluded_segments:
            analysis.status = FrameStatus.REJECTED
            self.aggregator.count_rejected()
        else:
            self.aggregator.count_accepted()

        return analysis

    def finalize(self) -> SessionRomResult:
        """Close the session and return its ROM result."""
        with self._lock:
            self._ensure_open()
            self.closed = True
            return self._finalize()

    def _finalize(self) -> SessionRomResult:
        state = self.laterality
        result = self.aggregator.finalize(
            laterality=state.value,
            laterality_locked=state.locked,
            kapandji_score=self.kapandji.best_score if self.kapandji is not None else None,
        )

        self.session_logger.info(LogCategory.SESSION, "Session finalized", {
            'frames_accepted': result.frames_accepted,
            'frames_rejected': result.frames_rejected,
            'frames_skipped': result.frames_skipped,
            'overall_quality_score': result.overall_quality_score,
        })
        logger.info(
            f"[ROM_SESSION] {self.session_id} finalized: accepted={result.frames_accepted} "
            f"rejected={result.frames_rejected} skipped={result.frames_skipped} "
            f"quality={result.overall_quality_score}"
        )

        if self.save_log:
            log_file = self.session_logger.save_session_log()
            logger.info(f"[ROM_SESSION] Session log saved to {log_file}")

        return result

    def abort(self):
        """Discard all session state without producing a result."""
        with self._lock:
            self.closed = True
            self.validator.reset()
            self.aggregator = SessionAggregator(self.config.quality_weights)
            self._previous = None
        self.session_logger.warning(LogCategory.SESSION, "Session aborted")
        logger.info(f"[ROM_SESSION] {self.session_id} aborted")
