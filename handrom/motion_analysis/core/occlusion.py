"""
Occlusion Module for HANDROM.

Confidence & Occlusion Filter: scores each anatomical segment per frame from
its frame-to-frame landmark displacement and flags fingers hidden behind a
neighbour using relative depth.

Movement zones (mean 3D displacement, normalized units):
    < low_threshold                     -> STABLE, confidence 1.0
    low_threshold .. high_threshold     -> MODERATE, linear falloff
    >= high_threshold                   -> OCCLUDED, confidence 0.0

Author: HANDROM Team
Version: 1.0.0
"""

from typing import Dict, Iterable, Optional, Sequence
import numpy as np

from .data_types import (
    ConfidenceClass, FINGER_SEGMENTS, HandLandmarkIndex, Landmark, LandmarkFrame,
    SegmentConfidence, SegmentId,
)

DEFAULT_LOW_THRESHOLD = 0.02
DEFAULT_HIGH_THRESHOLD = 0.15
DEFAULT_DEPTH_THRESHOLD = 0.05

# Neighbouring fingers compared for depth occlusion
ADJACENT_FINGERS = (
    (SegmentId.INDEX, SegmentId.MIDDLE),
    (SegmentId.MIDDLE, SegmentId.RING),
    (SegmentId.RING, SegmentId.PINKY),
)


def mean_displacement(previous: Sequence[Landmark], current: Sequence[Landmark]) -> float:
    """Mean Euclidean displacement between corresponding landmarks."""
    prev = np.array([lm.to_array() for lm in previous])
    cur = np.array([lm.to_array() for lm in current])
    return float(np.mean(np.linalg.norm(cur - prev, axis=1)))


def mean_visibility(landmarks: Sequence[Landmark]) -> Optional[float]:
    """Mean reported visibility, None when the detector reports none."""
    values = [lm.visibility for lm in landmarks if lm.visibility is not None]
    if not values:
        return None
    return float(np.mean(values))


class OcclusionFilter:
    """
    Per-segment confidence scorer.

    Stateless between calls: the caller supplies the previous and current
    observation of a segment.
    """

    def __init__(
        self,
        low_threshold: float = DEFAULT_LOW_THRESHOLD,
        high_threshold: float = DEFAULT_HIGH_THRESHOLD,
        depth_threshold: float = DEFAULT_DEPTH_THRESHOLD
    ):
        if high_threshold <= low_threshold:
            raise ValueError("high_threshold must be greater than low_threshold")
        self.low_threshold = low_threshold
        self.high_threshold = high_threshold
        self.depth_threshold = depth_threshold

    def assess(
        self,
        segment: SegmentId,
        previous: Optional[Sequence[Landmark]],
        current: Optional[Sequence[Landmark]]
    ) -> SegmentConfidence:
        """
        Score one segment from its previous and current landmarks.

        Args:
            segment: Segment being scored.
            previous: Segment landmarks in the previous frame, or None.
            current: Segment landmarks in the current frame.

        Returns:
            SegmentConfidence with the movement-based classification.
        """
        expected = len(HandLandmarkIndex.segment_indices(segment))
        if not current or len(current) < expected:
            return SegmentConfidence(
                segment_id=segment,
                confidence=0.0,
                classification=ConfidenceClass.OCCLUDED,
                reason="insufficient landmarks",
            )

        if not previous or len(previous) != len(current):
            confidence, classification, movement = 1.0, ConfidenceClass.STABLE, 0.0
            reason = "no previous frame"
        else:
            movement = mean_displacement(previous, current)
            if movement < self.low_threshold:
                confidence, classification = 1.0, ConfidenceClass.STABLE
                reason = "stable"
            elif movement < self.high_threshold:
                span = self.high_threshold - self.low_threshold
                confidence = 1.0 - (movement - self.low_threshold) / span
                classification = ConfidenceClass.MODERATE
                reason = f"moderate movement ({movement:.3f})"
            else:
                confidence, classification = 0.0, ConfidenceClass.OCCLUDED
                reason = f"excessive movement ({movement:.3f})"

        visibility = mean_visibility(current)
        if visibility is not None and visibility < confidence:
            confidence = visibility
            reason = f"{reason}; visibility {visibility:.2f}"

        return SegmentConfidence(
            segment_id=segment,
            confidence=float(confidence),
            classification=classification,
            observed_movement=movement,
            reason=reason,
        )

    def depth_occluded(self, current: LandmarkFrame) -> Dict[SegmentId, str]:
        """
        Fingers whose tip lies behind an adjacent fingertip by more than the depth threshold.

        Returns:
            Mapping of occluded finger to the reason.
        """
        occluded = {}
        if not current.has_hand():
            return occluded

        for first, second in ADJACENT_FINGERS:
            z_first = current.hand(HandLandmarkIndex.FINGER_CHAINS[first][-1]).z
            z_second = current.hand(HandLandmarkIndex.FINGER_CHAINS[second][-1]).z
            gap = z_first - z_second
            if abs(gap) <= self.depth_threshold:
                continue

            hidden, front = (first, second) if gap > 0 else (second, first)
            occluded[hidden] = f"behind {front.value} (depth gap {abs(gap):.3f})"
        return occluded

    def assess_frame(
        self,
        previous: Optional[LandmarkFrame],
        current: LandmarkFrame,
        segments: Iterable[SegmentId]
    ) -> Dict[SegmentId, SegmentConfidence]:
        """Score every requested segment of ``current``."""
        depth = self.depth_occluded(current)
        results = {}

        for segment in segments:
            prev_landmarks = previous.segment_landmarks(segment) if previous is not None else None
            result = self.assess(segment, prev_landmarks, current.segment_landmarks(segment))

            if segment in FINGER_SEGMENTS and segment in depth and not result.is_occluded:
                result = SegmentConfidence(
                    segment_id=segment,
                    confidence=0.0,
                    classification=ConfidenceClass.OCCLUDED,
                    observed_movement=result.observed_movement,
                    reason=depth[segment],
                )
            results[segment] = result

        return results
