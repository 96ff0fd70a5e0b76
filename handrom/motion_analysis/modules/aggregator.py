"""
Aggregator Module for HANDROM.

Session Aggregator: reduces the stream of accepted per-joint angles to
per-direction maxima and an overall session quality score.

Quality score (0-100):
    100 * (w_a * accepted_fraction + w_c * mean_confidence + w_l * laterality_locked)

Author: HANDROM Team
Version: 1.0.0
"""

from collections import defaultdict
from typing import Dict, Iterable, Mapping, Optional

from ..core.data_types import (
    AngleResult, Direction, JointId, Laterality, SegmentRom, SessionRomResult,
)
from .assessment import QualityWeights


class RunningRom:
    """Per-direction maxima and confidence totals of one joint, updated in place."""

    def __init__(self):
        self.maxima: Dict[Direction, float] = {}
        self.samples = 0
        self.confidence_sum = 0.0

    def add(self, angle: AngleResult):
        self.samples += 1
        self.confidence_sum += angle.confidence
        if angle.direction is Direction.NEUTRAL:
            return
        self.maxima[angle.direction] = max(self.maxima.get(angle.direction, 0.0), angle.magnitude_degrees)

    def to_segment_rom(self) -> SegmentRom:
        return SegmentRom(
            maxima=dict(self.maxima),
            samples=self.samples,
            mean_confidence=self.confidence_sum / self.samples if self.samples else 0.0,
        )


def segment_rom(angles: Iterable[AngleResult]) -> SegmentRom:
    """Per-direction maxima of one joint's accepted angles."""
    running = RunningRom()
    for angle in angles:
        running.add(angle)
    return running.to_segment_rom()


def quality_score(
    frames_accepted: int,
    frames_total: int,
    mean_confidence: float,
    laterality_locked: bool,
    weights: Optional[QualityWeights] = None
) -> float:
    """
    Overall session quality, rounded to one decimal.

    Returns:
        0.0 when no frames were processed.
    """
    if frames_total <= 0:
        return 0.0

    weights = weights or QualityWeights()
    score = 100.0 * (
        weights.accepted_fraction * frames_accepted / frames_total
        + weights.mean_confidence * mean_confidence
        + weights.laterality_locked * (1.0 if laterality_locked else 0.0)
    )
    return round(score, 1)


def _build_result(
    roms: Mapping[JointId, RunningRom],
    confidence_sum: float,
    confidence_count: int,
    frames_accepted: int,
    frames_rejected: int,
    frames_skipped: int,
    laterality: Laterality,
    laterality_locked: bool,
    kapandji_score: Optional[int],
    weights: Optional[QualityWeights]
) -> SessionRomResult:
    per_segment_max = {joint: rom.to_segment_rom() for joint, rom in roms.items() if rom.samples}
    confidence_sum += sum(rom.confidence_sum for rom in roms.values())
    confidence_count += sum(rom.samples for rom in roms.values())

    mean_confidence = confidence_sum / confidence_count if confidence_count else 0.0
    frames_total = frames_accepted + frames_rejected + frames_skipped

    return SessionRomResult(
        per_segment_max=per_segment_max,
        overall_quality_score=quality_score(
            frames_accepted, frames_total, mean_confidence, laterality_locked, weights
        ),
        frames_accepted=frames_accepted,
        frames_rejected=frames_rejected,
        frames_skipped=frames_skipped,
        laterality=laterality,
        kapandji_score=kapandji_score,
    )


def finalize(
    accepted: Mapping[JointId, Iterable[AngleResult]],
    frames_accepted: int,
    frames_rejected: int,
    frames_skipped: int = 0,
    laterality: Laterality = Laterality.UNKNOWN,
    laterality_locked: bool = False,
    kapandji_score: Optional[int] = None,
    weights: Optional[QualityWeights] = None,
    confidence_samples: Iterable[float] = ()
) -> SessionRomResult:
    """
    Build the session result from accepted angles and frame counts.

    Args:
        accepted: Accepted angles per joint.
        frames_accepted: Frames whose every attempted joint was accepted.
        frames_rejected: Frames with at least one withheld joint.
        frames_skipped: Frames not measured at all.
        laterality: Locked session laterality.
        laterality_locked: Whether laterality was locked.
        kapandji_score: Best thumb opposition score, if assessed.
        weights: Quality score weights.
        confidence_samples: Extra confidence values folded into the mean
            (used when no joint angles are measured).

    Returns:
        SessionRomResult. Joints are reported independently.
    """
    roms: Dict[JointId, RunningRom] = {}
    for joint, angles in accepted.items():
        running = RunningRom()
        for angle in angles:
            running.add(angle)
        roms[joint] = running

    extra = list(confidence_samples)
    return _build_result(
        roms, sum(extra), len(extra),
        frames_accepted, frames_rejected, frames_skipped,
        laterality, laterality_locked, kapandji_score, weights,
    )


class SessionAggregator:
    """
    Folds accepted angles and frame outcomes of one session into running totals.

    Memory stays constant over the session: each joint keeps only its
    per-direction maxima, a sample count and a confidence sum.
    """

    def __init__(self, weights: Optional[QualityWeights] = None):
        self.weights = weights or QualityWeights()
        self.roms: Dict[JointId, RunningRom] = defaultdict(RunningRom)
        self.confidence_sum = 0.0
        self.confidence_count = 0
        self.frames_accepted = 0
        self.frames_rejected = 0
        self.frames_skipped = 0

    @property
    def frames_total(self) -> int:
        return self.frames_accepted + self.frames_rejected + self.frames_skipped

    def add_angle(self, joint: JointId, angle: AngleResult):
        self.roms[joint].add(angle)

    def add_confidence(self, confidence: float):
        self.confidence_sum += confidence
        self.confidence_count += 1

    def count_accepted(self):
        self.frames_accepted += 1

    def count_rejected(self):
        self.frames_rejected += 1

    def count_skipped(self):
        self.frames_skipped += 1

    def finalize(
        self,
        laterality: Laterality = Laterality.UNKNOWN,
        laterality_locked: bool = False,
        kapandji_score: Optional[int] = None
    ) -> SessionRomResult:
        return _build_result(
            self.roms, self.confidence_sum, self.confidence_count,
            self.frames_accepted, self.frames_rejected, self.frames_skipped,
            laterality, laterality_locked, kapandji_score, self.weights,
        )
