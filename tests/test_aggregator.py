import pytest

from handrom.motion_analysis.core import AngleResult, Direction, JointId, Laterality, SegmentId
from handrom.motion_analysis.modules import (
    QualityWeights, RunningRom, SessionAggregator, finalize, quality_score,
)


def angle(degrees: float, direction: Direction, confidence: float = 1.0) -> AngleResult:
    return AngleResult(degrees, direction, confidence, Laterality.RIGHT)


def test_total_rom_is_sum_of_independent_maxima():
    angles = [
        angle(30.0, Direction.FLEXION),
        angle(48.0, Direction.FLEXION),
        angle(0.0, Direction.NEUTRAL),
        angle(20.0, Direction.EXTENSION),
        angle(47.0, Direction.EXTENSION),
        angle(12.0, Direction.FLEXION),
    ]
    result = finalize({JointId.WRIST_FLEXION: angles}, frames_accepted=6, frames_rejected=0)
    rom = result.per_segment_max[JointId.WRIST_FLEXION]

    assert rom.max_flexion == 48.0
    assert rom.max_extension == 47.0
    assert rom.total_rom == pytest.approx(95.0)
    assert rom.samples == 6


def test_joints_aggregate_independently():
    result = finalize(
        {
            JointId.INDEX_MCP: [angle(60.0, Direction.FLEXION)],
            JointId.INDEX_PIP: [angle(25.0, Direction.EXTENSION)],
            JointId.INDEX_DIP: [],
        },
        frames_accepted=1,
        frames_rejected=0,
    )

    assert result.per_segment_max[JointId.INDEX_MCP].max_extension == 0.0
    assert result.per_segment_max[JointId.INDEX_PIP].max_flexion == 0.0
    assert JointId.INDEX_DIP not in result.per_segment_max
    assert result.total_active_motion(SegmentId.INDEX) == 60.0


def test_quality_score():
    assert quality_score(8, 10, 0.9, True) == 87.0
    assert quality_score(8, 10, 0.9, False) == 67.0
    assert quality_score(0, 0, 1.0, True) == 0.0
    assert quality_score(5, 5, 1.0, False, QualityWeights(0.6, 0.4, 0.0)) == 100.0


def test_empty_session_scores_zero():
    result = finalize({}, frames_accepted=0, frames_rejected=0)
    assert result.overall_quality_score == 0.0
    assert result.per_segment_max == {}
    assert result.frames_total == 0


def test_session_aggregator_counts():
    aggregator = SessionAggregator()
    aggregator.add_angle(JointId.WRIST_DEVIATION, angle(20.0, Direction.RADIAL, 0.9))
    aggregator.add_angle(JointId.WRIST_DEVIATION, angle(30.0, Direction.ULNAR, 0.7))
    aggregator.count_accepted()
    aggregator.count_accepted()
    aggregator.count_rejected()
    aggregator.count_skipped()

    result = aggregator.finalize(Laterality.LEFT, laterality_locked=True)
    rom = result.per_segment_max[JointId.WRIST_DEVIATION]

    assert rom.max_radial == 20.0 and rom.max_ulnar == 30.0
    assert rom.mean_confidence == pytest.approx(0.8)
    assert (result.frames_accepted, result.frames_rejected, result.frames_skipped) == (2, 1, 1)
    assert result.laterality is Laterality.LEFT
    # 100 * (0.5 * 2/4 + 0.3 * 0.8 + 0.2)
    assert result.overall_quality_score == 69.0


def test_long_session_keeps_running_totals_only():
    aggregator = SessionAggregator()
    for i in range(10000):
        degrees = float(i % 90)
        direction = Direction.FLEXION if i % 2 else Direction.EXTENSION
        aggregator.add_angle(JointId.INDEX_PIP, angle(degrees, direction, 0.5))
        aggregator.add_confidence(1.0)
        aggregator.count_accepted()

    running = aggregator.roms[JointId.INDEX_PIP]
    assert isinstance(running, RunningRom)
    assert running.samples == 10000
    assert running.maxima == {Direction.FLEXION: 89.0, Direction.EXTENSION: 88.0}
    assert not any(isinstance(value, list) for value in vars(aggregator).values())
    assert not any(isinstance(value, list) for value in vars(running).values())

    result = aggregator.finalize(Laterality.RIGHT, laterality_locked=True)
    assert result.per_segment_max[JointId.INDEX_PIP].mean_confidence == pytest.approx(0.5)
    # 100 * (0.5 * 1 + 0.3 * 0.75 + 0.2)
    assert result.overall_quality_score == 92.5
