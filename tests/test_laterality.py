import pytest

from handrom.motion_analysis.core import (
    LandmarkFrame, Laterality, LateralityResolver, SessionLaterality, resolve,
)
from tests.landmark_factory import hand_points, make_frame, mirror, pose_landmarks, to_landmarks


def test_locks_right_hand():
    state = resolve(make_frame(120), SessionLaterality())

    assert state.locked
    assert state.value is Laterality.RIGHT
    assert state.locked_at_ms == 120
    assert state.confidence_accumulated == pytest.approx(0.9)


def test_locks_mirrored_left_hand():
    frame = make_frame(0, mirror(hand_points()), side=Laterality.LEFT)
    state = resolve(frame, SessionLaterality())

    assert state.locked and state.value is Laterality.LEFT


def test_lock_is_monotonic():
    state = resolve(make_frame(0), SessionLaterality())

    for ts in range(1, 20):
        contradicting = make_frame(ts * 33, mirror(hand_points()), side=Laterality.LEFT)
        new_state = resolve(contradicting, state)
        assert new_state is state

    assert state.value is Laterality.RIGHT


def test_near_tie_does_not_lock():
    frame = LandmarkFrame(
        timestamp_ms=0,
        hand_landmarks=to_landmarks(hand_points()),
        pose_landmarks=pose_landmarks(Laterality.RIGHT, near_offset=0.1, far_offset=0.11),
    )
    state = resolve(frame, SessionLaterality())

    assert not state.locked
    assert state.value is Laterality.UNKNOWN
    assert state.confidence_accumulated == pytest.approx(0.9)


def test_low_visibility_does_not_lock():
    state = resolve(make_frame(0, pose_visibility=0.4), SessionLaterality())

    assert not state.locked
    assert state.confidence_accumulated == pytest.approx(0.4)


def test_missing_pose_leaves_state_unchanged():
    initial = SessionLaterality()
    assert resolve(make_frame(0, side=None), initial) is initial


def test_missing_hand_leaves_state_unchanged():
    initial = SessionLaterality()
    frame = LandmarkFrame(timestamp_ms=0, pose_landmarks=pose_landmarks())
    assert resolve(frame, initial) is initial


def test_resolver_keeps_best_confidence_until_lock():
    resolver = LateralityResolver()

    resolver.update(make_frame(0, pose_visibility=0.3))
    resolver.update(make_frame(33, pose_visibility=0.45))
    resolver.update(make_frame(66, pose_visibility=0.2))
    assert not resolver.locked
    assert resolver.state.confidence_accumulated == pytest.approx(0.45)

    resolver.update(make_frame(99))
    assert resolver.locked
    assert resolver.value is Laterality.RIGHT
    assert resolver.state.locked_at_ms == 99


def test_resolver_with_preset_ignores_frames():
    resolver = LateralityResolver(initial=SessionLaterality.preset(Laterality.LEFT))
    resolver.update(make_frame(0))
    assert resolver.value is Laterality.LEFT
