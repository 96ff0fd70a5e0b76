import numpy as np
import pytest

from handrom.motion_analysis.core import (
    Direction, JointId, Landmark, Laterality, PoseLandmarkIndex, classify_direction, compute_angle,
    finger_joint_angle, wrist_deviation_angle, wrist_flexion_angle,
)
from tests.landmark_factory import (
    deviate_wrist, flex_wrist, hand_points, mirror, pose_landmarks, to_landmarks,
)

FINGER_JOINTS = [joint for joint in JointId if joint not in (JointId.WRIST_FLEXION, JointId.WRIST_DEVIATION)]


@pytest.mark.parametrize("joint", FINGER_JOINTS)
def test_straight_hand_is_neutral(joint):
    angle = finger_joint_angle(to_landmarks(hand_points()), joint, Laterality.RIGHT)
    assert angle.inputs_valid
    assert angle.direction is Direction.NEUTRAL
    assert angle.magnitude_degrees == 0.0
    assert angle.raw_degrees == pytest.approx(0.0, abs=1e-6)


def test_right_hand_flexion():
    hand = to_landmarks(hand_points((30.0, 40.0, 20.0)))

    mcp = finger_joint_angle(hand, JointId.INDEX_MCP, Laterality.RIGHT)
    pip = finger_joint_angle(hand, JointId.INDEX_PIP, Laterality.RIGHT)
    dip = finger_joint_angle(hand, JointId.INDEX_DIP, Laterality.RIGHT)

    assert mcp.direction is Direction.FLEXION and mcp.magnitude_degrees == pytest.approx(30.0)
    assert pip.direction is Direction.FLEXION and pip.magnitude_degrees == pytest.approx(40.0)
    assert dip.direction is Direction.FLEXION and dip.magnitude_degrees == pytest.approx(20.0)


def test_right_hand_extension():
    hand = to_landmarks(hand_points((-20.0, 0.0, 0.0)))

    mcp = finger_joint_angle(hand, JointId.MIDDLE_MCP, Laterality.RIGHT)
    pip = finger_joint_angle(hand, JointId.MIDDLE_PIP, Laterality.RIGHT)

    assert mcp.direction is Direction.EXTENSION
    assert mcp.magnitude_degrees == pytest.approx(20.0)
    assert mcp.signed_degrees == pytest.approx(-20.0)
    assert pip.direction is Direction.NEUTRAL


@pytest.mark.parametrize("flexion", [(35.0, 50.0, 25.0), (-25.0, 10.0, -10.0)])
def test_mirrored_hand_keeps_direction(flexion):
    points = hand_points(flexion)
    right = to_landmarks(points)
    left = to_landmarks(mirror(points))

    for joint in FINGER_JOINTS:
        r = finger_joint_angle(right, joint, Laterality.RIGHT)
        l = finger_joint_angle(left, joint, Laterality.LEFT)
        assert l.direction is r.direction
        assert l.magnitude_degrees == pytest.approx(r.magnitude_degrees)


def test_wrong_laterality_flips_direction():
    left = to_landmarks(mirror(hand_points((40.0, 0.0, 0.0))))
    angle = finger_joint_angle(left, JointId.RING_MCP, Laterality.RIGHT)
    assert angle.direction is Direction.EXTENSION


@pytest.mark.parametrize("degrees", [2.0, 4.5, -4.0])
def test_deadband_is_neutral(degrees):
    hand = to_landmarks(hand_points((degrees, 0.0, 0.0)))
    angle = finger_joint_angle(hand, JointId.INDEX_MCP, Laterality.RIGHT, deadband=5.0)

    assert angle.direction is Direction.NEUTRAL
    assert angle.flexion_degrees == 0.0 and angle.extension_degrees == 0.0
    assert angle.raw_degrees == pytest.approx(abs(degrees))


def test_unknown_laterality_is_invalid():
    hand = to_landmarks(hand_points((30.0, 0.0, 0.0)))
    angle = finger_joint_angle(hand, JointId.INDEX_MCP, Laterality.UNKNOWN)
    assert not angle.inputs_valid


def test_degenerate_vectors_are_invalid():
    hand = tuple(Landmark(0.5, 0.5, 0.0) for _ in range(21))
    angle = finger_joint_angle(hand, JointId.INDEX_PIP, Laterality.RIGHT)
    assert not angle.inputs_valid


def test_classify_direction_sign_table():
    reference = np.array([0.0, -1.0, 0.0])
    measurement = np.array([0.0, -1.0, -1.0])
    axis = np.array([1.0, 0.0, 0.0])

    assert classify_direction(reference, measurement, axis, Laterality.RIGHT) is Direction.FLEXION
    assert classify_direction(reference, measurement, -axis, Laterality.LEFT) is Direction.FLEXION
    assert classify_direction(reference, measurement, axis, Laterality.LEFT) is Direction.EXTENSION
    assert classify_direction(reference, measurement, axis, Laterality.UNKNOWN) is Direction.NEUTRAL


def test_compute_angle_reports_confidence():
    angle = compute_angle(
        np.array([0.0, -1.0, 0.0]), np.array([0.0, -1.0, -1.0]), np.array([1.0, 0.0, 0.0]),
        Laterality.RIGHT, confidence=0.8,
    )
    assert angle.magnitude_degrees == pytest.approx(45.0)
    assert angle.confidence == 0.8


@pytest.mark.parametrize("degrees,direction", [(40.0, Direction.FLEXION), (-30.0, Direction.EXTENSION)])
def test_wrist_flexion(degrees, direction):
    hand = to_landmarks(flex_wrist(hand_points(), degrees))
    angle = wrist_flexion_angle(hand, pose_landmarks(Laterality.RIGHT), Laterality.RIGHT)

    assert angle.direction is direction
    assert angle.magnitude_degrees == pytest.approx(abs(degrees))


def test_wrist_flexion_mirrored():
    points = flex_wrist(hand_points(), 40.0)
    right = wrist_flexion_angle(to_landmarks(points), pose_landmarks(Laterality.RIGHT), Laterality.RIGHT)
    left = wrist_flexion_angle(to_landmarks(mirror(points)), pose_landmarks(Laterality.LEFT), Laterality.LEFT)

    assert left.direction is right.direction is Direction.FLEXION
    assert left.magnitude_degrees == pytest.approx(right.magnitude_degrees)


def test_wrist_flexion_neutral_fixture():
    angle = wrist_flexion_angle(to_landmarks(hand_points()), pose_landmarks(), Laterality.RIGHT)
    assert angle.direction is Direction.NEUTRAL
    assert angle.raw_degrees == pytest.approx(0.0, abs=1e-6)


def test_wrist_flexion_without_pose_is_invalid():
    angle = wrist_flexion_angle(to_landmarks(hand_points()), (), Laterality.RIGHT)
    assert not angle.inputs_valid


@pytest.mark.parametrize("degrees,direction", [(15.0, Direction.RADIAL), (-20.0, Direction.ULNAR)])
def test_wrist_deviation(degrees, direction):
    points = deviate_wrist(hand_points(), degrees)

    right = wrist_deviation_angle(to_landmarks(points), pose_landmarks(Laterality.RIGHT), Laterality.RIGHT)
    left = wrist_deviation_angle(to_landmarks(mirror(points)), pose_landmarks(Laterality.LEFT), Laterality.LEFT)

    for angle in (right, left):
        assert angle.direction is direction
        assert angle.magnitude_degrees == pytest.approx(abs(degrees))


def palm_on_hand(side: Laterality, index_mcp_flexion: float = 0.0, wrist_flexion: float = 0.0):
    """
    Hand built from detector coordinates rather than the factory.

    Palm toward an unmirrored camera: a right hand shows its index knuckle at
    high x, a left hand at low x. Bending toward the palm moves toward -z.
    """
    toward_index = 1.0 if side is Laterality.RIGHT else -1.0
    wrist = np.array([0.5, 0.7, 0.0])
    phi = np.radians(wrist_flexion)
    hand_up = np.array([0.0, -np.cos(phi), -np.sin(phi)])
    toward_palm = np.array([0.0, np.sin(phi), -np.cos(phi)])
    across = np.array([toward_index, 0.0, 0.0])

    points = np.zeros((21, 3))
    points[0] = wrist
    offsets = (0.03, 0.0, -0.015, -0.03)
    for finger, offset in enumerate(offsets):
        mcp = wrist + 0.1 * hand_up + offset * across
        direction = (mcp - wrist) / np.linalg.norm(mcp - wrist)
        if finger == 0:
            a = np.radians(index_mcp_flexion)
            direction = np.cos(a) * direction + np.sin(a) * toward_palm
        base = 5 + 4 * finger
        points[base] = mcp
        for step in range(1, 4):
            points[base + step] = mcp + 0.03 * step * direction
    for step in range(1, 5):
        points[step] = wrist + step * 0.02 * np.array([toward_index, -0.5, 0.0])
    return to_landmarks(points)


def palm_on_pose(side: Laterality):
    points = [Landmark(0.5, 0.3, 0.0, 0.9) for _ in range(33)]
    points[PoseLandmarkIndex.wrist(side)] = Landmark(0.5, 0.7, 0.0, 0.9)
    points[PoseLandmarkIndex.elbow(side)] = Landmark(0.5, 0.95, 0.0, 0.9)
    return tuple(points)


@pytest.mark.parametrize("side", [Laterality.RIGHT, Laterality.LEFT])
def test_palm_on_finger_flexion_toward_palm(side):
    hand = palm_on_hand(side, index_mcp_flexion=40.0)
    angle = finger_joint_angle(hand, JointId.INDEX_MCP, side)

    assert angle.direction is Direction.FLEXION
    assert angle.magnitude_degrees == pytest.approx(40.0)


@pytest.mark.parametrize("side", [Laterality.RIGHT, Laterality.LEFT])
def test_palm_on_finger_extension_away_from_palm(side):
    hand = palm_on_hand(side, index_mcp_flexion=-25.0)
    angle = finger_joint_angle(hand, JointId.INDEX_MCP, side)

    assert angle.direction is Direction.EXTENSION
    assert angle.magnitude_degrees == pytest.approx(25.0)


@pytest.mark.parametrize("side", [Laterality.RIGHT, Laterality.LEFT])
@pytest.mark.parametrize("degrees,direction", [(30.0, Direction.FLEXION), (-35.0, Direction.EXTENSION)])
def test_palm_on_wrist_flexion(side, degrees, direction):
    angle = wrist_flexion_angle(palm_on_hand(side, wrist_flexion=degrees), palm_on_pose(side), side)

    assert angle.direction is direction
    assert angle.magnitude_degrees == pytest.approx(abs(degrees))
