from handrom.motion_analysis.core import HandLandmarkIndex
from handrom.motion_analysis.modules import KAPANDJI_TARGETS, KapandjiScorer
from tests.landmark_factory import hand_points, to_landmarks


def thumb_on(target_index: int):
    points = hand_points()
    return to_landmarks(hand_points(thumb_tip=points[target_index]))


def test_targets_are_ordered():
    assert [target.score for target in KAPANDJI_TARGETS] == list(range(1, 11))


def test_resting_thumb_scores_zero():
    result = KapandjiScorer().score(to_landmarks(hand_points()))
    assert result.score == 0
    assert result.reached == ()


def test_thumb_on_index_tip():
    result = KapandjiScorer().score(thumb_on(HandLandmarkIndex.INDEX_TIP))
    assert result.score == 3
    assert "index_tip" in result.reached


def test_thumb_on_palmar_crease():
    points = hand_points()
    crease = points[[0, 9, 13, 17]].mean(axis=0)
    result = KapandjiScorer().score(to_landmarks(hand_points(thumb_tip=crease)))

    assert result.score == 10
    assert "distal_palmar_crease" in result.reached


def test_scorer_keeps_best():
    scorer = KapandjiScorer()
    scorer.score(thumb_on(HandLandmarkIndex.INDEX_TIP))
    scorer.score(to_landmarks(hand_points()))

    assert scorer.best_score == 3
    assert scorer.frames_scored == 2


def test_incomplete_hand_is_not_scored():
    scorer = KapandjiScorer()
    assert scorer.score(to_landmarks(hand_points())[:10]) is None
    assert scorer.frames_scored == 0
