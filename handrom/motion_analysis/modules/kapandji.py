"""
Kapandji Module for HANDROM.

Thumb opposition scoring (Kapandji 0-10): the thumb tip is compared against
ten ordered targets along the fingers and palm; the score is the highest
target it touches.

Author: HANDROM Team
Version: 1.0.0
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import numpy as np

from ..core.data_types import HAND_LANDMARK_COUNT, HandLandmarkIndex, Landmark

# 3D distance below which the thumb tip touches a target
DEFAULT_REACH_THRESHOLD = 0.055

# Landmarks averaged for the distal palmar crease
PALMAR_CREASE_LANDMARKS = (
    HandLandmarkIndex.WRIST, HandLandmarkIndex.MIDDLE_MCP,
    HandLandmarkIndex.RING_MCP, HandLandmarkIndex.PINKY_MCP,
)


@dataclass(frozen=True)
class KapandjiTarget:
    """One opposition target; ``landmarks`` are averaged into its position."""
    score: int
    name: str
    landmarks: Tuple[int, ...]


KAPANDJI_TARGETS = (
    KapandjiTarget(1, "index_pip", (HandLandmarkIndex.INDEX_PIP,)),
    KapandjiTarget(2, "index_dip", (HandLandmarkIndex.INDEX_DIP,)),
    KapandjiTarget(3, "index_tip", (HandLandmarkIndex.INDEX_TIP,)),
    KapandjiTarget(4, "middle_tip", (HandLandmarkIndex.MIDDLE_TIP,)),
    KapandjiTarget(5, "ring_tip", (HandLandmarkIndex.RING_TIP,)),
    KapandjiTarget(6, "pinky_tip", (HandLandmarkIndex.PINKY_TIP,)),
    KapandjiTarget(7, "pinky_dip", (HandLandmarkIndex.PINKY_DIP,)),
    KapandjiTarget(8, "pinky_pip", (HandLandmarkIndex.PINKY_PIP,)),
    KapandjiTarget(9, "pinky_mcp", (HandLandmarkIndex.PINKY_MCP,)),
    KapandjiTarget(10, "distal_palmar_crease", PALMAR_CREASE_LANDMARKS),
)


@dataclass(frozen=True)
class KapandjiScore:
    """
    Opposition result of one frame.

    Attributes:
        score: Highest target reached (0 when none).
        reached: Names of every target within reach.
    """
    score: int = 0
    reached: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"score": self.score, "reached": list(self.reached)}


def target_position(target: KapandjiTarget, hand: Sequence[Landmark]) -> np.ndarray:
    return np.mean([hand[i].to_array() for i in target.landmarks], axis=0)


class KapandjiScorer:
    """
    Scores thumb opposition per frame and keeps the session best.

    Usage:
        scorer = KapandjiScorer()
        result = scorer.score(frame.hand_landmarks)
        scorer.best_score
    """

    def __init__(self, threshold: float = DEFAULT_REACH_THRESHOLD):
        self.threshold = threshold
        self.best_score = 0
        self.frames_scored = 0

    def score(self, hand: Sequence[Landmark]) -> Optional[KapandjiScore]:
        """
        Score one hand.

        Returns:
            KapandjiScore, or None when the hand does not have 21 landmarks.
        """
        if len(hand) != HAND_LANDMARK_COUNT:
            return None

        thumb_tip = hand[HandLandmarkIndex.THUMB_TIP].to_array()
        reached: List[KapandjiTarget] = [
            target for target in KAPANDJI_TARGETS
            if np.linalg.norm(thumb_tip - target_position(target, hand)) < self.threshold
        ]

        result = KapandjiScore(
            score=max((t.score for t in reached), default=0),
            reached=tuple(t.name for t in reached),
        )
        self.frames_scored += 1
        self.best_score = max(self.best_score, result.score)
        return result

    def reset(self):
        self.best_score = 0
        self.frames_scored = 0
