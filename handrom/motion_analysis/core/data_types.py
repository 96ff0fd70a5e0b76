"""
Data Types Module for HANDROM.

Typed representation of one observation instant (hand landmarks, pose
landmarks, per-point visibility) and the result types produced by the
motion-analysis pipeline.

Author: HANDROM Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple
from enum import Enum
import numpy as np


HAND_LANDMARK_COUNT = 21
POSE_LANDMARK_COUNT = 33


class MalformedFrameError(ValueError):
    """Frame violates the structural contract of the landmark detector adapter."""


class Laterality(Enum):
    """Body side a tracked hand belongs to."""
    LEFT = "left"
    RIGHT = "right"
    UNKNOWN = "unknown"


class SegmentId(Enum):
    """Anatomical segments scored by the confidence filter."""
    THUMB = "thumb"
    INDEX = "index"
    MIDDLE = "middle"
    RING = "ring"
    PINKY = "pinky"
    WRIST = "wrist"


class ConfidenceClass(Enum):
    """Reliability classification of a segment in one frame."""
    STABLE = "stable"
    MODERATE = "moderate"
    OCCLUDED = "occluded"


class Direction(Enum):
    """Classified direction of a joint angle."""
    FLEXION = "flexion"
    EXTENSION = "extension"
    RADIAL = "radial"
    ULNAR = "ulnar"
    NEUTRAL = "neutral"


class JointKind(Enum):
    """Joint families sharing physiological limits."""
    MCP = "mcp"
    PIP = "pip"
    DIP = "dip"
    WRIST_FLEXION = "wrist_flexion"
    WRIST_DEVIATION = "wrist_deviation"


class JointId(Enum):
    """Every joint measured by the angle calculator."""
    INDEX_MCP = "index_mcp"
    INDEX_PIP = "index_pip"
    INDEX_DIP = "index_dip"
    MIDDLE_MCP = "middle_mcp"
    MIDDLE_PIP = "middle_pip"
    MIDDLE_DIP = "middle_dip"
    RING_MCP = "ring_mcp"
    RING_PIP = "ring_pip"
    RING_DIP = "ring_dip"
    PINKY_MCP = "pinky_mcp"
    PINKY_PIP = "pinky_pip"
    PINKY_DIP = "pinky_dip"
    WRIST_FLEXION = "wrist_flexion"
    WRIST_DEVIATION = "wrist_deviation"

    @property
    def segment(self) -> SegmentId:
        if self in (JointId.WRIST_FLEXION, JointId.WRIST_DEVIATION):
            return SegmentId.WRIST
        return SegmentId(self.value.split("_")[0])

    @property
    def kind(self) -> JointKind:
        if self is JointId.WRIST_FLEXION:
            return JointKind.WRIST_FLEXION
        if self is JointId.WRIST_DEVIATION:
            return JointKind.WRIST_DEVIATION
        return JointKind(self.value.split("_")[1])

    @classmethod
    def for_finger(cls, finger: SegmentId) -> List["JointId"]:
        """MCP, PIP and DIP joints of one finger, proximal to distal."""
        return [cls(f"{finger.value}_{kind}") for kind in ("mcp", "pip", "dip")]


FINGER_SEGMENTS = (SegmentId.INDEX, SegmentId.MIDDLE, SegmentId.RING, SegmentId.PINKY)


class HandLandmarkIndex:
    """
    Indices of the 21 MediaPipe hand landmarks.
    """
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20

    # Joint chain (MCP, PIP, DIP, TIP) per digit
    FINGER_CHAINS = {
        SegmentId.THUMB: (THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP),
        SegmentId.INDEX: (INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP),
        SegmentId.MIDDLE: (MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP),
        SegmentId.RING: (RING_MCP, RING_PIP, RING_DIP, RING_TIP),
        SegmentId.PINKY: (PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP),
    }

    WRIST_SEGMENT = (WRIST, INDEX_MCP, MIDDLE_MCP, RING_MCP, PINKY_MCP)

    @classmethod
    def segment_indices(cls, segment: SegmentId) -> Tuple[int, ...]:
        """Landmark indices belonging to one segment."""
        if segment is SegmentId.WRIST:
            return cls.WRIST_SEGMENT
        return cls.FINGER_CHAINS[segment]


class PoseLandmarkIndex:
    """
    Indices of the MediaPipe Pose landmarks used by this package.
    33 landmarks in total.
    """
    NOSE = 0
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16

    @classmethod
    def elbow(cls, side: Laterality) -> int:
        return cls.LEFT_ELBOW if side is Laterality.LEFT else cls.RIGHT_ELBOW

    @classmethod
    def wrist(cls, side: Laterality) -> int:
        return cls.LEFT_WRIST if side is Laterality.LEFT else cls.RIGHT_WRIST


@dataclass(frozen=True)
class Landmark:
    """
    A single tracked anatomical point.

    Attributes:
        x: Normalized X coordinate.
        y: Normalized Y coordinate.
        z: Normalized depth (smaller is closer to the camera).
        visibility: Detector confidence (0-1), None if not reported.
    """
    x: float
    y: float
    z: float
    visibility: Optional[float] = None

    @property
    def score(self) -> float:
        """Visibility with the missing value treated as fully visible."""
        return 1.0 if self.visibility is None else float(self.visibility)

    def to_array(self) -> np.ndarray:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"x": self.x, "y": self.y, "z": self.z, "visibility": self.visibility}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Landmark":
        try:
            visibility = data.get("visibility")
            return cls(
                x=float(data["x"]),
                y=float(data["y"]),
                z=float(data.get("z", 0.0)),
                visibility=None if visibility is None else float(visibility),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedFrameError(f"Invalid landmark {data!r}: {e}") from e


@dataclass(frozen=True)
class LandmarkFrame:
    """
    One time-stamped observation from the landmark detector.

    Attributes:
        timestamp_ms: Monotonic timestamp in milliseconds.
        hand_landmarks: 21 hand landmarks, or empty when no hand was detected.
        pose_landmarks: 33 pose landmarks, or empty when no pose was detected.
        source_confidence: Optional aggregate score from the detector.
    """
    timestamp_ms: int
    hand_landmarks: Tuple[Landmark, ...] = ()
    pose_landmarks: Tuple[Landmark, ...] = ()
    source_confidence: Optional[float] = None

    def __post_init__(self):
        # Accept lists from callers but store immutable tuples
        object.__setattr__(self, "hand_landmarks", tuple(self.hand_landmarks))
        object.__setattr__(self, "pose_landmarks", tuple(self.pose_landmarks))

        if len(self.hand_landmarks) not in (0, HAND_LANDMARK_COUNT):
            raise MalformedFrameError(
                f"Expected 0 or {HAND_LANDMARK_COUNT} hand landmarks, got {len(self.hand_landmarks)}"
            )
        if len(self.pose_landmarks) not in (0, POSE_LANDMARK_COUNT):
            raise MalformedFrameError(
                f"Expected 0 or {POSE_LANDMARK_COUNT} pose landmarks, got {len(self.pose_landmarks)}"
            )

    def has_hand(self) -> bool:
        return len(self.hand_landmarks) == HAND_LANDMARK_COUNT

    def has_pose(self) -> bool:
        return len(self.pose_landmarks) == POSE_LANDMARK_COUNT

    def hand(self, index: int) -> Landmark:
        return self.hand_landmarks[index]

    def pose(self, index: int) -> Landmark:
        return self.pose_landmarks[index]

    def segment_landmarks(self, segment: SegmentId) -> List[Landmark]:
        """Hand landmarks of one segment, empty when the hand is missing."""
        if not self.has_hand():
            return []
        return [self.hand_landmarks[i] for i in HandLandmarkIndex.segment_indices(segment)]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LandmarkFrame":
        """
        Build a frame from detector-shaped data.

        Accepts both camelCase (``handLandmarks``) and snake_case keys.

        Raises:
            MalformedFrameError: On wrong landmark counts or non-numeric values.
        """
        if not isinstance(data, Mapping):
            raise MalformedFrameError(f"Frame must be an object, got {type(data).__name__}")

        timestamp = data.get("timestamp_ms", data.get("timestamp"))
        if timestamp is None:
            raise MalformedFrameError("Frame has no timestamp")

        hand = data.get("hand_landmarks", data.get("handLandmarks")) or []
        pose = data.get("pose_landmarks", data.get("poseLandmarks")) or []
        source_confidence = data.get("source_confidence", data.get("sourceConfidence"))

        try:
            timestamp_ms = int(timestamp)
        except (TypeError, ValueError) as e:
            raise MalformedFrameError(f"Invalid timestamp {timestamp!r}") from e

        if source_confidence is not None:
            try:
                source_confidence = float(source_confidence)
            except (TypeError, ValueError) as e:
                raise MalformedFrameError(f"Invalid source confidence {source_confidence!r}") from e

        if not isinstance(hand, (list, tuple)) or not isinstance(pose, (list, tuple)):
            raise MalformedFrameError("Landmarks must be lists")

        return cls(
            timestamp_ms=timestamp_ms,
            hand_landmarks=tuple(Landmark.from_dict(lm) for lm in hand),
            pose_landmarks=tuple(Landmark.from_dict(lm) for lm in pose),
            source_confidence=source_confidence,
        )


@dataclass(frozen=True)
class SessionLaterality:
    """
    Laterality tracked for one recording session.

    Once ``locked`` is True, ``value`` never changes for the rest of the session.
    """
    value: Laterality = Laterality.UNKNOWN
    locked: bool = False
    confidence_accumulated: float = 0.0
    locked_at_ms: Optional[int] = None

    @classmethod
    def preset(cls, side: Laterality, timestamp_ms: int = 0) -> "SessionLaterality":
        """Locked state for a session whose assessed hand is known up front."""
        if side is Laterality.UNKNOWN:
            raise ValueError("Cannot preset an UNKNOWN laterality")
        return cls(value=side, locked=True, confidence_accumulated=1.0, locked_at_ms=timestamp_ms)


@dataclass(frozen=True)
class SegmentConfidence:
    """
    Frame-to-frame stability of one segment.

    Attributes:
        segment_id: Segment scored.
        confidence: 0.0-1.0.
        classification: STABLE, MODERATE or OCCLUDED.
        observed_movement: Mean 3D displacement of the segment landmarks.
        reason: Human-readable explanation.
    """
    segment_id: SegmentId
    confidence: float
    classification: ConfidenceClass
    observed_movement: float = 0.0
    reason: str = ""

    @property
    def is_occluded(self) -> bool:
        return self.classification is ConfidenceClass.OCCLUDED


@dataclass(frozen=True)
class AngleResult:
    """
    Output of the angle calculator for one joint in one frame.

    ``magnitude_degrees`` is 0 for NEUTRAL results; the raw deflection is
    kept in ``raw_degrees``.
    """
    magnitude_degrees: float
    direction: Direction
    confidence: float
    laterality_used: Laterality
    inputs_valid: bool = True
    raw_degrees: float = 0.0

    @property
    def signed_degrees(self) -> float:
        """Positive for flexion/radial, negative for extension/ulnar."""
        if self.direction in (Direction.EXTENSION, Direction.ULNAR):
            return -self.magnitude_degrees
        if self.direction is Direction.NEUTRAL:
            return 0.0
        return self.magnitude_degrees

    @property
    def flexion_degrees(self) -> float:
        return self.magnitude_degrees if self.direction is Direction.FLEXION else 0.0

    @property
    def extension_degrees(self) -> float:
        return self.magnitude_degrees if self.direction is Direction.EXTENSION else 0.0

    def to_dict(self) -> dict:
        return {
            "magnitude_degrees": round(self.magnitude_degrees, 2),
            "direction": self.direction.value,
            "confidence": round(self.confidence, 3),
            "laterality_used": self.laterality_used.value,
            "inputs_valid": self.inputs_valid,
        }


@dataclass(frozen=True)
class SegmentRom:
    """
    Session maxima of one joint.

    Attributes:
        maxima: Maximum magnitude per non-neutral direction.
        samples: Number of accepted angles aggregated.
        mean_confidence: Average confidence of the accepted angles.
    """
    maxima: Dict[Direction, float] = field(default_factory=dict)
    samples: int = 0
    mean_confidence: float = 0.0

    @property
    def max_flexion(self) -> float:
        return self.maxima.get(Direction.FLEXION, 0.0)

    @property
    def max_extension(self) -> float:
        return self.maxima.get(Direction.EXTENSION, 0.0)

    @property
    def max_radial(self) -> float:
        return self.maxima.get(Direction.RADIAL, 0.0)

    @property
    def max_ulnar(self) -> float:
        return self.maxima.get(Direction.ULNAR, 0.0)

    @property
    def total_rom(self) -> float:
        return sum(self.maxima.values())

    def to_dict(self, deviation: bool = False) -> Dict[str, float]:
        if deviation:
            values = {
                "max_radial_deviation": round(self.max_radial, 2),
                "max_ulnar_deviation": round(self.max_ulnar, 2),
            }
        else:
            values = {
                "max_flexion": round(self.max_flexion, 2),
                "max_extension": round(self.max_extension, 2),
            }
        values["total_rom"] = round(self.total_rom, 2)
        return values


@dataclass(frozen=True)
class SessionRomResult:
    """
    Per-assessment output of the session aggregator. Read-only.
    """
    per_segment_max: Dict[JointId, SegmentRom]
    overall_quality_score: float
    frames_accepted: int
    frames_rejected: int
    frames_skipped: int = 0
    laterality: Laterality = Laterality.UNKNOWN
    kapandji_score: Optional[int] = None

    @property
    def frames_total(self) -> int:
        return self.frames_accepted + self.frames_rejected + self.frames_skipped

    def total_active_motion(self, finger: SegmentId) -> float:
        """Sum of MCP, PIP and DIP maximum flexion of one finger (TAM)."""
        return sum(
            self.per_segment_max[joint].max_flexion
            for joint in JointId.for_finger(finger)
            if joint in self.per_segment_max
        )

    def to_dict(self) -> dict:
        """Flat numeric structure for storage/reporting collaborators."""
        segments = {
            joint.value: rom.to_dict(deviation=joint is JointId.WRIST_DEVIATION)
            for joint, rom in self.per_segment_max.items()
        }
        fingers_measured = {joint.segment for joint in self.per_segment_max if joint.segment in FINGER_SEGMENTS}
        return {
            "segments": segments,
            "total_active_motion": {
                finger.value: round(self.total_active_motion(finger), 2)
                for finger in FINGER_SEGMENTS if finger in fingers_measured
            },
            "overall_quality_score": self.overall_quality_score,
            "frames_accepted": self.frames_accepted,
            "frames_rejected": self.frames_rejected,
            "frames_skipped": self.frames_skipped,
            "laterality": self.laterality.value,
            "kapandji_score": self.kapandji_score,
        }
