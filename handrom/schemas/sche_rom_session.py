"""
ROM Session Schemas for HANDROM.

Pydantic models for the ROM session API requests and responses.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from handrom.helpers.enums import AssessmentType, FrameStatus


class LandmarkSchema(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


class RomSessionStartRequest(BaseModel):
    """Request model for starting a ROM session."""

    assessment_type: AssessmentType = Field(..., description="Assessment to run")
    laterality: Optional[str] = Field(default=None, description="Preset hand side (left/right); detected when omitted")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "assessment_type": "WRIST_FLEXION_EXTENSION",
            "laterality": None,
        }
    })


class RomSessionStartResponse(BaseModel):
    """Response model for ROM session start."""

    session_id: str = Field(..., description="Unique session identifier")
    assessment_type: AssessmentType
    laterality: str = Field(..., description="Current laterality (left/right/unknown)")
    laterality_locked: bool


class FrameRequest(BaseModel):
    """One detector frame."""

    timestamp_ms: int = Field(..., ge=0, description="Monotonic frame timestamp in milliseconds")
    hand_landmarks: List[LandmarkSchema] = Field(default_factory=list, description="21 hand landmarks or empty")
    pose_landmarks: List[LandmarkSchema] = Field(default_factory=list, description="33 pose landmarks or empty")
    source_confidence: Optional[float] = None


class FrameAnalysisResponse(BaseModel):
    """Per-frame pipeline outcome."""

    timestamp_ms: int
    status: FrameStatus
    laterality: str
    confidences: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    angles: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    rejections: List[Dict[str, Any]] = Field(default_factory=list)
    kapandji: Optional[Dict[str, Any]] = None
    reason: str = ""


class RomSessionResultResponse(BaseModel):
    """Final session result."""

    session_id: str
    assessment_type: AssessmentType
    segments: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    total_active_motion: Dict[str, float] = Field(default_factory=dict)
    overall_quality_score: float
    frames_accepted: int
    frames_rejected: int
    frames_skipped: int
    laterality: str
    kapandji_score: Optional[int] = None
