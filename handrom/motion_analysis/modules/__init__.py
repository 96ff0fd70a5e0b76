"""
Modules Package for HANDROM.

- assessment: per-assessment configuration
- kapandji: thumb opposition scoring
- aggregator: session ROM maxima and quality score
- session: per-frame pipeline owner

Author: HANDROM Team
Version: 1.0.0
"""

from .assessment import AssessmentConfig, QualityWeights
from .kapandji import KapandjiScorer, KapandjiScore, KapandjiTarget, KAPANDJI_TARGETS
from .aggregator import RunningRom, SessionAggregator, finalize, quality_score, segment_rom
from .session import RomSession, FrameAnalysis, SessionClosedError

__all__ = [
    # Assessment
    "AssessmentConfig",
    "QualityWeights",

    # Kapandji
    "KapandjiScorer",
    "KapandjiScore",
    "KapandjiTarget",
    "KAPANDJI_TARGETS",

    # Aggregator
    "RunningRom",
    "SessionAggregator",
    "finalize",
    "quality_score",
    "segment_rom",

    # Session
    "RomSession",
    "FrameAnalysis",
    "SessionClosedError",
]
