# Motion Analysis Package
# Converts per-frame hand/pose landmarks into range-of-motion measurements

from .core import LandmarkFrame, Landmark, Laterality, JointId, MalformedFrameError
from .modules import AssessmentConfig, RomSession, FrameAnalysis
from .utils import SessionLogger

__all__ = [
    'LandmarkFrame',
    'Landmark',
    'Laterality',
    'JointId',
    'MalformedFrameError',
    'AssessmentConfig',
    'RomSession',
    'FrameAnalysis',
    'SessionLogger'
]
