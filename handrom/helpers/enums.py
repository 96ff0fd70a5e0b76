import enum


class AssessmentType(str, enum.Enum):
    FINGER_ROM = 'FINGER_ROM'
    WRIST_FLEXION_EXTENSION = 'WRIST_FLEXION_EXTENSION'
    WRIST_DEVIATION = 'WRIST_DEVIATION'
    KAPANDJI = 'KAPANDJI'


class FrameStatus(str, enum.Enum):
    ACCEPTED = 'ACCEPTED'
    REJECTED = 'REJECTED'
    SKIPPED = 'SKIPPED'
