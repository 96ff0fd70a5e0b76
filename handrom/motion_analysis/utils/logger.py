"""
Logger Module for HANDROM.

Structured per-session diagnostic log: laterality lock, rejected
measurements with their raw inputs, session summary.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from enum import Enum
import json
import time
from pathlib import Path

from ..core.data_types import Landmark


class LogLevel(Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogCategory(Enum):
    """Log categories."""
    LATERALITY = "laterality"
    CONFIDENCE = "confidence"
    ANATOMICAL = "anatomical"
    TEMPORAL = "temporal"
    SESSION = "session"


@dataclass
class LogEntry:
    """Log entry."""
    timestamp: float
    level: LogLevel
    category: LogCategory
    message: str
    data: Optional[Dict] = None

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'level': self.level.value,
            'category': self.category.value,
            'message': self.message,
            'data': self.data,
        }


@dataclass
class SessionLogger:
    """
    Logger for ROM sessions.

    Entries stay in memory; ``save_session_log`` writes them as JSON.
    """

    session_id: str
    log_dir: str = "./data/logs"
    entries: List[LogEntry] = field(default_factory=list)

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)

    def log(self, level: LogLevel, category: LogCategory, message: str, data: Optional[Dict] = None):
        """
        Log a message.

        Args:
            level: Log level
            category: Log category
            message: Log message
            data: Optional data
        """
        entry = LogEntry(
            timestamp=time.time(),
            level=level,
            category=category,
            message=message,
            data=data
        )
        self.entries.append(entry)

    def info(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log info message."""
        self.log(LogLevel.INFO, category, message, data)

    def warning(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log warning message."""
        self.log(LogLevel.WARNING, category, message, data)

    def error(self, category: LogCategory, message: str, data: Optional[Dict] = None):
        """Log error message."""
        self.log(LogLevel.ERROR, category, message, data)

    def by_category(self, category: LogCategory) -> List[LogEntry]:
        return [entry for entry in self.entries if entry.category is category]

    def log_rejection(
        self,
        category: LogCategory,
        timestamp_ms: int,
        joint: str,
        detail: str,
        angle: Optional[Dict] = None,
        landmarks: Optional[Sequence[Landmark]] = None
    ):
        """Log a withheld measurement together with the inputs that produced it."""
        data = {
            'timestamp_ms': timestamp_ms,
            'joint': joint,
            'detail': detail,
        }
        if angle:
            data['angle'] = angle
        if landmarks:
            data['landmarks'] = [lm.to_dict() for lm in landmarks]
        self.warning(category, f"Rejected {joint} at {timestamp_ms}ms", data)

    def save_session_log(self) -> Path:
        """Save session log to file."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = self.log_dir / f"session_{self.session_id}_{int(time.time())}.json"

        log_data = {
            'session_id': self.session_id,
            'timestamp': time.time(),
            'entries': [entry.to_dict() for entry in self.entries]
        }

        with open(log_file, 'w', encoding='utf-8') as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False)
        return log_file


def create_session_logger(session_id: str, log_dir: str = "./data/logs") -> SessionLogger:
    """
    Create a session logger.

    Args:
        session_id: Session ID
        log_dir: Log directory

    Returns:
        SessionLogger instance
    """
    return SessionLogger(session_id, log_dir)
