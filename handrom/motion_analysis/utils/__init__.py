"""
Utils Package for HANDROM.

- logger: per-session diagnostic log

Author: HANDROM Team
Version: 1.0.0
"""

from .logger import (
    SessionLogger,
    LogLevel,
    LogCategory,
    LogEntry,
    create_session_logger,
)

__all__ = [
    "SessionLogger",
    "LogLevel",
    "LogCategory",
    "LogEntry",
    "create_session_logger",
]
