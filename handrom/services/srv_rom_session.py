"""
ROM Session Service for HANDROM

Keeps live ROM sessions in memory and adapts API payloads to the
motion-analysis pipeline.
"""

import logging
import threading
import uuid
from typing import Any, Dict, Optional

from handrom.core.config import settings
from handrom.helpers.enums import AssessmentType
from handrom.helpers.exception_handler import CustomException
from handrom.motion_analysis.core import LandmarkFrame, Laterality, MalformedFrameError
from handrom.motion_analysis.modules import AssessmentConfig, RomSession, SessionClosedError

logger = logging.getLogger(__name__)


class RomSessionService:
    """
    Registry of active ROM sessions.
    The service lock guards the registry; each RomSession serializes its own work.
    """

    def __init__(self, log_dir: Optional[str] = None, save_logs: Optional[bool] = None):
        self.active_sessions: Dict[str, RomSession] = {}
        self.log_dir = log_dir or settings.ROM_SESSION_LOG_DIR
        self.save_logs = settings.ROM_SAVE_SESSION_LOGS if save_logs is None else save_logs
        self._lock = threading.Lock()

    def _get_session(self, session_id: str) -> RomSession:
        with self._lock:
            session = self.active_sessions.get(session_id)
        if session is None:
            raise CustomException(http_code=404, code='404', message=f'Session {session_id} not found')
        return session

    def _pop_session(self, session_id: str) -> RomSession:
        with self._lock:
            session = self.active_sessions.pop(session_id, None)
        if session is None:
            raise CustomException(http_code=404, code='404', message=f'Session {session_id} not found')
        return session

    def start_session(self, assessment_type: AssessmentType, laterality: Optional[str] = None) -> Dict[str, Any]:
        """
        Start a ROM session.

        Args:
            assessment_type: Assessment to run
            laterality: Optional preset side ("left"/"right")

        Returns:
            Dict with session_id and the initial laterality state
        """
        preset = None
        if laterality:
            try:
                preset = Laterality(laterality.lower())
            except ValueError:
                raise CustomException(http_code=422, code='422', message=f'Invalid laterality: {laterality}')

        session_id = str(uuid.uuid4())
        session = RomSession(
            AssessmentConfig.for_type(assessment_type),
            session_id=session_id,
            laterality=preset,
            log_dir=self.log_dir,
            save_log=self.save_logs,
        )
        with self._lock:
            self.active_sessions[session_id] = session

        logger.info(f"[SERVICE] Started {assessment_type.value} session {session_id}")
        return {
            'session_id': session_id,
            'assessment_type': assessment_type,
            'laterality': session.laterality.value.value,
            'laterality_locked': session.laterality.locked,
        }

    def process_frame(self, session_id: str, frame_data: Dict[str, Any]) -> Dict[str, Any]:
        """Run one frame through the session pipeline."""
        session = self._get_session(session_id)
        try:
            frame = LandmarkFrame.from_dict(frame_data)
            analysis = session.process_frame(frame)
        except MalformedFrameError as e:
            logger.warning(f"[SERVICE] Malformed frame for session {session_id}: {e}")
            raise CustomException(http_code=422, code='422', message=str(e))
        except SessionClosedError:
            raise CustomException(http_code=409, code='409', message=f'Session {session_id} is closed')
        return analysis.to_dict()

    def finalize_session(self, session_id: str) -> Dict[str, Any]:
        """Finalize and discard a session, returning its ROM result."""
        session = self._pop_session(session_id)
        try:
            result = session.finalize()
        except SessionClosedError:
            raise CustomException(http_code=409, code='409', message=f'Session {session_id} is closed')
        return {
            'session_id': session_id,
            'assessment_type': session.config.assessment_type,
            **result.to_dict(),
        }

    def abort_session(self, session_id: str) -> Dict[str, Any]:
        session = self._pop_session(session_id)
        session.abort()
        return {'session_id': session_id, 'aborted': True}


rom_session_service = RomSessionService()


def get_rom_session_service() -> RomSessionService:
    return rom_session_service
