import threading

import pytest

from handrom.helpers.enums import AssessmentType
from handrom.helpers.exception_handler import CustomException
from handrom.services.srv_rom_session import RomSessionService
from tests.landmark_factory import frame_dict


@pytest.fixture
def service(tmp_path):
    return RomSessionService(log_dir=str(tmp_path), save_logs=False)


def test_frame_for_closed_session_is_conflict(service):
    session_id = service.start_session(AssessmentType.FINGER_ROM)['session_id']
    # Finalized by another request while this one still holds the session
    service.active_sessions[session_id].finalize()

    with pytest.raises(CustomException) as exc_info:
        service.process_frame(session_id, frame_dict(0))

    assert exc_info.value.http_code == 409


def test_finalize_of_aborted_session_is_conflict(service):
    session_id = service.start_session(AssessmentType.FINGER_ROM)['session_id']
    service.active_sessions[session_id].abort()

    with pytest.raises(CustomException) as exc_info:
        service.finalize_session(session_id)

    assert exc_info.value.http_code == 409


def test_concurrent_frames_are_all_counted(service):
    session_id = service.start_session(AssessmentType.FINGER_ROM)['session_id']
    errors = []

    def post_frames():
        try:
            for _ in range(25):
                service.process_frame(session_id, frame_dict(0))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=post_frames) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    result = service.finalize_session(session_id)
    assert errors == []
    assert result['frames_accepted'] + result['frames_rejected'] + result['frames_skipped'] == 200
