from typing import Any

from fastapi import APIRouter, Depends

from handrom.schemas.sche_base import DataResponse
from handrom.schemas.sche_rom_session import (
    FrameAnalysisResponse, FrameRequest, RomSessionResultResponse, RomSessionStartRequest,
    RomSessionStartResponse,
)
from handrom.services.srv_rom_session import RomSessionService, get_rom_session_service

router = APIRouter()


@router.post('', response_model=DataResponse[RomSessionStartResponse])
def start_session(
    request: RomSessionStartRequest,
    service: RomSessionService = Depends(get_rom_session_service)
) -> Any:
    session = service.start_session(request.assessment_type, request.laterality)
    return DataResponse().success_response(data=session)


@router.post('/{session_id}/frames', response_model=DataResponse[FrameAnalysisResponse])
def process_frame(
    session_id: str,
    frame: FrameRequest,
    service: RomSessionService = Depends(get_rom_session_service)
) -> Any:
    analysis = service.process_frame(session_id, frame.model_dump())
    return DataResponse().success_response(data=analysis)


@router.post('/{session_id}/finalize', response_model=DataResponse[RomSessionResultResponse])
def finalize_session(
    session_id: str,
    service: RomSessionService = Depends(get_rom_session_service)
) -> Any:
    result = service.finalize_session(session_id)
    return DataResponse().success_response(data=result)


@router.delete('/{session_id}', response_model=DataResponse[dict])
def abort_session(
    session_id: str,
    service: RomSessionService = Depends(get_rom_session_service)
) -> Any:
    return DataResponse().success_response(data=service.abort_session(session_id))
