from fastapi import APIRouter

from handrom.api import api_healthcheck, api_rom_session

router = APIRouter()

router.include_router(api_healthcheck.router, tags=["health-check"], prefix="/healthcheck")
router.include_router(api_rom_session.router, tags=["rom-session"], prefix="/rom-sessions")
