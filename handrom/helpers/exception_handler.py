from fastapi import Request
from fastapi.responses import JSONResponse

from handrom.schemas.sche_base import ResponseSchemaBase


class CustomException(Exception):
    http_code: int
    code: str
    message: str

    def __init__(self, http_code: int = None, code: str = None, message: str = None):
        self.http_code = http_code if http_code else 500
        self.code = code if code else str(self.http_code)
        self.message = message


async def http_exception_handler(request: Request, exc: CustomException):
    return JSONResponse(
        status_code=exc.http_code,
        content=ResponseSchemaBase().custom_response(False, exc.message).model_dump()
    )
