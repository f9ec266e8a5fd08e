from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ptoflow.core.errors import PTOFlowError


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body: dict = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


async def ptoflow_error_handler(request: Request, exc: PTOFlowError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "code": exc.code},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": f"{location}: {message}" if location else message,
            "code": "validation_error",
        },
    )
