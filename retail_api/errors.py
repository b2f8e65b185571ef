"""Kernel error -> HTTP response mapping.

Every RetailKernelError carries an ErrorKind; one handler maps the kind to
a status code and renders ``{"code", "message", "details"}``.  Malformed
request bodies are reported as 400 in the same shape.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from retail_kernel.exceptions import ErrorKind, RetailKernelError
from retail_kernel.logging_config import get_logger

logger = get_logger("api.errors")

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.STORAGE: 500,
}


async def retail_error_handler(request: Request, exc: RetailKernelError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error(
            "request_failed",
            extra={"path": request.url.path, "error_code": exc.code},
            exc_info=exc,
        )
        # Driver messages stay in the logs
        message = "Internal storage error"
        details = {}
    else:
        logger.info(
            "request_rejected",
            extra={"path": request.url.path, "error_code": exc.code, "status_code": status_code},
        )
        message = str(exc)
        details = exc.details
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code, "message": message, "details": details},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "code": "REQUEST_VALIDATION_ERROR",
            "message": "Malformed request",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RetailKernelError, retail_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
