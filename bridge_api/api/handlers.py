"""
Exception handlers - every error response is {error, message?, ...}
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.services.errors import VaultBridgeError, WithdrawalError
from infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR = "Internal server error"


async def withdrawal_error_handler(request: Request, exc: WithdrawalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} rejected ({exc.status_code}): {exc.error}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def service_error_handler(request: Request, exc: VaultBridgeError) -> JSONResponse:
    logger.error(f"❌ {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR, "message": str(exc)})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = ", ".join(".".join(str(part) for part in err["loc"]) for err in exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request parameters", "message": fields})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR, "message": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WithdrawalError, withdrawal_error_handler)
    app.add_exception_handler(VaultBridgeError, service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
