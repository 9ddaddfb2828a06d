from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from typing import Optional
import traceback
import logging
from app.modules.ocr.exceptions import OcrRelayError

logger = logging.getLogger(__name__)

# Define a standard error response format
def create_error_response(message: str, error_type: Optional[str] = None) -> dict:
    response = {
        "error": message,
        "status": "error",
    }
    if error_type:
        response["error_type"] = error_type
    return response

async def ocr_relay_exception_handler(request: Request, exc: OcrRelayError):
    """Handles every OCR pipeline failure with its own status code."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"OCR Relay Error: {exc.status_code} {exc.error_type} - {exc.detail} for {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.error_type),
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handles StarletteHTTPException (which includes FastAPI's HTTPException)."""
    logger.warning(f"HTTP Exception: {exc.status_code} - {exc.detail} for {request.method} {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handles RequestValidationError as a 400, the status used for every bad input shape."""
    logger.warning(f"Validation Error: {exc.errors()} for {request.method} {request.url.path}")
    error_details = []
    for error in exc.errors():
        field = ".".join(map(str, error["loc"]))
        error_details.append(f"Field '{field}': {error['msg']}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_error_response("; ".join(error_details) or "Validation failed", "validation_error"),
    )

async def general_exception_handler(request: Request, exc: Exception):
    """Handles any other unhandled exceptions."""
    # Log the full traceback for internal debugging
    logger.error(f"Unhandled Exception: {exc}\n{traceback.format_exc()} for {request.method} {request.url.path}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response("An unexpected internal server error occurred."),
    )

# Function to register all handlers with the FastAPI app
def register_global_exception_handlers(app: FastAPI):
    app.exception_handler(OcrRelayError)(ocr_relay_exception_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
