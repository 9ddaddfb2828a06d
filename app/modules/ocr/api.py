import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, Request

from app.core.config import Settings, get_settings
from app.core.dependencies import get_ocr_service, verify_api_key
from app.modules.ocr.exceptions import ClientDisconnectedError
from app.modules.ocr.ingress import body_size_limit, read_body, resolve_document_source
from app.modules.ocr.schemas import ErrorResponse, OcrResponse
from app.modules.ocr.service import OcrService

logger = logging.getLogger(__name__)

T = TypeVar("T")

router = APIRouter(
    tags=["OCR"],
    dependencies=[Depends(verify_api_key)],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


async def run_until_disconnected(request: Request, work: Awaitable[T], poll_interval: float) -> T:
    """
    Awaits work while polling the client connection; cancels it when the client
    goes away so any running tool process is killed.
    """
    task = asyncio.ensure_future(work)
    try:
        while not task.done():
            await asyncio.wait({task}, timeout=poll_interval)
            if not task.done() and await request.is_disconnected():
                logger.warning(f"Client disconnected from {request.method} {request.url.path}, cancelling")
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)
                raise ClientDisconnectedError("Client disconnected before the OCR result was ready")
        return task.result()
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


@router.post("/ocr-pdf", response_model=OcrResponse, response_model_exclude_none=True)
async def ocr_pdf(
    request: Request,
    ocr_service: OcrService = Depends(get_ocr_service),
    settings: Settings = Depends(get_settings),
):
    """
    Accepts a raw application/pdf body, a JSON {file_data} base64 payload,
    or a JSON {file_id} reference, and returns the OCR'd plain text.
    """
    content_type = request.headers.get("content-type")
    body = await read_body(
        request.stream(),
        limit=body_size_limit(content_type, settings.max_document_bytes),
        content_length=request.headers.get("content-length"),
    )
    source = resolve_document_source(content_type, body)
    result = await run_until_disconnected(
        request,
        ocr_service.process(source),
        settings.DISCONNECT_POLL_SECONDS,
    )
    return OcrResponse(
        text=result.text,
        length=result.length,
        source=result.source,
        file_id=result.file_id,
    )
