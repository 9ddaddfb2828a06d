import math
from typing import AsyncIterator, Optional

from pydantic import ValidationError

from app.modules.ocr.exceptions import DocumentTooLargeError, InvalidRequestError
from app.modules.ocr.schemas import DocumentSource, DocumentSourceKind, OcrJsonRequest

PDF_MEDIA_TYPE = "application/pdf"

# Room for JSON punctuation, file_id and access_token around a base64 payload
JSON_ENVELOPE_BYTES = 64 * 1024

ACCEPTED_MODES_MESSAGE = (
    "Provide exactly one document source: a raw 'application/pdf' body, "
    "a JSON body with 'file_data' (base64), or a JSON body with 'file_id'."
)


def media_type(content_type: Optional[str]) -> str:
    """Strips parameters such as charset from a Content-Type header value."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def body_size_limit(content_type: Optional[str], max_document_bytes: int) -> int:
    """
    Largest request body that can still carry a document of max_document_bytes:
    the document itself for a raw PDF body, its base64 form plus envelope for JSON.
    """
    if media_type(content_type) == PDF_MEDIA_TYPE:
        return max_document_bytes
    return math.ceil(max_document_bytes * 4 / 3) + JSON_ENVELOPE_BYTES


async def read_body(
    stream: AsyncIterator[bytes],
    limit: int,
    content_length: Optional[str] = None,
) -> bytes:
    """
    Reads the request body chunk by chunk and stops as soon as it exceeds limit.
    """
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise DocumentTooLargeError(f"Request body of {content_length} bytes exceeds the {limit} byte limit")

    chunks = []
    received = 0
    async for chunk in stream:
        received += len(chunk)
        if received > limit:
            raise DocumentTooLargeError(f"Request body exceeds the {limit} byte limit")
        chunks.append(chunk)
    return b"".join(chunks)


def _describe_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        if error["type"] == "json_invalid":
            return "Request body is not valid JSON."
        if not error["loc"]:
            return "Request body must be a JSON object."
        field = ".".join(map(str, error["loc"]))
        messages.append(f"Field '{field}': {error['msg']}")
    return "; ".join(messages) + "."


def _parse_json_body(body: bytes) -> OcrJsonRequest:
    if not body or not body.strip():
        raise InvalidRequestError(ACCEPTED_MODES_MESSAGE)
    try:
        return OcrJsonRequest.model_validate_json(body)
    except ValidationError as exc:
        raise InvalidRequestError(f"{_describe_validation_error(exc)} {ACCEPTED_MODES_MESSAGE}")


def resolve_document_source(content_type: Optional[str], body: bytes) -> DocumentSource:
    """
    Resolves exactly one document source from the request.

    Order: raw PDF body, then inline base64 'file_data', then remote 'file_id'.
    Anything else, including both JSON sources at once, is rejected.
    """
    if media_type(content_type) == PDF_MEDIA_TYPE and body:
        return DocumentSource(kind=DocumentSourceKind.RAW_BODY, raw_bytes=body)

    payload = _parse_json_body(body)
    file_data = payload.file_data or None
    file_id = (payload.file_id or "").strip() or None

    if file_data and file_id:
        raise InvalidRequestError("'file_data' and 'file_id' are mutually exclusive; send only one.")
    if payload.access_token and not file_id:
        raise InvalidRequestError("'access_token' is only accepted together with 'file_id'.")

    if file_data:
        return DocumentSource(kind=DocumentSourceKind.FILE_DATA, file_data=file_data)
    if file_id:
        return DocumentSource(
            kind=DocumentSourceKind.FILE_ID,
            file_id=file_id,
            access_token=payload.access_token or None,
        )

    raise InvalidRequestError(ACCEPTED_MODES_MESSAGE)
