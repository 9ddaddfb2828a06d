import base64
import binascii
from typing import Optional

from app.modules.ocr.exceptions import (
    ContentIntegrityError,
    DocumentTooLargeError,
    InvalidRequestError,
    PayloadDecodeError,
)
from app.modules.ocr.providers.remote_file_client import RemoteFileClient
from app.modules.ocr.schemas import DocumentSource, DocumentSourceKind

PDF_SIGNATURE = b"%PDF"


def decode_file_data(file_data: str) -> bytes:
    """
    Decodes an inline base64 payload, optionally wrapped in a data URI.
    """
    payload = file_data.strip()
    if payload.startswith("data:") and "," in payload:
        header, payload = payload.split(",", 1)
        if ";base64" not in header:
            raise PayloadDecodeError("file_data data URI must be base64 encoded")
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PayloadDecodeError(f"file_data is not valid base64: {exc}")


def ensure_pdf_signature(data: bytes) -> None:
    if not data.startswith(PDF_SIGNATURE):
        preview = data[:16]
        raise ContentIntegrityError(
            f"Document is not a PDF: expected leading bytes {PDF_SIGNATURE!r}, got {preview!r}"
        )


class DocumentAcquirer:
    """Turns a resolved document source into validated PDF bytes."""

    def __init__(self, remote_client: RemoteFileClient, max_bytes: Optional[int] = None):
        self.remote_client = remote_client
        self.max_bytes = max_bytes

    async def acquire(self, source: DocumentSource) -> bytes:
        if source.kind == DocumentSourceKind.RAW_BODY:
            data = source.raw_bytes or b""
        elif source.kind == DocumentSourceKind.FILE_DATA:
            data = decode_file_data(source.file_data or "")
        elif source.kind == DocumentSourceKind.FILE_ID:
            data = await self.remote_client.download(source.file_id, source.access_token)
        else:
            raise InvalidRequestError(f"Unsupported document source: {source.kind}")

        if self.max_bytes is not None and len(data) > self.max_bytes:
            raise DocumentTooLargeError(f"Document exceeds the {self.max_bytes} byte limit")
        ensure_pdf_signature(data)
        return data
