import enum
from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class DocumentSourceKind(str, enum.Enum):
    RAW_BODY = "raw_body"
    FILE_DATA = "file_data"
    FILE_ID = "file_id"


@dataclass(frozen=True)
class DocumentSource:
    """The single document source resolved from one request."""

    kind: DocumentSourceKind
    raw_bytes: Optional[bytes] = None
    file_data: Optional[str] = None
    file_id: Optional[str] = None
    access_token: Optional[str] = None


class OcrJsonRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    file_data: Optional[str] = None
    file_id: Optional[str] = None
    access_token: Optional[str] = None


class OcrResult(BaseModel):
    text: str
    length: int
    source: DocumentSourceKind
    file_id: Optional[str] = None


class OcrResponse(BaseModel):
    text: str
    status: Literal["success"] = "success"
    length: int
    source: Optional[DocumentSourceKind] = None
    file_id: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    status: Literal["error"] = "error"
    error_type: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
