import hmac
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from app.core.config import Settings, get_settings
from app.modules.ocr.service import OcrService

api_key_header = APIKeyHeader(name="x-api-key", auto_error=False)


async def verify_api_key(
    api_key: Optional[str] = Depends(api_key_header),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Dependency to reject requests without the shared secret in the x-api-key header.
    """
    if not api_key or not hmac.compare_digest(api_key.encode(), settings.API_KEY.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized: a valid API key is required in the x-api-key header",
        )


def get_ocr_service(settings: Settings = Depends(get_settings)) -> OcrService:
    return OcrService.from_settings(settings)
