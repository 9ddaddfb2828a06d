import tempfile
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore', frozen=True)

    # Shared secret expected in the x-api-key header
    API_KEY: str

    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Scratch files live here only for the duration of one request
    SCRATCH_DIR: str = tempfile.gettempdir()
    MAX_DOCUMENT_MB: int = 50

    # Remote file store
    REMOTE_FILE_URL_TEMPLATE: str = "https://www.googleapis.com/drive/v3/files/{file_id}?alt=media"
    REMOTE_FETCH_TIMEOUT_SECONDS: float = 30.0

    # Recognition pass (ocrmypdf)
    OCRMYPDF_BIN: str = "ocrmypdf"
    OCR_LANGUAGE: str = "pol"
    OCR_OPTIMIZE_LEVEL: int = 1
    OCR_TIMEOUT_SECONDS: float = 120.0

    # Extraction pass (pdftotext)
    PDFTOTEXT_BIN: str = "pdftotext"
    EXTRACT_TIMEOUT_SECONDS: float = 60.0

    # How often an in-flight request checks whether its client is still connected
    DISCONNECT_POLL_SECONDS: float = 1.0

    @property
    def max_document_bytes(self) -> int:
        return self.MAX_DOCUMENT_MB * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    return Settings()
