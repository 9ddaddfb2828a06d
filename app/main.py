import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.global_error_handler import register_global_exception_handlers
from app.modules.ocr.api import router as ocr_router
from app.modules.ocr.schemas import HealthResponse

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info(f"OCR relay listening on {settings.HOST}:{settings.PORT}")
    logger.info("Health check: GET /health, OCR endpoint: POST /ocr-pdf (x-api-key header required)")
    yield
    logger.info("OCR relay shutting down")


app = FastAPI(
    title="PDF OCR Relay",
    description="Accepts a PDF, runs ocrmypdf and pdftotext on it, and returns the extracted text.",
    version="1.0.0",
    lifespan=lifespan,
)

# Register global exception handlers
register_global_exception_handlers(app)

app.include_router(ocr_router)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc).isoformat())


def run() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    run()
