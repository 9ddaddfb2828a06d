import logging

from app.core.config import Settings
from app.modules.ocr.acquirer import DocumentAcquirer
from app.modules.ocr.exceptions import OcrRelayError
from app.modules.ocr.providers.ocr_pipeline import OcrPipelineRunner
from app.modules.ocr.providers.remote_file_client import RemoteFileClient
from app.modules.ocr.schemas import DocumentSource, OcrResult
from app.utils.file_manager import new_request_id

logger = logging.getLogger(__name__)


class OcrService:
    """
    Orchestrates one OCR request: acquire the PDF bytes, run the OCR pipeline,
    and package the extracted text.
    """

    def __init__(self, acquirer: DocumentAcquirer, pipeline: OcrPipelineRunner):
        self.acquirer = acquirer
        self.pipeline = pipeline

    @classmethod
    def from_settings(cls, settings: Settings) -> "OcrService":
        remote_client = RemoteFileClient(
            url_template=settings.REMOTE_FILE_URL_TEMPLATE,
            timeout_seconds=settings.REMOTE_FETCH_TIMEOUT_SECONDS,
            max_bytes=settings.max_document_bytes,
        )
        pipeline = OcrPipelineRunner(
            scratch_dir=settings.SCRATCH_DIR,
            ocrmypdf_bin=settings.OCRMYPDF_BIN,
            pdftotext_bin=settings.PDFTOTEXT_BIN,
            language=settings.OCR_LANGUAGE,
            optimize_level=settings.OCR_OPTIMIZE_LEVEL,
            ocr_timeout_seconds=settings.OCR_TIMEOUT_SECONDS,
            extract_timeout_seconds=settings.EXTRACT_TIMEOUT_SECONDS,
        )
        return cls(
            acquirer=DocumentAcquirer(remote_client, max_bytes=settings.max_document_bytes),
            pipeline=pipeline,
        )

    async def process(self, source: DocumentSource) -> OcrResult:
        request_id = new_request_id()
        logger.info(f"[{request_id}] Acquiring PDF from {source.kind.value}")
        try:
            pdf_bytes = await self.acquirer.acquire(source)
            text = await self.pipeline.run(pdf_bytes, request_id=request_id)
        except OcrRelayError as exc:
            logger.error(f"[{request_id}] Failed: {exc.detail}")
            raise

        logger.info(f"[{request_id}] Success, extracted {len(text)} characters")
        return OcrResult(
            text=text,
            length=len(text),
            source=source.kind,
            file_id=source.file_id,
        )
