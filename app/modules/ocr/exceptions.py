from fastapi import status


class OcrRelayError(Exception):
    """Base exception for every failure of the OCR relay pipeline."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "processing_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidRequestError(OcrRelayError):
    """Raised when the request carries no usable document source, or an ambiguous one."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"


class PayloadDecodeError(OcrRelayError):
    """Raised when the inline file_data payload is not valid base64."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "format_error"


class ContentIntegrityError(OcrRelayError):
    """Raised when the resolved bytes do not carry the PDF signature."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "content_integrity_error"


class DocumentTooLargeError(OcrRelayError):
    status_code = 413
    error_type = "document_too_large"


class RemoteFetchError(OcrRelayError):
    """Raised when the remote file store cannot deliver the document."""

    error_type = "retrieval_error"


class RemoteFetchTimeoutError(RemoteFetchError):
    error_type = "retrieval_timeout"


class PipelineError(OcrRelayError):
    """Raised when ocrmypdf or pdftotext fails."""

    error_type = "pipeline_error"


class PipelineTimeoutError(PipelineError):
    error_type = "pipeline_timeout"


class ClientDisconnectedError(OcrRelayError):
    """Raised when the client goes away before the OCR result is ready."""

    # Non-standard "client closed request"; the client never sees it
    status_code = 499
    error_type = "client_disconnected"
