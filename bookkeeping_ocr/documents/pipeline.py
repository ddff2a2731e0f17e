"""Upload and processing state machine for documents.

``UPLOADED -> PROCESSING -> PROCESSED | ERROR``. Only validation and
not-found errors are raised to the caller; every OCR, classification,
and extraction outcome is recorded on the document and returned as a
``ProcessingResult``.
"""

import time
import uuid
from datetime import datetime
from typing import Any

from bookkeeping_ocr.classification.classifier import DocumentClassifier
from bookkeeping_ocr.exceptions import DocumentValidationError, OCRProcessingError
from bookkeeping_ocr.extraction.field_extractor import FieldExtractor
from bookkeeping_ocr.ocr.document_processor import DocumentProcessor
from bookkeeping_ocr.utils.config import StorageConfig
from bookkeeping_ocr.utils.logger import get_logger

from .models import Document, DocumentStatus, ProcessingResult, UploadResponse
from .storage import FileStorage
from .store import DocumentStore

logger = get_logger(__name__)

PROCESSABLE_STATES = (DocumentStatus.UPLOADED, DocumentStatus.ERROR)
SETTLED_STATES = (DocumentStatus.PROCESSED, DocumentStatus.VERIFIED)


class DocumentPipeline:
    """Owns document upload, processing, lookup, and deletion.

    Args:
        store: Tenant-scoped document persistence.
        file_storage: Disk copy of uploaded bytes.
        processor: Page loading and OCR fallback chain.
        classifier: Document type classifier.
        extractor: Structured field extractor.
        storage_config: Upload limits.
    """

    def __init__(
        self,
        store: DocumentStore,
        file_storage: FileStorage,
        processor: DocumentProcessor,
        classifier: DocumentClassifier,
        extractor: FieldExtractor,
        storage_config: StorageConfig | None = None,
    ) -> None:
        self.store = store
        self.file_storage = file_storage
        self.processor = processor
        self.classifier = classifier
        self.extractor = extractor
        self.storage_config = storage_config or StorageConfig()

    def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str | None,
        company_id: str | None,
        uploader: str | None = None,
    ) -> UploadResponse:
        """Validate and store a new document in UPLOADED.

        Raises:
            DocumentValidationError: If the company is missing or the file
                is empty, too large, or of a disallowed type.
        """
        logger.info(
            "Uploading document: filename=%s, size=%d, company=%s",
            filename,
            len(content),
            company_id,
        )
        if not company_id:
            raise DocumentValidationError("User is not associated with any company")
        self.validate_file(content, content_type)

        path = self.file_storage.save(content, filename)
        document = Document(
            id=str(uuid.uuid4()),
            filename=filename,
            content_type=content_type.lower(),
            file_size=len(content),
            content=content,
            company_id=company_id,
            uploaded_by=uploader,
            file_path=str(path),
        )
        self.store.add(document)

        logger.info("Document uploaded successfully. ID: %s", document.id)
        return UploadResponse(
            document_id=document.id,
            filename=document.filename,
            status=document.status,
            message="Document uploaded successfully. Ready for processing.",
        )

    def validate_file(self, content: bytes, content_type: str | None) -> None:
        """Check size and content type against the upload limits.

        Raises:
            DocumentValidationError: On any violation.
        """
        if not content:
            raise DocumentValidationError("File is empty")

        max_size = self.storage_config.max_file_size
        if len(content) > max_size:
            raise DocumentValidationError(
                f"File size exceeds maximum limit of {max_size // (1024 * 1024)}MB"
            )

        allowed = [t.lower() for t in self.storage_config.allowed_content_types]
        if content_type is None or content_type.lower() not in allowed:
            raise DocumentValidationError(
                "Invalid file type. Allowed types: " + ", ".join(allowed)
            )

    def process(self, document_id: str, company_id: str) -> ProcessingResult:
        """Run OCR, classification, and extraction on a stored document.

        Raises:
            DocumentNotFoundError: If the document does not exist for
                this company. Nothing else is raised.
        """
        logger.info("Processing document: id=%s, company=%s", document_id, company_id)
        document = self.store.get(document_id, company_id)

        if document.status in SETTLED_STATES:
            logger.warning("Document already processed: %s", document_id)
            return self._result(document, 0)

        if not self.store.try_transition(
            document_id, company_id, PROCESSABLE_STATES, DocumentStatus.PROCESSING
        ):
            current = self.store.get(document_id, company_id)
            logger.warning(
                "Document %s not processable in status %s", document_id, current.status
            )
            if current.status in SETTLED_STATES:
                return self._result(current, 0)
            return ProcessingResult(
                document_id=document_id,
                status=current.status,
                error="Document is already being processed",
            )

        start = time.monotonic()
        document = self.store.get(document_id, company_id)
        if document.processing_error is not None:
            document.processing_error = None
            self.store.save(document)

        try:
            ocr_result = self.processor.process(document.content, document.filename)

            document_type = self.classifier.classify(ocr_result.text)
            logger.info("Document classified as: %s", document_type)

            fields = self.extractor.extract(ocr_result.text, document_type)
            logger.info(
                "Fields extracted. Overall confidence: %.2f", fields.overall_confidence
            )

            document.ocr_text = ocr_result.text
            document.ocr_confidence = ocr_result.confidence
            document.ocr_provider = ocr_result.provider_name
            document.document_type = document_type
            document.extracted_data = fields.model_dump_json()
            document.processing_error = None
            document.status = DocumentStatus.PROCESSED
            document.processed_at = datetime.now()
            self.store.save(document)
        except OCRProcessingError as exc:
            logger.error("OCR processing failed for document %s: %s", document_id, exc)
            return self._fail(document, str(exc), start)
        except Exception as exc:
            logger.exception("Unexpected error processing document: %s", document_id)
            return self._fail(document, f"Unexpected error: {exc}", start)

        duration = _elapsed_ms(start)
        logger.info(
            "Document processed successfully. ID: %s, Duration: %dms, Confidence: %.2f",
            document.id,
            duration,
            ocr_result.confidence,
        )
        return self._result(document, duration)

    def _fail(self, document: Document, error: str, start: float) -> ProcessingResult:
        document.status = DocumentStatus.ERROR
        document.processing_error = error
        document.ocr_text = None
        document.ocr_confidence = None
        document.ocr_provider = None
        document.document_type = None
        document.extracted_data = None
        self.store.save(document)
        return ProcessingResult(
            document_id=document.id,
            status=DocumentStatus.ERROR,
            error=error,
            processing_time_ms=_elapsed_ms(start),
        )

    def upload_and_process(
        self,
        content: bytes,
        filename: str,
        content_type: str | None,
        company_id: str | None,
        uploader: str | None = None,
    ) -> ProcessingResult:
        """Upload a document and process it immediately."""
        upload = self.upload(content, filename, content_type, company_id, uploader)
        return self.process(upload.document_id, company_id)

    def get(self, document_id: str, company_id: str) -> Document:
        return self.store.get(document_id, company_id)

    def list_documents(
        self, company_id: str, status: DocumentStatus | None = None
    ) -> list[Document]:
        return self.store.list_for_company(company_id, status)

    def delete(self, document_id: str, company_id: str) -> None:
        """Remove the stored file and the record.

        Raises:
            DocumentNotFoundError: If the document does not exist for
                this company.
        """
        document = self.store.get(document_id, company_id)
        self.file_storage.delete(document.file_path)
        self.store.delete(document_id, company_id)
        logger.info("Document deleted: %s", document_id)

    @staticmethod
    def _result(document: Document, duration_ms: int) -> ProcessingResult:
        return ProcessingResult(
            document_id=document.id,
            status=document.status,
            ocr_text=document.ocr_text,
            ocr_confidence=document.ocr_confidence,
            ocr_provider=document.ocr_provider,
            extracted_data=document.extracted_data,
            processing_time_ms=duration_ms,
        )


def to_dto(document: Document) -> dict[str, Any]:
    """Read shape of a document for collaborators (no raw bytes)."""
    return {
        "id": document.id,
        "filename": document.filename,
        "content_type": document.content_type,
        "file_size": document.file_size,
        "status": document.status.value,
        "document_type": document.document_type.value
        if document.document_type
        else None,
        "ocr_text": document.ocr_text,
        "ocr_confidence": document.ocr_confidence,
        "ocr_provider": document.ocr_provider,
        "extracted_data": document.extracted_data,
        "processing_error": document.processing_error,
        "company_id": document.company_id,
        "uploaded_by": document.uploaded_by,
        "created_at": document.created_at,
        "updated_at": document.updated_at,
        "processed_at": document.processed_at,
    }


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
