"""Pydantic request/response schemas for the FastAPI endpoints."""

from datetime import datetime

from pydantic import BaseModel

from bookkeeping_ocr.documents.models import (
    Document,
    DocumentStatus,
    DocumentType,
    ProcessingResult,
    UploadResponse,
)
from bookkeeping_ocr.documents.pipeline import to_dto


class UploadResponseModel(BaseModel):
    """Response schema for an accepted upload."""

    document_id: str
    filename: str
    status: DocumentStatus
    message: str

    @classmethod
    def from_upload(cls, upload: UploadResponse) -> "UploadResponseModel":
        return cls(
            document_id=upload.document_id,
            filename=upload.filename,
            status=upload.status,
            message=upload.message,
        )


class ProcessingResponse(BaseModel):
    """Response schema for a processing request.

    ``error`` is set when processing failed; the HTTP status is still 200
    because the failure is recorded on the document.
    """

    document_id: str
    status: DocumentStatus
    ocr_text: str | None = None
    ocr_confidence: float | None = None
    ocr_provider: str | None = None
    extracted_data: str | None = None
    error: str | None = None
    processing_time_ms: int = 0

    @classmethod
    def from_result(cls, result: ProcessingResult) -> "ProcessingResponse":
        return cls(**result.to_dict())


class DocumentResponse(BaseModel):
    """Response schema for a stored document (without its bytes)."""

    id: str
    filename: str
    content_type: str
    file_size: int
    status: DocumentStatus
    document_type: DocumentType | None = None
    ocr_text: str | None = None
    ocr_confidence: float | None = None
    ocr_provider: str | None = None
    extracted_data: str | None = None
    processing_error: str | None = None
    company_id: str
    uploaded_by: str | None = None
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = None

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(**to_dto(document))


class DocumentListResponse(BaseModel):
    """Response schema for a company's document listing."""

    documents: list[DocumentResponse]
    total: int


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    ai_configured: bool
