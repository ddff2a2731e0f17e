"""Domain models for uploaded documents and their extracted fields."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class DocumentStatus(StrEnum):
    """Lifecycle of a document in the processing pipeline."""

    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    PROCESSED = "PROCESSED"
    VERIFIED = "VERIFIED"
    ERROR = "ERROR"


class DocumentType(StrEnum):
    """Business classification of a document."""

    INVOICE = "INVOICE"
    RECEIPT = "RECEIPT"
    CONTRACT = "CONTRACT"
    BANK_STATEMENT = "BANK_STATEMENT"
    OTHER = "OTHER"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[DocumentType, str] = {
    DocumentType.INVOICE: "invoice",
    DocumentType.RECEIPT: "receipt",
    DocumentType.CONTRACT: "contract",
    DocumentType.BANK_STATEMENT: "bank statement",
    DocumentType.OTHER: "business document",
}


class LineItem(BaseModel):
    """A single line of an invoice."""

    name: str | None = None
    quantity: int | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None
    description: str | None = None


class DocumentFields(BaseModel):
    """Structured values extracted from a document.

    Every scalar value has a matching ``*_confidence`` in ``[0, 1]``
    that is 0 when the value is absent.
    """

    company_name: str | None = None
    company_name_confidence: float = 0.0
    date: str | None = None
    date_confidence: float = 0.0
    document_number: str | None = None
    document_number_confidence: float = 0.0
    total_amount: Decimal | None = None
    total_amount_confidence: float = 0.0
    vat_amount: Decimal | None = None
    vat_amount_confidence: float = 0.0
    currency: str | None = None
    currency_confidence: float = 0.0
    tax_id: str | None = None
    address: str | None = None
    description: str | None = None
    items: list[LineItem] = Field(default_factory=list)
    overall_confidence: float = 0.0
    raw_ocr_text: str | None = None


@dataclass
class Document:
    """A unit of uploaded evidence owned by one company.

    ``ocr_text`` and ``extracted_data`` are set only in PROCESSED or
    VERIFIED; ``processing_error`` only in ERROR.
    """

    id: str
    filename: str
    content_type: str
    file_size: int
    content: bytes = field(repr=False)
    company_id: str
    uploaded_by: str | None = None
    file_path: str | None = None
    status: DocumentStatus = DocumentStatus.UPLOADED
    document_type: DocumentType | None = None
    ocr_text: str | None = None
    ocr_confidence: float | None = None
    ocr_provider: str | None = None
    extracted_data: str | None = None
    processing_error: str | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    processed_at: datetime | None = None


@dataclass
class UploadResponse:
    """Outcome of an accepted upload."""

    document_id: str
    filename: str
    status: DocumentStatus
    message: str


@dataclass
class ProcessingResult:
    """Outcome of a process request; failures are carried in ``error``."""

    document_id: str
    status: DocumentStatus
    ocr_text: str | None = None
    ocr_confidence: float | None = None
    ocr_provider: str | None = None
    extracted_data: str | None = None
    error: str | None = None
    processing_time_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "status": self.status.value,
            "ocr_text": self.ocr_text,
            "ocr_confidence": self.ocr_confidence,
            "ocr_provider": self.ocr_provider,
            "extracted_data": self.extracted_data,
            "error": self.error,
            "processing_time_ms": self.processing_time_ms,
        }
