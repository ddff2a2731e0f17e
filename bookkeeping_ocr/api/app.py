"""FastAPI application for the bookkeeping document OCR API.

Provides REST endpoints for uploading, processing, listing, and deleting
documents. Tenant identity arrives in the ``X-Company-Id`` and
``X-User-Id`` headers set by the authentication layer in front of this
service.

Routes are plain functions so FastAPI runs the blocking pipeline calls in
its threadpool and one slow document does not stall other requests.
"""

import shutil
from functools import lru_cache
from typing import Annotated

from fastapi import FastAPI, File, Header, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bookkeeping_ocr.documents.models import DocumentStatus
from bookkeeping_ocr.documents.pipeline import DocumentPipeline
from bookkeeping_ocr.exceptions import DocumentNotFoundError, DocumentValidationError
from bookkeeping_ocr.factory import build_pipeline
from bookkeeping_ocr.utils.config import load_config, resolve_api_key
from bookkeeping_ocr.utils.logger import get_logger

from .schemas import (
    DocumentListResponse,
    DocumentResponse,
    HealthResponse,
    ProcessingResponse,
    UploadResponseModel,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Bookkeeping OCR API",
    description="OCR, classification, and field extraction for bookkeeping documents",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def _get_pipeline() -> DocumentPipeline:
    """Build the shared document pipeline once per process."""
    return build_pipeline(load_config())


@app.exception_handler(DocumentValidationError)
async def _validation_error_handler(
    request: Request, exc: DocumentValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(DocumentNotFoundError)
async def _not_found_handler(
    request: Request, exc: DocumentNotFoundError
) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _require_company(company_id: str | None) -> str:
    if not company_id:
        raise HTTPException(
            status_code=400, detail="User is not associated with any company"
        )
    return company_id


CompanyHeader = Annotated[str | None, Header(alias="X-Company-Id")]
UserHeader = Annotated[str | None, Header(alias="X-User-Id")]


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return system health status."""
    config = load_config()
    tesseract_cmd = config.ocr.tesseract_cmd or "tesseract"
    return HealthResponse(
        status="healthy",
        version=VERSION,
        tesseract_available=shutil.which(tesseract_cmd) is not None,
        ai_configured=bool(resolve_api_key(config.ai.api_key)),
    )


@app.post("/documents/upload", response_model=UploadResponseModel)
def upload_document(
    file: Annotated[UploadFile, File(...)],
    company_id: CompanyHeader = None,
    user_id: UserHeader = None,
) -> UploadResponseModel:
    """Store an uploaded file as a new document awaiting processing."""
    content = file.file.read()
    upload = _get_pipeline().upload(
        content,
        file.filename or "document",
        file.content_type,
        _require_company(company_id),
        user_id,
    )
    return UploadResponseModel.from_upload(upload)


@app.post("/documents/upload-and-process", response_model=ProcessingResponse)
def upload_and_process_document(
    file: Annotated[UploadFile, File(...)],
    company_id: CompanyHeader = None,
    user_id: UserHeader = None,
) -> ProcessingResponse:
    """Upload a document and run the full processing pipeline on it."""
    content = file.file.read()
    result = _get_pipeline().upload_and_process(
        content,
        file.filename or "document",
        file.content_type,
        _require_company(company_id),
        user_id,
    )
    return ProcessingResponse.from_result(result)


@app.post("/documents/{document_id}/process", response_model=ProcessingResponse)
def process_document(
    document_id: str, company_id: CompanyHeader = None
) -> ProcessingResponse:
    """Run OCR, classification, and extraction on a stored document.

    Processing failures are returned in the ``error`` field with status
    ERROR rather than as an HTTP error.
    """
    result = _get_pipeline().process(document_id, _require_company(company_id))
    return ProcessingResponse.from_result(result)


@app.get("/documents/{document_id}", response_model=DocumentResponse)
def get_document(
    document_id: str, company_id: CompanyHeader = None
) -> DocumentResponse:
    document = _get_pipeline().get(document_id, _require_company(company_id))
    return DocumentResponse.from_document(document)


@app.get("/documents", response_model=DocumentListResponse)
def list_documents(
    company_id: CompanyHeader = None,
    status: Annotated[DocumentStatus | None, Query()] = None,
) -> DocumentListResponse:
    """List the company's documents, newest first."""
    documents = _get_pipeline().list_documents(_require_company(company_id), status)
    return DocumentListResponse(
        documents=[DocumentResponse.from_document(d) for d in documents],
        total=len(documents),
    )


@app.delete("/documents/{document_id}", status_code=204)
def delete_document(document_id: str, company_id: CompanyHeader = None) -> None:
    _get_pipeline().delete(document_id, _require_company(company_id))
