"""Tests for the FastAPI REST endpoints."""

import inspect
import threading
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from bookkeeping_ocr.api.app import app
from bookkeeping_ocr.classification.classifier import DocumentClassifier
from bookkeeping_ocr.documents.pipeline import DocumentPipeline
from bookkeeping_ocr.documents.models import DocumentStatus
from bookkeeping_ocr.documents.storage import FileStorage
from bookkeeping_ocr.documents.store import InMemoryDocumentStore
from bookkeeping_ocr.extraction.field_extractor import FieldExtractor
from bookkeeping_ocr.ocr.base import OcrResult
from bookkeeping_ocr.ocr.document_processor import DocumentProcessor
from bookkeeping_ocr.ocr.orchestrator import OcrOrchestrator
from bookkeeping_ocr.preprocessing.pipeline import ImagePreprocessor

from conftest import INVOICE_TEXT, FakeProvider

ACME = {"X-Company-Id": "acme", "X-User-Id": "user-1"}
GLOBEX = {"X-Company-Id": "globex"}


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


class BlockingProvider(FakeProvider):
    """Provider that holds the OCR call open until released."""

    def __init__(self) -> None:
        super().__init__("Tesseract", 1, INVOICE_TEXT, 0.9)
        self.started = threading.Event()
        self.release = threading.Event()
        self.released = False

    def extract_text(self, image: np.ndarray) -> OcrResult:
        self.started.set()
        self.released = self.release.wait(timeout=5)
        return super().extract_text(image)


def _make_pipeline(tmp_path: Path, provider: FakeProvider) -> DocumentPipeline:
    orchestrator = OcrOrchestrator(ImagePreprocessor(), [provider])
    return DocumentPipeline(
        store=InMemoryDocumentStore(),
        file_storage=FileStorage(tmp_path),
        processor=DocumentProcessor(orchestrator),
        classifier=DocumentClassifier(),
        extractor=FieldExtractor(),
    )


@pytest.fixture
def pipeline(tmp_path: Path) -> Iterator[DocumentPipeline]:
    pipeline = _make_pipeline(
        tmp_path, FakeProvider("Tesseract", 1, INVOICE_TEXT, 0.9)
    )
    with patch("bookkeeping_ocr.api.app._get_pipeline", return_value=pipeline):
        yield pipeline


def _upload(client: TestClient, png_bytes: bytes, headers: dict[str, str]) -> str:
    response = client.post(
        "/documents/upload",
        files={"file": ("scan.png", png_bytes, "image/png")},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["document_id"]


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert isinstance(data["tesseract_available"], bool)
        assert isinstance(data["ai_configured"], bool)


@pytest.mark.usefixtures("pipeline")
class TestUploadEndpoint:
    """Tests for POST /documents/upload."""

    def test_upload(self, client: TestClient, png_bytes: bytes) -> None:
        response = client.post(
            "/documents/upload",
            files={"file": ("scan.png", png_bytes, "image/png")},
            headers=ACME,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UPLOADED"
        assert data["filename"] == "scan.png"

    def test_invalid_type_is_400(self, client: TestClient) -> None:
        response = client.post(
            "/documents/upload",
            files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
            headers=ACME,
        )
        assert response.status_code == 400
        assert "Invalid file type" in response.json()["detail"]

    def test_missing_company_is_400(self, client: TestClient, png_bytes: bytes) -> None:
        response = client.post(
            "/documents/upload",
            files={"file": ("scan.png", png_bytes, "image/png")},
        )
        assert response.status_code == 400


@pytest.mark.usefixtures("pipeline")
class TestDocumentEndpoints:
    """Tests for processing, lookup, listing, and deletion."""

    def test_process(self, client: TestClient, png_bytes: bytes) -> None:
        doc_id = _upload(client, png_bytes, ACME)

        response = client.post(f"/documents/{doc_id}/process", headers=ACME)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PROCESSED"
        assert data["ocr_text"] == INVOICE_TEXT
        assert data["error"] is None

    def test_upload_and_process(self, client: TestClient, png_bytes: bytes) -> None:
        response = client.post(
            "/documents/upload-and-process",
            files={"file": ("scan.png", png_bytes, "image/png")},
            headers=ACME,
        )
        assert response.status_code == 200
        assert response.json()["ocr_provider"] == "Tesseract"

    def test_get(self, client: TestClient, png_bytes: bytes) -> None:
        doc_id = _upload(client, png_bytes, ACME)

        response = client.get(f"/documents/{doc_id}", headers=ACME)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == doc_id
        assert data["uploaded_by"] == "user-1"
        assert "content" not in data

    def test_cross_tenant_is_404(self, client: TestClient, png_bytes: bytes) -> None:
        doc_id = _upload(client, png_bytes, ACME)

        assert client.get(f"/documents/{doc_id}", headers=GLOBEX).status_code == 404
        response = client.post(f"/documents/{doc_id}/process", headers=GLOBEX)
        assert response.status_code == 404

    def test_list_with_status_filter(
        self, client: TestClient, png_bytes: bytes
    ) -> None:
        processed = _upload(client, png_bytes, ACME)
        _upload(client, png_bytes, ACME)
        _upload(client, png_bytes, GLOBEX)
        client.post(f"/documents/{processed}/process", headers=ACME)

        everything = client.get("/documents", headers=ACME).json()
        done = client.get(
            "/documents", params={"status": "PROCESSED"}, headers=ACME
        ).json()

        assert everything["total"] == 2
        assert [d["id"] for d in done["documents"]] == [processed]

    def test_delete(self, client: TestClient, png_bytes: bytes) -> None:
        doc_id = _upload(client, png_bytes, ACME)

        response = client.delete(f"/documents/{doc_id}", headers=ACME)

        assert response.status_code == 204
        assert client.get(f"/documents/{doc_id}", headers=ACME).status_code == 404


class TestConcurrency:
    """Tests that blocking pipeline work stays off the event loop."""

    def test_document_routes_are_sync(self) -> None:
        routes = [
            r for r in app.routes if isinstance(r, APIRoute) and "/documents" in r.path
        ]
        assert routes
        for route in routes:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path

    def test_reads_served_while_processing(
        self, tmp_path: Path, png_bytes: bytes
    ) -> None:
        provider = BlockingProvider()
        pipeline = _make_pipeline(tmp_path, provider)

        with (
            patch("bookkeeping_ocr.api.app._get_pipeline", return_value=pipeline),
            TestClient(app) as client,
        ):
            doc_id = _upload(client, png_bytes, ACME)
            worker = threading.Thread(
                target=client.post,
                args=(f"/documents/{doc_id}/process",),
                kwargs={"headers": ACME},
            )
            worker.start()
            assert provider.started.wait(timeout=5)

            response = client.get(f"/documents/{doc_id}", headers=ACME)
            provider.release.set()
            worker.join(timeout=10)

        assert response.status_code == 200
        assert response.json()["status"] == DocumentStatus.PROCESSING.value
        assert provider.released
        assert pipeline.get(doc_id, "acme").status == DocumentStatus.PROCESSED
