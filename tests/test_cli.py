"""Tests for the extraction CLI and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from bookkeeping_ocr.classification.classifier import DocumentClassifier
from bookkeeping_ocr.documents.models import DocumentType
from bookkeeping_ocr.cli import (
    Extraction,
    ExtractionResult,
    _find_documents,
    _print_summary,
    _write_csv,
    main,
    process_folder,
)
from bookkeeping_ocr.extraction.field_extractor import FieldExtractor
from bookkeeping_ocr.ocr.document_processor import DocumentProcessor
from bookkeeping_ocr.ocr.orchestrator import OcrOrchestrator
from bookkeeping_ocr.preprocessing.pipeline import ImagePreprocessor

from conftest import INVOICE_TEXT, FakeAIClient, FakeProvider, make_png_bytes

EXTRACTION_RESPONSE = json.dumps(
    {
        "companyName": "ACME Ltd.",
        "date": "15/03/2024",
        "documentNumber": "INV-2024-001",
        "totalAmount": 1250.00,
        "vatAmount": 225.00,
        "currency": "TRY",
    }
)


def _make_extraction(responses: int = 5) -> Extraction:
    """Build an extraction wired to scripted OCR and AI doubles."""
    orchestrator = OcrOrchestrator(
        ImagePreprocessor(), [FakeProvider("Tesseract", 1, INVOICE_TEXT, 0.9)]
    )
    client = FakeAIClient(responses=[EXTRACTION_RESPONSE] * responses)
    return Extraction(
        DocumentProcessor(orchestrator),
        DocumentClassifier(client),
        FieldExtractor(client),
    )


def _make_test_image(path: Path) -> None:
    """Write a minimal PNG page at the given path."""
    path.write_bytes(make_png_bytes())


class TestFindDocuments:
    """Tests for document discovery."""

    def test_find_png_files(self, tmp_path: Path) -> None:
        (tmp_path / "doc1.png").touch()
        (tmp_path / "doc2.png").touch()
        (tmp_path / "readme.txt").touch()
        files = _find_documents(tmp_path)
        assert len(files) == 2
        assert all(f.suffix == ".png" for f in files)

    def test_find_mixed_extensions(self, tmp_path: Path) -> None:
        for name in ("doc.png", "doc.jpg", "doc.pdf", "doc.tiff", "doc.bmp"):
            (tmp_path / name).touch()
        assert len(_find_documents(tmp_path)) == 5

    def test_find_uppercase_extensions(self, tmp_path: Path) -> None:
        (tmp_path / "DOC.PNG").touch()
        assert len(_find_documents(tmp_path)) == 1


class TestExtraction:
    """Tests for single-file extraction."""

    def test_run(self, tmp_path: Path) -> None:
        doc_path = tmp_path / "invoice.png"
        _make_test_image(doc_path)

        result = _make_extraction().run(doc_path)

        assert isinstance(result, ExtractionResult)
        assert result.filename == "invoice.png"
        assert result.document_type == DocumentType.INVOICE
        assert result.ocr_provider == "Tesseract"
        assert result.raw_text == INVOICE_TEXT
        assert result.fields.company_name == "ACME Ltd."

    def test_to_dict(self, tmp_path: Path) -> None:
        doc_path = tmp_path / "invoice.png"
        _make_test_image(doc_path)

        data = _make_extraction().run(doc_path).to_dict()

        assert data["document_type"] == "INVOICE"
        assert data["ocr_confidence"] == 0.9
        assert data["fields"]["total_amount"] == "1250.0"
        assert "raw_ocr_text" not in data["fields"]

    def test_result_is_json_serializable(self, tmp_path: Path) -> None:
        doc_path = tmp_path / "invoice.png"
        _make_test_image(doc_path)
        json.dumps(_make_extraction().run(doc_path).to_dict())


class TestWriteCsv:
    """Tests for CSV writing."""

    def test_write_csv_content(self, tmp_path: Path) -> None:
        results = [
            {
                "filename": "test.png",
                "status": "success",
                "error": None,
                "date": "15/03/2024",
                "total_amount": "500.00",
            }
        ]
        output = tmp_path / "results.csv"
        _write_csv(results, output)

        with open(output, encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]["filename"] == "test.png"
        assert rows[0]["date"] == "15/03/2024"

    def test_write_csv_empty_results(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()

    def test_write_csv_creates_parent_dirs(self, tmp_path: Path) -> None:
        output = tmp_path / "subdir" / "results.csv"
        _write_csv([{"filename": "test.png", "status": "success"}], output)
        assert output.exists()

    def test_meta_columns_before_fields(self, tmp_path: Path) -> None:
        results = [{"currency": "TRY", "filename": "a.png", "status": "success"}]
        output = tmp_path / "results.csv"
        _write_csv(results, output)

        with open(output, encoding="utf-8") as f:
            headers = next(csv.reader(f))
        assert headers == ["filename", "status", "currency"]


class TestPrintSummary:
    """Tests for summary printing."""

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 5, "successful": 4, "failed": 1}, Path("out.csv"))
        captured = capsys.readouterr()
        assert "Total:      5" in captured.out
        assert "Successful: 4" in captured.out
        assert "Failed:     1" in captured.out
        assert "out.csv" in captured.out


class TestProcessFolder:
    """Tests for batch folder processing."""

    def test_process_folder_writes_csv(self, tmp_path: Path) -> None:
        _make_test_image(tmp_path / "doc1.png")
        _make_test_image(tmp_path / "doc2.png")
        output_csv = tmp_path / "out" / "results.csv"

        summary = process_folder(tmp_path, output_csv, _make_extraction())

        assert summary == {"total": 2, "successful": 2, "failed": 0}
        with open(output_csv, encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [r["filename"] for r in rows] == ["doc1.png", "doc2.png"]
        assert rows[0]["document_type"] == "INVOICE"
        assert rows[0]["company_name"] == "ACME Ltd."
        assert rows[0]["currency"] == "TRY"

    def test_unreadable_file_counted_as_failure(self, tmp_path: Path) -> None:
        _make_test_image(tmp_path / "good.png")
        (tmp_path / "broken.png").write_bytes(b"not an image")
        output_csv = tmp_path / "results.csv"

        summary = process_folder(tmp_path, output_csv, _make_extraction())

        assert summary["successful"] == 1
        assert summary["failed"] == 1
        with open(output_csv, encoding="utf-8") as f:
            rows = {r["filename"]: r for r in csv.DictReader(f)}
        assert rows["broken.png"]["status"] == "failed"
        assert "Failed to read image" in rows["broken.png"]["error"]

    def test_process_folder_empty(self, tmp_path: Path) -> None:
        summary = process_folder(tmp_path, tmp_path / "out.csv", _make_extraction())
        assert summary["total"] == 0
        assert not (tmp_path / "out.csv").exists()

    def test_process_folder_verbose(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        _make_test_image(tmp_path / "doc1.png")
        process_folder(tmp_path, tmp_path / "o.csv", _make_extraction(), verbose=True)
        assert "Processing [1/1]" in capsys.readouterr().out


class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_batch_nonexistent_directory(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_extract_nonexistent_file(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", "/nonexistent/file.png"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    @patch("bookkeeping_ocr.cli.process_folder")
    @patch("bookkeeping_ocr.cli.Extraction.from_config")
    def test_batch_command(
        self, mock_from_config: MagicMock, mock_pf: MagicMock, tmp_path: Path
    ) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"

        main(["batch", str(tmp_path), "-o", str(output), "-v"])

        mock_pf.assert_called_once_with(
            tmp_path, output, mock_from_config.return_value, True
        )

    @patch("bookkeeping_ocr.cli.Extraction.from_config")
    def test_extract_writes_json(
        self, mock_from_config: MagicMock, tmp_path: Path
    ) -> None:
        mock_from_config.return_value = _make_extraction()
        doc_path = tmp_path / "invoice.png"
        _make_test_image(doc_path)
        output = tmp_path / "out" / "invoice.json"

        main(["extract", str(doc_path), "-o", str(output)])

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["document_type"] == "INVOICE"
        assert data["fields"]["date"] == "15/03/2024"
