"""Command-line interface for document extraction and CSV export.

Runs the OCR, classification, and field extraction stages directly on
local files, without the document store.
"""

import argparse
import csv
import json
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bookkeeping_ocr.ai.openai_client import create_openai_client
from bookkeeping_ocr.classification.classifier import DocumentClassifier
from bookkeeping_ocr.documents.models import DocumentFields, DocumentType
from bookkeeping_ocr.extraction.field_extractor import FieldExtractor
from bookkeeping_ocr.factory import build_document_processor
from bookkeeping_ocr.ocr.document_processor import DocumentProcessor
from bookkeeping_ocr.utils.config import AppConfig, load_config
from bookkeeping_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = (
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.tiff",
    "*.tif",
    "*.bmp",
    "*.pdf",
)
_META_COLUMNS = [
    "filename",
    "status",
    "document_type",
    "ocr_provider",
    "ocr_confidence",
    "overall_confidence",
    "processing_time_s",
    "error",
]
_FIELD_COLUMNS = (
    "company_name",
    "date",
    "document_number",
    "total_amount",
    "vat_amount",
    "currency",
    "tax_id",
)


@dataclass
class ExtractionResult:
    """Outcome of running every stage on one local file."""

    filename: str
    document_type: DocumentType
    ocr_provider: str
    ocr_confidence: float
    fields: DocumentFields
    raw_text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "document_type": self.document_type.value,
            "ocr_provider": self.ocr_provider,
            "ocr_confidence": round(self.ocr_confidence, 3),
            "fields": self.fields.model_dump(mode="json", exclude={"raw_ocr_text"}),
            "raw_text": self.raw_text,
        }


class Extraction:
    """The three processing stages bound to one configuration."""

    def __init__(
        self,
        processor: DocumentProcessor,
        classifier: DocumentClassifier,
        extractor: FieldExtractor,
    ) -> None:
        self.processor = processor
        self.classifier = classifier
        self.extractor = extractor

    @classmethod
    def from_config(cls, config: AppConfig) -> "Extraction":
        client = create_openai_client(config.ai)
        return cls(
            build_document_processor(config, client),
            DocumentClassifier(client),
            FieldExtractor(client),
        )

    def run(self, file_path: Path) -> ExtractionResult:
        """Extract structured data from one file.

        Raises:
            OCRProcessingError: If no text could be read from the file.
        """
        ocr_result = self.processor.process(file_path.read_bytes(), file_path.name)
        document_type = self.classifier.classify(ocr_result.text)
        fields = self.extractor.extract(ocr_result.text, document_type)
        return ExtractionResult(
            filename=file_path.name,
            document_type=document_type,
            ocr_provider=ocr_result.provider_name,
            ocr_confidence=ocr_result.confidence,
            fields=fields,
            raw_text=ocr_result.text,
        )


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.

    Returns:
        Sorted list of document file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def process_folder(
    input_dir: Path,
    output_csv: Path,
    extraction: Extraction | None = None,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        extraction: Processing stages; built from the default config
            when omitted.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    if extraction is None:
        extraction = Extraction.from_config(load_config())

    logger.info("Found %d documents to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            row = _to_row(extraction.run(file_path))
            row["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(row)
            successful += 1
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "error": str(exc),
                }
            )
            failed += 1

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _to_row(result: ExtractionResult) -> dict[str, object]:
    data = result.to_dict()
    fields = data["fields"]
    row: dict[str, object] = {
        "filename": result.filename,
        "status": "success",
        "document_type": data["document_type"],
        "ocr_provider": result.ocr_provider,
        "ocr_confidence": data["ocr_confidence"],
        "overall_confidence": round(result.fields.overall_confidence, 3),
        "error": None,
    }
    for name in _FIELD_COLUMNS:
        row[name] = fields.get(name)
    return row


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    columns = [c for c in _META_COLUMNS if c in all_keys]
    columns += [c for c in _FIELD_COLUMNS if c in all_keys]

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Bookkeeping document OCR and field extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="Path to config YAML"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir,
            args.output,
            Extraction.from_config(config),
            args.verbose,
        )
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = Extraction.from_config(config).run(args.file)
        output_str = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str, encoding="utf-8")
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
