"""Wires configured components into a document pipeline."""

from bookkeeping_ocr.ai.base import VisionTranscriber
from bookkeeping_ocr.ai.openai_client import OpenAIChatClient, create_openai_client
from bookkeeping_ocr.classification.classifier import DocumentClassifier
from bookkeeping_ocr.documents.pipeline import DocumentPipeline
from bookkeeping_ocr.documents.storage import FileStorage
from bookkeeping_ocr.documents.store import DocumentStore, InMemoryDocumentStore
from bookkeeping_ocr.extraction.field_extractor import FieldExtractor
from bookkeeping_ocr.ocr.document_processor import DocumentProcessor
from bookkeeping_ocr.ocr.orchestrator import OcrOrchestrator, build_default_providers
from bookkeeping_ocr.ocr.pdf_handler import PDFHandler
from bookkeeping_ocr.preprocessing.pipeline import ImagePreprocessor
from bookkeeping_ocr.utils.config import AppConfig


def build_document_processor(
    config: AppConfig, transcriber: VisionTranscriber | None
) -> DocumentProcessor:
    """Create the preprocessing + OCR fallback chain for document bytes."""
    orchestrator = OcrOrchestrator(
        ImagePreprocessor(config.preprocessing),
        build_default_providers(config, transcriber),
        confidence_threshold=config.ocr.confidence_threshold,
    )
    return DocumentProcessor(orchestrator, PDFHandler(dpi=config.ocr.pdf_dpi))


def build_pipeline(
    config: AppConfig,
    store: DocumentStore | None = None,
    ai_client: OpenAIChatClient | None = None,
) -> DocumentPipeline:
    """Create a pipeline from configuration.

    Args:
        config: Application configuration.
        store: Document persistence; defaults to an in-memory store.
        ai_client: Client for text and vision calls (any object offering
            ``complete`` and ``transcribe``); built from
            ``config.ai`` when omitted, ``None`` if no key is set.
    """
    client = ai_client if ai_client is not None else create_openai_client(config.ai)
    return DocumentPipeline(
        store=store or InMemoryDocumentStore(),
        file_storage=FileStorage(config.storage.upload_dir),
        processor=build_document_processor(config, client),
        classifier=DocumentClassifier(client),
        extractor=FieldExtractor(client),
        storage_config=config.storage,
    )
