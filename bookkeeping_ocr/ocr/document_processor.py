"""Page loading and multi-page OCR for uploaded documents.

Decodes image or PDF bytes into pages, runs each page through the
OCR orchestrator, and merges the page results into one.
"""

import io

import cv2
import numpy as np
from PIL import Image, ImageSequence, UnidentifiedImageError

from bookkeeping_ocr.exceptions import OCRProcessingError
from bookkeeping_ocr.utils.logger import get_logger

from .base import OcrResult
from .orchestrator import OcrOrchestrator
from .pdf_handler import PDFHandler, is_pdf

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- Page Break ---\n\n"


def decode_image(content: bytes) -> list[np.ndarray]:
    """Decode image bytes into BGR pages (multi-frame TIFFs yield several).

    Raises:
        OCRProcessingError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            frames = [frame.convert("RGB") for frame in ImageSequence.Iterator(img)]
    except (UnidentifiedImageError, OSError) as exc:
        raise OCRProcessingError(f"Failed to read image: {exc}") from exc

    return [cv2.cvtColor(np.array(frame), cv2.COLOR_RGB2BGR) for frame in frames]


def merge_page_results(results: list[OcrResult]) -> OcrResult:
    """Combine per-page OCR results into a single document result.

    Texts are joined with a page-break marker. Blank pages keep their
    place in the text but are left out of the confidence, which is the
    weakest read page's, and of the provider list.
    """
    if len(results) == 1:
        return results[0]

    read = [r for r in results if r.text.strip()] or results
    providers: list[str] = []
    for r in read:
        if r.provider_name and r.provider_name not in providers:
            providers.append(r.provider_name)

    return OcrResult(
        text=PAGE_BREAK.join(r.text for r in results),
        confidence=min(r.confidence for r in read),
        provider_name="+".join(providers),
        metadata={
            "page_count": len(results),
            "pages": [
                {"provider": r.provider_name, "confidence": r.confidence}
                for r in results
            ],
        },
    )


class DocumentProcessor:
    """Runs OCR over every page of an uploaded document.

    Args:
        orchestrator: OCR fallback chain applied per page.
        pdf_handler: Renderer for PDF uploads.
    """

    def __init__(
        self, orchestrator: OcrOrchestrator, pdf_handler: PDFHandler | None = None
    ) -> None:
        self.orchestrator = orchestrator
        self.pdf_handler = pdf_handler or PDFHandler()

    def load_pages(self, content: bytes) -> list[np.ndarray]:
        """Decode document bytes into page images.

        Raises:
            OCRProcessingError: If no page could be decoded.
        """
        if is_pdf(content):
            pages = self.pdf_handler.pdf_to_images(content)
        else:
            pages = decode_image(content)

        if not pages:
            raise OCRProcessingError("Document contains no pages")
        return pages

    def process(self, content: bytes, filename: str = "document") -> OcrResult:
        """OCR every page of a document.

        A page without any recognizable text, such as a blank separator
        sheet, contributes an empty page rather than failing the document.

        Raises:
            OCRProcessingError: If decoding fails or no page yields text.
        """
        logger.info("Processing document: %s", filename)
        pages = self.load_pages(content)
        results: list[OcrResult] = []
        first_error: OCRProcessingError | None = None
        for number, page in enumerate(pages, 1):
            try:
                results.append(self.orchestrator.process(page))
            except OCRProcessingError as exc:
                logger.warning("No text on page %d of %s: %s", number, filename, exc)
                first_error = first_error or exc
                results.append(
                    OcrResult(
                        text="",
                        confidence=0.0,
                        provider_name="",
                        metadata={"error": str(exc)},
                    )
                )

        if not any(r.text.strip() for r in results):
            raise first_error or OCRProcessingError(
                "All OCR providers failed to extract text"
            )
        logger.info("Processed %d pages from %s", len(pages), filename)
        return merge_page_results(results)
