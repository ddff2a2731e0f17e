"""PDF to image conversion for multi-page document processing.

Renders uploaded PDF bytes into page images for OCR.
"""

import cv2
import numpy as np
from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFPageCountError, PDFSyntaxError

from bookkeeping_ocr.exceptions import OCRProcessingError
from bookkeeping_ocr.utils.logger import get_logger

logger = get_logger(__name__)

PDF_MAGIC = b"%PDF"


def is_pdf(content: bytes) -> bool:
    """Return True when the bytes start with the PDF signature."""
    return content[:4] == PDF_MAGIC


class PDFHandler:
    """Handles PDF to image conversion for OCR processing.

    Args:
        dpi: Resolution for PDF rendering. Higher values produce
            better OCR results but use more memory.
    """

    def __init__(self, dpi: int = 300) -> None:
        self.dpi = dpi

    def pdf_to_images(self, content: bytes) -> list[np.ndarray]:
        """Render every page of a PDF.

        Args:
            content: Raw PDF bytes.

        Returns:
            List of page images as BGR numpy arrays, matching decoded
            raster uploads.

        Raises:
            OCRProcessingError: If the PDF cannot be rendered.
        """
        try:
            pil_images = convert_from_bytes(content, dpi=self.dpi)
        except (PDFPageCountError, PDFSyntaxError) as exc:
            raise OCRProcessingError(f"PDF conversion failed: {exc}") from exc

        images = [
            cv2.cvtColor(np.array(img.convert("RGB")), cv2.COLOR_RGB2BGR)
            for img in pil_images
        ]
        logger.info("Converted PDF to %d images at %d DPI", len(images), self.dpi)
        return images
