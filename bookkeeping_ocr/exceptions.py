"""Exception hierarchy for the document pipeline.

Validation and not-found errors are raised synchronously to the caller.
Processing errors are captured into the document record instead.
"""


class BookkeepingOCRError(Exception):
    """Base class for all pipeline errors."""


class DocumentValidationError(BookkeepingOCRError):
    """Raised when an upload or request fails a precondition."""


class DocumentNotFoundError(BookkeepingOCRError):
    """Raised when a document does not exist for the requesting company."""


class OCRProcessingError(BookkeepingOCRError):
    """Raised when no OCR provider produced usable text."""


class AIClientError(BookkeepingOCRError):
    """Raised when the AI provider call fails or returns nothing."""
