"""Document type classification from OCR text.

A keyword pass handles most documents. Only when no keyword matches
is a language model asked to choose a label.
"""

from bookkeeping_ocr.ai.base import TextCompletionClient
from bookkeeping_ocr.documents.models import DocumentType
from bookkeeping_ocr.utils.logger import get_logger

logger = get_logger(__name__)

AI_SAMPLE_LENGTH = 500

# Scanned in order; the first type with any matching keyword wins.
KEYWORD_RULES: tuple[tuple[DocumentType, tuple[str, ...]], ...] = (
    (
        DocumentType.INVOICE,
        ("fatura", "invoice", "fatura no", "invoice no", "invoice number"),
    ),
    (
        DocumentType.RECEIPT,
        ("fiş", "makbuz", "receipt", "perakende", "satış fişi"),
    ),
    (
        DocumentType.CONTRACT,
        ("sözleşme", "contract", "agreement", "anlaşma"),
    ),
    (
        DocumentType.BANK_STATEMENT,
        ("dekont", "eft", "havale", "statement", "banka dekontu", "transfer"),
    ),
)

CLASSIFICATION_PROMPT = """The following text was read by OCR from a business document.
Determine the document type and return ONLY one of these words:
- INVOICE (if it is an invoice)
- RECEIPT (if it is a receipt or sales slip)
- CONTRACT (if it is a contract or agreement)
- BANK_STATEMENT (if it is a bank statement or transfer receipt)
- OTHER (if it is none of these)

Text:
{sample}

Answer (one word):
"""


def fold_case(text: str) -> str:
    """Lowercase text, treating Turkish dotted and dotless I as plain i."""
    return text.replace("İ", "i").lower().replace("ı", "i").replace("\u0307", "")


class DocumentClassifier:
    """Maps recognized text to a ``DocumentType``.

    Args:
        ai_client: Text model used when no keyword matches; ``None``
            disables the AI fallback.
    """

    def __init__(self, ai_client: TextCompletionClient | None = None) -> None:
        self.ai_client = ai_client

    def classify(self, text: str | None) -> DocumentType:
        """Classify OCR text.

        Args:
            text: Extracted document text.

        Returns:
            The detected type, or ``DocumentType.OTHER``.
        """
        if text is None or not text.strip():
            logger.warning("Empty OCR text, returning OTHER")
            return DocumentType.OTHER

        keyword_result = self.classify_by_keywords(text)
        if keyword_result is not None:
            logger.info("Keyword-based classification successful: %s", keyword_result)
            return keyword_result

        logger.info("No keywords found, attempting AI-based classification")
        ai_result = self.classify_by_ai(text)
        logger.info("Final classification: %s", ai_result)
        return ai_result

    def classify_by_keywords(self, text: str) -> DocumentType | None:
        folded = fold_case(text)
        for document_type, keywords in KEYWORD_RULES:
            for keyword in keywords:
                if fold_case(keyword) in folded:
                    logger.debug("Found keyword '%s' for type %s", keyword, document_type)
                    return document_type
        return None

    def classify_by_ai(self, text: str) -> DocumentType:
        if self.ai_client is None:
            logger.debug("No AI client configured, returning OTHER")
            return DocumentType.OTHER

        prompt = CLASSIFICATION_PROMPT.format(sample=text[:AI_SAMPLE_LENGTH])
        try:
            response = self.ai_client.complete(prompt, temperature=0.0)
        except Exception:
            logger.exception("AI classification failed")
            return DocumentType.OTHER

        label = response.strip().upper()
        try:
            return DocumentType(label)
        except ValueError:
            logger.warning(
                "AI returned invalid document type: %r. Defaulting to OTHER", response
            )
            return DocumentType.OTHER
