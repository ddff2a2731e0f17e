"""AI-assisted structured field extraction from OCR text.

Asks a language model for a type-specific JSON object, parses it
defensively, and scores every value against the raw OCR text.
"""

import json
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from bookkeeping_ocr.ai.base import TextCompletionClient
from bookkeeping_ocr.documents.models import DocumentFields, DocumentType, LineItem
from bookkeeping_ocr.utils.logger import get_logger

from . import scoring
from .prompts import FALLBACK_JSON, build_extraction_prompt

logger = get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

_STRING_FIELDS: dict[str, str] = {
    "companyName": "company_name",
    "date": "date",
    "documentNumber": "document_number",
    "currency": "currency",
    "taxId": "tax_id",
    "address": "address",
    "description": "description",
}

_DECIMAL_FIELDS: dict[str, str] = {
    "totalAmount": "total_amount",
    "vatAmount": "vat_amount",
}


def strip_code_fences(response: str) -> str:
    """Remove markdown code-fence wrapping from a model response."""
    return _CODE_FENCE.sub("", response).strip()


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _to_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        return None


def _to_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_line_items(raw_items: Any) -> list[LineItem]:
    """Parse the ``items`` array, tolerating missing or malformed sub-fields."""
    if not isinstance(raw_items, list):
        return []

    items: list[LineItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        items.append(
            LineItem(
                name=_to_str(raw.get("name")),
                quantity=_to_int(raw.get("quantity")),
                unit_price=_to_decimal(raw.get("unitPrice")),
                total_price=_to_decimal(raw.get("totalPrice")),
                description=_to_str(raw.get("description")),
            )
        )
    return items


def parse_fields(response: str) -> DocumentFields:
    """Parse a model response into fields without scoring them.

    Malformed JSON yields an empty ``DocumentFields``.
    """
    try:
        data = json.loads(strip_code_fences(response))
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse JSON response: %s", exc)
        return DocumentFields()

    if not isinstance(data, dict):
        logger.error("Extraction response is not a JSON object")
        return DocumentFields()

    values: dict[str, Any] = {}
    for key, attr in _STRING_FIELDS.items():
        if data.get(key) is not None:
            values[attr] = _to_str(data[key])
    for key, attr in _DECIMAL_FIELDS.items():
        amount = _to_decimal(data.get(key))
        if amount is not None:
            values[attr] = amount

    return DocumentFields(**values, items=parse_line_items(data.get("items")))


def score_fields(fields: DocumentFields, ocr_text: str) -> DocumentFields:
    """Recompute every confidence score from the raw OCR text."""
    fields.company_name_confidence = scoring.fuzzy_match(fields.company_name, ocr_text)
    fields.date_confidence = scoring.date_confidence(fields.date, ocr_text)
    fields.document_number_confidence = scoring.fuzzy_match(
        fields.document_number, ocr_text
    )
    fields.total_amount_confidence = scoring.total_amount_confidence(
        fields.total_amount
    )
    fields.vat_amount_confidence = scoring.vat_amount_confidence(fields.vat_amount)
    fields.currency_confidence = scoring.currency_confidence(fields.currency)
    fields.overall_confidence = scoring.overall_confidence(
        fields.company_name_confidence,
        fields.date_confidence,
        fields.total_amount_confidence,
        fields.currency_confidence,
    )
    return fields


class FieldExtractor:
    """Extracts structured fields with per-field confidence.

    Args:
        ai_client: Text model used for extraction; ``None`` makes every
            extraction fall back to all-null fields.
        temperature: Sampling temperature, 0 for deterministic output.
    """

    def __init__(
        self, ai_client: TextCompletionClient | None = None, temperature: float = 0.0
    ) -> None:
        self.ai_client = ai_client
        self.temperature = temperature

    def extract(self, text: str | None, document_type: DocumentType) -> DocumentFields:
        """Extract fields from OCR text.

        Args:
            text: Raw OCR text.
            document_type: Classified type, selects the JSON schema.

        Returns:
            Scored fields with ``raw_ocr_text`` set.
        """
        logger.info(
            "Extracting fields. Document type: %s, Text length: %d",
            document_type,
            len(text) if text else 0,
        )

        if text is None or not text.strip():
            logger.warning("Empty OCR text, returning empty fields")
            return DocumentFields(raw_ocr_text=text, overall_confidence=0.0)

        prompt = build_extraction_prompt(text, document_type)
        response = self._call_model(prompt)

        fields = parse_fields(response)
        fields.raw_ocr_text = text
        score_fields(fields, text)

        logger.info(
            "Field extraction complete. Overall confidence: %.2f",
            fields.overall_confidence,
        )
        return fields

    def _call_model(self, prompt: str) -> str:
        if self.ai_client is None:
            logger.warning("AI API key not configured, using fallback extraction")
            return FALLBACK_JSON
        try:
            return self.ai_client.complete(prompt, temperature=self.temperature)
        except Exception:
            logger.exception("Extraction model call failed")
            return FALLBACK_JSON
