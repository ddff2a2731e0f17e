"""Confidence scoring for AI-extracted fields.

Scores are recomputed from the raw OCR text and the shape of each
value; the AI's own claims about certainty are never used.
"""

from datetime import datetime
from decimal import Decimal

from .prompts import SUPPORTED_CURRENCIES

DATE_FORMAT = "%d/%m/%Y"
MAX_REASONABLE_TOTAL = Decimal("1000000")


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def fuzzy_match(extracted: str | None, source: str) -> float:
    """Score how well an extracted string is supported by the source text.

    Returns 1.0 for an exact substring, 0.95 for a case-insensitive
    substring, otherwise the share of whitespace tokens longer than three
    characters found in the source (capped at 0.9), 0.3 when no token is
    found, and 0.0 when absent.
    """
    if extracted is None or not extracted.strip():
        return 0.0

    if extracted in source:
        return 1.0

    lower_source = source.lower()
    if extracted.lower() in lower_source:
        return 0.95

    words = extracted.split()
    matches = sum(1 for w in words if len(w) > 3 and w.lower() in lower_source)
    if not words or matches == 0:
        return 0.3
    return _clamp(min(0.9, matches / len(words)))


def is_valid_date(value: str) -> bool:
    """Return True when the value parses as DD/MM/YYYY."""
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return len(value) == 10


def date_confidence(value: str | None, source: str) -> float:
    if value is None:
        return 0.0
    if not is_valid_date(value):
        return 0.3
    return 0.95 if value in source else 0.7


def total_amount_confidence(value: Decimal | None) -> float:
    if value is None:
        return 0.0
    return 0.9 if 0 < value < MAX_REASONABLE_TOTAL else 0.4


def vat_amount_confidence(value: Decimal | None) -> float:
    if value is None:
        return 0.0
    return 0.8 if value >= 0 else 0.3


def currency_confidence(value: str | None) -> float:
    if value is None:
        return 0.0
    return 0.95 if value.upper() in SUPPORTED_CURRENCIES else 0.5


def overall_confidence(
    company_name: float, date: float, total_amount: float, currency: float
) -> float:
    """Mean of the non-zero scores among the four headline fields.

    Document number and VAT amount are not part of the aggregate.
    """
    scores = [c for c in (company_name, date, total_amount, currency) if c > 0]
    return sum(scores) / len(scores) if scores else 0.0
