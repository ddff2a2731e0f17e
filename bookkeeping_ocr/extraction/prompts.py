"""Prompt construction for AI field extraction."""

import json

from bookkeeping_ocr.documents.models import DocumentType

SUPPORTED_CURRENCIES: tuple[str, ...] = ("TRY", "USD", "EUR", "GBP")

_INVOICE_SCHEMA = """{
    "companyName": "Company name (if any)",
    "date": "Date in DD/MM/YYYY format",
    "documentNumber": "Invoice number",
    "totalAmount": 0.00,
    "vatAmount": 0.00,
    "currency": "TRY or USD or EUR",
    "taxId": "Tax number",
    "address": "Address",
    "items": [
        {
            "name": "Product/service name",
            "quantity": 1,
            "unitPrice": 0.00,
            "totalPrice": 0.00,
            "description": "Description"
        }
    ]
}"""

_RECEIPT_SCHEMA = """{
    "companyName": "Store/business name",
    "date": "Date in DD/MM/YYYY format",
    "documentNumber": "Receipt number",
    "totalAmount": 0.00,
    "currency": "TRY",
    "address": "Address"
}"""

_BANK_STATEMENT_SCHEMA = """{
    "companyName": "Bank name",
    "date": "Date in DD/MM/YYYY format",
    "documentNumber": "Transaction number/reference",
    "totalAmount": 0.00,
    "currency": "TRY",
    "description": "Transaction description"
}"""

_GENERIC_SCHEMA = """{
    "companyName": "Company/institution name",
    "date": "Date in DD/MM/YYYY format",
    "documentNumber": "Document number",
    "totalAmount": 0.00,
    "currency": "TRY",
    "description": "Description"
}"""

_SCHEMAS: dict[DocumentType, str] = {
    DocumentType.INVOICE: _INVOICE_SCHEMA,
    DocumentType.RECEIPT: _RECEIPT_SCHEMA,
    DocumentType.BANK_STATEMENT: _BANK_STATEMENT_SCHEMA,
}

_RULES = f"""
RULES:
- If you cannot find a field, write null (do not try to make it up!)
- Separate decimals with a dot (.), never a comma (e.g. 1500.00)
- Always write the date in DD/MM/YYYY format
- Currency must be one of {", ".join(SUPPORTED_CURRENCIES)}
- Return only JSON, no other explanation
"""

FALLBACK_JSON = json.dumps(
    {
        "companyName": None,
        "date": None,
        "documentNumber": None,
        "totalAmount": None,
        "vatAmount": None,
        "currency": None,
    }
)


def schema_for(document_type: DocumentType) -> str:
    """Return the JSON schema requested for a document type."""
    return _SCHEMAS.get(document_type, _GENERIC_SCHEMA)


def build_extraction_prompt(text: str, document_type: DocumentType) -> str:
    """Build the extraction prompt for OCR text of the given type."""
    return (
        f"The following text was read by OCR from a {document_type.display_name}.\n"
        "Extract the information below and return it in JSON format.\n\n"
        f"OCR text:\n{text}\n\n"
        f"JSON schema:\n{schema_for(document_type)}\n"
        f"{_RULES}"
    )
