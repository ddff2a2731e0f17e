"""Bookkeeping document OCR and structured-extraction pipeline.

Turns uploaded invoices, receipts, contracts, and bank statements into
clean pixels, OCR text, a document type, and confidence-scored fields
for a multi-tenant bookkeeping backend.
"""
