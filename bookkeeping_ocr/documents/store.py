"""Persistence contract for documents, with an in-memory implementation.

Every lookup is scoped by company id; a document owned by another
company is reported exactly like a missing one.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from bookkeeping_ocr.exceptions import DocumentNotFoundError
from bookkeeping_ocr.utils.logger import get_logger

from .models import Document, DocumentStatus

logger = get_logger(__name__)


class DocumentStore(ABC):
    """Tenant-scoped storage of document records."""

    @abstractmethod
    def add(self, document: Document) -> Document:
        """Persist a new document."""

    @abstractmethod
    def get(self, document_id: str, company_id: str) -> Document:
        """Return a copy of the document.

        Raises:
            DocumentNotFoundError: If it does not exist for this company.
        """

    @abstractmethod
    def save(self, document: Document) -> Document:
        """Overwrite an existing document and bump ``updated_at``."""

    @abstractmethod
    def delete(self, document_id: str, company_id: str) -> None:
        """Remove a document record."""

    @abstractmethod
    def list_for_company(
        self, company_id: str, status: DocumentStatus | None = None
    ) -> list[Document]:
        """List a company's documents, newest first."""

    @abstractmethod
    def try_transition(
        self,
        document_id: str,
        company_id: str,
        allowed_from: Iterable[DocumentStatus],
        to: DocumentStatus,
    ) -> bool:
        """Atomically change status only if the stored status is allowed.

        Returns:
            True if this call performed the transition.

        Raises:
            DocumentNotFoundError: If it does not exist for this company.
        """


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe dictionary-backed store."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = threading.Lock()

    def add(self, document: Document) -> Document:
        with self._lock:
            self._documents[document.id] = replace(document)
        return document

    def get(self, document_id: str, company_id: str) -> Document:
        with self._lock:
            return replace(self._find(document_id, company_id))

    def save(self, document: Document) -> Document:
        with self._lock:
            self._find(document.id, document.company_id)
            document.updated_at = datetime.now()
            self._documents[document.id] = replace(document)
        return document

    def delete(self, document_id: str, company_id: str) -> None:
        with self._lock:
            self._find(document_id, company_id)
            del self._documents[document_id]

    def list_for_company(
        self, company_id: str, status: DocumentStatus | None = None
    ) -> list[Document]:
        with self._lock:
            matches = [
                replace(d)
                for d in self._documents.values()
                if d.company_id == company_id and (status is None or d.status == status)
            ]
        return sorted(matches, key=lambda d: d.created_at, reverse=True)

    def try_transition(
        self,
        document_id: str,
        company_id: str,
        allowed_from: Iterable[DocumentStatus],
        to: DocumentStatus,
    ) -> bool:
        with self._lock:
            stored = self._find(document_id, company_id)
            if stored.status not in set(allowed_from):
                logger.debug(
                    "Refused transition of %s from %s to %s",
                    document_id,
                    stored.status,
                    to,
                )
                return False
            stored.status = to
            stored.updated_at = datetime.now()
            return True

    def _find(self, document_id: str, company_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None or document.company_id != company_id:
            raise DocumentNotFoundError("Document not found")
        return document
