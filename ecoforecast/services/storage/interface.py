"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Point the form at a remote API instead of a local store
4. Keep the form and API handlers decoupled from the backend

The store is append-only: every submission is a new document, and nothing
is ever updated in place. "Latest" means greatest creation time.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Iterable, Optional
from uuid import UUID

from ecoforecast.models.inputs import InputsDoc
from ecoforecast.models.audit import AuditEvent


def parse_document_id(document_id: str) -> UUID:
    """
    Parse an identifier handed in from outside.

    Raises:
        InvalidIdError: If the identifier is not a well-formed UUID
    """
    try:
        return UUID(str(document_id))
    except (TypeError, ValueError):
        raise InvalidIdError(f"Invalid id: {document_id!r}")


def matches_filters(document: InputsDoc, filters: Optional[dict[str, Any]]) -> bool:
    """Equality match on document attributes (e.g. {"period": ..., "company": ...})."""
    if not filters:
        return True
    for key, expected in filters.items():
        actual = getattr(document, key, None)
        if hasattr(actual, "value"):
            actual = actual.value
        if hasattr(expected, "value"):
            expected = expected.value
        if actual != expected:
            return False
    return True


def pick_latest(
    documents: Iterable[InputsDoc],
    filters: Optional[dict[str, Any]] = None,
) -> Optional[InputsDoc]:
    """The matching document with the greatest created_at, or None."""
    latest = None
    for document in documents:
        if document.created_at is None or not matches_filters(document, filters):
            continue
        if latest is None or document.created_at >= latest.created_at:
            latest = document
    return latest


class InputsStorageInterface(ABC):
    """
    Abstract interface for inputs document storage.

    Any storage implementation (memory, Google Sheets, HTTP API)
    must implement these methods.
    """

    @abstractmethod
    async def insert(self, document: InputsDoc) -> str:
        """
        Store a new document.

        The backend assigns the id and created_at; any values already on
        the document are replaced.

        Args:
            document: The validated document to store

        Returns:
            The new document's identifier

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def find_latest(
        self,
        filters: Optional[dict[str, Any]] = None,
    ) -> Optional[InputsDoc]:
        """
        Get the most recently created document.

        Args:
            filters: Optional equality filters on document fields
                     (e.g. {"period": "four-quarter", "company": "Acme"})

        Returns:
            The matching document with the greatest created_at, None if no match

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def find_by_id(self, document_id: str) -> InputsDoc:
        """
        Retrieve a document by its identifier.

        Raises:
            InvalidIdError: If the identifier is malformed
            NotFoundError: If no document has this identifier
            StorageError: If the read fails
        """
        pass

    async def close(self) -> None:
        """Release connections. Backends without resources keep the default."""
        return None


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully. Implementations return False
            rather than raising when the write fails.
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one save attempt).

        Returns:
            List of related events in chronological order
        """
        pass


def stamp(document: InputsDoc, document_id: str, created_at: datetime) -> InputsDoc:
    """Copy of the document with storage-assigned fields set."""
    return document.model_copy(update={"id": document_id, "created_at": created_at})


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class InvalidIdError(StorageError):
    """Identifier is malformed; distinct from a well-formed id that matches nothing."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
