"""
In-Memory Storage Implementation

Keeps documents in a process-local list. Used by the test suite and as the
default backend for local development; everything is lost on restart.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import UUID, uuid4

from ecoforecast.models.inputs import InputsDoc
from ecoforecast.models.audit import AuditEvent
from ecoforecast.services.storage.interface import (
    AuditStorageInterface,
    InputsStorageInterface,
    NotFoundError,
    parse_document_id,
    pick_latest,
    stamp,
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryInputsStorage(InputsStorageInterface):
    """
    List-backed inputs storage.

    Args:
        clock: Source of creation timestamps. Tests pass a fake clock
               to control ordering.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._documents: list[InputsDoc] = []
        self._clock = clock or _utc_now

    async def insert(self, document: InputsDoc) -> str:
        document_id = str(uuid4())
        self._documents.append(stamp(document, document_id, self._clock()))
        return document_id

    async def find_latest(
        self,
        filters: Optional[dict[str, Any]] = None,
    ) -> Optional[InputsDoc]:
        return pick_latest(self._documents, filters)

    async def find_by_id(self, document_id: str) -> InputsDoc:
        wanted = str(parse_document_id(document_id))
        for document in self._documents:
            if document.id == wanted:
                return document
        raise NotFoundError(f"Inputs not found: {document_id}")

    def __len__(self) -> int:
        return len(self._documents)


class InMemoryAuditStorage(AuditStorageInterface):
    """List-backed audit log."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events
