"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
in-memory, Google Sheets, and the HTTP API. Backends are swappable; pick one
with create_storage() or construct it directly.
"""

from typing import Optional

from ecoforecast.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    InputsStorageInterface,
    InvalidIdError,
    NotFoundError,
    StorageError,
    parse_document_id,
)
from ecoforecast.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryInputsStorage,
)
from ecoforecast.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsInputsStorage,
)
from ecoforecast.services.storage.http_api import HttpInputsStorage


def create_storage(
    backend: Optional[str] = None,
) -> tuple[InputsStorageInterface, Optional[AuditStorageInterface]]:
    """
    Build the inputs store and, where the backend has one, the audit store.

    Args:
        backend: memory, sheets or http. Defaults to the configured backend.

    Returns:
        (inputs_storage, audit_storage). audit_storage is None for http:
        the server keeps its own audit trail.
    """
    from ecoforecast.config import get_settings

    app_settings = get_settings().app
    backend = backend or app_settings.storage_backend

    if backend == "sheets":
        client = GoogleSheetsClient()
        return GoogleSheetsInputsStorage(client), GoogleSheetsAuditStorage(client)
    if backend == "http":
        storage = HttpInputsStorage(
            base_url=app_settings.api_base_url,
            timeout=app_settings.http_timeout_seconds,
        )
        return storage, None
    if backend == "memory":
        return InMemoryInputsStorage(), InMemoryAuditStorage()

    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "InputsStorageInterface",
    # Exceptions
    "ConnectionError",
    "InvalidIdError",
    "NotFoundError",
    "StorageError",
    # Helpers
    "create_storage",
    "parse_document_id",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryInputsStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsInputsStorage",
    # HTTP implementation
    "HttpInputsStorage",
]
