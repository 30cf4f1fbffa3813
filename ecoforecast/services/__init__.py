"""Services package."""

from ecoforecast.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    InputsStorageInterface,
    InvalidIdError,
    NotFoundError,
    StorageError,
    create_storage,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "InputsStorageInterface",
    "InvalidIdError",
    "NotFoundError",
    "StorageError",
    "create_storage",
]
