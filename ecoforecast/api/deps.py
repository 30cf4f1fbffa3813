"""
FastAPI dependencies.

The storage gateway and audit logger are built once in the app lifespan
(or passed to create_app) and read from app.state per request.
"""

from fastapi import Request

from ecoforecast.audit import AuditLogger
from ecoforecast.services.storage import InputsStorageInterface


def get_storage(request: Request) -> InputsStorageInterface:
    return request.app.state.storage


def get_audit_logger(request: Request) -> AuditLogger:
    return request.app.state.audit_logger
