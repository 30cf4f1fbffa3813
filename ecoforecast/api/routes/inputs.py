"""
Inputs routes.

    POST /api/inputs                         store one quarter
    GET  /api/inputs/latest                  latest quarterly document
    POST /api/inputs/four-quarter            store Q1-Q4 for a company
    GET  /api/inputs/four-quarter/latest     latest four-quarter document
    GET  /api/inputs/{id}                    point lookup

The fixed paths are registered before /{id} so "latest" and "four-quarter"
are never read as identifiers.

Storage failures are logged with detail and answered with a generic message.
"""

from datetime import date
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from ecoforecast.api.deps import get_audit_logger, get_storage
from ecoforecast.api.envelope import error_response, ok_response
from ecoforecast.api.schemas import SaveFourQuarterRequest, SaveInputsRequest
from ecoforecast.audit import AuditLogger, create_correlation_id
from ecoforecast.models.inputs import InputsDoc, Period
from ecoforecast.services.storage import (
    InputsStorageInterface,
    InvalidIdError,
    NotFoundError,
    StorageError,
)


logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/inputs", tags=["inputs"])


async def _insert(
    document: InputsDoc,
    storage: InputsStorageInterface,
    audit_logger: AuditLogger,
    failure_message: str,
):
    correlation_id = create_correlation_id()
    try:
        doc_id = await storage.insert(document)
    except StorageError as e:
        logger.error(
            "insert_failed",
            period=document.period.value,
            error=str(e),
            correlation_id=str(correlation_id),
        )
        await audit_logger.log_save_failed(
            period=document.period.value,
            error_message=str(e),
            correlation_id=correlation_id,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, failure_message)

    await audit_logger.log_inputs_saved(
        doc_id=doc_id,
        period=document.period.value,
        total_spend=document.total_spend,
        correlation_id=correlation_id,
    )
    return ok_response(status.HTTP_201_CREATED, id=doc_id)


async def _latest(
    storage: InputsStorageInterface,
    filters: dict,
    failure_message: str,
):
    try:
        latest = await storage.find_latest(filters)
    except StorageError as e:
        logger.error("find_latest_failed", filters=str(filters), error=str(e))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, failure_message)

    return ok_response(data=latest.to_wire() if latest is not None else None)


@router.post("", status_code=status.HTTP_201_CREATED)
async def save_inputs(
    body: SaveInputsRequest,
    storage: InputsStorageInterface = Depends(get_storage),
    audit_logger: AuditLogger = Depends(get_audit_logger),
):
    """Store one quarter of figures."""
    document = InputsDoc(
        period=Period.QUARTERLY,
        year=body.year or date.today().year,
        inputs=body.inputs,
    )
    return await _insert(document, storage, audit_logger, "Failed to save inputs")


@router.get("/latest")
async def latest_inputs(storage: InputsStorageInterface = Depends(get_storage)):
    """
    Newest quarterly document, or null.

    Only quarterly documents are considered, even when a four-quarter
    document is newer. Four-quarter submissions have their own
    /four-quarter/latest route, and the quarterly form prefills from this one.
    """
    return await _latest(
        storage,
        {"period": Period.QUARTERLY},
        "Failed to fetch latest inputs",
    )


@router.post("/four-quarter", status_code=status.HTTP_201_CREATED)
async def save_four_quarter_inputs(
    body: SaveFourQuarterRequest,
    storage: InputsStorageInterface = Depends(get_storage),
    audit_logger: AuditLogger = Depends(get_audit_logger),
):
    """Store Q1-Q4 for one company and year."""
    document = InputsDoc(
        period=Period.FOUR_QUARTER,
        company=body.company,
        year=body.year,
        quarters=body.quarters,
    )
    return await _insert(
        document, storage, audit_logger, "Failed to save 4-quarter inputs"
    )


@router.get("/four-quarter/latest")
async def latest_four_quarter_inputs(
    company: Optional[str] = Query(default=None),
    storage: InputsStorageInterface = Depends(get_storage),
):
    filters: dict = {"period": Period.FOUR_QUARTER}
    if company:
        filters["company"] = company
    return await _latest(storage, filters, "Failed to fetch latest 4-quarter inputs")


@router.get("/{document_id}")
async def get_inputs(
    document_id: str,
    storage: InputsStorageInterface = Depends(get_storage),
):
    try:
        document = await storage.find_by_id(document_id)
    except InvalidIdError:
        return error_response(status.HTTP_400_BAD_REQUEST, "Invalid id")
    except NotFoundError:
        return error_response(status.HTTP_404_NOT_FOUND, "Not found")
    except StorageError as e:
        logger.error("find_by_id_failed", document_id=document_id, error=str(e))
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch inputs"
        )

    return ok_response(data=document.to_wire())
