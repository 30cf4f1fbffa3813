"""
HTTP Storage Implementation

Stores and reads inputs through the EcoForecast HTTP API instead of touching
a backend directly. This is what the form uses when it runs apart from the
server, the same way a browser front end would.

Status mapping:
- 400 -> InvalidIdError
- 404 -> NotFoundError
- anything else that is not ok -> StorageError with the server's message
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx
import structlog

from ecoforecast.models.inputs import InputsDoc, Period
from ecoforecast.services.storage.interface import (
    ConnectionError,
    InputsStorageInterface,
    InvalidIdError,
    NotFoundError,
    StorageError,
    parse_document_id,
)


logger = structlog.get_logger(__name__)

INPUTS_PATH = "/api/inputs"
FOUR_QUARTER_PATH = "/api/inputs/four-quarter"


class HttpInputsStorage(InputsStorageInterface):
    """
    Inputs storage backed by the HTTP API.

    Args:
        base_url: API root, e.g. http://localhost:5000
        timeout: Per-request timeout in seconds
        client: Pre-built client (tests pass one wired to the ASGI app)
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, path, **kwargs)
        async with httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout) as client:
            return await client.request(method, path, **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        fallback_error: str,
        **kwargs: Any,
    ) -> dict:
        try:
            response = await self._send(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("inputs_api_timeout", method=method, path=path)
            raise StorageError(f"{fallback_error}: request timed out") from e
        except httpx.TransportError as e:
            logger.error("inputs_api_unreachable", method=method, path=path, error=str(e))
            raise ConnectionError(f"{fallback_error}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success and body.get("ok"):
            return body

        message = body.get("error") or fallback_error
        logger.warning(
            "inputs_api_error",
            method=method,
            path=path,
            status=response.status_code,
            error=message,
        )
        if response.status_code == 400:
            raise InvalidIdError(message)
        if response.status_code == 404:
            raise NotFoundError(message)
        raise StorageError(message)

    async def insert(self, document: InputsDoc) -> str:
        payload = document.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={"id", "created_at"},
        )
        if document.period is Period.FOUR_QUARTER:
            path, fallback = FOUR_QUARTER_PATH, "Failed to save 4-quarter inputs"
        else:
            path, fallback = INPUTS_PATH, "Failed to save inputs"

        body = await self._request("POST", path, fallback, json=payload)
        return str(body["id"])

    async def find_latest(
        self,
        filters: Optional[dict[str, Any]] = None,
    ) -> Optional[InputsDoc]:
        filters = dict(filters or {})
        period = filters.pop("period", Period.QUARTERLY)
        company = filters.pop("company", None)
        if filters:
            raise ValueError(f"Unsupported filters for the HTTP backend: {sorted(filters)}")

        if Period(period) is Period.FOUR_QUARTER or company:
            params = {"company": company} if company else None
            body = await self._request(
                "GET",
                f"{FOUR_QUARTER_PATH}/latest",
                "Failed to fetch latest 4-quarter inputs",
                params=params,
            )
        else:
            body = await self._request(
                "GET", f"{INPUTS_PATH}/latest", "Failed to fetch latest inputs"
            )

        data = body.get("data")
        return InputsDoc.model_validate(data) if data else None

    async def find_by_id(self, document_id: str) -> InputsDoc:
        # Reject locally so malformed ids never reach the URL path
        parse_document_id(document_id)
        body = await self._request(
            "GET",
            f"{INPUTS_PATH}/{quote(str(document_id), safe='')}",
            "Failed to fetch inputs",
        )
        return InputsDoc.model_validate(body["data"])
