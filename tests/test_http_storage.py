"""
Tests for HttpInputsStorage.

Runs against the real FastAPI app through httpx.ASGITransport, backed by
in-memory storage. Transport failures use httpx.MockTransport.
"""

import asyncio
from uuid import uuid4

import httpx
import pytest

from ecoforecast.api import create_app
from ecoforecast.models.inputs import (
    FourQuarterFigures,
    InputsDoc,
    Period,
    QuarterlyFigures,
)
from ecoforecast.services.storage import (
    ConnectionError,
    HttpInputsStorage,
    InMemoryInputsStorage,
    InvalidIdError,
    NotFoundError,
    StorageError,
)


class BrokenStorage(InMemoryInputsStorage):
    async def insert(self, document):
        raise StorageError("quota exceeded")


def run_against_app(server_storage, scenario):
    """Run scenario(http_storage) with the API served in-process."""
    app = create_app(storage=server_storage)

    async def main():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            return await scenario(HttpInputsStorage(client=client))

    return asyncio.run(main())


def run_with_handler(handler, scenario):
    """Run scenario(http_storage) against a mock transport."""
    async def main():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            return await scenario(HttpInputsStorage(client=client))

    return asyncio.run(main())


def quarterly_doc(sample_body) -> InputsDoc:
    return InputsDoc(
        period=Period.QUARTERLY,
        year=2024,
        inputs=QuarterlyFigures.model_validate(sample_body),
    )


def four_quarter_doc(sample_body, company) -> InputsDoc:
    return InputsDoc(
        period=Period.FOUR_QUARTER,
        year=2024,
        company=company,
        quarters=FourQuarterFigures.model_validate(
            {q: sample_body for q in ("q1", "q2", "q3", "q4")}
        ),
    )


class TestHttpInputsStorage:
    """Tests for the HTTP storage backend."""

    def test_insert_and_find_by_id(self, memory_storage, sample_body):
        """Test that a document stored through the API reads back."""
        async def scenario(storage):
            doc_id = await storage.insert(quarterly_doc(sample_body))
            return doc_id, await storage.find_by_id(doc_id)

        doc_id, stored = run_against_app(memory_storage, scenario)

        assert stored.id == doc_id
        assert stored.created_at is not None
        assert stored.inputs.total_spend == 75.0
        assert len(memory_storage) == 1

    def test_find_latest_empty(self, memory_storage):
        """Test that no documents gives None."""
        async def scenario(storage):
            return await storage.find_latest()

        assert run_against_app(memory_storage, scenario) is None

    def test_find_latest_four_quarter_by_company(self, memory_storage, sample_body):
        """Test the four-quarter route with a company filter."""
        async def scenario(storage):
            acme = await storage.insert(four_quarter_doc(sample_body, "Acme"))
            await storage.insert(four_quarter_doc(sample_body, "Globex"))
            latest = await storage.find_latest(
                {"period": Period.FOUR_QUARTER, "company": "Acme"}
            )
            return acme, latest

        acme, latest = run_against_app(memory_storage, scenario)

        assert latest.id == acme
        assert latest.company == "Acme"

    def test_find_latest_quarterly(self, memory_storage, sample_body):
        """Test that the default lookup is the latest quarterly document."""
        async def scenario(storage):
            quarterly = await storage.insert(quarterly_doc(sample_body))
            await storage.insert(four_quarter_doc(sample_body, "Acme"))
            return quarterly, await storage.find_latest({"period": "quarterly"})

        quarterly, latest = run_against_app(memory_storage, scenario)

        assert latest.id == quarterly

    def test_unsupported_filter(self, memory_storage):
        """Test that filters the API cannot express are refused."""
        async def scenario(storage):
            return await storage.find_latest({"year": 2024})

        with pytest.raises(ValueError, match="Unsupported filters"):
            run_against_app(memory_storage, scenario)

    def test_malformed_id(self, memory_storage):
        """Test that a malformed id is rejected as InvalidIdError."""
        async def scenario(storage):
            return await storage.find_by_id("not a uuid/../x")

        with pytest.raises(InvalidIdError):
            run_against_app(memory_storage, scenario)

    def test_unknown_id(self, memory_storage):
        """Test that a 404 maps to NotFoundError."""
        async def scenario(storage):
            return await storage.find_by_id(str(uuid4()))

        with pytest.raises(NotFoundError):
            run_against_app(memory_storage, scenario)

    def test_server_error_message(self, sample_body):
        """Test that a 500 carries the server's message."""
        async def scenario(storage):
            return await storage.insert(quarterly_doc(sample_body))

        with pytest.raises(StorageError, match="Failed to save inputs"):
            run_against_app(BrokenStorage(), scenario)

    def test_bad_request_maps_to_invalid_id(self):
        """Test the 400 mapping."""
        def handler(request):
            return httpx.Response(400, json={"ok": False, "error": "Invalid id"})

        async def scenario(storage):
            return await storage.find_by_id(str(uuid4()))

        with pytest.raises(InvalidIdError, match="Invalid id"):
            run_with_handler(handler, scenario)

    def test_non_json_error_uses_fallback(self):
        """Test that an error without a JSON body falls back to a generic message."""
        def handler(request):
            return httpx.Response(502, text="Bad Gateway")

        async def scenario(storage):
            return await storage.find_latest()

        with pytest.raises(StorageError, match="Failed to fetch latest inputs"):
            run_with_handler(handler, scenario)

    def test_unreachable_server(self):
        """Test that transport failures raise ConnectionError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario(storage):
            return await storage.find_latest()

        with pytest.raises(ConnectionError):
            run_with_handler(handler, scenario)

    def test_timeout(self):
        """Test that timeouts raise StorageError."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async def scenario(storage):
            return await storage.find_latest()

        with pytest.raises(StorageError, match="timed out"):
            run_with_handler(handler, scenario)
