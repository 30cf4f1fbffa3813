"""Health check routes."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["meta"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "EcoForecast backend is running"


@router.get("/test")
async def test_backend() -> dict:
    """Confirms the server and its storage backend are wired up."""
    return {"message": "Backend + storage working"}
