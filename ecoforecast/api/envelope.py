"""
Response envelope.

Every JSON response carries a boolean `ok`. Successful responses add their
payload next to it; failures carry a single human-readable `error`.
"""

from typing import Any

from fastapi.responses import JSONResponse


def ok_response(status_code: int = 200, **payload: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": True, **payload})


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})
