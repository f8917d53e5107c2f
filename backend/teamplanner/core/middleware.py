"""Custom FastAPI middleware."""
from __future__ import annotations

from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from teamplanner.core.context import bind_request_id, reset_request_id


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the planning call and echo it in ``X-Request-Id``."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        token = bind_request_id(request_id)

        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)

        response.headers["X-Request-Id"] = request_id
        return response
