"""Per-request context shared between the HTTP layer and log records."""
from __future__ import annotations

from contextvars import ContextVar, Token

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the request id bound to the current planning call, if any."""
    return request_id_ctx_var.get()


def bind_request_id(request_id: str | None) -> Token:
    """Bind a request id for the duration of a call; pass the token to ``reset_request_id``."""
    return request_id_ctx_var.set(request_id)


def reset_request_id(token: Token) -> None:
    request_id_ctx_var.reset(token)
