from __future__ import annotations

import uuid
from contextvars import ContextVar

# Id of the MCP tools/call currently being served; telemetry records carry it.
_request_id_ctx: ContextVar[str | None] = ContextVar("whoop_request_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def set_request_id(rid: str | None) -> None:
    _request_id_ctx.set(rid or None)


def begin_request() -> str:
    """Start a new request scope and return its id."""
    rid = new_request_id()
    _request_id_ctx.set(rid)
    return rid
