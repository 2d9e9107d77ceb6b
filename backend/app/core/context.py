"""Per-request and per-operation context utilities."""
from __future__ import annotations

from contextvars import ContextVar

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
operation_ctx_var: ContextVar[str | None] = ContextVar("operation", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


def get_operation() -> str | None:
    """Return the name of the traced operation currently running, if any."""
    return operation_ctx_var.get()
