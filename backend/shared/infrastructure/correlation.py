"""
Request correlation for log records.

The application server binds a request ID for the duration of a call;
every log record emitted meanwhile carries it.
"""

import uuid
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar

# Context variable for request ID (thread-safe)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


@contextmanager
def bind_request_id(request_id: str | None = None) -> Generator[str, None, None]:
    """
    Bind a request ID for the enclosed block.

    Usage:
        with bind_request_id(request.headers.get("X-Request-ID")):
            repo.create(data, actor_id=current_user.id)

    A new UUID is generated when no ID is given.
    """
    if not request_id:
        request_id = str(uuid.uuid4())

    token = request_id_var.set(request_id)
    try:
        yield request_id
    finally:
        request_id_var.reset(token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id to log records.

    Usage:
        import logging
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        record.request_id = get_request_id() or "-"
        return True
