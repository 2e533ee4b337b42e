"""
Infrastructure module: Database sessions and request correlation.

Provides:
- Database sessions and transactions (db.py)
- Correlation IDs for log records (correlation.py)
"""

from shared.infrastructure.db import (
    get_engine,
    get_session_factory,
    get_db,
    get_db_context,
    safe_commit,
    transaction_scope,
)
from shared.infrastructure.correlation import (
    bind_request_id,
    get_request_id,
    CorrelationIdFilter,
)

__all__ = [
    # db
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_db_context",
    "safe_commit",
    "transaction_scope",
    # correlation
    "bind_request_id",
    "get_request_id",
    "CorrelationIdFilter",
]
