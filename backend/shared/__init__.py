"""
Shared module for infrastructure used by the data-access packages.

STRUCTURE:
- shared.infrastructure: Database sessions and request correlation
  - db.py: SQLAlchemy engine/sessions, safe_commit(), transaction_scope()
  - correlation.py: Request ID binding for log records

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Limits, sortable fields

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - identifiers.py: UUID normalization, case-insensitive contains predicates

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, transaction_scope
    from shared.config.settings import settings
    from shared.config.logging import get_logger
    from shared.utils.exceptions import NotFoundError, InvalidIdentifierError
    from shared.utils.identifiers import normalize_identifier
"""
