"""
Shared module for common utilities used by the REST API.

CLEAN ARCHITECTURE STRUCTURE:
- shared.security: Request protection
  - rate_limit.py: slowapi limiter for public diner endpoints

- shared.infrastructure: Database and messaging
  - db.py: SQLAlchemy sessions, safe_commit()
  - correlation.py: Request id middleware and log filter
  - events/: Redis pub/sub, event publishing

- shared.config: Configuration
  - settings.py: Environment config (Pydantic)
  - logging.py: Structured logging
  - constants.py: OrderStatus, KitchenType, TableStatus

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging and error codes
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.infrastructure.db import get_db, safe_commit
    from shared.config.settings import settings
    from shared.config.constants import OrderStatus, KitchenType
    from shared.utils.exceptions import NotFoundError, ClosureBlockedError
"""

# This module provides no re-exports.
# All imports should use the canonical paths as documented above.
