"""
Utilities module: Exceptions, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
    InvalidStateError,
    ClosureBlockedError,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ValidationError",
    "InvalidStateError",
    "ClosureBlockedError",
    # schemas
    "ErrorResponse",
]
