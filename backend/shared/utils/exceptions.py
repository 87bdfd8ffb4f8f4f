"""
Centralized HTTP exceptions for consistent error handling.

Every exception carries a machine-readable ``code`` and optional structured
``extra`` payload; the handler registered in rest_api.main renders them as
``{"detail": ..., "code": ..., **extra}``.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Order", order_id)
    raise ValidationError("Table number is required", field="table_number")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.constants import KitchenType
from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    code: str = "error"

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        extra: dict[str, Any] | None = None,
        **log_context: Any,
    ):
        self.extra = extra or {}

        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, code=self.code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def to_payload(self) -> dict[str, Any]:
        """Response body for this error."""
        return {"detail": self.detail, "code": self.code, **self.extra}


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Order must contain at least one item")
        raise ValidationError("Invalid kitchen", field="kitchen", value="bar")
    """

    code = "validation_error"

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", 123)
        raise NotFoundError("Active orders for table 12")
    """

    code = "not_found"

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} #{entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    """Order not found."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class InvalidStateError(AppException):
    """Entity is in an invalid state for the operation (409)."""

    code = "invalid_state"

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        **log_context: Any,
    ):
        if expected_states:
            states_str = ", ".join(expected_states)
            detail = f"{entity} is in state '{current_state}', expected one of: {states_str}"
        else:
            detail = f"{entity} cannot be in state '{current_state}' for this operation"

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            entity=entity,
            current_state=current_state,
            **log_context,
        )


class ClosureBlockedError(AppException):
    """
    A mixed food/beverage order is still waiting on one of its kitchens (409).

    ``blocking_orders`` is a list of
    ``{"order_id": int, "pending_kitchens": ["beverage", ...]}``.
    """

    code = "closure_blocked"

    def __init__(self, table_number: str, blocking_orders: list[dict[str, Any]]):
        self.table_number = table_number
        self.blocking_orders = blocking_orders

        reasons = []
        for blocked in blocking_orders:
            labels = ", ".join(KitchenType.LABELS[k] for k in blocked["pending_kitchens"])
            reasons.append(f"Order #{blocked['order_id']} is waiting for: {labels}")
        detail = f"Cannot close table {table_number}. " + "; ".join(reasons)

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            extra={"blocking_orders": blocking_orders},
            table_number=table_number,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to compute invoice", table_number="12")
    """

    code = "internal_error"

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class InconsistentStateError(InternalError):
    """Orders reached consolidation in a state that should be impossible."""

    code = "inconsistent_state"

    def __init__(self, table_number: str, offenders: list[dict[str, Any]]):
        self.offenders = offenders
        listing = ", ".join(f"#{o['order_id']} ({o['status']})" for o in offenders)
        super().__init__(
            f"Table {table_number} has orders that are not ready for closure: {listing}",
            table_number=table_number,
        )
        self.extra = {"offenders": offenders}


class ConsolidationError(InternalError):
    """Merging child orders into the consolidated order failed."""

    code = "consolidation_error"


class PersistenceError(ConsolidationError):
    """Saving the consolidated order failed; no child order was touched."""

    code = "persistence_error"

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(
            f"Database error during {operation}. No order was modified, please try again.",
            operation=operation,
            **log_context,
        )
