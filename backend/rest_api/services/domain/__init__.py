"""
Domain Services - Clean Architecture Application Layer.

Services contain business logic and orchestrate operations.
They use Repositories for data access and publish notifications.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import TableClosureService, ClosureCompleted

    result = TableClosureService(db, tax_service, notifier).close_table("12")
    if isinstance(result, ClosureCompleted):
        ...
"""

from .tax_service import TaxService, TaxBreakdown, TaxLine
from .readiness import (
    MixedReadiness,
    Readiness,
    SingleReadiness,
    classify_kitchen_type,
    is_complete,
    mark_station_ready,
    pending_kitchens,
    readiness_of,
)
from .kitchen_classification import kitchen_badge, readiness_badge, readiness_status
from .session_service import DiningSessionService, SessionResolution
from .order_submission_service import OrderSubmissionService, normalize_submission
from .kitchen_service import KitchenService
from .table_closure_service import (
    ClosureCompleted,
    ClosureResult,
    NeedsConfirmation,
    TableClosureService,
    closure_idempotency_key,
)
from .order_completion_service import OrderCompletionService
from .table_query_service import TableQueryService
from .table_service import TableService

__all__ = [
    # Tax
    "TaxService",
    "TaxBreakdown",
    "TaxLine",
    # Readiness
    "MixedReadiness",
    "Readiness",
    "SingleReadiness",
    "classify_kitchen_type",
    "is_complete",
    "mark_station_ready",
    "pending_kitchens",
    "readiness_of",
    "kitchen_badge",
    "readiness_badge",
    "readiness_status",
    # Sessions
    "DiningSessionService",
    "SessionResolution",
    # Orders
    "OrderSubmissionService",
    "normalize_submission",
    "KitchenService",
    "OrderCompletionService",
    # Tables
    "ClosureCompleted",
    "ClosureResult",
    "NeedsConfirmation",
    "TableClosureService",
    "closure_idempotency_key",
    "TableQueryService",
    "TableService",
]
