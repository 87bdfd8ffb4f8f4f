"""
FastAPI dependencies for the domain services.

Process-wide collaborators (tax rules, notifier) are built once from
settings; services are built per request around the request's session.
Tests swap the collaborators through ``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from rest_api.services.domain import (
    KitchenService,
    OrderCompletionService,
    OrderSubmissionService,
    TableClosureService,
    TableQueryService,
    TableService,
    TaxService,
)
from rest_api.services.events import NotificationService
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.infrastructure.events import get_redis_sync_client


@lru_cache
def get_tax_service() -> TaxService:
    return TaxService(settings.tax_rates, enabled=settings.tax_enabled)


@lru_cache
def get_notification_service() -> NotificationService:
    return NotificationService(get_redis_sync_client, enabled=settings.notifications_enabled)


def get_order_submission_service(
    db: Session = Depends(get_db),
    tax_service: TaxService = Depends(get_tax_service),
    notifier: NotificationService = Depends(get_notification_service),
) -> OrderSubmissionService:
    return OrderSubmissionService(
        db,
        tax_service,
        notifier,
        session_window_hours=settings.session_window_hours,
        session_lease_hours=settings.session_lease_hours,
    )


def get_kitchen_service(
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> KitchenService:
    return KitchenService(db, notifier)


def get_table_closure_service(
    db: Session = Depends(get_db),
    tax_service: TaxService = Depends(get_tax_service),
    notifier: NotificationService = Depends(get_notification_service),
) -> TableClosureService:
    return TableClosureService(db, tax_service, notifier)


def get_order_completion_service(
    db: Session = Depends(get_db),
    tax_service: TaxService = Depends(get_tax_service),
    notifier: NotificationService = Depends(get_notification_service),
) -> OrderCompletionService:
    return OrderCompletionService(
        db, tax_service, notifier, default_payment_method=settings.default_payment_method
    )


def get_table_query_service(db: Session = Depends(get_db)) -> TableQueryService:
    return TableQueryService(db)


def get_table_service(db: Session = Depends(get_db)) -> TableService:
    return TableService(db)
