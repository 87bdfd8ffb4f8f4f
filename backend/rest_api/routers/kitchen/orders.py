"""
Kitchen router.
Handles operations for kitchen staff: the queue and readiness.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from rest_api.dependencies import get_kitchen_service
from rest_api.services.domain import KitchenService
from shared.utils.schemas import (
    ErrorResponse,
    KitchenQueueOrder,
    KitchenSummary,
    MarkReadyRequest,
    MarkReadyResponse,
)


router = APIRouter(prefix="/api/kitchen", tags=["kitchen"])


@router.get("/orders", response_model=list[KitchenQueueOrder])
def get_kitchen_queue(
    kitchen_type: Literal["all", "food", "beverage", "mixed"] = Query("all"),
    readiness: Literal["all", "waiting", "ready"] = Query("all"),
    service: KitchenService = Depends(get_kitchen_service),
) -> list[KitchenQueueOrder]:
    """
    Orders still being prepared, oldest first.

    - kitchen_type: only orders routed to that kitchen type
    - readiness: "waiting" (nothing ready yet) or "ready" (a kitchen finished)
    """
    return service.get_queue(kitchen_type=kitchen_type, readiness=readiness)


@router.get("/summary", response_model=KitchenSummary)
def get_kitchen_summary(
    service: KitchenService = Depends(get_kitchen_service),
) -> KitchenSummary:
    return service.get_summary()


@router.post(
    "/orders/{order_id}/ready",
    response_model=MarkReadyResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def mark_order_ready(
    order_id: int,
    body: MarkReadyRequest | None = None,
    service: KitchenService = Depends(get_kitchen_service),
) -> MarkReadyResponse:
    """
    Mark an order ready on behalf of one kitchen.

    A mixed order becomes pending only once both kitchens reported; until
    then the response has partial_ready=true.
    """
    kitchen = body.kitchen if body else "food"
    return service.mark_ready(order_id, kitchen)
