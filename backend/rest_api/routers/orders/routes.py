"""
Orders router.
Diner-facing order submission plus the manager actions on single orders.
"""

from fastapi import APIRouter, Depends, Request, status

from rest_api.dependencies import (
    get_kitchen_service,
    get_order_completion_service,
    get_order_submission_service,
)
from rest_api.services.domain import (
    KitchenService,
    OrderCompletionService,
    OrderSubmissionService,
)
from shared.config.settings import settings
from shared.security.rate_limit import limiter
from shared.utils.schemas import (
    CompleteOrderRequest,
    CompleteOrderResponse,
    ConfirmPaymentResponse,
    ErrorResponse,
    SubmitOrderRequest,
    SubmitOrderResponse,
    SubmitPickupOrderRequest,
)


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post(
    "/table",
    response_model=SubmitOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(settings.order_submit_rate_limit)
def submit_table_order(
    request: Request,
    body: SubmitOrderRequest,
    service: OrderSubmissionService = Depends(get_order_submission_service),
) -> SubmitOrderResponse:
    """
    Place an order for a table.

    Accepts either the menu payload (`order_data`) or the cart payload
    (`table_number` + `cart_items`). Tax is not charged here: it is computed
    once for the whole table when the table is closed.
    """
    return service.submit_table_order(body)


@router.post(
    "/pickup",
    response_model=SubmitOrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
@limiter.limit(settings.order_submit_rate_limit)
def submit_pickup_order(
    request: Request,
    body: SubmitPickupOrderRequest,
    service: OrderSubmissionService = Depends(get_order_submission_service),
) -> SubmitOrderResponse:
    """Place a pickup order, taxed immediately."""
    return service.submit_pickup_order(body)


@router.post(
    "/{order_id}/confirm-payment",
    response_model=ConfirmPaymentResponse,
    responses={404: {"model": ErrorResponse}},
)
def confirm_payment(
    order_id: int,
    service: KitchenService = Depends(get_kitchen_service),
) -> ConfirmPaymentResponse:
    """Mark an order paid. Calling it twice is harmless."""
    return service.confirm_payment(order_id)


@router.post(
    "/{order_id}/complete",
    response_model=CompleteOrderResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
def complete_order(
    order_id: int,
    body: CompleteOrderRequest | None = None,
    service: OrderCompletionService = Depends(get_order_completion_service),
) -> CompleteOrderResponse:
    """
    Complete a single pickup order.

    Table orders are rejected: they are paid by closing the table.
    """
    payment_method = body.payment_method if body else None
    return service.complete(order_id, payment_method)
