"""
Shared Pydantic schemas used across the application.

Money is always expressed in integer cents, except the ``price``/``total``
fields of diner payloads, which clients send in major currency units.
"""

import json
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

OrderStatus = Literal["processing", "pending", "completed", "cancelled"]
KitchenType = Literal["food", "beverage", "mixed"]
TableStatus = Literal["available", "occupied", "maintenance"]
PriceSource = Literal["snapshot", "catalog", "computed"]


class ErrorResponse(BaseModel):
    """Body of every error response."""

    detail: str
    code: str


# =============================================================================
# Order Submission Schemas
# =============================================================================


class AddonInput(BaseModel):
    """An addon chosen for an order line."""

    id: int | str | None = None
    name: str | None = Field(default=None, max_length=200)
    price: float | None = Field(default=None, ge=0)  # Major units
    price_cents: int | None = Field(default=None, ge=0)
    quantity: int = Field(default=1, ge=1, le=Limits.MAX_ITEM_QUANTITY)
    value: str | None = None


class OrderItemInput(BaseModel):
    """
    One cart line in either accepted shape.

    Current shape: product_id, variation_id, add_ons.
    Legacy shape: id, variations[{variation_id}], addons.
    """

    product_id: int | None = None
    id: int | None = None
    variation_id: int | None = None
    variations: list[dict[str, Any]] = Field(default_factory=list)
    name: str | None = Field(default=None, max_length=200)
    quantity: int = Field(default=1, ge=1, le=Limits.MAX_ITEM_QUANTITY)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    add_ons: list[AddonInput] = Field(default_factory=list)
    addons: list[AddonInput] = Field(default_factory=list)


class OrderDataInput(BaseModel):
    """The ``order_data`` object of the current submission shape."""

    table_number: str | None = Field(default=None, max_length=Limits.MAX_TABLE_NUMBER_LENGTH)
    items: list[OrderItemInput] = Field(default_factory=list, max_length=Limits.MAX_ITEMS_PER_ORDER)
    total: float | None = Field(default=None, ge=0)  # Major units
    special_requests: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class SubmitOrderRequest(BaseModel):
    """
    Table order submission.

    Either ``order_data`` (object or JSON-encoded string) or the legacy
    top-level ``table_number`` + ``cart_items`` fields.
    """

    order_data: OrderDataInput | None = None
    table_number: str | None = Field(default=None, max_length=Limits.MAX_TABLE_NUMBER_LENGTH)
    table_id: int | None = None
    special_requests: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    cart_items: list[OrderItemInput] | None = Field(default=None, max_length=Limits.MAX_ITEMS_PER_ORDER)

    @model_validator(mode="before")
    @classmethod
    def _decode_order_data(cls, data: Any) -> Any:
        # Older clients post order_data as a JSON string inside a form-like body
        if isinstance(data, dict) and isinstance(data.get("order_data"), str):
            data = dict(data)
            try:
                data["order_data"] = json.loads(data["order_data"])
            except json.JSONDecodeError as e:
                raise ValueError(f"order_data is not valid JSON: {e.msg}") from e
        return data


class SubmitPickupOrderRequest(BaseModel):
    """Pickup (non-table) order submission."""

    items: list[OrderItemInput] = Field(default_factory=list, max_length=Limits.MAX_ITEMS_PER_ORDER)
    special_requests: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class SubmitOrderResponse(BaseModel):
    """Result of an order submission."""

    order_id: int
    table_number: str | None
    order_type: str
    status: OrderStatus
    kitchen_type: KitchenType
    session_id: str | None = None
    is_new_session: bool = False
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    tax_deferred: bool
    skipped_items: int = 0


# =============================================================================
# Kitchen Schemas
# =============================================================================


class MarkReadyRequest(BaseModel):
    """Kitchen station marking an order ready (validated by the service)."""

    kitchen: str = "food"


class ReadinessStatus(BaseModel):
    """Per-kitchen readiness of an order."""

    kitchen_type: KitchenType
    food_ready: bool
    beverage_ready: bool
    all_ready: bool
    waiting_for: list[str] = Field(default_factory=list)
    badge: str


class MarkReadyResponse(BaseModel):
    """Result of mark_ready."""

    order_id: int
    table_number: str | None
    order_type: str
    kitchen_type: KitchenType
    status: OrderStatus
    partial_ready: bool
    readiness: ReadinessStatus
    message: str


class ConfirmPaymentResponse(BaseModel):
    """Result of a payment confirmation (idempotent)."""

    order_id: int
    status: OrderStatus
    changed: bool


class KitchenQueueItem(BaseModel):
    """One line in the kitchen queue."""

    product_name: str
    kitchen: str
    quantity: int
    notes: str | None = None
    addons: list[dict[str, Any]] = Field(default_factory=list)


class KitchenQueueOrder(BaseModel):
    """An order waiting in the kitchen."""

    order_id: int
    table_number: str | None
    order_type: str
    created_at: datetime
    readiness: ReadinessStatus
    special_requests: str | None = None
    items: list[KitchenQueueItem]


class KitchenSummary(BaseModel):
    """Counts over the processing queue."""

    total: int
    food: int
    beverage: int
    mixed: int
    waiting: int
    partially_ready: int
    food_ready: int
    beverage_ready: int


# =============================================================================
# Table Closure Schemas
# =============================================================================


class CloseTableRequest(BaseModel):
    """Manager closing a table."""

    payment_method: str = Field(default="cash", min_length=1, max_length=50)
    force_close: bool = False


class ConsolidatedItemOutput(BaseModel):
    """A merged invoice line."""

    source_order_id: int
    product_name: str
    quantity: int
    notes: str | None = None
    addons: list[dict[str, Any]] = Field(default_factory=list)
    base_price_cents: int | None = None
    subtotal_cents: int
    total_cents: int


class CloseTableResponse(BaseModel):
    """Consolidated invoice produced by a table closure."""

    consolidated_order_id: int
    table_number: str
    session_id: str | None = None
    payment_method: str
    subtotal_cents: int
    service_tax_cents: int
    vat_cents: int
    tax_cents: int
    total_cents: int
    child_order_ids: list[int]
    items: list[ConsolidatedItemOutput]
    closed_at: datetime
    # True when a previous attempt had already saved the invoice
    resumed: bool = False


class ConfirmationRequiredResponse(BaseModel):
    """Returned with 409 when orders still cooking need a forced close."""

    detail: str
    code: Literal["confirmation_required"] = "confirmation_required"
    table_number: str
    order_ids: list[int]


# =============================================================================
# Individual Completion Schemas
# =============================================================================


class CompleteOrderRequest(BaseModel):
    """Paying a pickup order on its own."""

    payment_method: str | None = Field(default=None, max_length=50)


class CompleteOrderResponse(BaseModel):
    """Result of an individual order completion."""

    order_id: int
    status: OrderStatus
    payment_method: str
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    receipt_url: str
    tax_summary: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Table Query Schemas
# =============================================================================


class TableOrderItemOutput(BaseModel):
    """An item as displayed to diners."""

    product_name: str
    quantity: int
    unit_price_cents: int
    base_price_cents: int
    price_source: PriceSource
    total_cents: int
    addons: list[dict[str, Any]] = Field(default_factory=list)
    notes: str | None = None


class TableOrderOutput(BaseModel):
    """An active order of a table."""

    order_id: int
    status: OrderStatus
    kitchen_type: KitchenType
    total_cents: int
    created_at: datetime
    items: list[TableOrderItemOutput]


class TableOrdersResponse(BaseModel):
    """Active orders of a table plus the running total."""

    table_number: str
    orders: list[TableOrderOutput]
    order_count: int
    total_cents: int


# =============================================================================
# Table Management Schemas
# =============================================================================


class TableOutput(BaseModel):
    """A table record."""

    table_number: str
    status: TableStatus
    capacity: int


class UpdateTableStatusRequest(BaseModel):
    """Manually changing a table's status."""

    status: TableStatus
