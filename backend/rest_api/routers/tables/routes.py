"""
Tables router.
Handles closing a table into one consolidated invoice, listing a table's
open orders and table records.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from rest_api.dependencies import (
    get_table_closure_service,
    get_table_query_service,
    get_table_service,
)
from rest_api.services.domain import (
    NeedsConfirmation,
    TableClosureService,
    TableQueryService,
    TableService,
)
from shared.config.logging import tables_logger as logger
from shared.utils.schemas import (
    CloseTableRequest,
    CloseTableResponse,
    ConfirmationRequiredResponse,
    ErrorResponse,
    TableOrdersResponse,
    TableOutput,
    UpdateTableStatusRequest,
)


router = APIRouter(prefix="/api/tables", tags=["tables"])


@router.get("", response_model=list[TableOutput])
def list_tables(
    table_status: Literal["available", "occupied", "maintenance"] | None = Query(
        None, alias="status"
    ),
    service: TableService = Depends(get_table_service),
) -> list[TableOutput]:
    return service.list_tables(table_status)


@router.patch(
    "/{table_number}/status",
    response_model=TableOutput,
    responses={404: {"model": ErrorResponse}},
)
def update_table_status(
    table_number: str,
    body: UpdateTableStatusRequest,
    service: TableService = Depends(get_table_service),
) -> TableOutput:
    return service.set_status(table_number, body.status)


@router.get(
    "/{table_number}/orders",
    response_model=TableOrdersResponse,
    responses={400: {"model": ErrorResponse}},
)
def get_table_orders(
    table_number: str,
    service: TableQueryService = Depends(get_table_query_service),
) -> TableOrdersResponse:
    """Open (processing and pending) orders of the table, newest first."""
    return service.get_table_orders(table_number)


@router.post(
    "/{table_number}/close",
    response_model=CloseTableResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {
            "model": ConfirmationRequiredResponse,
            "description": "Orders still cooking (confirmation_required) "
            "or a mixed order waiting on a kitchen (closure_blocked)",
        },
        500: {"model": ErrorResponse},
    },
)
def close_table(
    table_number: str,
    body: CloseTableRequest | None = None,
    service: TableClosureService = Depends(get_table_closure_service),
):
    """
    Close the table: merge every open order into one invoice, tax it once,
    free the table.

    If some orders are still being prepared the first call answers 409 with
    code `confirmation_required` and the affected order ids; call again with
    `force_close: true` to mark them ready and close.
    """
    body = body or CloseTableRequest()
    result = service.close_table(
        table_number,
        payment_method=body.payment_method,
        force_close=body.force_close,
    )

    if isinstance(result, NeedsConfirmation):
        payload = ConfirmationRequiredResponse(
            detail=result.message,
            table_number=result.table_number,
            order_ids=result.order_ids,
        )
        logger.info(
            "Close table answered with confirmation request",
            table_number=result.table_number,
            order_ids=result.order_ids,
        )
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=payload.model_dump())

    return result.response
