"""
Table Closure Service.

Closes a table: checks that every child order of the visit is ready, merges
them into one ConsolidatedOrder taxed exactly once, records the closure for
audit, deletes the children and frees the table.

The sequence is a small saga:

1. Preconditions (nothing is written when one fails).
2. ConsolidatedOrder + TableClosureRecord committed together.
3. Cleanup: children deleted one by one, table set available, dining
   sessions ended.

The ConsolidatedOrder carries an idempotency key derived from the table
number and the exact set of child ids. A retry after a crash in step 3 finds
the existing invoice and only resumes cleanup. A child already listed on an
earlier invoice of the table (its delete failed) is deleted again, never
billed a second time.
"""

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.models import (
    ConsolidatedOrder,
    ConsolidatedOrderItem,
    Order,
    TableClosureRecord,
    utcnow,
)
from rest_api.repositories import (
    ConsolidatedOrderRepository,
    OrderRepository,
    TableRepository,
)
from rest_api.services.events.notification_service import NotificationService
from shared.config.constants import (
    KitchenType,
    OrderNotes,
    OrderStatus,
    TableStatus,
    TaxBehavior,
)
from shared.config.logging import tables_logger as logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    ClosureBlockedError,
    ConsolidationError,
    InconsistentStateError,
    NotFoundError,
    PersistenceError,
)
from shared.utils.schemas import CloseTableResponse, ConsolidatedItemOutput
from .readiness import force_all_flags, is_complete, pending_kitchens, readiness_of
from .session_service import DiningSessionService
from .tax_service import TaxService


@dataclass(frozen=True)
class ClosureCompleted:
    """The table was closed (or a previous closure was finished)."""

    response: CloseTableResponse


@dataclass(frozen=True)
class NeedsConfirmation:
    """
    Some orders are still cooking. Nothing was changed; closing again with
    force_close marks them ready first.
    """

    table_number: str
    order_ids: list[int]
    message: str


ClosureResult = Union[ClosureCompleted, NeedsConfirmation]


def closure_idempotency_key(table_number: str, child_order_ids: Iterable[int]) -> str:
    """table:{table_number}:{sha256 of the sorted child ids}."""
    ids = ",".join(str(i) for i in sorted(set(child_order_ids)))
    digest = hashlib.sha256(ids.encode("utf-8")).hexdigest()
    return f"table:{table_number}:{digest}"


class TableClosureService:
    """Domain service for closing a table into one consolidated invoice."""

    def __init__(self, db: Session, tax_service: TaxService, notifier: NotificationService):
        self._db = db
        self._tax = tax_service
        self._notifier = notifier
        self._orders = OrderRepository(db)
        self._tables = TableRepository(db)
        self._consolidated = ConsolidatedOrderRepository(db)
        self._sessions = DiningSessionService(db)

    def close_table(
        self,
        table_number: str,
        payment_method: str = "cash",
        force_close: bool = False,
    ) -> ClosureResult:
        """
        Close `table_number`.

        Raises:
            NotFoundError: no active order on the table
            ClosureBlockedError: a mixed order is waiting on one kitchen
            InconsistentStateError: an order is not pending after the checks
            ConsolidationError: merged amounts do not add up
            PersistenceError: the invoice could not be saved
        """
        table_number = (table_number or "").strip()
        if not table_number:
            raise NotFoundError("Table")

        children = list(self._orders.find_active_for_table(table_number, for_update=True))
        if not children:
            raise NotFoundError(f"Active orders for table {table_number}", table_number=table_number)

        blocking = self._blocking_orders(children)
        if blocking:
            raise ClosureBlockedError(table_number, blocking)

        still_processing = [o for o in children if o.status == OrderStatus.PROCESSING]
        if still_processing:
            if not force_close:
                order_ids = [o.id for o in still_processing]
                logger.info(
                    "Table closure needs confirmation",
                    table_number=table_number,
                    order_ids=order_ids,
                )
                return NeedsConfirmation(
                    table_number=table_number,
                    order_ids=order_ids,
                    message=(
                        f"{len(order_ids)} order(s) at table {table_number} are still being "
                        f"prepared: {', '.join(f'#{i}' for i in order_ids)}. "
                        "Close the table anyway?"
                    ),
                )
            self._force_ready(table_number, still_processing)

        offenders = [
            {"order_id": o.id, "status": o.status}
            for o in children
            if o.status != OrderStatus.PENDING
        ]
        if offenders:
            raise InconsistentStateError(table_number, offenders)

        child_ids = [o.id for o in children]
        key = closure_idempotency_key(table_number, child_ids)
        existing = self._consolidated.find_by_idempotency_key(key)
        if existing is None:
            existing = self._consolidated.find_covering(table_number, child_ids)

        to_bill = children
        if existing is None:
            billed = self._consolidated.find_billed_children(table_number, child_ids)
            if billed:
                to_bill = [o for o in children if o.id not in billed]
                logger.warning(
                    "Child orders already billed by an earlier closure",
                    table_number=table_number,
                    billed_order_ids=sorted(billed),
                    consolidated_order_ids=sorted({c.id for c in billed.values()}),
                )
                if to_bill:
                    key = closure_idempotency_key(table_number, [o.id for o in to_bill])
                    existing = self._consolidated.find_by_idempotency_key(key)
                else:
                    existing = max(billed.values(), key=lambda c: c.id)

        resumed = existing is not None
        if resumed:
            consolidated = existing
            logger.warning(
                "Resuming interrupted table closure",
                table_number=table_number,
                consolidated_order_id=consolidated.id,
                child_order_ids=child_ids,
            )
        else:
            consolidated, resumed = self._persist(table_number, to_bill, payment_method, key)

        self._cleanup(table_number, children)
        self._notifier.table_closed(consolidated)

        return ClosureCompleted(response=self._to_response(consolidated, resumed))

    # -------------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------------

    @staticmethod
    def _blocking_orders(children: list[Order]) -> list[dict]:
        """Mixed orders still processing with a kitchen not done yet."""
        blocking = []
        for order in children:
            if order.kitchen_type != KitchenType.MIXED or order.status != OrderStatus.PROCESSING:
                continue
            readiness = readiness_of(order)
            if not is_complete(readiness):
                blocking.append(
                    {"order_id": order.id, "pending_kitchens": pending_kitchens(readiness)}
                )
        return blocking

    def _force_ready(self, table_number: str, orders: list[Order]) -> None:
        for order in orders:
            force_all_flags(order)
            order.status = OrderStatus.PENDING
            order.add_note(OrderNotes.FORCED_READY)
        self._db.flush()
        logger.info(
            "Orders forced ready for table closure",
            table_number=table_number,
            order_ids=[o.id for o in orders],
        )

    # -------------------------------------------------------------------------
    # Consolidation
    # -------------------------------------------------------------------------

    @staticmethod
    def _merge_items(children: list[Order]) -> tuple[list[ConsolidatedOrderItem], int]:
        """
        Copy every child line into invoice lines.

        Returns the lines and the amount they must add up to: the stored
        subtotals of the children. An order without lines (priced from the
        client total) becomes a single line.
        """
        merged = []
        expected = sum(order.subtotal_cents for order in children)
        for order in children:
            if not order.items:
                merged.append(
                    ConsolidatedOrderItem(
                        source_order_id=order.id,
                        product_name=f"Order #{order.id}",
                        quantity=1,
                        addons=[],
                        subtotal_cents=order.subtotal_cents,
                        total_cents=order.subtotal_cents,
                    )
                )
                continue
            for item in order.items:
                merged.append(
                    ConsolidatedOrderItem(
                        source_order_id=order.id,
                        product_id=item.product_id,
                        variant_id=item.variant_id,
                        product_name=item.product_name,
                        quantity=item.quantity,
                        notes=item.notes,
                        addons=list(item.addons or []),
                        base_price_cents=item.base_price_cents,
                        # Pre-tax line amount on both: tax lives on the invoice
                        subtotal_cents=item.subtotal_cents,
                        total_cents=item.subtotal_cents,
                    )
                )
        return merged, expected

    def _persist(
        self,
        table_number: str,
        children: list[Order],
        payment_method: str,
        key: str,
    ) -> tuple[ConsolidatedOrder, bool]:
        """Write the invoice and its audit record in one transaction."""
        child_ids = [o.id for o in children]
        items, expected = self._merge_items(children)
        subtotal = sum(item.subtotal_cents for item in items)
        if subtotal != expected:
            raise ConsolidationError(
                f"Consolidated subtotal {subtotal} does not match child orders total {expected}",
                table_number=table_number,
                child_order_ids=child_ids,
            )

        breakdown = self._tax.calculate_table_invoice_taxes(subtotal, child_ids)
        session_id = next((o.session_id for o in reversed(children) if o.session_id), None)

        consolidated = ConsolidatedOrder(
            table_number=table_number,
            child_order_ids=child_ids,
            status=OrderStatus.COMPLETED,
            subtotal_cents=subtotal,
            service_tax_cents=breakdown.service_tax_cents,
            vat_cents=breakdown.vat_cents,
            tax_cents=breakdown.total_tax_cents,
            total_cents=breakdown.grand_total_cents,
            payment_method=payment_method,
            session_id=session_id,
            idempotency_key=key,
            closed_at=utcnow(),
            items=items,
        )

        try:
            self._db.add(consolidated)
            self._db.flush()
            self._db.add(
                TableClosureRecord(
                    table_number=table_number,
                    consolidated_order_id=consolidated.id,
                    child_order_ids=child_ids,
                    closed_at=consolidated.closed_at,
                    payment_method=payment_method,
                    total_amount_cents=consolidated.total_cents,
                )
            )
            safe_commit(self._db)
        except IntegrityError as e:
            self._db.rollback()
            # Another request closed the same set of orders first
            existing = self._consolidated.find_by_idempotency_key(key)
            if existing is None:
                raise PersistenceError(
                    "table closure", table_number=table_number, error=str(e)
                ) from e
            return existing, True
        except SQLAlchemyError as e:
            self._db.rollback()
            raise PersistenceError("table closure", table_number=table_number, error=str(e)) from e

        self._tax.validate_tax_isolation(consolidated, TaxBehavior.CONSOLIDATED)
        logger.info(
            "Consolidated order created",
            table_number=table_number,
            consolidated_order_id=consolidated.id,
            child_order_ids=child_ids,
            subtotal_cents=consolidated.subtotal_cents,
            tax_cents=consolidated.tax_cents,
            total_cents=consolidated.total_cents,
            payment_method=payment_method,
        )
        return consolidated, False

    # -------------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------------

    def _cleanup(self, table_number: str, children: list[Order]) -> None:
        """Delete the children, free the table and end its sessions."""
        deleted = []
        failed = []
        for order in children:
            order_id = order.id
            if self._delete_child(order_id, order):
                deleted.append(order_id)
            else:
                failed.append(order_id)

        table = self._tables.find_by_number(table_number, for_update=True)
        if table is None:
            logger.warning("Table record not found, status not updated", table_number=table_number)
        else:
            table.status = TableStatus.AVAILABLE
        self._sessions.end_sessions(table_number)
        safe_commit(self._db)

        if failed:
            logger.error(
                "Table closed with child orders left behind",
                table_number=table_number,
                deleted_order_ids=deleted,
                failed_order_ids=failed,
            )
        else:
            logger.info("Table closed", table_number=table_number, deleted_order_ids=deleted)

    def _delete_child(self, order_id: int, order: Order) -> bool:
        """
        Delete one child order: ORM delete first, Core bulk delete as fallback.
        Failures are logged, never raised: the invoice is already saved.
        """
        try:
            self._db.delete(order)
            safe_commit(self._db)
            return True
        except SQLAlchemyError as e:
            logger.warning(
                "ORM delete of child order failed, trying bulk delete",
                order_id=order_id,
                error=str(e),
            )

        try:
            self._orders.bulk_delete(order_id)
            safe_commit(self._db)
            return True
        except SQLAlchemyError as e:
            logger.error("Could not delete child order", order_id=order_id, error=str(e))
            return False

    @staticmethod
    def _to_response(consolidated: ConsolidatedOrder, resumed: bool) -> CloseTableResponse:
        return CloseTableResponse(
            consolidated_order_id=consolidated.id,
            table_number=consolidated.table_number,
            session_id=consolidated.session_id,
            payment_method=consolidated.payment_method,
            subtotal_cents=consolidated.subtotal_cents,
            service_tax_cents=consolidated.service_tax_cents,
            vat_cents=consolidated.vat_cents,
            tax_cents=consolidated.tax_cents,
            total_cents=consolidated.total_cents,
            child_order_ids=list(consolidated.child_order_ids),
            items=[
                ConsolidatedItemOutput(
                    source_order_id=item.source_order_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    notes=item.notes,
                    addons=item.addons or [],
                    base_price_cents=item.base_price_cents,
                    subtotal_cents=item.subtotal_cents,
                    total_cents=item.total_cents,
                )
                for item in consolidated.items
            ],
            closed_at=consolidated.closed_at,
            resumed=resumed,
        )
