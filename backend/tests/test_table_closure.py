"""
Tests for TableClosureService: preconditions, consolidation, cleanup and
resuming an interrupted closure.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from rest_api.models import (
    ConsolidatedOrder,
    DiningSession,
    ImmutableRecordError,
    Order,
    TableClosureRecord,
    utcnow,
)
from rest_api.repositories import OrderRepository
from rest_api.services.domain import (
    ClosureCompleted,
    NeedsConfirmation,
    TableClosureService,
    TableQueryService,
    TaxService,
    closure_idempotency_key,
)
from shared.config.constants import OrderNotes
from shared.config.settings import TaxRate
from shared.utils.exceptions import (
    ClosureBlockedError,
    ConsolidationError,
    NotFoundError,
    PersistenceError,
)
from tests.conftest import make_order


MIXED_ITEMS = [("Burger", "food", 1, 1000), ("Cola", "beverage", 1, 300)]


@pytest.fixture
def service(db_session, tax_service, notifier):
    return TableClosureService(db_session, tax_service, notifier)


def remaining_orders(db_session, table_number="5"):
    return db_session.scalars(select(Order).where(Order.table_number == table_number)).all()


class TestClosurePreconditions:
    def test_empty_table_number(self, service):
        with pytest.raises(NotFoundError):
            service.close_table("")

    def test_table_without_active_orders(self, service, db_session, seed_tables):
        make_order(db_session, status="completed")

        with pytest.raises(NotFoundError) as exc_info:
            service.close_table("5")
        assert exc_info.value.status_code == 404

    def test_mixed_order_missing_beverage_blocks_closure(self, service, db_session, seed_tables):
        """Scenario B: a mixed order waiting for the beverage kitchen."""
        ready = make_order(db_session, status="pending", food_ready=True)
        order_c = make_order(
            db_session, kitchen_type="mixed", items=MIXED_ITEMS, food_ready=True
        )

        with pytest.raises(ClosureBlockedError) as exc_info:
            service.close_table("5")

        error = exc_info.value
        assert error.status_code == 409
        assert error.code == "closure_blocked"
        assert f"Order #{order_c.id}" in error.detail
        assert "beverage kitchen" in error.detail.lower()
        assert error.blocking_orders == [
            {"order_id": order_c.id, "pending_kitchens": ["beverage"]}
        ]
        # Nothing mutated
        assert db_session.scalar(select(ConsolidatedOrder)) is None
        assert db_session.get(Order, ready.id).status == "pending"
        assert seed_tables["5"].status == "available"

    def test_blocked_even_when_forced(self, service, db_session, seed_tables):
        make_order(db_session, kitchen_type="mixed", items=MIXED_ITEMS, beverage_ready=True)

        with pytest.raises(ClosureBlockedError):
            service.close_table("5", force_close=True)

    def test_processing_orders_need_confirmation(self, service, db_session, seed_tables):
        pending = make_order(db_session, status="pending", food_ready=True)
        cooking = make_order(db_session, status="processing")

        result = service.close_table("5")

        assert isinstance(result, NeedsConfirmation)
        assert result.order_ids == [cooking.id]
        assert result.table_number == "5"
        assert f"#{cooking.id}" in result.message
        assert db_session.scalar(select(ConsolidatedOrder)) is None
        assert {o.id for o in remaining_orders(db_session)} == {pending.id, cooking.id}
        assert db_session.get(Order, cooking.id).status == "processing"

    def test_mixed_order_with_both_flags_but_processing_needs_confirmation(
        self, service, db_session, seed_tables
    ):
        order = make_order(
            db_session,
            kitchen_type="mixed",
            items=MIXED_ITEMS,
            food_ready=True,
            beverage_ready=True,
        )

        result = service.close_table("5")

        assert isinstance(result, NeedsConfirmation)
        assert result.order_ids == [order.id]


class TestConsolidation:
    def test_scenario_a_two_pending_orders(self, service, db_session, seed_tables):
        """Scenario A: two ready orders merged into one invoice."""
        seed_tables["5"].status = "occupied"
        db_session.commit()
        order_a = make_order(
            db_session, status="pending", food_ready=True, items=[("Burger", "food", 1, 1500)]
        )
        order_b = make_order(
            db_session,
            status="pending",
            kitchen_type="beverage",
            beverage_ready=True,
            items=[("Cola", "beverage", 2, 400)],
        )

        result = service.close_table("5", payment_method="card")

        assert isinstance(result, ClosureCompleted)
        response = result.response
        assert response.subtotal_cents == 2300
        assert response.vat_cents == 322
        assert response.tax_cents == 322
        assert response.total_cents == 2622
        assert response.child_order_ids == [order_a.id, order_b.id]
        assert response.payment_method == "card"
        assert response.resumed is False
        assert [i.source_order_id for i in response.items] == [order_a.id, order_b.id]
        assert all(i.subtotal_cents == i.total_cents for i in response.items)

        consolidated = db_session.get(ConsolidatedOrder, response.consolidated_order_id)
        assert consolidated.status == "completed"
        assert consolidated.session_id == "session_5_1700000000"

        assert remaining_orders(db_session) == []
        assert seed_tables["5"].status == "available"

    def test_audit_record_matches_consolidated_order(self, service, db_session, seed_tables):
        first = make_order(db_session, status="pending", food_ready=True)
        second = make_order(db_session, status="pending", food_ready=True)

        response = service.close_table("5").response

        record = db_session.scalar(select(TableClosureRecord))
        assert record.table_number == "5"
        assert record.consolidated_order_id == response.consolidated_order_id
        assert record.child_order_ids == [first.id, second.id]
        assert record.payment_method == "cash"
        assert record.total_amount_cents == response.total_cents

    def test_tax_computed_once_on_merged_subtotal(self, db_session, notifier, seed_tables):
        # Rounding per order would give 2 * round(333 * 0.14) = 2 * 47 = 94
        tax = TaxService([TaxRate(name="VAT", rate=Decimal("0.14"))])
        service = TableClosureService(db_session, tax, notifier)
        make_order(db_session, status="pending", food_ready=True, items=[("Tea", "food", 1, 333)])
        make_order(db_session, status="pending", food_ready=True, items=[("Tea", "food", 1, 333)])

        response = service.close_table("5").response

        assert response.subtotal_cents == 666
        assert response.tax_cents == 93

    def test_service_tax_and_vat_split(self, db_session, notifier, seed_tables):
        tax = TaxService(
            [
                TaxRate(name="Service Charge", rate=Decimal("0.12")),
                TaxRate(name="VAT", rate=Decimal("0.14")),
            ]
        )
        service = TableClosureService(db_session, tax, notifier)
        make_order(db_session, status="pending", food_ready=True, items=[("Steak", "food", 1, 10000)])

        response = service.close_table("5").response

        assert response.service_tax_cents == 1200
        assert response.vat_cents == 1400
        assert response.total_cents == 12600

    def test_tax_disabled_total_equals_subtotal(self, db_session, notifier, seed_tables):
        service = TableClosureService(db_session, TaxService([], enabled=False), notifier)
        make_order(db_session, status="pending", food_ready=True)

        response = service.close_table("5").response

        assert response.tax_cents == 0
        assert response.total_cents == response.subtotal_cents == 1000

    def test_items_keep_notes_and_addons(self, service, db_session, seed_tables):
        addons = [{"id": 4, "name": "Bacon", "price_cents": 200, "quantity": 1, "value": None}]
        order = make_order(
            db_session, status="pending", food_ready=True, items=[("Burger", "food", 2, 1000, addons)]
        )
        order.items[0].notes = "No onions"
        db_session.commit()

        response = service.close_table("5").response

        item = response.items[0]
        assert item.notes == "No onions"
        assert item.addons == addons
        assert item.subtotal_cents == 2400
        assert response.subtotal_cents == 2400

    def test_force_close_marks_processing_orders_ready(
        self, service, db_session, seed_tables
    ):
        cooking = make_order(db_session, status="processing")
        ready = make_order(db_session, status="pending", food_ready=True)

        result = service.close_table("5", force_close=True)

        assert isinstance(result, ClosureCompleted)
        assert result.response.child_order_ids == [cooking.id, ready.id]
        assert remaining_orders(db_session) == []

    def test_forced_orders_get_both_flags_and_a_note(self, service, db_session, seed_tables):
        cooking = make_order(db_session, status="processing", kitchen_type="beverage")
        ready = make_order(db_session, status="pending", food_ready=True)

        # Stop before the children are deleted
        with patch.object(TableClosureService, "_cleanup", side_effect=RuntimeError("crash")):
            with pytest.raises(RuntimeError):
                service.close_table("5", force_close=True)

        forced = db_session.get(Order, cooking.id)
        assert forced.status == "pending"
        assert forced.food_ready is True
        assert forced.beverage_ready is True
        assert [n.note for n in forced.notes] == [OrderNotes.FORCED_READY]

        untouched = db_session.get(Order, ready.id)
        assert untouched.beverage_ready is False
        assert untouched.notes == []

    def test_subtotal_excludes_tax_already_on_children(self, service, db_session, seed_tables):
        order = make_order(db_session, status="pending", food_ready=True, tax_cents=140)
        assert order.total_cents == 1140

        response = service.close_table("5").response

        assert response.subtotal_cents == 1000
        assert response.tax_cents == 140
        assert response.total_cents == 1140
        assert [i.subtotal_cents for i in response.items] == [1000]

    def test_only_this_tables_orders_are_consolidated(self, service, db_session, seed_tables):
        mine = make_order(db_session, status="pending", food_ready=True)
        other = make_order(db_session, table_number="7", status="pending", food_ready=True)

        response = service.close_table("5").response

        assert response.child_order_ids == [mine.id]
        assert db_session.get(Order, other.id) is not None

    def test_dining_session_ended(self, service, db_session, seed_tables):
        db_session.add(
            DiningSession(
                id="session_5_1700000000",
                table_number="5",
                expires_at=utcnow() + timedelta(hours=4),
            )
        )
        db_session.commit()
        make_order(db_session, status="pending", food_ready=True)

        service.close_table("5")

        session = db_session.get(DiningSession, "session_5_1700000000")
        assert session.ended_at is not None

    def test_table_closed_notification(self, service, db_session, redis_client, seed_tables):
        make_order(db_session, status="pending", food_ready=True)

        service.close_table("5")

        channels = [c.args[0] for c in redis_client.publish.call_args_list]
        assert channels == ["staff:orders", "table:5"]

    def test_table_query_empty_after_closure(self, service, db_session, seed_tables):
        make_order(db_session, status="pending", food_ready=True)

        service.close_table("5")

        assert TableQueryService(db_session).get_table_orders("5").orders == []

    def test_second_close_after_success_is_not_found(self, service, db_session, seed_tables):
        make_order(db_session, status="pending", food_ready=True)
        service.close_table("5")

        with pytest.raises(NotFoundError):
            service.close_table("5")

    def test_consolidated_order_is_immutable(self, service, db_session, seed_tables):
        make_order(db_session, status="pending", food_ready=True)
        response = service.close_table("5").response

        consolidated = db_session.get(ConsolidatedOrder, response.consolidated_order_id)
        consolidated.total_cents = 1

        with pytest.raises(ImmutableRecordError):
            db_session.flush()
        db_session.rollback()


class TestClosureFailures:
    def test_persistence_failure_leaves_children_untouched(
        self, service, db_session, seed_tables
    ):
        first = make_order(db_session, status="pending", food_ready=True)
        second = make_order(db_session, status="pending", food_ready=True)

        with patch(
            "rest_api.services.domain.table_closure_service.safe_commit",
            side_effect=OperationalError("INSERT", {}, Exception("disk full")),
        ):
            with pytest.raises(PersistenceError) as exc_info:
                service.close_table("5")

        assert exc_info.value.code == "persistence_error"
        assert exc_info.value.status_code == 500
        assert {o.id for o in remaining_orders(db_session)} == {first.id, second.id}
        assert db_session.scalar(select(ConsolidatedOrder)) is None
        assert db_session.scalar(select(TableClosureRecord)) is None

    def test_items_not_matching_order_subtotal_is_rejected(
        self, service, db_session, seed_tables
    ):
        good = make_order(db_session, status="pending", food_ready=True)
        broken = make_order(db_session, status="pending", food_ready=True)
        broken.subtotal_cents = 99999
        broken.total_cents = 99999
        db_session.commit()

        with pytest.raises(ConsolidationError) as exc_info:
            service.close_table("5")

        assert exc_info.value.code == "consolidation_error"
        assert exc_info.value.detail == (
            "Consolidated subtotal 2000 does not match child orders total 100999"
        )
        assert {o.id for o in remaining_orders(db_session)} == {good.id, broken.id}
        assert db_session.scalar(select(ConsolidatedOrder)) is None
        assert db_session.scalar(select(TableClosureRecord)) is None

    def test_orm_delete_failure_falls_back_to_bulk_delete(
        self, service, db_session, seed_tables
    ):
        make_order(db_session, status="pending", food_ready=True)
        original_delete = db_session.delete

        def failing_delete(instance):
            if isinstance(instance, Order):
                raise OperationalError("DELETE", {}, Exception("locked"))
            return original_delete(instance)

        with patch.object(db_session, "delete", side_effect=failing_delete):
            result = service.close_table("5")

        assert isinstance(result, ClosureCompleted)
        assert remaining_orders(db_session) == []

    def test_child_that_cannot_be_deleted_is_logged_not_raised(
        self, service, db_session, seed_tables
    ):
        order = make_order(db_session, status="pending", food_ready=True)
        error = OperationalError("DELETE", {}, Exception("locked"))

        with patch.object(db_session, "delete", side_effect=error), patch.object(
            OrderRepository, "bulk_delete", side_effect=error
        ):
            result = service.close_table("5")

        assert isinstance(result, ClosureCompleted)
        assert db_session.get(Order, order.id) is not None
        assert db_session.scalar(select(TableClosureRecord)) is not None
        assert seed_tables["5"].status == "available"


class TestClosureIdempotency:
    def test_key_depends_on_table_and_exact_child_set(self):
        assert closure_idempotency_key("5", [2, 1]) == closure_idempotency_key("5", [1, 2])
        assert closure_idempotency_key("5", [1, 2]) != closure_idempotency_key("5", [1, 2, 3])
        assert closure_idempotency_key("5", [1]) != closure_idempotency_key("7", [1])

    def test_retry_after_interrupted_cleanup_resumes(self, service, db_session, seed_tables):
        first = make_order(db_session, status="pending", food_ready=True)
        second = make_order(db_session, status="pending", food_ready=True)

        with patch.object(TableClosureService, "_cleanup", side_effect=RuntimeError("crash")):
            with pytest.raises(RuntimeError):
                service.close_table("5")

        # Invoice saved, children still there
        assert db_session.scalar(select(ConsolidatedOrder)) is not None
        assert len(remaining_orders(db_session)) == 2

        result = service.close_table("5")

        assert result.response.resumed is True
        assert result.response.child_order_ids == [first.id, second.id]
        assert len(db_session.scalars(select(ConsolidatedOrder)).all()) == 1
        assert len(db_session.scalars(select(TableClosureRecord)).all()) == 1
        assert remaining_orders(db_session) == []
        assert seed_tables["5"].status == "available"

    def test_retry_after_partial_cleanup_does_not_bill_again(
        self, service, db_session, seed_tables
    ):
        first = make_order(db_session, status="pending", food_ready=True)
        second = make_order(db_session, status="pending", food_ready=True)

        with patch.object(TableClosureService, "_cleanup", side_effect=RuntimeError("crash")):
            with pytest.raises(RuntimeError):
                service.close_table("5")
        # One child deleted before the crash
        OrderRepository(db_session).bulk_delete(first.id)
        db_session.commit()

        result = service.close_table("5")

        assert result.response.resumed is True
        assert result.response.child_order_ids == [first.id, second.id]
        assert len(db_session.scalars(select(ConsolidatedOrder)).all()) == 1
        assert remaining_orders(db_session) == []

    def test_child_left_by_failed_delete_is_not_billed_again(
        self, service, db_session, seed_tables
    ):
        stuck = make_order(db_session, status="pending", food_ready=True)
        first_visit = make_order(db_session, status="pending", food_ready=True)
        original_delete = db_session.delete
        error = OperationalError("DELETE", {}, Exception("locked"))

        def failing_delete(instance):
            if isinstance(instance, Order) and instance.id == stuck.id:
                raise error
            return original_delete(instance)

        with patch.object(db_session, "delete", side_effect=failing_delete), patch.object(
            OrderRepository, "bulk_delete", side_effect=error
        ):
            first = service.close_table("5").response

        assert first.child_order_ids == [stuck.id, first_visit.id]
        assert [o.id for o in remaining_orders(db_session)] == [stuck.id]

        next_visit = make_order(
            db_session, status="pending", food_ready=True, items=[("Pizza", "food", 1, 1800)]
        )

        second = service.close_table("5").response

        assert second.resumed is False
        assert second.child_order_ids == [next_visit.id]
        assert second.subtotal_cents == 1800
        billed = [
            child_id
            for consolidated in db_session.scalars(select(ConsolidatedOrder)).all()
            for child_id in consolidated.child_order_ids
        ]
        assert sorted(billed) == sorted([stuck.id, first_visit.id, next_visit.id])
        assert remaining_orders(db_session) == []

    def test_children_billed_on_different_invoices_resume_latest(
        self, service, db_session, seed_tables
    ):
        error = OperationalError("DELETE", {}, Exception("locked"))
        stuck_first = make_order(db_session, status="pending", food_ready=True)
        with patch.object(db_session, "delete", side_effect=error), patch.object(
            OrderRepository, "bulk_delete", side_effect=error
        ):
            service.close_table("5")
            stuck_second = make_order(db_session, status="pending", food_ready=True)
            second = service.close_table("5").response

        assert second.child_order_ids == [stuck_second.id]
        assert {o.id for o in remaining_orders(db_session)} == {stuck_first.id, stuck_second.id}

        result = service.close_table("5")

        assert result.response.resumed is True
        assert result.response.consolidated_order_id == second.consolidated_order_id
        assert len(db_session.scalars(select(ConsolidatedOrder)).all()) == 2
        assert remaining_orders(db_session) == []
