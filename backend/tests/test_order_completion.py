"""
Tests for OrderCompletionService (individual pickup orders).
"""

import pytest

from rest_api.models import Order
from rest_api.services.domain import OrderCompletionService
from rest_api.services.domain.order_completion_service import receipt_url
from shared.utils.exceptions import InvalidStateError, NotFoundError, ValidationError
from tests.conftest import make_order


@pytest.fixture
def service(db_session, tax_service, notifier):
    return OrderCompletionService(db_session, tax_service, notifier)


def make_pickup(db_session, **kwargs):
    return make_order(db_session, table_number=None, order_type="pickup", **kwargs)


class TestCompleteOrder:
    def test_completes_pickup_order_with_tax(self, service, db_session):
        order = make_pickup(db_session, status="pending", food_ready=True)

        result = service.complete(order.id, "card")

        assert result.status == "completed"
        assert result.payment_method == "card"
        assert result.subtotal_cents == 1000
        assert result.tax_cents == 140
        assert result.total_cents == 1140
        assert result.receipt_url == f"/api/orders/{order.id}/receipt"

        refreshed = db_session.get(Order, order.id)
        assert refreshed.completed_at is not None
        assert [n.note for n in refreshed.notes] == ["Order completed individually"]

    def test_receipt_url_points_at_the_order(self, service, db_session):
        order = make_pickup(db_session)

        result = service.complete(order.id)

        assert result.receipt_url == receipt_url(order.id)
        assert result.receipt_url.endswith(f"/{order.id}/receipt")

    def test_response_carries_tax_summary(self, service, db_session):
        order = make_pickup(db_session)

        summary = service.complete(order.id).tax_summary

        assert summary["subtotal_cents"] == 1000
        assert summary["tax_cents"] == 140
        assert summary["total_cents"] == 1140
        assert summary["tax_enabled"] is True
        assert summary["is_table_order"] is False
        assert summary["tax_deferred"] is False
        assert summary["rates"] == [{"name": "VAT", "rate": "0.14"}]

    def test_default_payment_method_is_cash(self, service, db_session):
        order = make_pickup(db_session)

        result = service.complete(order.id)

        assert result.payment_method == "cash"

    def test_tax_already_charged_is_not_added_again(self, service, db_session):
        order = make_pickup(db_session, tax_cents=140)

        result = service.complete(order.id)

        assert result.tax_cents == 140
        assert result.total_cents == 1140

    def test_table_order_must_be_closed_with_the_table(self, service, db_session):
        order = make_order(db_session, table_number="5", status="pending", food_ready=True)

        with pytest.raises(ValidationError) as exc_info:
            service.complete(order.id)

        assert "Close Table" in exc_info.value.detail
        assert db_session.get(Order, order.id).status == "pending"

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_final_orders_cannot_be_completed(self, service, db_session, status):
        order = make_pickup(db_session, status=status)

        with pytest.raises(InvalidStateError):
            service.complete(order.id)

    def test_unknown_order(self, service):
        with pytest.raises(NotFoundError):
            service.complete(424242)

    def test_publishes_order_completed(self, service, db_session, redis_client):
        order = make_pickup(db_session)

        service.complete(order.id)

        redis_client.publish.assert_called_once()
        assert redis_client.publish.call_args.args[0] == "staff:orders"
