"""
Tests for event publishing and NotificationService.
"""

from unittest.mock import MagicMock

import pytest
import redis

from rest_api.services.events import NotificationService
from shared.config.settings import settings
from shared.infrastructure.events import (
    ORDER_READY,
    Event,
    channel_kitchen,
    channel_table,
    publish_event,
)
from tests.conftest import make_order


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(settings, "redis_publish_retry_delay", 0)


class TestEvent:
    def test_round_trip_through_json(self):
        event = Event(type=ORDER_READY, table_number="5", order_id=3, entity={"kitchen_type": "food"})

        restored = Event.from_json(event.to_json())

        assert restored.type == ORDER_READY
        assert restored.order_id == 3
        assert restored.ts is not None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"type": "SOMETHING_ELSE"},
            {"type": ORDER_READY, "table_number": "  "},
            {"type": ORDER_READY, "order_id": 0},
        ],
    )
    def test_invalid_events_rejected(self, kwargs):
        with pytest.raises(ValueError):
            Event(**kwargs)

    def test_channel_names(self):
        assert channel_kitchen("beverage") == "kitchen:beverage"
        assert channel_table("12") == "table:12"
        with pytest.raises(ValueError):
            channel_kitchen("mixed")


class TestPublishEvent:
    def test_retries_then_succeeds(self):
        client = MagicMock()
        client.publish.side_effect = [redis.ConnectionError("down"), 2]

        delivered = publish_event(client, "staff:orders", Event(type=ORDER_READY, order_id=1))

        assert delivered == 2
        assert client.publish.call_count == 2

    def test_raises_after_all_retries(self):
        client = MagicMock()
        client.publish.side_effect = redis.ConnectionError("down")

        with pytest.raises(redis.ConnectionError):
            publish_event(client, "staff:orders", Event(type=ORDER_READY, order_id=1))

        assert client.publish.call_count == settings.redis_publish_max_retries

    def test_oversized_event_rejected(self):
        client = MagicMock()
        event = Event(type=ORDER_READY, order_id=1, entity={"blob": "x" * 70_000})

        with pytest.raises(ValueError):
            publish_event(client, "staff:orders", event)
        client.publish.assert_not_called()


class TestNotificationService:
    def test_disabled_notifier_publishes_nothing(self, db_session, redis_client):
        notifier = NotificationService(lambda: redis_client, enabled=False)
        order = make_order(db_session)

        assert notifier.order_ready(order) is False
        redis_client.publish.assert_not_called()

    def test_pickup_ready_goes_to_staff_only(self, db_session, notifier, redis_client):
        order = make_order(db_session, table_number=None, order_type="pickup")

        assert notifier.order_ready(order) is True
        channels = [c.args[0] for c in redis_client.publish.call_args_list]
        assert channels == ["staff:orders"]

    def test_failed_channel_does_not_stop_the_others(self, db_session, notifier, redis_client):
        redis_client.publish.side_effect = [redis.ConnectionError("down")] * 3 + [1]
        order = make_order(db_session, kitchen_type="mixed")

        delivered = notifier.order_ready(order)

        assert delivered is False
        assert redis_client.publish.call_args_list[-1].args[0] == "table:5"
