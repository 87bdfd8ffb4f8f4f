"""
Event System for staff and diner notifications via Redis pub/sub.

Modules:
- event_types.py: Event type constants
- event_schema.py: Event dataclass with validation
- channels.py: Channel naming functions
- redis_pool.py: Connection pool management
- publisher.py: publish_event with retry
"""

from .event_types import (
    ORDER_PLACED,
    ORDER_READY,
    ORDER_COMPLETED,
    TABLE_CLOSED,
    MAX_EVENT_SIZE,
)
from .event_schema import Event
from .channels import channel_kitchen, channel_staff, channel_table
from .redis_pool import get_redis_sync_client, close_redis_pool
from .publisher import publish_event

__all__ = [
    # Event types
    "ORDER_PLACED",
    "ORDER_READY",
    "ORDER_COMPLETED",
    "TABLE_CLOSED",
    "MAX_EVENT_SIZE",
    # Schema
    "Event",
    # Channels
    "channel_kitchen",
    "channel_staff",
    "channel_table",
    # Pool
    "get_redis_sync_client",
    "close_redis_pool",
    # Publishing
    "publish_event",
]
