"""
Event Type Constants.

Defines all event types published on Redis pub/sub.
"""

# =============================================================================
# Order lifecycle events
# Flow: ORDER_PLACED → ORDER_READY → (TABLE_CLOSED | ORDER_COMPLETED)
# =============================================================================

ORDER_PLACED = "ORDER_PLACED"        # Diner submitted a table or pickup order
ORDER_READY = "ORDER_READY"          # Every kitchen involved finished the order
ORDER_COMPLETED = "ORDER_COMPLETED"  # Pickup order paid and closed individually

# =============================================================================
# Table events
# =============================================================================

TABLE_CLOSED = "TABLE_CLOSED"  # Child orders consolidated, table freed

ALL_EVENT_TYPES = frozenset({ORDER_PLACED, ORDER_READY, ORDER_COMPLETED, TABLE_CLOSED})

# Maximum serialized event size in bytes
MAX_EVENT_SIZE = 64 * 1024
