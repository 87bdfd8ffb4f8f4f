"""
Redis Channel Naming.
"""

from __future__ import annotations

from shared.config.constants import KitchenType


def _validate_table_number(table_number: str) -> None:
    if not isinstance(table_number, str) or not table_number.strip():
        raise ValueError(f"table_number must be a non-empty string, got {table_number!r}")


def channel_kitchen(kitchen: str) -> str:
    """Channel for a kitchen station (food, beverage)."""
    if kitchen not in KitchenType.STATIONS:
        raise ValueError(f"Unknown kitchen station: {kitchen!r}")
    return f"kitchen:{kitchen}"


def channel_staff() -> str:
    """Channel for floor staff and managers."""
    return "staff:orders"


def channel_table(table_number: str) -> str:
    """Channel for diner screens at a table."""
    _validate_table_number(table_number)
    return f"table:{table_number}"
