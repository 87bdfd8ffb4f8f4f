"""
Event Schema.

Defines the unified Event dataclass for all published notifications.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from typing import Any

from .event_types import ALL_EVENT_TYPES


@dataclass
class Event:
    """
    Unified event schema for all system notifications.

    The 'entity' field carries event-specific data (order id, totals...).
    Validation runs in __post_init__ so a malformed event never reaches Redis.
    """

    type: str
    table_number: str | None = None
    order_id: int | None = None
    session_id: str | None = None
    entity: dict[str, Any] = field(default_factory=dict)
    ts: str | None = None
    v: int = 1  # Schema version

    def __post_init__(self) -> None:
        if self.type not in ALL_EVENT_TYPES:
            raise ValueError(f"Unknown event type: {self.type!r}")

        if self.table_number is not None and (
            not isinstance(self.table_number, str) or not self.table_number.strip()
        ):
            raise ValueError("Event table_number must be a non-empty string or None")

        if self.order_id is not None and (not isinstance(self.order_id, int) or self.order_id <= 0):
            raise ValueError("Event order_id must be a positive integer or None")

        if self.entity is not None and not isinstance(self.entity, dict):
            raise ValueError("Event entity must be a dict or None")

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        data = asdict(self)
        data["entity"] = data["entity"] or {}
        data["ts"] = data["ts"] or datetime.now(timezone.utc).isoformat()
        return json.dumps(data, ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, json_str: str) -> "Event":
        """Deserialize event from JSON string (validated in __post_init__)."""
        return cls(**json.loads(json_str))
