"""
Dining Session Service.

A dining session groups the child orders of one visit to a table. It is an
explicit row with a lease: reused while alive, replaced once expired, and
ended when the table is closed.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from rest_api.models import DiningSession, utcnow
from rest_api.repositories import DiningSessionRepository, OrderRepository
from shared.config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SessionResolution:
    session_id: str
    # No processing/pending order on the table within the session window
    is_new_session: bool
    created: bool


class DiningSessionService:
    """Resolves and ends dining sessions. Never commits."""

    def __init__(self, db: Session, window_hours: int = 2, lease_hours: int = 4):
        self._db = db
        self._sessions = DiningSessionRepository(db)
        self._orders = OrderRepository(db)
        self._window = timedelta(hours=window_hours)
        self._lease = timedelta(hours=lease_hours)

    def resolve(self, table_number: str, now: datetime | None = None) -> SessionResolution:
        """
        Session for a new order at `table_number`.

        Reuses the table's live session, otherwise starts one. The
        new-session flag only looks at recent activity on the table.
        """
        now = now or utcnow()
        is_new_session = not self._orders.has_active_since(table_number, now - self._window)

        live = self._sessions.find_live(table_number, now)
        if live is not None:
            return SessionResolution(session_id=live.id, is_new_session=is_new_session, created=False)

        session = self._sessions.save(
            DiningSession(
                id=self._new_session_id(table_number, now),
                table_number=table_number,
                started_at=now,
                expires_at=now + self._lease,
            )
        )
        logger.info(
            "Dining session started",
            table_number=table_number,
            session_id=session.id,
            expires_at=session.expires_at,
        )
        return SessionResolution(session_id=session.id, is_new_session=is_new_session, created=True)

    def _new_session_id(self, table_number: str, now: datetime) -> str:
        """session_{table}_{epoch}, suffixed if that second is already taken."""
        base = f"session_{table_number}_{int(now.timestamp())}"
        candidate = base
        suffix = 1
        while self._sessions.find_by_id(candidate) is not None:
            suffix += 1
            candidate = f"{base}_{suffix}"
        return candidate

    def end_sessions(self, table_number: str, now: datetime | None = None) -> list[str]:
        """End every open session of the table. Returns the ended ids."""
        now = now or utcnow()
        ended = []
        for session in self._sessions.find_open(table_number):
            session.ended_at = now
            ended.append(session.id)
        if ended:
            self._db.flush()
            logger.info("Dining sessions ended", table_number=table_number, session_ids=ended)
        return ended
