"""Session manager enforcing the per-session generation quota."""

import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from core.exceptions import SessionNotFound
from core.models import SessionStatus, SessionToken
from core.persistence.tables import UserSessionRow, utcnow

if TYPE_CHECKING:
    from core.persistence.database import Database

logger = logging.getLogger(__name__)

# Bytes of randomness in a session token
TOKEN_BYTES = 32


def _aware(value: datetime) -> datetime:
    """Attach UTC to a naive timestamp read from the database."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class SessionManager:
    """Creates quota-tracked sessions and guards their generation counters.

    The counter of a session is only ever changed by ``increment_counter``,
    a single conditional UPDATE that refuses to move past the quota or to
    touch an expired session. Concurrent callers racing for the last slot
    therefore cannot both win.
    """

    def __init__(
        self,
        database: "Database",
        *,
        quota: int = 2,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the session manager.

        Args:
            database: Database holding the user_sessions table.
            quota: Maximum successful generations per session.
            ttl: Session lifetime.
            clock: Returns the current time as naive UTC.
        """
        if quota < 1:
            raise ValueError(f"quota must be positive, got {quota}")
        self._db = database
        self._quota = quota
        self._ttl = ttl
        self._clock = clock

    @property
    def quota(self) -> int:
        return self._quota

    def create_session(self, user_id: int) -> SessionToken:
        """Open a new session for a user.

        Args:
            user_id: The owning user.

        Returns:
            The new token and its expiry.

        Raises:
            StorageUnavailable: If the database is unreachable.
        """
        token = secrets.token_urlsafe(TOKEN_BYTES)
        now = self._clock()
        row = UserSessionRow(
            user_id=user_id,
            token=token,
            generation_count=0,
            created_at=now,
            expires_at=now + self._ttl,
        )
        with self._db.session() as session:
            session.add(row)

        logger.info("Created session %d for user %d", row.id, user_id)
        return SessionToken(token=token, expires_at=_aware(row.expires_at))

    def get_session(self, token: str) -> SessionStatus:
        """Report the quota state of a live session.

        Args:
            token: The session token.

        Returns:
            Counter, remaining generations and whether another is allowed.

        Raises:
            SessionNotFound: If the token is unknown or the session expired.
            StorageUnavailable: If the database is unreachable.
        """
        now = self._clock()
        with self._db.session() as session:
            row = session.scalar(select(UserSessionRow).where(UserSessionRow.token == token))

        # Valid only while now < expires_at
        if row is None or not now < row.expires_at:
            raise SessionNotFound("Session not found or expired", token=token)

        count = row.generation_count
        return SessionStatus(
            session_id=row.id,
            user_id=row.user_id,
            generation_count=count,
            remaining=max(0, self._quota - count),
            can_generate=count < self._quota,
            expires_at=_aware(row.expires_at),
        )

    def increment_counter(self, session_id: int, *, db_session: Session | None = None) -> bool:
        """Consume one generation slot if the session still has one.

        Args:
            session_id: The session to charge.
            db_session: Optional open transaction to run the update in. The
                caller then owns commit/rollback.

        Returns:
            True if the counter moved, False if the quota was already reached,
            the session expired, or it does not exist.

        Raises:
            StorageUnavailable: If the database is unreachable.
        """
        if db_session is not None:
            return self._conditional_increment(db_session, session_id)

        with self._db.session() as session:
            return self._conditional_increment(session, session_id)

    def _conditional_increment(self, session: Session, session_id: int) -> bool:
        stmt = (
            update(UserSessionRow)
            .where(
                UserSessionRow.id == session_id,
                UserSessionRow.generation_count < self._quota,
                UserSessionRow.expires_at > self._clock(),
            )
            .values(generation_count=UserSessionRow.generation_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        won = result.rowcount == 1
        if not won:
            logger.info("Quota increment refused for session %d", session_id)
        return won
