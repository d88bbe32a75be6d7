"""Append-only generation history log."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from core.models import GenerationRecord, GenerationStatus
from core.persistence.tables import GenerationHistoryRow, utcnow

if TYPE_CHECKING:
    from core.persistence.database import Database

logger = logging.getLogger(__name__)

# Upper bound on rows returned by listing queries
MAX_LIST_LIMIT = 500


class GenerationHistoryLog:
    """Records every generation attempt from request time to its outcome.

    Records move from ``pending`` to exactly one of ``completed`` or
    ``failed`` and are never deleted.
    """

    def __init__(self, database: "Database"):
        self._db = database

    def open_record(
        self,
        *,
        user_id: int,
        session_id: int,
        voice_profile_id: int,
        text: str,
    ) -> int:
        """Write a pending record and return its ID."""
        row = GenerationHistoryRow(
            user_id=user_id,
            session_id=session_id,
            voice_profile_id=voice_profile_id,
            text=text,
            status=GenerationStatus.PENDING,
            created_at=utcnow(),
        )
        with self._db.session() as session:
            session.add(row)
        return row.id

    def complete(
        self,
        record_id: int,
        *,
        audio_url: str,
        duration: int | None = None,
        db_session: Session | None = None,
    ) -> bool:
        """Mark a pending record completed.

        Args:
            record_id: The record to finalize.
            audio_url: Where the generated audio lives.
            duration: Audio length in seconds, if known.
            db_session: Optional open transaction shared with the caller.

        Returns:
            True if a pending record was updated.
        """
        values = {
            "status": GenerationStatus.COMPLETED,
            "audio_url": audio_url,
            "duration": duration,
            "completed_at": utcnow(),
        }
        if db_session is not None:
            return self._finalize(db_session, record_id, values)
        with self._db.session() as session:
            return self._finalize(session, record_id, values)

    def fail(self, record_id: int, error_message: str) -> bool:
        """Mark a pending record failed."""
        values = {
            "status": GenerationStatus.FAILED,
            "error_message": error_message[:2000],
            "completed_at": utcnow(),
        }
        with self._db.session() as session:
            return self._finalize(session, record_id, values)

    def get(self, record_id: int) -> GenerationRecord | None:
        """Get a record by ID."""
        with self._db.session() as session:
            row = session.get(GenerationHistoryRow, record_id)
            return GenerationRecord.model_validate(row) if row else None

    def list_for_session(self, session_id: int) -> list[GenerationRecord]:
        """List a session's records, oldest first."""
        stmt = (
            select(GenerationHistoryRow)
            .where(GenerationHistoryRow.session_id == session_id)
            .order_by(GenerationHistoryRow.id)
        )
        with self._db.session() as session:
            return [GenerationRecord.model_validate(row) for row in session.scalars(stmt)]

    def list_for_user(self, user_id: int, *, limit: int = 50) -> list[GenerationRecord]:
        """List a user's most recent records, newest first."""
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        stmt = (
            select(GenerationHistoryRow)
            .where(GenerationHistoryRow.user_id == user_id)
            .order_by(GenerationHistoryRow.id.desc())
            .limit(limit)
        )
        with self._db.session() as session:
            return [GenerationRecord.model_validate(row) for row in session.scalars(stmt)]

    def _finalize(self, session: Session, record_id: int, values: dict) -> bool:
        stmt = (
            update(GenerationHistoryRow)
            .where(
                GenerationHistoryRow.id == record_id,
                GenerationHistoryRow.status == GenerationStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        updated = session.execute(stmt).rowcount == 1
        if not updated:
            logger.warning("Generation record %d was not pending", record_id)
        return updated
