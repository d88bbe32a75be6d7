"""Read-only voice profile catalog."""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from core.constants import MAX_ROW_ID
from core.exceptions import ProfileNotFound, StorageUnavailable
from core.models import VoiceProfile, VoiceSeed
from core.persistence.tables import VoiceProfileRow

if TYPE_CHECKING:
    from core.persistence.database import Database

logger = logging.getLogger(__name__)


class VoiceCatalog:
    """Lists and looks up voice profiles seeded at deployment time."""

    def __init__(self, database: "Database"):
        """Initialize the catalog.

        Args:
            database: Database holding the voice_profiles table.
        """
        self._db = database

    def list_profiles(self) -> list[VoiceProfile]:
        """List all voice profiles ordered by ID.

        Returns:
            All profiles, or an empty list when the database is unreachable.
        """
        try:
            with self._db.session() as session:
                rows = session.scalars(select(VoiceProfileRow).order_by(VoiceProfileRow.id)).all()
                return [VoiceProfile.model_validate(row) for row in rows]
        except StorageUnavailable as e:
            logger.warning("Cannot list voice profiles, database not available: %s", e)
            return []

    def get_profile(self, profile_id: int) -> VoiceProfile:
        """Get a voice profile by ID.

        Args:
            profile_id: The profile identifier.

        Returns:
            The matching profile.

        Raises:
            ProfileNotFound: If no profile has this ID.
            StorageUnavailable: If the database is unreachable.
        """
        # Ids outside the INTEGER range cannot exist and cannot be bound
        if not 1 <= profile_id <= MAX_ROW_ID:
            raise ProfileNotFound(f"Voice profile not found: {profile_id}", profile_id=profile_id)

        with self._db.session() as session:
            row = session.get(VoiceProfileRow, profile_id)
            if row is None:
                raise ProfileNotFound(f"Voice profile not found: {profile_id}", profile_id=profile_id)
            return VoiceProfile.model_validate(row)

    def seed(self, seeds: Sequence[VoiceSeed]) -> int:
        """Insert the seed list if the catalog is empty.

        Args:
            seeds: Profiles to insert.

        Returns:
            Number of profiles inserted (0 when already seeded).
        """
        with self._db.session() as session:
            existing = session.scalar(select(func.count()).select_from(VoiceProfileRow))
            if existing:
                logger.info("Voice catalog already seeded (%d profiles)", existing)
                return 0
            session.add_all(
                VoiceProfileRow(
                    **seed.model_dump(exclude={"avatar_url"}),
                    avatar_url=seed.avatar_url or "",
                )
                for seed in seeds
            )

        logger.info("Seeded voice catalog with %d profiles", len(seeds))
        return len(seeds)
