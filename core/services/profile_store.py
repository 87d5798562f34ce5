"""
Durable child-profile storage.

The engine works on one logically active profile per family: the most
recently created row. Writes update that row with per-column COALESCE, or
insert a new row when the family has none.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import psycopg2

from core.database import Database, db
from core.errors import StoreError
from models.schemas import ChildProfile, Gender

logger = logging.getLogger(__name__)


class ProfileStore(ABC):
    """Interface of the durable profile store"""

    @abstractmethod
    async def get_profile(self, family_id: str) -> Optional[ChildProfile]:
        """Active profile for the family, or None. Raises StoreError."""

    @abstractmethod
    async def upsert_profile(self, family_id: str, profile: ChildProfile) -> None:
        """Persist the profile as the family's active one. Raises StoreError."""


def _parse_gender(value) -> Optional[Gender]:
    """Stored gender, case-insensitive; anything unrecognized counts as unknown"""
    if not value:
        return None
    try:
        return Gender(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Ignoring unrecognized stored gender {value!r}")
        return None


def _row_to_profile(row: Dict) -> ChildProfile:
    return ChildProfile(
        name=row.get("child_name"),
        date_of_birth=row.get("date_of_birth"),
        gender=_parse_gender(row.get("gender")),
        free_text_notes=row.get("medical_record"),
    )


class PostgresProfileStore(ProfileStore):
    """Profile store backed by the `child` table"""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or db

    def _active_row(self, family_id: str) -> Optional[Dict]:
        rows = self.db.execute_query("""
            SELECT id, child_name, date_of_birth, gender, medical_record
            FROM child
            WHERE family_id = %s
            ORDER BY created_at DESC
            LIMIT 1
        """, (family_id,))
        return rows[0] if rows else None

    def _get_profile_sync(self, family_id: str) -> Optional[ChildProfile]:
        row = self._active_row(family_id)
        return _row_to_profile(row) if row else None

    def _upsert_profile_sync(self, family_id: str, profile: ChildProfile) -> None:
        gender = profile.gender.value if profile.gender else None
        row = self._active_row(family_id)
        if row:
            self.db.execute_update("""
                UPDATE child
                SET child_name = COALESCE(%s, child_name),
                    date_of_birth = COALESCE(%s, date_of_birth),
                    gender = COALESCE(%s, gender),
                    medical_record = COALESCE(%s, medical_record),
                    updated_at = NOW()
                WHERE id = %s
            """, (profile.name, profile.date_of_birth, gender, profile.free_text_notes, row["id"]))
            logger.info(f"Updated child info for family {family_id}")
        else:
            self.db.execute_update("""
                INSERT INTO child (family_id, child_name, date_of_birth, gender, medical_record, extracted_from_chat)
                VALUES (%s, %s, %s, %s, %s, TRUE)
            """, (family_id, profile.name, profile.date_of_birth, gender, profile.free_text_notes))
            logger.info(f"Saved child info for family {family_id}")

    async def get_profile(self, family_id: str) -> Optional[ChildProfile]:
        try:
            return await asyncio.to_thread(self._get_profile_sync, family_id)
        except (psycopg2.Error, RuntimeError, ValueError) as e:
            raise StoreError(f"Failed to load child profile for family {family_id}: {e}") from e

    async def upsert_profile(self, family_id: str, profile: ChildProfile) -> None:
        try:
            await asyncio.to_thread(self._upsert_profile_sync, family_id, profile)
        except (psycopg2.Error, RuntimeError) as e:
            raise StoreError(f"Failed to save child profile for family {family_id}: {e}") from e


@dataclass
class _StoredProfile:
    profile: ChildProfile
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryProfileStore(ProfileStore):
    """Process-local profile store used when no database is configured"""

    def __init__(self):
        self._rows: Dict[str, List[_StoredProfile]] = {}
        self.write_count = 0

    def _active(self, family_id: str) -> Optional[_StoredProfile]:
        rows = self._rows.get(family_id)
        if not rows:
            return None
        return max(rows, key=lambda r: r.created_at)

    async def get_profile(self, family_id: str) -> Optional[ChildProfile]:
        active = self._active(family_id)
        return active.profile.model_copy() if active else None

    async def upsert_profile(self, family_id: str, profile: ChildProfile) -> None:
        self.write_count += 1
        active = self._active(family_id)
        if active is None:
            self._rows.setdefault(family_id, []).append(_StoredProfile(profile=profile.model_copy()))
            logger.info(f"Saved child info for family {family_id}")
            return
        merged = {
            name: value if value is not None else getattr(active.profile, name)
            for name, value in profile.field_values().items()
        }
        active.profile = ChildProfile(**merged)
        active.updated_at = datetime.now(timezone.utc)
        logger.info(f"Updated child info for family {family_id}")

    def add_historical_row(self, family_id: str, profile: ChildProfile, created_at: datetime) -> None:
        """Seed an older or newer row, as an application with several child rows would have"""
        self._rows.setdefault(family_id, []).append(
            _StoredProfile(profile=profile.model_copy(), created_at=created_at, updated_at=created_at)
        )
