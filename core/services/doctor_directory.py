"""Read-only directory of doctors the assistant may recommend"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import psycopg2

from core.database import Database, db
from core.errors import StoreError
from models.schemas import Doctor

logger = logging.getLogger(__name__)


class DoctorDirectory(ABC):
    @abstractmethod
    async def list_recommendable(self) -> List[Doctor]:
        """Ordered recommendable doctors; an empty list is a normal result"""


class PostgresDoctorDirectory(DoctorDirectory):
    """Verified doctors from the `doctor` table, oldest registration first"""

    def __init__(self, database: Optional[Database] = None):
        self.db = database or db

    def _list_sync(self) -> List[Doctor]:
        rows = self.db.execute_query("""
            SELECT first_name, last_name, specialty, location
            FROM doctor
            WHERE verified = TRUE
            ORDER BY created_at ASC
        """)
        doctors = []
        for row in rows:
            name = " ".join(part for part in (row.get("first_name"), row.get("last_name")) if part)
            if not name:
                continue
            doctors.append(Doctor(name=name, specialty=row.get("specialty"), location=row.get("location")))
        return doctors

    async def list_recommendable(self) -> List[Doctor]:
        try:
            return await asyncio.to_thread(self._list_sync)
        except (psycopg2.Error, RuntimeError) as e:
            raise StoreError(f"Failed to list recommendable doctors: {e}") from e


class StaticDoctorDirectory(DoctorDirectory):
    """Fixed doctor list, empty by default"""

    def __init__(self, doctors: Optional[Iterable[Doctor]] = None):
        self._doctors = list(doctors or [])

    async def list_recommendable(self) -> List[Doctor]:
        return list(self._doctors)
