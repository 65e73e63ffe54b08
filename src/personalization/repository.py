"""Profile repositories.

ProfileRepository is the typed storage interface the service depends on:
``get``, ``put``, ``delete`` and ``list`` over ProfileRecord. Two
implementations are provided:

- InMemoryProfileRepository: dict-backed, for tests and the CLI.
- PostgresProfileRepository: asyncpg-backed, JSONB columns for the quiz
  response and the computed profile (camelCase, as persisted by
  ``ComputedProfile.to_record()``).
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

from src.personalization.schemas import (
    ComputedProfile,
    ProfileRecord,
    RawPersonalizationResponse,
)
from src.storage.database import Database

logger = logging.getLogger(__name__)


class ProfileRepository(ABC):
    """Storage interface for personalization profiles."""

    @abstractmethod
    async def get(self, user_id: str) -> ProfileRecord | None:
        """Return the stored record for ``user_id``, or None."""

    @abstractmethod
    async def put(self, record: ProfileRecord) -> ProfileRecord:
        """Insert or replace the record for ``record.user_id``."""

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """Delete a record. Returns False if none existed."""

    @abstractmethod
    async def list(self, *, limit: int = 100, offset: int = 0) -> list[ProfileRecord]:
        """Page through records ordered by user_id."""


class InMemoryProfileRepository(ProfileRepository):
    """Dict-backed repository. Not shared across processes."""

    def __init__(self) -> None:
        self._records: dict[str, ProfileRecord] = {}

    async def get(self, user_id: str) -> ProfileRecord | None:
        return self._records.get(user_id)

    async def put(self, record: ProfileRecord) -> ProfileRecord:
        self._records[record.user_id] = record
        return record

    async def delete(self, user_id: str) -> bool:
        return self._records.pop(user_id, None) is not None

    async def list(self, *, limit: int = 100, offset: int = 0) -> list[ProfileRecord]:
        user_ids = sorted(self._records)[offset:offset + limit]
        return [self._records[uid] for uid in user_ids]

    def __len__(self) -> int:
        return len(self._records)


_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS personalization_profiles (
    user_id             TEXT PRIMARY KEY,
    response            JSONB NOT NULL,
    computed_profile    JSONB NOT NULL,
    computation_version TEXT NOT NULL,
    computed_at         TIMESTAMPTZ NOT NULL,
    updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_personalization_profiles_version
    ON personalization_profiles(computation_version);
"""

_UPSERT_SQL = """
INSERT INTO personalization_profiles (
    user_id, response, computed_profile, computation_version, computed_at, updated_at
) VALUES ($1, $2::jsonb, $3::jsonb, $4, $5, $6)
ON CONFLICT (user_id) DO UPDATE SET
    response = EXCLUDED.response,
    computed_profile = EXCLUDED.computed_profile,
    computation_version = EXCLUDED.computation_version,
    computed_at = EXCLUDED.computed_at,
    updated_at = EXCLUDED.updated_at
RETURNING *
"""


def _as_dict(value: Any) -> dict[str, Any]:
    """JSONB arrives as dict with the pool codec, as str without it."""
    if isinstance(value, str):
        return json.loads(value)
    return dict(value)


def _row_to_record(row: Any) -> ProfileRecord:
    """Convert an asyncpg Record to a ProfileRecord."""
    return ProfileRecord(
        user_id=row["user_id"],
        response=RawPersonalizationResponse.model_validate(_as_dict(row["response"])),
        profile=ComputedProfile.model_validate(_as_dict(row["computed_profile"])),
        updated_at=row["updated_at"],
    )


class PostgresProfileRepository(ProfileRepository):
    """asyncpg repository over the ``personalization_profiles`` table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the profiles table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("personalization_profiles table ensured")

    async def get(self, user_id: str) -> ProfileRecord | None:
        row = await self._db.fetchrow(
            "SELECT * FROM personalization_profiles WHERE user_id = $1",
            user_id,
        )
        return _row_to_record(row) if row else None

    async def put(self, record: ProfileRecord) -> ProfileRecord:
        """Upsert a record; the stored row is returned as a fresh ProfileRecord."""
        row = await self._db.fetchrow(
            _UPSERT_SQL,
            record.user_id,
            record.response.to_json_dict(),
            record.profile.to_record(),
            record.profile.computation_version,
            record.profile.computed_at,
            record.updated_at,
        )
        return _row_to_record(row)

    async def delete(self, user_id: str) -> bool:
        status = await self._db.execute(
            "DELETE FROM personalization_profiles WHERE user_id = $1",
            user_id,
        )
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return status.split()[-1] != "0"

    async def list(self, *, limit: int = 100, offset: int = 0) -> list[ProfileRecord]:
        rows = await self._db.fetch(
            """
            SELECT * FROM personalization_profiles
            ORDER BY user_id
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset,
        )
        return [_row_to_record(row) for row in rows]

    async def count_by_version(self) -> dict[str, int]:
        """Number of stored profiles per computation_version."""
        rows = await self._db.fetch(
            """
            SELECT computation_version, COUNT(*) AS total
            FROM personalization_profiles
            GROUP BY computation_version
            ORDER BY computation_version
            """
        )
        return {row["computation_version"]: row["total"] for row in rows}
