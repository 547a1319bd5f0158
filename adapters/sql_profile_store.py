"""SQL implementation of ProfileStore."""
from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from adapters.sql_schema import ai_profiles
from domain.models import AIProfile, ensure_utc, utcnow
from ports.profile_store import ProfileStore
from ports.task_store import StoreUnavailableError

logger = logging.getLogger(__name__)


def _row_to_profile(row: Mapping[str, Any]) -> AIProfile:
    return AIProfile(
        id=row["id"],
        name=row["name"],
        prompt=row["prompt"],
        tone=row["tone"],
        keywords=list(row["keywords"] or []),
        created_at=ensure_utc(row["created_at"]),
        updated_at=ensure_utc(row["updated_at"]),
    )


class SqlProfileStore(ProfileStore):
    """ProfileStore backed by a SQL database through SQLAlchemy Core."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def get(self, profile_id: int) -> Optional[AIProfile]:
        return self._first(ai_profiles.c.id == profile_id)

    def get_by_name(self, name: str) -> Optional[AIProfile]:
        return self._first(ai_profiles.c.name == name)

    def list(self) -> List[AIProfile]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(ai_profiles).order_by(ai_profiles.c.id)).mappings().all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Profile store unavailable: {e}") from e
        return [_row_to_profile(row) for row in rows]

    def upsert(self, profile: AIProfile) -> AIProfile:
        """Update by id, else by name, else insert."""
        if len(profile.name.strip()) < 2:
            raise ValueError("Profile name must be at least 2 characters")
        if len(profile.prompt.strip()) < 20:
            raise ValueError("Profile prompt must be at least 20 characters")

        now = utcnow()
        values = {
            "name": profile.name.strip(),
            "prompt": profile.prompt,
            "tone": profile.tone or "balanced",
            "keywords": list(profile.keywords),
            "updated_at": now,
        }

        try:
            with self.engine.begin() as conn:
                if profile.id is not None:
                    match = ai_profiles.c.id == profile.id
                else:
                    match = ai_profiles.c.name == values["name"]
                existing_id = conn.execute(select(ai_profiles.c.id).where(match)).scalar()

                if existing_id is None:
                    result = conn.execute(insert(ai_profiles).values(created_at=now, **values))
                    profile_id = result.inserted_primary_key[0]
                    logger.info(f"AI profile {profile_id} created ({values['name']})")
                else:
                    conn.execute(update(ai_profiles).where(ai_profiles.c.id == existing_id).values(**values))
                    profile_id = existing_id
                    logger.info(f"AI profile {profile_id} updated ({values['name']})")

                row = conn.execute(
                    select(ai_profiles).where(ai_profiles.c.id == profile_id)
                ).mappings().first()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Profile store unavailable: {e}") from e

        return _row_to_profile(row)

    def delete(self, profile_id: int) -> bool:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(delete(ai_profiles).where(ai_profiles.c.id == profile_id))
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Profile store unavailable: {e}") from e
        return result.rowcount > 0

    def _first(self, clause) -> Optional[AIProfile]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(ai_profiles).where(clause)).mappings().first()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Profile store unavailable: {e}") from e
        return _row_to_profile(row) if row else None
