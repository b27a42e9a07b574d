"""
CoNekt — Profile store

Read-only access to user profiles for the matching core.  ``ProfileStore``
is the interface the orchestrator depends on; ``SqlProfileStore`` reads the
``users`` table through an async SQLAlchemy session.
"""

from __future__ import annotations

import uuid
from typing import Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.schemas.profile import Profile

logger = structlog.get_logger("conekt.profile_store")


class ProfileStore(Protocol):
    async def get_by_id(self, user_id: str) -> Profile | None:
        ...

    async def list_active(self, exclude_id: str) -> list[Profile]:
        ...


def _parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class SqlProfileStore:
    """``ProfileStore`` backed by the ``users`` table."""

    def __init__(self, db_session: AsyncSession) -> None:
        self.db_session = db_session

    async def get_by_id(self, user_id: str) -> Profile | None:
        uid = _parse_uuid(user_id)
        if uid is None:
            logger.info("profile_lookup_invalid_id", user_id=user_id)
            return None

        result = await self.db_session.execute(select(User).where(User.id == uid))
        user = result.scalar_one_or_none()
        return Profile.model_validate(user) if user is not None else None

    async def list_active(self, exclude_id: str) -> list[Profile]:
        stmt = select(User).where(User.is_active.is_(True))
        uid = _parse_uuid(exclude_id)
        if uid is not None:
            stmt = stmt.where(User.id != uid)

        result = await self.db_session.execute(stmt)
        users = result.scalars().all()

        logger.debug("active_profiles_listed", exclude_id=exclude_id, count=len(users))
        return [Profile.model_validate(u) for u in users]
