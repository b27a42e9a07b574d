"""
CoNekt — Match store

Persistence for computed matches.  One row exists per (requester, candidate)
pair; writing the same pair again overwrites it in place through
PostgreSQL ``INSERT ... ON CONFLICT DO UPDATE``.

``SqlMatchStore`` opens a fresh session per upsert so that one failed write
never poisons the transaction of another pair.
"""

from __future__ import annotations

import uuid
from typing import Protocol

import structlog
from sqlalchemy import and_, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.match import Match
from app.schemas.match import CompatibilityResult, StoredMatch

logger = structlog.get_logger("conekt.match_store")


class MatchStore(Protocol):
    async def upsert(
        self,
        requester_id: str,
        candidate_id: str,
        result: CompatibilityResult,
        activity: str,
        starters: list[str],
    ) -> None:
        ...

    async def list_by_requester(self, requester_id: str) -> list[StoredMatch]:
        ...

    async def get_pair(self, user_id: str, other_user_id: str) -> StoredMatch | None:
        ...


class SqlMatchStore:
    """``MatchStore`` backed by the ``matches`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def upsert(
        self,
        requester_id: str,
        candidate_id: str,
        result: CompatibilityResult,
        activity: str,
        starters: list[str],
    ) -> None:
        values = {
            "compatibility_score": result.score,
            "match_factors": list(result.factors),
            "recommended_activity": activity,
            "conversation_starters": list(starters),
        }
        stmt = (
            insert(Match)
            .values(
                id=uuid.uuid4(),
                requester_id=uuid.UUID(requester_id),
                candidate_id=uuid.UUID(candidate_id),
                **values,
            )
            .on_conflict_do_update(
                constraint="uq_match_pair",
                set_={**values, "updated_at": func.now()},
            )
        )

        async with self._session_factory() as session:
            await session.execute(stmt)
            await session.commit()

        logger.info(
            "match_stored",
            requester_id=requester_id,
            candidate_id=candidate_id,
            score=round(result.score, 4),
        )

    async def list_by_requester(self, requester_id: str) -> list[StoredMatch]:
        stmt = (
            select(Match)
            .where(Match.requester_id == uuid.UUID(requester_id))
            .order_by(Match.compatibility_score.desc())
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [StoredMatch.model_validate(m) for m in rows]

    async def get_pair(self, user_id: str, other_user_id: str) -> StoredMatch | None:
        """Return the stored match between two users in either direction,
        preferring the row requested by ``user_id``."""
        uid, other = uuid.UUID(user_id), uuid.UUID(other_user_id)
        stmt = select(Match).where(
            or_(
                and_(Match.requester_id == uid, Match.candidate_id == other),
                and_(Match.requester_id == other, Match.candidate_id == uid),
            )
        )
        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            if not rows:
                return None
            rows = sorted(rows, key=lambda m: m.requester_id != uid)
            return StoredMatch.model_validate(rows[0])
