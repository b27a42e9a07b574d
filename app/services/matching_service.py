"""
CoNekt — Match Orchestrator

Finds a user's top-N matches:

  1. Load the requester (``UserNotFoundError`` if absent).
  2. Fast path — if the match store already holds at least ``limit`` rows for
     the requester, return the best ``limit`` of them as-is.
  3. Full path — fetch all other active profiles once (snapshot).
  4. Score *every* candidate with the pure CompatibilityService.
  5. Sort by score descending and keep the top ``limit``.
  6. Enrich only those pairs: per pair the fallback content is computed
     first, then the AI activity and AI starters calls run concurrently,
     each raced against ``ENRICHMENT_TIMEOUT_SECONDS``.  A late or failed
     call is replaced by its fallback.  All pairs enrich concurrently.
  7. Upsert one record per pair; a failed write is logged and skipped.
  8. Return the records, still ordered by score.

Scoring is cheap and deterministic; enrichment is the slow, unbounded step,
so it never runs on the full candidate set.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, TypeVar

import structlog

from app.config import get_settings
from app.schemas.match import CompatibilityResult, MatchRecord, StoredMatch
from app.schemas.profile import Profile
from app.services.compatibility_service import DEFAULT_FACTOR, CompatibilityService
from app.services.enrichment_service import AIContentService
from app.services.fallback_content_service import (
    DEFAULT_ACTIVITY,
    DEFAULT_CONVERSATION_STARTERS,
    MAX_CONVERSATION_STARTERS,
    FallbackContentService,
)
from app.services.match_store import MatchStore
from app.services.profile_store import ProfileStore
from app.utils.deadline import Completed, run_with_deadline

logger = structlog.get_logger("conekt.matching_service")

T = TypeVar("T")


class UserNotFoundError(LookupError):
    """The requesting user does not exist in the profile store."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class MatchingService:
    """Score-everyone, enrich-the-winners matching pipeline.

    Dependencies are injected at construction so that the service can be
    tested with in-memory stores and a fake generation client.
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        match_store: MatchStore,
        content_service: AIContentService,
        compatibility_service: CompatibilityService | None = None,
        fallback_service: FallbackContentService | None = None,
        enrichment_timeout: float | None = None,
    ) -> None:
        self.profile_store = profile_store
        self.match_store = match_store
        self.content_service = content_service
        self.compatibility_service = compatibility_service or CompatibilityService()
        self.fallback_service = fallback_service or content_service.fallback

        settings = get_settings()
        self.enrichment_timeout: float = (
            enrichment_timeout
            if enrichment_timeout is not None
            else settings.ENRICHMENT_TIMEOUT_SECONDS
        )
        self.default_limit: int = settings.DEFAULT_MATCH_LIMIT

    # ── Public API ────────────────────────────────────────────────────────

    async def find_matches(
        self,
        user_id: str,
        limit: int | None = None,
        force_refresh: bool = False,
    ) -> list[MatchRecord]:
        """Return up to ``limit`` enriched matches, best first.

        Parameters
        ----------
        user_id:
            Id of the requesting user.
        limit:
            Number of matches wanted; defaults to ``DEFAULT_MATCH_LIMIT``.
        force_refresh:
            Skip the fast path and recompute even when enough stored
            matches exist.

        Raises
        ------
        UserNotFoundError
            If the requesting user does not exist.
        ValueError
            If ``limit`` is less than 1.
        """
        limit = limit if limit is not None else self.default_limit
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        log = logger.bind(user_id=user_id, limit=limit)
        start = time.monotonic()

        requester = await self.profile_store.get_by_id(user_id)
        if requester is None:
            log.warning("find_matches_user_not_found")
            raise UserNotFoundError(user_id)

        # ── Fast path: reuse stored matches ───────────────────────────
        if not force_refresh:
            stored = await self.match_store.list_by_requester(requester.id)
            if len(stored) >= limit:
                log.info("find_matches_cache_hit", stored_count=len(stored))
                return [self._from_stored(m) for m in stored[:limit]]

        # ── Full path ─────────────────────────────────────────────────
        candidates = await self.profile_store.list_active(requester.id)
        candidates = [c for c in candidates if c.id != requester.id]
        if not candidates:
            log.info("find_matches_no_candidates")
            return []

        scored = [
            (candidate, self.compatibility_service.evaluate(requester, candidate))
            for candidate in candidates
        ]
        scored.sort(key=lambda pair: pair[1].score, reverse=True)
        selected = scored[:limit]

        log.info(
            "candidates_scored",
            candidate_count=len(candidates),
            selected_count=len(selected),
        )

        records = await asyncio.gather(*[
            self._enrich_pair(requester, candidate, result)
            for candidate, result in selected
        ])

        await self._persist(records)

        log.info(
            "find_matches_complete",
            match_count=len(records),
            elapsed_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return list(records)

    async def get_match(self, user_id: str, other_user_id: str) -> MatchRecord | None:
        """Return the stored match between two users (either direction)."""
        stored = await self.match_store.get_pair(user_id, other_user_id)
        return self._from_stored(stored) if stored is not None else None

    # ── Enrichment ────────────────────────────────────────────────────────

    async def _enrich_pair(
        self,
        requester: Profile,
        candidate: Profile,
        result: CompatibilityResult,
    ) -> MatchRecord:
        # Fallback content is ready before the race starts.
        fallback_activity = self.fallback_service.activity(requester, candidate)
        fallback_starters = self.fallback_service.conversation_starters(
            requester, candidate
        )

        activity, starters = await asyncio.gather(
            self._race(
                self.content_service.generate_activity(requester, candidate),
                fallback_activity,
                "activity",
                candidate.id,
            ),
            self._race(
                self.content_service.generate_conversation_starters(
                    requester, candidate
                ),
                fallback_starters,
                "conversation_starters",
                candidate.id,
            ),
        )

        return MatchRecord(
            requester_id=requester.id,
            candidate_id=candidate.id,
            compatibility=result,
            recommended_activity=activity or fallback_activity,
            conversation_starters=(starters or fallback_starters)[
                :MAX_CONVERSATION_STARTERS
            ],
        )

    async def _race(
        self,
        awaitable: Awaitable[T],
        fallback: T,
        kind: str,
        candidate_id: str,
    ) -> T:
        """Await ``awaitable`` within the enrichment deadline, else ``fallback``."""
        try:
            outcome = await run_with_deadline(awaitable, self.enrichment_timeout)
        except Exception as exc:
            logger.warning(
                "enrichment_failed",
                kind=kind,
                candidate_id=candidate_id,
                error=str(exc),
            )
            return fallback

        if isinstance(outcome, Completed):
            return outcome.value

        logger.warning(
            "enrichment_timed_out",
            kind=kind,
            candidate_id=candidate_id,
            timeout_seconds=outcome.timeout_seconds,
        )
        return fallback

    # ── Persistence ───────────────────────────────────────────────────────

    async def _persist(self, records: list[MatchRecord]) -> None:
        """Upsert each record independently; failures never abort the run."""
        for record in records:
            try:
                await self.match_store.upsert(
                    record.requester_id,
                    record.candidate_id,
                    record.compatibility,
                    record.recommended_activity,
                    record.conversation_starters,
                )
            except Exception as exc:
                logger.error(
                    "match_store_failed",
                    requester_id=record.requester_id,
                    candidate_id=record.candidate_id,
                    error=str(exc),
                )

    # ── Private helpers ───────────────────────────────────────────────────

    @staticmethod
    def _from_stored(stored: StoredMatch) -> MatchRecord:
        score = max(0.0, min(1.0, stored.compatibility_score))
        return MatchRecord(
            requester_id=stored.requester_id,
            candidate_id=stored.candidate_id,
            compatibility=CompatibilityResult(
                score=score,
                factors=stored.match_factors or [DEFAULT_FACTOR],
            ),
            recommended_activity=stored.recommended_activity or DEFAULT_ACTIVITY,
            conversation_starters=(
                stored.conversation_starters[:MAX_CONVERSATION_STARTERS]
                or list(DEFAULT_CONVERSATION_STARTERS)
            ),
        )
