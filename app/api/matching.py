"""
CoNekt — Matching API

Endpoints for retrieving a user's top matches, forcing a recomputation,
and reading the stored match between two users.
"""

from __future__ import annotations

import uuid
from functools import lru_cache

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import async_session_factory, get_db
from app.schemas.match import MatchListResponse, MatchRecord, MatchResponse
from app.schemas.profile import ProfileSummary
from app.services.enrichment_service import AIContentService
from app.services.gemini_service import GeminiTextClient
from app.services.match_store import SqlMatchStore
from app.services.matching_service import MatchingService, UserNotFoundError
from app.services.profile_store import SqlProfileStore

logger = structlog.get_logger("conekt.api.matching")

router = APIRouter()

_settings = get_settings()


# ── Service wiring ────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_content_service() -> AIContentService:
    return AIContentService(client=GeminiTextClient.from_settings())


def get_matching_service(
    db: AsyncSession = Depends(get_db),
    content_service: AIContentService = Depends(get_content_service),
) -> MatchingService:
    return MatchingService(
        profile_store=SqlProfileStore(db),
        match_store=SqlMatchStore(async_session_factory),
        content_service=content_service,
    )


async def _to_response(
    service: MatchingService, record: MatchRecord
) -> MatchResponse:
    profile = await service.profile_store.get_by_id(record.candidate_id)
    return MatchResponse(
        user=ProfileSummary.model_validate(profile.model_dump()) if profile else None,
        compatibility_score=record.compatibility.score,
        match_factors=record.compatibility.factors,
        recommended_activity=record.recommended_activity,
        conversation_starters=record.conversation_starters,
    )


async def _find(
    service: MatchingService,
    user_id: uuid.UUID,
    limit: int,
    force_refresh: bool,
) -> MatchListResponse:
    log = logger.bind(user_id=str(user_id), limit=limit, force_refresh=force_refresh)
    try:
        records = await service.find_matches(
            str(user_id), limit=limit, force_refresh=force_refresh
        )
    except UserNotFoundError:
        log.info("matches_user_not_found")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User ({user_id}) not found.",
        )

    return MatchListResponse(
        matches=[await _to_response(service, r) for r in records]
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id} — Top matches (stored matches reused when available)
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}",
    response_model=MatchListResponse,
    summary="Get top matches for a user",
)
async def get_matches(
    user_id: uuid.UUID,
    limit: int = Query(
        _settings.DEFAULT_MATCH_LIMIT, ge=1, le=_settings.MAX_MATCH_LIMIT
    ),
    service: MatchingService = Depends(get_matching_service),
) -> MatchListResponse:
    return await _find(service, user_id, limit, force_refresh=False)


# ──────────────────────────────────────────────────────────────────────────────
# POST /{user_id}/refresh — Recompute matches, bypassing stored results
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/{user_id}/refresh",
    response_model=MatchListResponse,
    summary="Recompute top matches for a user",
)
async def refresh_matches(
    user_id: uuid.UUID,
    limit: int = Query(
        _settings.DEFAULT_MATCH_LIMIT, ge=1, le=_settings.MAX_MATCH_LIMIT
    ),
    service: MatchingService = Depends(get_matching_service),
) -> MatchListResponse:
    return await _find(service, user_id, limit, force_refresh=True)


# ──────────────────────────────────────────────────────────────────────────────
# GET /{user_id}/with/{other_user_id} — Stored match between two users
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{user_id}/with/{other_user_id}",
    response_model=MatchResponse,
    summary="Get the stored match between two users",
)
async def get_match_detail(
    user_id: uuid.UUID,
    other_user_id: uuid.UUID,
    service: MatchingService = Depends(get_matching_service),
) -> MatchResponse:
    record = await service.get_match(str(user_id), str(other_user_id))
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Match not found.",
        )

    # The stored row may have been requested by either user.
    other_id = (
        record.candidate_id
        if record.requester_id == str(user_id)
        else record.requester_id
    )
    return await _to_response(
        service, record.model_copy(update={"candidate_id": other_id})
    )
