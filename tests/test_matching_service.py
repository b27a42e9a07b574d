"""Unit tests for MatchingService — score, select, enrich and persist."""
import asyncio
import time

import pytest
from unittest.mock import patch, MagicMock

from app.services.compatibility_service import DEFAULT_FACTOR, CompatibilityService
from app.services.enrichment_service import AIContentService
from app.services.fallback_content_service import (
    DEFAULT_ACTIVITY,
    DEFAULT_CONVERSATION_STARTERS,
    FallbackContentService,
)
from app.services.matching_service import MatchingService, UserNotFoundError
from conftest import (
    AI_ACTIVITY,
    FakeGenerationClient,
    InMemoryMatchStore,
    InMemoryProfileStore,
)


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.ENRICHMENT_TIMEOUT_SECONDS = 5.0
    settings.DEFAULT_MATCH_LIMIT = 3
    return settings


@pytest.fixture
def build_service(settings, mock_settings):
    """Factory wiring a MatchingService onto in-memory collaborators."""

    def _build(
        profiles,
        match_store=None,
        client=None,
        compatibility_service=None,
        enrichment_timeout=None,
    ):
        content_service = AIContentService(
            client=client or FakeGenerationClient(), settings=settings
        )
        with patch("app.services.matching_service.get_settings") as mock:
            mock.return_value = mock_settings
            return MatchingService(
                profile_store=InMemoryProfileStore(profiles),
                match_store=match_store or InMemoryMatchStore(),
                content_service=content_service,
                compatibility_service=compatibility_service,
                enrichment_timeout=enrichment_timeout,
            )

    return _build


class TestRequester:
    @pytest.mark.asyncio
    async def test_unknown_user_raises(self, build_service, five_candidates):
        service = build_service(five_candidates)
        with pytest.raises(UserNotFoundError) as exc_info:
            await service.find_matches("does-not-exist")
        assert exc_info.value.user_id == "does-not-exist"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, -2])
    async def test_non_positive_limit_rejected(self, build_service, requester, five_candidates, limit):
        store = InMemoryMatchStore()
        service = build_service([requester, *five_candidates], match_store=store)

        with pytest.raises(ValueError, match="at least 1"):
            await service.find_matches(requester.id, limit=limit)
        assert service.profile_store.list_calls == 0
        assert store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_empty_pool_returns_empty_list(self, build_service, requester):
        store = InMemoryMatchStore()
        service = build_service([requester], match_store=store)

        assert await service.find_matches(requester.id) == []
        assert store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_inactive_users_excluded(self, build_service, requester, five_candidates):
        inactive = five_candidates[0].model_copy(update={"is_active": False})
        service = build_service([requester, inactive])
        assert await service.find_matches(requester.id) == []


class TestFullPath:
    @pytest.mark.asyncio
    async def test_top_three_of_five_sorted(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        service = build_service([requester, *reversed(five_candidates)], match_store=store)

        matches = await service.find_matches(requester.id)

        assert [m.candidate_id for m in matches] == [c.id for c in five_candidates[:3]]
        scores = [m.score for m in matches]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 1.0
        assert scores[1] == pytest.approx(4 / 6)
        assert scores[2] == pytest.approx(3 / 7)

    @pytest.mark.asyncio
    async def test_fewer_candidates_than_limit(self, build_service, requester, five_candidates):
        service = build_service([requester, *five_candidates[:2]])
        matches = await service.find_matches(requester.id, limit=5)
        assert len(matches) == 2

    @pytest.mark.asyncio
    async def test_requester_never_matched_with_self(self, build_service, requester, five_candidates):
        service = build_service([requester, *five_candidates])
        matches = await service.find_matches(requester.id, limit=5)
        assert requester.id not in {m.candidate_id for m in matches}

    @pytest.mark.asyncio
    async def test_only_selected_pairs_enriched(self, build_service, requester, five_candidates):
        client = FakeGenerationClient()
        service = build_service([requester, *five_candidates], client=client)

        matches = await service.find_matches(requester.id)

        # One activity and one starters request per selected pair.
        assert len(client.requests) == 2 * len(matches) == 6
        for match in matches:
            assert match.recommended_activity == AI_ACTIVITY
            assert len(match.conversation_starters) == 4

    @pytest.mark.asyncio
    async def test_records_persisted(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        service = build_service([requester, *five_candidates], match_store=store)

        matches = await service.find_matches(requester.id)

        assert store.upsert_calls == 3
        for match in matches:
            row = store.rows[(requester.id, match.candidate_id)]
            assert row.compatibility_score == match.score
            assert row.recommended_activity == match.recommended_activity
            assert row.conversation_starters == match.conversation_starters

    @pytest.mark.asyncio
    async def test_every_candidate_scored(self, build_service, requester, five_candidates):
        compatibility = MagicMock(wraps=CompatibilityService())
        service = build_service(
            [requester, *five_candidates], compatibility_service=compatibility
        )

        await service.find_matches(requester.id)

        assert compatibility.evaluate.call_count == 5


class TestFastPath:
    @pytest.mark.asyncio
    async def test_stored_matches_reused(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        for candidate, score in zip(five_candidates, (0.9, 0.8, 0.7, 0.6)):
            store.seed(
                requester.id, candidate.id, score,
                activity="Go for a walk", starters=["Stored question?"],
            )
        client = FakeGenerationClient()
        compatibility = MagicMock(wraps=CompatibilityService())
        service = build_service(
            [requester, *five_candidates],
            match_store=store,
            client=client,
            compatibility_service=compatibility,
        )

        matches = await service.find_matches(requester.id)

        assert [m.score for m in matches] == [0.9, 0.8, 0.7]
        assert matches[0].recommended_activity == "Go for a walk"
        compatibility.evaluate.assert_not_called()
        assert client.requests == []
        assert service.profile_store.list_calls == 0
        assert store.upsert_calls == 0

    @pytest.mark.asyncio
    async def test_placeholders_for_empty_stored_content(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        for candidate in five_candidates[:3]:
            store.seed(requester.id, candidate.id, 0.5)
        service = build_service([requester, *five_candidates], match_store=store)

        matches = await service.find_matches(requester.id)

        for match in matches:
            assert match.recommended_activity == DEFAULT_ACTIVITY
            assert match.conversation_starters == list(DEFAULT_CONVERSATION_STARTERS)

    @pytest.mark.asyncio
    async def test_too_few_stored_matches_recomputes(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        store.seed(requester.id, five_candidates[4].id, 0.99, activity="Old")
        service = build_service([requester, *five_candidates], match_store=store)

        matches = await service.find_matches(requester.id)

        assert service.profile_store.list_calls == 1
        assert matches[0].candidate_id == five_candidates[0].id

    @pytest.mark.asyncio
    async def test_force_refresh_skips_stored(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        for candidate in five_candidates[2:]:
            store.seed(requester.id, candidate.id, 0.95, activity="Stale")
        service = build_service([requester, *five_candidates], match_store=store)

        matches = await service.find_matches(requester.id, force_refresh=True)

        assert [m.candidate_id for m in matches] == [c.id for c in five_candidates[:3]]
        assert all(m.recommended_activity == AI_ACTIVITY for m in matches)

    @pytest.mark.asyncio
    async def test_recompute_overwrites_existing_row(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        top = five_candidates[0]
        store.seed(requester.id, top.id, 0.1, activity="Old activity")
        service = build_service([requester, *five_candidates], match_store=store)

        await service.find_matches(requester.id, force_refresh=True)

        row = store.rows[(requester.id, top.id)]
        assert row.compatibility_score == 1.0
        assert row.recommended_activity == AI_ACTIVITY
        assert len([k for k in store.rows if k == (requester.id, top.id)]) == 1


class TestEnrichmentFailures:
    @pytest.mark.asyncio
    async def test_timeout_uses_fallback_within_bound(self, build_service, requester, five_candidates):
        client = FakeGenerationClient(hang=True)
        service = build_service(
            [requester, *five_candidates], client=client, enrichment_timeout=0.05
        )
        fallback = FallbackContentService()

        start = time.monotonic()
        matches = await service.find_matches(requester.id)
        elapsed = time.monotonic() - start

        assert elapsed < 1.0
        assert len(matches) == 3
        by_id = {c.id: c for c in five_candidates}
        for match in matches:
            candidate = by_id[match.candidate_id]
            assert match.recommended_activity == fallback.activity(requester, candidate)
            assert match.conversation_starters == fallback.conversation_starters(
                requester, candidate
            )

    @pytest.mark.asyncio
    async def test_generation_errors_use_fallback(
        self, build_service, requester, five_candidates, generation_failure
    ):
        client = FakeGenerationClient(error=generation_failure)
        service = build_service([requester, *five_candidates], client=client)

        matches = await service.find_matches(requester.id)

        assert len(matches) == 3
        assert all(m.recommended_activity for m in matches)
        assert all(1 <= len(m.conversation_starters) <= 5 for m in matches)

    @pytest.mark.asyncio
    async def test_content_service_exception_uses_fallback(self, build_service, requester, five_candidates):
        service = build_service([requester, *five_candidates])

        async def boom(*args, **kwargs):
            raise RuntimeError("unexpected")

        service.content_service.generate_activity = boom
        matches = await service.find_matches(requester.id)

        assert len(matches) == 3
        assert all(len(m.conversation_starters) == 4 for m in matches)

    @pytest.mark.asyncio
    async def test_persistence_failure_is_isolated(self, build_service, requester, five_candidates):
        failing = five_candidates[1].id
        store = InMemoryMatchStore(fail_for={failing})
        service = build_service([requester, *five_candidates], match_store=store)

        matches = await service.find_matches(requester.id)

        assert len(matches) == 3
        assert store.upsert_calls == 3
        assert (requester.id, failing) not in store.rows
        assert len(store.rows) == 2


class TestGetMatch:
    @pytest.mark.asyncio
    async def test_either_direction(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        other = five_candidates[0]
        store.seed(other.id, requester.id, 0.75, activity="Cook dinner")
        service = build_service([requester, *five_candidates], match_store=store)

        record = await service.get_match(requester.id, other.id)

        assert record.score == 0.75
        assert record.requester_id == other.id
        assert record.recommended_activity == "Cook dinner"

    @pytest.mark.asyncio
    async def test_missing_pair(self, build_service, requester, five_candidates):
        service = build_service([requester, *five_candidates])
        assert await service.get_match(requester.id, five_candidates[0].id) is None

    @pytest.mark.asyncio
    async def test_missing_factors_replaced(self, build_service, requester, five_candidates):
        store = InMemoryMatchStore()
        store.seed(requester.id, five_candidates[0].id, 1.4)
        store.rows[(requester.id, five_candidates[0].id)] = store.rows[
            (requester.id, five_candidates[0].id)
        ].model_copy(update={"match_factors": []})
        service = build_service([requester, *five_candidates], match_store=store)

        record = await service.get_match(requester.id, five_candidates[0].id)

        assert record.compatibility.factors == [DEFAULT_FACTOR]
        assert record.score == 1.0


class TestRace:
    """Single enrichment call raced against the deadline."""

    @pytest.mark.asyncio
    async def test_completed_value_returned(self, build_service, requester):
        service = build_service([requester])

        async def quick():
            return ["Generated question?"]

        result = await service._race(quick(), ["Fallback?"], "conversation_starters", "c1")
        assert result == ["Generated question?"]

    @pytest.mark.asyncio
    async def test_timeout_returns_fallback(self, build_service, requester):
        service = build_service([requester], enrichment_timeout=0.01)

        result = await service._race(
            asyncio.sleep(10, result="late"), "fallback activity", "activity", "c1"
        )
        assert result == "fallback activity"

    @pytest.mark.asyncio
    async def test_error_returns_fallback(self, build_service, requester):
        service = build_service([requester])

        async def broken():
            raise RuntimeError("connection reset")

        result = await service._race(broken(), "fallback activity", "activity", "c1")
        assert result == "fallback activity"
