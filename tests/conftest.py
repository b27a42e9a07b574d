"""Shared pytest fixtures and in-memory fakes for CoNekt tests."""
import asyncio
import uuid

import pytest

from app.config import Settings
from app.schemas.match import CompatibilityResult, StoredMatch
from app.schemas.profile import Profile
from app.services.gemini_service import GenerationError, GenerationResponse


# ──────────────────────────────────────────────────────────────────────────────
# Fakes for the external collaborators
# ──────────────────────────────────────────────────────────────────────────────

AI_ACTIVITY = "Take a pottery class together and trade stories about what you make."
AI_STARTERS = (
    "1. What book changed the way you think about friendship?\n"
    "2. Which value would you never compromise on, and why?\n"
    "3. What does a perfect slow Sunday look like for you?\n"
    "4. What's a skill you've always wanted to learn together with someone?\n"
)


class FakeGenerationClient:
    """Scriptable stand-in for the text-generation service."""

    def __init__(
        self,
        activity_text: str = AI_ACTIVITY,
        starters_text: str = AI_STARTERS,
        error: Exception | None = None,
        hang: bool = False,
    ) -> None:
        self.activity_text = activity_text
        self.starters_text = starters_text
        self.error = error
        self.hang = hang
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        if self.hang:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        if "numbered list" in request.prompt:
            return GenerationResponse(text=self.starters_text)
        return GenerationResponse(text=self.activity_text)


class InMemoryProfileStore:
    def __init__(self, profiles: list[Profile]) -> None:
        self.profiles = {p.id: p for p in profiles}
        self.list_calls = 0

    async def get_by_id(self, user_id):
        return self.profiles.get(user_id)

    async def list_active(self, exclude_id):
        self.list_calls += 1
        return [
            p for p in self.profiles.values()
            if p.is_active and p.id != exclude_id
        ]


class InMemoryMatchStore:
    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.rows: dict[tuple[str, str], StoredMatch] = {}
        self.fail_for = fail_for or set()
        self.upsert_calls = 0

    async def upsert(self, requester_id, candidate_id, result, activity, starters):
        self.upsert_calls += 1
        if candidate_id in self.fail_for:
            raise RuntimeError("database unavailable")
        self.rows[(requester_id, candidate_id)] = StoredMatch(
            requester_id=requester_id,
            candidate_id=candidate_id,
            compatibility_score=result.score,
            match_factors=result.factors,
            recommended_activity=activity,
            conversation_starters=starters,
        )

    async def list_by_requester(self, requester_id):
        rows = [r for (req, _), r in self.rows.items() if req == requester_id]
        return sorted(rows, key=lambda r: r.compatibility_score, reverse=True)

    async def get_pair(self, user_id, other_user_id):
        return self.rows.get((user_id, other_user_id)) or self.rows.get(
            (other_user_id, user_id)
        )

    def seed(self, requester_id, candidate_id, score, activity="", starters=None):
        self.rows[(requester_id, candidate_id)] = StoredMatch(
            requester_id=requester_id,
            candidate_id=candidate_id,
            compatibility_score=score,
            match_factors=["Shared values"],
            recommended_activity=activity,
            conversation_starters=starters or [],
        )


# ──────────────────────────────────────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def settings():
    return Settings(GEMINI_API_KEY="test-key")


def make_profile(name: str, **fields) -> Profile:
    return Profile(id=str(uuid.uuid4()), name=name, **fields)


@pytest.fixture
def empty_profile_a():
    return make_profile("Avery")


@pytest.fixture
def empty_profile_b():
    return make_profile("Blake")


@pytest.fixture
def rich_profile_a():
    return make_profile(
        "Avery",
        age=31,
        career="Software engineer building accessible learning tools",
        interests="hiking climbing jazz photography",
        keystone_values="honesty curiosity kindness",
        favorite_books="Dune, The Left Hand of Darkness",
        favorite_authors="Ursula K. Le Guin",
        cultural_upbringing="Raised in a bilingual household in Montreal",
        life_philosophy="Leave every place better than you found it",
        hobbies="pottery and bouldering",
        relationship_goals="Deep friendship built on shared adventures",
        current_focus="Learning to cook Sichuan food",
    )


@pytest.fixture
def rich_profile_b():
    return make_profile(
        "Blake",
        age=34,
        career="Product designer for education software",
        interests="jazz photography cycling",
        keystone_values="kindness honesty patience",
        favorite_books="Dune, Piranesi",
        cultural_upbringing="Grew up in a bilingual household in Ottawa",
        relationship_goals="Deep friendship and shared adventures",
    )


REQUESTER_VALUES = "honesty curiosity kindness courage loyalty"

# Candidate values sharing 5, 4, 3, 2 and 1 words with the requester.
CANDIDATE_VALUES = [
    "honesty curiosity kindness courage loyalty",
    "honesty curiosity kindness courage patience",
    "honesty curiosity kindness humility patience",
    "honesty curiosity ambition humility patience",
    "honesty discipline ambition humility patience",
]


@pytest.fixture
def requester():
    return make_profile("Requester", keystone_values=REQUESTER_VALUES)


@pytest.fixture
def five_candidates():
    return [
        make_profile(f"Candidate {i}", keystone_values=values)
        for i, values in enumerate(CANDIDATE_VALUES, start=1)
    ]


@pytest.fixture
def sample_result():
    return CompatibilityResult(score=0.5, factors=["Common interests"])


@pytest.fixture
def generation_failure():
    return GenerationError("service unavailable")
