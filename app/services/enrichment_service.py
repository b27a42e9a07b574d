"""
CoNekt — AI Content Generator

Produces a personalised recommended activity and 3-5 conversation starters
for a matched pair by prompting the text-generation service, with the
deterministic ``FallbackContentService`` as the guaranteed second tier.

Protocol per call:
  1. Build a fixed-shape prompt describing both people.  Every attribute
     line is always present; missing answers read "Not specified".
  2. One request with a bounded output length and fixed temperature.
  3. Starters only: keep lines that start with ``<digits>.``, strip the
     numbering, drop items of 10 characters or fewer, require >= 3.
  4. Any failure is logged and answered with the fallback content.  Nothing
     is raised to the caller.
"""

from __future__ import annotations

import re
import time

import structlog

from app.config import Settings, get_settings
from app.schemas.profile import Profile
from app.services.fallback_content_service import (
    MAX_CONVERSATION_STARTERS,
    FallbackContentService,
)
from app.services.gemini_service import (
    GenerationError,
    GenerationRequest,
    TextGenerationClient,
)

logger = structlog.get_logger("conekt.enrichment_service")

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

NOT_SPECIFIED = "Not specified"

_MIN_STARTERS = 3
_MIN_STARTER_LENGTH = 11

_NUMBERED_LINE = re.compile(r"^\d+\.")
_NUMBERING_PREFIX = re.compile(r"^\d+\.\s*")

# (label, profile attribute) pairs rendered for each person, in order.
PROMPT_ATTRIBUTES: tuple[tuple[str, str], ...] = (
    ("Connection type", "relationship_goals"),
    ("Current focus", "current_focus"),
    ("Current obsession", "current_obsession"),
    ("Endless topic", "endless_topic"),
    ("Curious thoughts", "curious_thoughts"),
    ("Energizing conversations", "energizing_conversations"),
    ("Conversation comfort", "conversation_comfort"),
    ("Presence triggers", "presence_triggers"),
    ("Growth areas", "growth_through_challenge"),
    ("Build/explore/create", "build_explore_create"),
)

_ACTIVITY_INSTRUCTIONS = (
    "Based on these two people's profiles, suggest ONE specific, meaningful "
    "activity they could do together to build their connection. Keep it "
    "practical, engaging, and tailored to their interests and backgrounds."
)
_ACTIVITY_CLOSING = (
    "Suggest one creative, specific activity that would help them connect "
    "meaningfully. Keep it to 1-2 sentences. Focus on shared interests or "
    "complementary strengths."
)
_STARTERS_INSTRUCTIONS = (
    "Based on these two people's profiles, create 3-5 thoughtful conversation "
    "starter questions that would help them connect on a deeper level. The "
    "questions should be open-ended, meaningful, and tailored to their shared "
    "interests, values, or backgrounds."
)
_STARTERS_CLOSING = (
    "Generate 3-5 conversation starter questions. Each question should be "
    "engaging and help them explore shared interests or values. Return them "
    "as a numbered list."
)


class AIContentService:
    """Two-tier (AI, then rule-based) enrichment for a matched pair.

    The text-generation client and fallback generator are injected at
    construction so tests can substitute either.
    """

    def __init__(
        self,
        client: TextGenerationClient,
        fallback: FallbackContentService | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.client = client
        self.fallback = fallback or FallbackContentService()
        self.temperature: float = settings.GENERATION_TEMPERATURE
        self.activity_max_tokens: int = settings.ACTIVITY_MAX_OUTPUT_TOKENS
        self.starters_max_tokens: int = settings.STARTERS_MAX_OUTPUT_TOKENS

    # ══════════════════════════════════════════════════════════════════
    # Public API
    # ══════════════════════════════════════════════════════════════════

    async def generate_activity(self, profile_a: Profile, profile_b: Profile) -> str:
        """Return one AI-suggested activity, or the fallback activity."""
        log = logger.bind(user_a=profile_a.id, user_b=profile_b.id)
        start = time.monotonic()

        try:
            response = await self.client.generate(
                GenerationRequest(
                    prompt=self.build_activity_prompt(profile_a, profile_b),
                    max_output_tokens=self.activity_max_tokens,
                    temperature=self.temperature,
                )
            )
            activity = response.text.strip()
            if not activity:
                raise GenerationError("No activity generated")
        except Exception as exc:
            log.warning("ai_activity_fallback", error=str(exc))
            return self.fallback.activity(profile_a, profile_b)

        log.info(
            "ai_activity_generated",
            elapsed_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return activity

    async def generate_conversation_starters(
        self, profile_a: Profile, profile_b: Profile
    ) -> list[str]:
        """Return 3-5 AI-written starters, or the fallback starters."""
        log = logger.bind(user_a=profile_a.id, user_b=profile_b.id)
        start = time.monotonic()

        try:
            response = await self.client.generate(
                GenerationRequest(
                    prompt=self.build_starters_prompt(profile_a, profile_b),
                    max_output_tokens=self.starters_max_tokens,
                    temperature=self.temperature,
                )
            )
            starters = self.parse_numbered_list(response.text)
            if len(starters) < _MIN_STARTERS:
                raise GenerationError(
                    f"Not enough questions generated ({len(starters)})"
                )
        except Exception as exc:
            log.warning("ai_starters_fallback", error=str(exc))
            return self.fallback.conversation_starters(profile_a, profile_b)

        log.info(
            "ai_starters_generated",
            count=len(starters),
            elapsed_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return starters[:MAX_CONVERSATION_STARTERS]

    # ══════════════════════════════════════════════════════════════════
    # Prompt construction
    # ══════════════════════════════════════════════════════════════════

    def build_activity_prompt(self, profile_a: Profile, profile_b: Profile) -> str:
        return self._build_prompt(
            _ACTIVITY_INSTRUCTIONS, _ACTIVITY_CLOSING, profile_a, profile_b
        )

    def build_starters_prompt(self, profile_a: Profile, profile_b: Profile) -> str:
        return self._build_prompt(
            _STARTERS_INSTRUCTIONS, _STARTERS_CLOSING, profile_a, profile_b
        )

    def _build_prompt(
        self,
        instructions: str,
        closing: str,
        profile_a: Profile,
        profile_b: Profile,
    ) -> str:
        return "\n\n".join([
            instructions,
            self._describe_person(1, profile_a),
            self._describe_person(2, profile_b),
            closing,
        ])

    @staticmethod
    def _describe_person(position: int, profile: Profile) -> str:
        lines = [f"Person {position} ({profile.name}):"]
        for label, field in PROMPT_ATTRIBUTES:
            value = getattr(profile, field) if profile.has(field) else NOT_SPECIFIED
            lines.append(f"- {label}: {value}")
        return "\n".join(lines)

    # ══════════════════════════════════════════════════════════════════
    # Response parsing
    # ══════════════════════════════════════════════════════════════════

    @staticmethod
    def parse_numbered_list(text: str) -> list[str]:
        """Extract items from a ``1. ...`` style list.

        Non-numbered lines are ignored and items of 10 characters or fewer
        are discarded.
        """
        items: list[str] = []
        for raw_line in text.split("\n"):
            line = raw_line.strip()
            if not _NUMBERED_LINE.match(line):
                continue
            item = _NUMBERING_PREFIX.sub("", line, count=1)
            if len(item) >= _MIN_STARTER_LENGTH:
                items.append(item)
        return items
