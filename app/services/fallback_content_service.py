"""
CoNekt — Deterministic Fallback Content

Rule-based activity suggestions and conversation starters for a matched
pair.  Used whenever AI generation fails, is too slow, or returns something
unusable, so every match always carries content.

Each output is driven by an ordered list of ``ContentRule`` entries
(predicate + producer):

* Activity — first matching rule wins, checked in priority order
  favorite books → career → life philosophy → hobbies, else a generic
  suggestion.
* Conversation starters — every matching rule contributes one question, in
  order keystone values (both) → interests → life philosophy →
  relationship goals → books/authors (either), capped at five.  If no rule
  matches, three generic questions are returned.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from app.schemas.profile import Profile

MAX_CONVERSATION_STARTERS = 5

DEFAULT_ACTIVITY = (
    "Have a meaningful conversation about your shared interests and values"
)

DEFAULT_CONVERSATION_STARTERS: tuple[str, ...] = (
    "What's a question that's been on your mind lately?",
    "What experience has shaped who you are today?",
    "What are you most curious about exploring?",
)


class ContentRule(NamedTuple):
    name: str
    applies: Callable[[Profile, Profile], bool]
    content: str


def _either(*fields: str) -> Callable[[Profile, Profile], bool]:
    return lambda a, b: any(a.has(f) or b.has(f) for f in fields)


def _both(field: str) -> Callable[[Profile, Profile], bool]:
    return lambda a, b: a.has(field) and b.has(field)


ACTIVITY_RULES: tuple[ContentRule, ...] = (
    ContentRule(
        "books",
        _either("favorite_books"),
        "Read a book together and discuss its key themes and insights",
    ),
    ContentRule(
        "career",
        _either("career"),
        "Collaborate on a small project or share professional insights",
    ),
    ContentRule(
        "philosophy",
        _either("life_philosophy"),
        "Have a deep conversation about life philosophy and worldviews",
    ),
    ContentRule(
        "hobbies",
        _either("hobbies"),
        "Explore a shared hobby or try something new together",
    ),
)

CONVERSATION_STARTER_RULES: tuple[ContentRule, ...] = (
    ContentRule(
        "values",
        _both("keystone_values"),
        "What's a core value that has shaped how you navigate challenges?",
    ),
    ContentRule(
        "interests",
        _either("interests"),
        "What's something you've been curious about or exploring lately?",
    ),
    ContentRule(
        "philosophy",
        _either("life_philosophy"),
        "What's a perspective or idea that changed how you see the world?",
    ),
    ContentRule(
        "relationship_goals",
        _either("relationship_goals"),
        "What does a meaningful connection look like to you?",
    ),
    ContentRule(
        "reading",
        _either("favorite_books", "favorite_authors"),
        "What's a book or idea that has deeply influenced your thinking?",
    ),
)


class FallbackContentService:
    """Side-effect-free content generator driven by the rule tables above."""

    def __init__(
        self,
        activity_rules: tuple[ContentRule, ...] = ACTIVITY_RULES,
        starter_rules: tuple[ContentRule, ...] = CONVERSATION_STARTER_RULES,
    ) -> None:
        self.activity_rules = activity_rules
        self.starter_rules = starter_rules

    def activity(self, profile_a: Profile, profile_b: Profile) -> str:
        for rule in self.activity_rules:
            if rule.applies(profile_a, profile_b):
                return rule.content
        return DEFAULT_ACTIVITY

    def conversation_starters(
        self, profile_a: Profile, profile_b: Profile
    ) -> list[str]:
        questions = [
            rule.content
            for rule in self.starter_rules
            if rule.applies(profile_a, profile_b)
        ]
        if not questions:
            return list(DEFAULT_CONVERSATION_STARTERS)
        return questions[:MAX_CONVERSATION_STARTERS]
