from pydantic import BaseModel, field_validator
from typing import Optional, Any

# Attributes that feed similarity scoring, fallback rules and prompts.
PROFILE_TEXT_FIELDS: tuple[str, ...] = (
    "career",
    "interests",
    "keystone_values",
    "favorite_books",
    "favorite_authors",
    "cultural_upbringing",
    "life_philosophy",
    "what_im_looking_for",
    "hobbies",
    "relationship_goals",
    "preferred_communication_style",
    "current_focus",
    "current_obsession",
    "endless_topic",
    "curious_thoughts",
    "energizing_conversations",
    "conversation_comfort",
    "presence_triggers",
    "growth_through_challenge",
    "build_explore_create",
)


class Profile(BaseModel):
    """Read-only view of a user's self-description used by the matching core."""

    id: str
    name: str
    age: Optional[int] = None
    location: Optional[dict[str, Any]] = None
    career: Optional[str] = None
    interests: Optional[str] = None
    keystone_values: Optional[str] = None
    favorite_books: Optional[str] = None
    favorite_authors: Optional[str] = None
    cultural_upbringing: Optional[str] = None
    life_philosophy: Optional[str] = None
    what_im_looking_for: Optional[str] = None
    hobbies: Optional[str] = None
    relationship_goals: Optional[str] = None
    preferred_communication_style: Optional[str] = None
    current_focus: Optional[str] = None
    current_obsession: Optional[str] = None
    endless_topic: Optional[str] = None
    curious_thoughts: Optional[str] = None
    energizing_conversations: Optional[str] = None
    conversation_comfort: Optional[str] = None
    presence_triggers: Optional[str] = None
    growth_through_challenge: Optional[str] = None
    build_explore_create: Optional[str] = None
    is_active: bool = True

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str:
        return str(v)

    def has(self, field: str) -> bool:
        """True when ``field`` holds non-blank text (or any non-None value)."""
        value = getattr(self, field, None)
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        return True


class ProfileSummary(BaseModel):
    """Public slice of a matched user's profile returned by the API."""

    id: str
    name: str
    age: Optional[int] = None
    location: Optional[dict[str, Any]] = None
    career: Optional[str] = None
    interests: Optional[str] = None
    keystone_values: Optional[str] = None
    favorite_books: Optional[str] = None
    favorite_authors: Optional[str] = None
    relationship_goals: Optional[str] = None
    cultural_upbringing: Optional[str] = None
    life_philosophy: Optional[str] = None
    what_im_looking_for: Optional[str] = None
    hobbies: Optional[str] = None
    preferred_communication_style: Optional[str] = None

    model_config = {"from_attributes": True}
