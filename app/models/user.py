"""
CoNekt — User model (identity plus free-text profile answers).
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    nationality: Mapped[str | None] = mapped_column(String, nullable=True)
    location: Mapped[dict | None] = mapped_column(
        JSONB, nullable=True, comment="Structured location (city, country, ...)"
    )

    # ── Core profile answers ───────────────────────────────────────
    career: Mapped[str | None] = mapped_column(Text, nullable=True)
    industry: Mapped[str | None] = mapped_column(Text, nullable=True)
    interests: Mapped[str | None] = mapped_column(Text, nullable=True)
    keystone_values: Mapped[str | None] = mapped_column(Text, nullable=True)
    favorite_books: Mapped[str | None] = mapped_column(Text, nullable=True)
    favorite_authors: Mapped[str | None] = mapped_column(Text, nullable=True)
    favorite_movies: Mapped[str | None] = mapped_column(Text, nullable=True)
    cultural_upbringing: Mapped[str | None] = mapped_column(Text, nullable=True)
    life_philosophy: Mapped[str | None] = mapped_column(Text, nullable=True)
    what_im_looking_for: Mapped[str | None] = mapped_column(Text, nullable=True)
    hobbies: Mapped[str | None] = mapped_column(Text, nullable=True)
    relationship_goals: Mapped[str | None] = mapped_column(Text, nullable=True)
    preferred_communication_style: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )

    # ── Conversational prompt answers ──────────────────────────────
    current_focus: Mapped[str | None] = mapped_column(Text, nullable=True)
    current_obsession: Mapped[str | None] = mapped_column(Text, nullable=True)
    endless_topic: Mapped[str | None] = mapped_column(Text, nullable=True)
    curious_thoughts: Mapped[str | None] = mapped_column(Text, nullable=True)
    energizing_conversations: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    conversation_comfort: Mapped[str | None] = mapped_column(Text, nullable=True)
    presence_triggers: Mapped[str | None] = mapped_column(Text, nullable=True)
    growth_through_challenge: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    build_explore_create: Mapped[str | None] = mapped_column(Text, nullable=True)

    profile_completeness: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return f"<User {self.email!r} id={self.id}>"
