"""Initial schema — users and matches.

Revision ID: 001_initial
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_PROFILE_TEXT_COLUMNS = [
    "career",
    "industry",
    "interests",
    "keystone_values",
    "favorite_books",
    "favorite_authors",
    "favorite_movies",
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
]


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("gender", sa.String, nullable=True),
        sa.Column("nationality", sa.String, nullable=True),
        sa.Column(
            "location",
            postgresql.JSONB,
            nullable=True,
            comment="Structured location (city, country, ...)",
        ),
        *[sa.Column(name, sa.Text, nullable=True) for name in _PROFILE_TEXT_COLUMNS],
        sa.Column(
            "profile_completeness",
            sa.Integer,
            server_default="0",
            nullable=False,
        ),
        sa.Column(
            "is_active",
            sa.Boolean,
            server_default="true",
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── 2. matches ──────────────────────────────────────────────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "requester_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "candidate_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("compatibility_score", sa.Float, nullable=False),
        sa.Column(
            "match_factors",
            postgresql.JSONB,
            nullable=False,
            comment="Ordered factor labels",
        ),
        sa.Column(
            "recommended_activity",
            sa.Text,
            server_default="",
            nullable=False,
        ),
        sa.Column(
            "conversation_starters",
            postgresql.JSONB,
            nullable=False,
            comment="1-5 starter questions",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("requester_id", "candidate_id", name="uq_match_pair"),
    )
    op.create_index(
        "ix_matches_compatibility_score",
        "matches",
        ["compatibility_score"],
    )


def downgrade() -> None:
    op.drop_index("ix_matches_compatibility_score", table_name="matches")
    op.drop_table("matches")
    op.drop_table("users")
