"""
CoNekt — Match model (one row per requester/candidate pair).
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("requester_id", "candidate_id", name="uq_match_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    compatibility_score: Mapped[float] = mapped_column(
        Float, nullable=False, index=True
    )
    match_factors: Mapped[list] = mapped_column(
        JSONB, nullable=False, comment="Ordered factor labels"
    )
    recommended_activity: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=""
    )
    conversation_starters: Mapped[list] = mapped_column(
        JSONB, nullable=False, comment="1-5 starter questions"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<Match {self.requester_id} -> {self.candidate_id} "
            f"score={self.compatibility_score:.3f}>"
        )
