# src/passvote/models/survey.py
"""Survey and candidate catalog models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from passvote.db.session import Base
from passvote.db.time import utcnow


class Candidate(Base):
    """Entry in the candidate catalog."""

    __tablename__ = "candidate"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    party: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Survey(Base):
    """A survey offering an ordered set of candidates."""

    __tablename__ = "survey"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    entries: Mapped[list[SurveyCandidate]] = relationship(
        "SurveyCandidate",
        order_by="SurveyCandidate.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def candidate_ids(self) -> list[str]:
        """Candidate ids in ballot order."""
        return [entry.candidate_id for entry in self.entries]


class SurveyCandidate(Base):
    """Position of a candidate on a survey ballot."""

    __tablename__ = "survey_candidate"
    __table_args__ = (
        UniqueConstraint("survey_id", "position", name="uq_survey_candidate_position"),
    )

    survey_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("survey.id", ondelete="CASCADE"),
        primary_key=True,
    )
    # Deliberately not a foreign key: catalog entries may disappear independently.
    candidate_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
