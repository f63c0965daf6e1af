# src/passvote/models/vote.py
"""Ledger of cast survey votes."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from passvote.db.session import Base
from passvote.db.time import utcnow


class Vote(Base):
    """One voter's choice in one survey.

    Rows are append-only; the core never updates or deletes them.
    """

    __tablename__ = "vote"
    __table_args__ = (
        # One vote per voter per survey, across all time.
        UniqueConstraint("survey_id", "voter_address", name="uq_vote_survey_voter"),
        Index("ix_vote_survey_id", "survey_id"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    survey_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("survey.id"),
        nullable=False,
    )
    candidate_id: Mapped[str] = mapped_column(String(64), nullable=False)
    voter_address: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
