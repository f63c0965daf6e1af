# src/passvote/models/credential.py
"""Registered passkey credentials and the identities that own them."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from passvote.db.session import Base
from passvote.db.time import utcnow


class Credential(Base):
    """Public-key material recorded once per successful registration."""

    __tablename__ = "credential"
    __table_args__ = (
        # Full identifier, never a prefix: two credentials of one user may share one.
        UniqueConstraint("username", "credential_id", name="uq_credential_username_credential"),
        Index("ix_credential_subject_user_id", "subject_user_id"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    subject_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    credential_id: Mapped[str] = mapped_column(Text, nullable=False)
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Identity(Base):
    """Voter identity keyed by username."""

    __tablename__ = "identity"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    wallet_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
