# src/passvote/models/auth_session.py
"""Short-lived challenge sessions for passkey ceremonies."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from passvote.db.session import Base
from passvote.db.time import utcnow

SESSION_KIND_REGISTER = "register"
SESSION_KIND_AUTHENTICATE = "authenticate"


class AuthSession(Base):
    """Server-side record binding a challenge to one pending ceremony.

    A row exists only while the session is pending; consumption and expiry
    both delete it.
    """

    __tablename__ = "auth_session"
    __table_args__ = (
        CheckConstraint(
            "kind IN ('register', 'authenticate')",
            name="ck_auth_session_kind",
        ),
        Index("ix_auth_session_expires_at", "expires_at"),
    )

    session_id: Mapped[str] = mapped_column(String(96), primary_key=True)
    subject_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    username: Mapped[str | None] = mapped_column(Text, nullable=True)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    challenge: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
