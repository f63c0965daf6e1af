"""One-time challenge sessions for passkey registration and authentication.

A session is created together with a random challenge and removed exactly
once: either by the verify call that consumes it, or by the background
sweeper once its TTL has elapsed. Both paths remove the row with a
conditional DELETE under the same lock, and the DELETE that actually
removes the row decides who owns the session.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import secrets
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from passvote.core.settings import settings
from passvote.db.time import as_utc, utcnow
from passvote.models import SESSION_KIND_AUTHENTICATE, SESSION_KIND_REGISTER, AuthSession
from passvote.services.errors import SessionExpired, SessionKindMismatch, SessionNotFound

logger = logging.getLogger(__name__)

CHALLENGE_BYTES = 32
SESSION_KINDS = (SESSION_KIND_REGISTER, SESSION_KIND_AUTHENTICATE)
_SESSION_PREFIXES = {SESSION_KIND_REGISTER: "reg", SESSION_KIND_AUTHENTICATE: "auth"}


def encode_challenge(data: bytes) -> str:
    """Encode challenge bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


@dataclass(frozen=True)
class IdentityHint:
    """Optional identity details supplied when a challenge is requested."""

    username: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class IssuedChallenge:
    """Challenge material handed to the client."""

    session_id: str
    challenge: bytes
    subject_user_id: str
    kind: str
    expires_at: datetime

    @property
    def challenge_b64(self) -> str:
        return encode_challenge(self.challenge)


@dataclass(frozen=True)
class ChallengeSession:
    """Snapshot of a consumed session; the stored row no longer exists."""

    session_id: str
    subject_user_id: str
    username: str | None
    display_name: str | None
    challenge: bytes
    kind: str
    created_at: datetime
    expires_at: datetime


class ChallengeSessionManager:
    """Issues and consumes one-time challenge sessions."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = timedelta(
            seconds=settings.session_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock
        self._lock = threading.Lock()

    def create_challenge(self, kind: str, hint: IdentityHint | None = None) -> IssuedChallenge:
        """Store a new pending session and return its challenge."""
        if kind not in SESSION_KINDS:
            raise ValueError(f"Unsupported session kind: {kind!r}")
        hint = hint or IdentityHint()
        if kind == SESSION_KIND_REGISTER and not (hint.username and hint.display_name):
            raise ValueError("username and display_name are required for registration")

        now = self._clock()
        prefix = _SESSION_PREFIXES[kind]
        record = AuthSession(
            session_id=f"{prefix}-{secrets.token_urlsafe(24)}",
            subject_user_id=f"{'user' if kind == SESSION_KIND_REGISTER else 'auth'}-{uuid.uuid4().hex}",
            username=hint.username,
            display_name=hint.display_name,
            challenge=secrets.token_bytes(CHALLENGE_BYTES),
            kind=kind,
            created_at=now,
            expires_at=now + self._ttl,
        )
        issued = IssuedChallenge(
            session_id=record.session_id,
            challenge=record.challenge,
            subject_user_id=record.subject_user_id,
            kind=kind,
            expires_at=record.expires_at,
        )
        with self._lock, self._session_factory() as db:
            db.add(record)
            db.commit()

        logger.debug("Issued %s session %s", kind, issued.session_id)
        return issued

    def consume_session(self, session_id: str, expected_kind: str | None = None) -> ChallengeSession:
        """Remove and return a pending session.

        Raises:
            SessionNotFound: no pending session with this id (never issued,
                already consumed, or swept).
            SessionExpired: the session existed but its TTL had elapsed.
            SessionKindMismatch: the session belongs to another ceremony.

        The session is gone after this call whatever the outcome.
        """
        with self._lock, self._session_factory() as db:
            record = db.execute(
                select(AuthSession).where(AuthSession.session_id == session_id)
            ).scalar_one_or_none()
            if record is None:
                raise SessionNotFound()

            snapshot = ChallengeSession(
                session_id=record.session_id,
                subject_user_id=record.subject_user_id,
                username=record.username,
                display_name=record.display_name,
                challenge=record.challenge,
                kind=record.kind,
                created_at=as_utc(record.created_at),
                expires_at=as_utc(record.expires_at),
            )
            result = db.execute(
                delete(AuthSession)
                .where(AuthSession.session_id == session_id)
                .execution_options(synchronize_session=False)
            )
            db.commit()

        if result.rowcount == 0:
            # Another process removed it between our read and delete.
            raise SessionNotFound()
        if self._clock() > snapshot.expires_at:
            logger.info("Rejected expired %s session %s", snapshot.kind, session_id)
            raise SessionExpired()
        if expected_kind is not None and snapshot.kind != expected_kind:
            logger.warning(
                "Session %s issued for %s presented to %s", session_id, snapshot.kind, expected_kind
            )
            raise SessionKindMismatch()

        logger.debug("Consumed %s session %s", snapshot.kind, session_id)
        return snapshot

    def sweep_expired(self) -> int:
        """Delete every session whose TTL has elapsed; return how many went."""
        with self._lock, self._session_factory() as db:
            result = db.execute(
                delete(AuthSession)
                .where(AuthSession.expires_at < self._clock())
                .execution_options(synchronize_session=False)
            )
            db.commit()
        removed = int(result.rowcount or 0)
        if removed:
            logger.info("Swept %d expired challenge sessions", removed)
        return removed

    def pending_count(self) -> int:
        with self._lock, self._session_factory() as db:
            return len(db.execute(select(AuthSession.session_id)).all())


class SessionSweeper:
    """Periodically removes expired challenge sessions in the background."""

    def __init__(
        self,
        manager: ChallengeSessionManager,
        *,
        interval_seconds: float | None = None,
    ) -> None:
        self.manager = manager
        self.interval_seconds = max(
            0.01,
            float(
                settings.session_sweep_interval_seconds
                if interval_seconds is None
                else interval_seconds
            ),
        )
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop and wait for it to exit."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                pass
            else:
                return

            try:
                await asyncio.to_thread(self.manager.sweep_expired)
            except Exception as e:  # noqa: BLE001 - keep the loop alive
                logger.error("SessionSweeper failed to sweep sessions: %s", e, exc_info=True)
