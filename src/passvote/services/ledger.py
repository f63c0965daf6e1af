"""Append-only vote ledger enforcing one vote per (survey, voter)."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from passvote.db.time import as_utc, utcnow
from passvote.models import Vote
from passvote.services.errors import AlreadyVoted, CandidateNotInSurvey, SurveyInactive
from passvote.services.surveys import SurveyCatalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CastReceipt:
    """Outcome of a recorded vote."""

    survey_id: str
    candidate_id: str
    voter_address: str
    total_votes: int


@dataclass(frozen=True)
class VoteRecord:
    candidate_id: str
    voter_address: str
    timestamp: datetime


class VoteLedger:
    """Records votes so that each voter wins at most once per survey.

    Writers for one survey are serialized by an in-process lock; the
    ``uq_vote_survey_voter`` constraint remains the arbiter when several
    processes share the database.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _survey_lock(self, survey_id: str) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks.setdefault(survey_id, threading.Lock())
        with lock:
            yield

    def cast_vote(self, survey_id: str, candidate_id: str, voter_address: str) -> CastReceipt:
        """Record a vote and return the survey's new total.

        Raises:
            SurveyNotFound: the survey does not exist.
            SurveyInactive: the survey is closed or outside its voting window.
            CandidateNotInSurvey: the candidate is not on this survey's ballot.
            AlreadyVoted: the voter already has a vote in this survey.
        """
        with self._survey_lock(survey_id), self._session_factory() as db:
            self._check_ballot(db, survey_id, candidate_id)

            db.add(
                Vote(
                    survey_id=survey_id,
                    candidate_id=candidate_id,
                    voter_address=voter_address,
                    timestamp=self._clock(),
                )
            )
            try:
                db.commit()
            except IntegrityError as err:
                db.rollback()
                if self._voted(db, survey_id, voter_address):
                    logger.info("Rejected duplicate vote in %s from %s", survey_id, voter_address)
                    raise AlreadyVoted() from err
                raise

            total = self._count(db, survey_id)

        logger.info(
            "Recorded vote in %s for %s (total=%d)", survey_id, candidate_id, total
        )
        return CastReceipt(
            survey_id=survey_id,
            candidate_id=candidate_id,
            voter_address=voter_address,
            total_votes=total,
        )

    def validate_ballot(self, survey_id: str, candidate_id: str) -> None:
        """Raise unless a vote for ``candidate_id`` in ``survey_id`` would be accepted now."""
        with self._session_factory() as db:
            self._check_ballot(db, survey_id, candidate_id)

    def has_voted(self, survey_id: str, voter_address: str) -> bool:
        with self._session_factory() as db:
            return self._voted(db, survey_id, voter_address)

    def total_votes(self, survey_id: str) -> int:
        with self._session_factory() as db:
            return self._count(db, survey_id)

    def votes_for(self, survey_id: str) -> list[VoteRecord]:
        """Return every committed vote of a survey in insertion order."""
        with self._session_factory() as db:
            rows = db.execute(
                select(Vote.candidate_id, Vote.voter_address, Vote.timestamp)
                .where(Vote.survey_id == survey_id)
                .order_by(Vote.id)
            ).all()
        return [
            VoteRecord(
                candidate_id=row.candidate_id,
                voter_address=row.voter_address,
                timestamp=as_utc(row.timestamp),
            )
            for row in rows
        ]

    def _check_ballot(self, db: Session, survey_id: str, candidate_id: str) -> None:
        survey = SurveyCatalog.load(db, survey_id)
        if not survey.accepts_votes_at(self._clock()):
            raise SurveyInactive()
        if candidate_id not in survey.candidate_ids:
            raise CandidateNotInSurvey()

    @staticmethod
    def _voted(db: Session, survey_id: str, voter_address: str) -> bool:
        return (
            db.execute(
                select(Vote.id).where(
                    Vote.survey_id == survey_id,
                    Vote.voter_address == voter_address,
                )
            ).first()
            is not None
        )

    @staticmethod
    def _count(db: Session, survey_id: str) -> int:
        return int(
            db.execute(
                select(func.count()).select_from(Vote).where(Vote.survey_id == survey_id)
            ).scalar_one()
        )
