"""Read-only access to the survey and candidate catalog."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from passvote.db.time import as_utc
from passvote.models import Candidate, Survey
from passvote.services.errors import SurveyNotFound

UNKNOWN_CANDIDATE_NAME = "Unknown"


@dataclass(frozen=True)
class SurveySnapshot:
    """Immutable view of a survey as seen by the ledger and tally."""

    id: str
    title: str
    candidate_ids: tuple[str, ...]
    is_active: bool
    start_date: datetime | None = None
    end_date: datetime | None = None

    def accepts_votes_at(self, moment: datetime) -> bool:
        """Return True if the survey is active and ``moment`` falls in its window."""
        if not self.is_active:
            return False
        if self.start_date is not None and moment < self.start_date:
            return False
        return not (self.end_date is not None and moment > self.end_date)


class SurveyCatalog:
    """Looks up surveys and candidate names; never writes."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, survey_id: str) -> SurveySnapshot:
        with self._session_factory() as db:
            return self.load(db, survey_id)

    @staticmethod
    def load(db: Session, survey_id: str) -> SurveySnapshot:
        """Load a survey using an existing database session."""
        survey = db.get(Survey, survey_id)
        if survey is None:
            raise SurveyNotFound()
        return SurveySnapshot(
            id=survey.id,
            title=survey.title,
            candidate_ids=tuple(survey.candidate_ids),
            is_active=survey.is_active,
            start_date=as_utc(survey.start_date) if survey.start_date else None,
            end_date=as_utc(survey.end_date) if survey.end_date else None,
        )

    def candidate_names(self, candidate_ids: Iterable[str]) -> dict[str, str]:
        """Map candidate ids to display names, using a sentinel for unknown ids."""
        ids = list(dict.fromkeys(candidate_ids))
        if not ids:
            return {}
        with self._session_factory() as db:
            rows = db.execute(
                select(Candidate.id, Candidate.name).where(Candidate.id.in_(ids))
            ).all()
        known = {row.id: row.name for row in rows}
        return {cid: known.get(cid, UNKNOWN_CANDIDATE_NAME) for cid in ids}
