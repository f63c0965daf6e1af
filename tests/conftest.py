# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SESSION_SWEEP_ENABLED", "false")

from passvote.api.v1.dependencies import ServiceContainer, build_services
from passvote.core.security import create_access_token
from passvote.db.session import Base
from passvote.main import app as fastapi_app
from passvote.models import Candidate, Identity, Survey, SurveyCandidate
from passvote.services.challenges import ChallengeSessionManager
from passvote.services.credentials import CredentialStore
from passvote.services.ledger import VoteLedger
from passvote.services.surveys import SurveyCatalog
from passvote.services.tally import TallyEngine
from passvote.services.wallet import HttpWalletGateway, PaymentReceipt

TEST_DB_URL = "sqlite://"
VOTER_ADDRESS = "GVOTERADDRESS0000000000000000000000000000000000000000001"


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def challenge_manager(
    session_factory: sessionmaker[Session], clock: FakeClock
) -> ChallengeSessionManager:
    return ChallengeSessionManager(session_factory, ttl_seconds=600, clock=clock)


@pytest.fixture()
def credential_store(session_factory: sessionmaker[Session]) -> CredentialStore:
    return CredentialStore(session_factory)


@pytest.fixture()
def catalog(session_factory: sessionmaker[Session]) -> SurveyCatalog:
    return SurveyCatalog(session_factory)


@pytest.fixture()
def ledger(session_factory: sessionmaker[Session], clock: FakeClock) -> VoteLedger:
    return VoteLedger(session_factory, clock=clock)


@pytest.fixture()
def tally(ledger: VoteLedger, catalog: SurveyCatalog) -> TallyEngine:
    return TallyEngine(ledger, catalog)


def seed_survey(
    factory: sessionmaker[Session],
    survey_id: str = "survey-1",
    candidates: tuple[tuple[str, str | None], ...] = (("cand-a", "Alice"), ("cand-b", "Bob")),
    **fields: Any,
) -> str:
    """Persist a survey; a candidate with a ``None`` name is left out of the catalog."""
    with factory() as db:
        survey = Survey(id=survey_id, title=fields.pop("title", f"Survey {survey_id}"), **fields)
        for position, (candidate_id, name) in enumerate(candidates):
            if name is not None and db.get(Candidate, candidate_id) is None:
                db.add(Candidate(id=candidate_id, name=name))
            survey.entries.append(
                SurveyCandidate(candidate_id=candidate_id, position=position)
            )
        db.add(survey)
        db.commit()
    return survey_id


@pytest.fixture()
def make_survey(session_factory: sessionmaker[Session]) -> Callable[..., str]:
    def _make(survey_id: str = "survey-1", **kwargs: Any) -> str:
        return seed_survey(session_factory, survey_id, **kwargs)

    return _make


@pytest.fixture()
def survey(make_survey: Callable[..., str]) -> str:
    """Active survey with candidates [cand-a, cand-b]."""
    return make_survey()


@pytest.fixture()
def wallet() -> AsyncMock:
    """Connected wallet with ample balance whose payments succeed."""
    gateway = AsyncMock(spec=HttpWalletGateway)
    gateway.is_session_active.return_value = True
    gateway.get_balance.return_value = Decimal("25")
    gateway.pay.return_value = PaymentReceipt(
        transaction_hash="a1b2c3d4e5f6",
        source=VOTER_ADDRESS,
        destination="GDESTINATION",
        amount=Decimal("0.1"),
    )
    return gateway


@pytest.fixture()
def services(session_factory: sessionmaker[Session], wallet: AsyncMock) -> ServiceContainer:
    return build_services(session_factory, wallet)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, services: ServiceContainer) -> Iterator[TestClient]:
    app.state.services = services
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        del app.state.services


@pytest.fixture()
def voter_identity(session_factory: sessionmaker[Session]) -> Identity:
    """Persisted identity whose wallet is ``VOTER_ADDRESS``."""
    with session_factory(expire_on_commit=False) as db:
        identity = Identity(
            id="user-voter",
            username="voter",
            display_name="Voter",
            wallet_address=VOTER_ADDRESS,
        )
        db.add(identity)
        db.commit()
    return identity


@pytest.fixture()
def auth_token(voter_identity: Identity) -> dict[str, str]:
    """Return authorization headers for the voter identity."""
    token = create_access_token(voter_identity.id, extra_claims={"username": voter_identity.username})
    return {"Authorization": f"Bearer {token}"}
