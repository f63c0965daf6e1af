"""Shared API dependencies for service wiring and authentication."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from passvote.core.security import decode_access_token
from passvote.models import Identity
from passvote.services.challenges import ChallengeSessionManager, SessionSweeper
from passvote.services.credentials import CredentialStore
from passvote.services.errors import IdentityNotFound, VoteStageError
from passvote.services.ledger import VoteLedger
from passvote.services.payment import PaymentCoordinator
from passvote.services.surveys import SurveyCatalog
from passvote.services.tally import TallyEngine
from passvote.services.wallet import HttpWalletGateway, WalletGateway

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()


@dataclass
class ServiceContainer:
    """Every long-lived service, built once per process."""

    challenges: ChallengeSessionManager
    sweeper: SessionSweeper
    credentials: CredentialStore
    catalog: SurveyCatalog
    ledger: VoteLedger
    tally: TallyEngine
    wallet: WalletGateway
    payments: PaymentCoordinator


def build_services(
    session_factory: sessionmaker[Session],
    wallet: WalletGateway | None = None,
) -> ServiceContainer:
    """Construct the service graph around one session factory."""
    challenges = ChallengeSessionManager(session_factory)
    catalog = SurveyCatalog(session_factory)
    ledger = VoteLedger(session_factory)
    if wallet is None:
        wallet = HttpWalletGateway()
    return ServiceContainer(
        challenges=challenges,
        sweeper=SessionSweeper(challenges),
        credentials=CredentialStore(session_factory),
        catalog=catalog,
        ledger=ledger,
        tally=TallyEngine(ledger, catalog),
        wallet=wallet,
        payments=PaymentCoordinator(ledger, wallet),
    )


def get_services(request: Request) -> ServiceContainer:
    """Return the container attached to the application at startup."""
    services: ServiceContainer | None = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up",
        )
    return services


ServicesDep = Annotated[ServiceContainer, Depends(get_services)]


def raise_http(err: VoteStageError) -> NoReturn:
    """Translate a domain error into the HTTP error it maps to."""
    raise HTTPException(status_code=err.status_code, detail=str(err)) from err


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    services: ServicesDep,
) -> Identity:
    """Get the identity of the bearer of a valid access token.

    Raises:
        HTTPException: If the token is invalid or the identity no longer exists.
    """
    try:
        payload = decode_access_token(credentials.credentials)
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
        ) from err

    username = payload.get("username")
    if not username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    try:
        identity = services.credentials.get_identity(username)
    except IdentityNotFound as err:
        raise_http(err)
    if identity.id != payload["sub"]:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return identity


# Type alias for current identity dependency
CurrentIdentityDep = Annotated[Identity, Depends(get_current_identity)]
