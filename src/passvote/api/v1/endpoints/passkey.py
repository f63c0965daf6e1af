# src/passvote/api/v1/endpoints/passkey.py
"""Passkey registration and authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from passvote.api.v1.dependencies import ServicesDep, raise_http
from passvote.core.security import create_access_token
from passvote.models import SESSION_KIND_AUTHENTICATE, SESSION_KIND_REGISTER
from passvote.schemas.passkey import (
    AuthenticateOptionsRequest,
    AuthenticateOptionsResponse,
    AuthenticateVerifyRequest,
    AuthenticateVerifyResponse,
    RegisterOptionsRequest,
    RegisterOptionsResponse,
    RegisterVerifyRequest,
    RegisterVerifyResponse,
)
from passvote.services.challenges import IdentityHint
from passvote.services.errors import SessionKindMismatch, VoteStageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/passkey", tags=["passkey"])


@router.post(
    "/register/options",
    summary="Issue a registration challenge",
    response_model=RegisterOptionsResponse,
)
def register_options(
    payload: RegisterOptionsRequest,
    services: ServicesDep,
) -> RegisterOptionsResponse:
    """Open a registration session bound to a fresh challenge."""
    try:
        issued = services.challenges.create_challenge(
            SESSION_KIND_REGISTER,
            IdentityHint(username=payload.username, display_name=payload.display_name),
        )
    except ValueError as err:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(err),
        ) from err

    return RegisterOptionsResponse(
        session_id=issued.session_id,
        challenge=issued.challenge_b64,
        user_id=issued.subject_user_id,
        username=payload.username,
        display_name=payload.display_name,
        expires_at=issued.expires_at,
    )


@router.post(
    "/register/verify",
    summary="Record a registered passkey",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterVerifyResponse,
)
def register_verify(
    payload: RegisterVerifyRequest,
    services: ServicesDep,
) -> RegisterVerifyResponse:
    """Consume the registration session and store the credential."""
    try:
        session = services.challenges.consume_session(
            payload.session_id, expected_kind=SESSION_KIND_REGISTER
        )
    except VoteStageError as err:
        raise_http(err)

    username = session.username or payload.username
    display_name = session.display_name or payload.display_name
    if not username:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="username is required",
        )
    if payload.username and payload.username != username:
        # The session is already spent; the client must start over.
        raise_http(SessionKindMismatch("Session was issued for a different user"))

    try:
        registration = services.credentials.register(
            identity_id=session.subject_user_id,
            credential_id=payload.credential_id,
            public_key=payload.public_key,
            username=username,
            display_name=display_name,
            wallet_address=payload.wallet_address,
        )
    except VoteStageError as err:
        raise_http(err)

    identity = registration.identity
    if payload.wallet_address and identity.wallet_address != payload.wallet_address:
        # Only the registration that creates an identity may bind its wallet.
        logger.warning("Ignored wallet address supplied for existing identity %s", identity.id)
    return RegisterVerifyResponse(
        user_id=identity.id,
        username=identity.username,
        display_name=identity.display_name,
        wallet_address=identity.wallet_address,
        created=registration.created,
    )


@router.post(
    "/authenticate/options",
    summary="Issue an authentication challenge",
    response_model=AuthenticateOptionsResponse,
)
def authenticate_options(
    payload: AuthenticateOptionsRequest,
    services: ServicesDep,
) -> AuthenticateOptionsResponse:
    issued = services.challenges.create_challenge(
        SESSION_KIND_AUTHENTICATE,
        IdentityHint(username=payload.username),
    )
    return AuthenticateOptionsResponse(
        session_id=issued.session_id,
        challenge=issued.challenge_b64,
        expires_at=issued.expires_at,
    )


@router.post(
    "/authenticate/verify",
    summary="Authenticate with a registered passkey",
    response_model=AuthenticateVerifyResponse,
)
def authenticate_verify(
    payload: AuthenticateVerifyRequest,
    services: ServicesDep,
) -> AuthenticateVerifyResponse:
    """Consume the authentication session and issue an access token."""
    try:
        session = services.challenges.consume_session(
            payload.session_id, expected_kind=SESSION_KIND_AUTHENTICATE
        )
        if session.username and session.username != payload.username:
            raise SessionKindMismatch("Session was issued for a different user")
        services.credentials.find(payload.username, payload.credential_id)
        identity = services.credentials.get_identity(payload.username)
    except VoteStageError as err:
        raise_http(err)

    access_token = create_access_token(
        identity.id,
        extra_claims={"username": identity.username},
    )
    return AuthenticateVerifyResponse(
        access_token=access_token,
        user_id=identity.id,
        username=identity.username,
        display_name=identity.display_name,
        wallet_address=identity.wallet_address,
    )
