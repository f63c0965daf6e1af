"""Persistence of passkey credentials and voter identities."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from passvote.models import Credential, Identity
from passvote.services.errors import CredentialNotFound, DuplicateCredential, IdentityNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registration:
    """A stored credential together with the identity that owns it."""

    credential: Credential
    identity: Identity
    created: bool


class CredentialStore:
    """Durable mapping of (username, credential id) to public-key credentials.

    Returned ORM instances are detached snapshots; the store never mutates a
    credential after it has been written.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def register(
        self,
        identity_id: str,
        credential_id: str,
        public_key: str,
        username: str,
        display_name: str | None,
        wallet_address: str | None = None,
    ) -> Registration:
        """Record a new credential and the identity that owns it.

        An existing identity for ``username`` is reused untouched and the
        credential is stored under its id; ``identity_id`` and
        ``wallet_address`` only apply when the identity is created here.

        Raises:
            DuplicateCredential: the (username, credential id) pair is taken.
        """
        try:
            registration = self._register_once(
                identity_id, credential_id, public_key, username, display_name, wallet_address
            )
        except IntegrityError:
            # A concurrent registration created the identity first; resolve to it.
            registration = self._register_once(
                identity_id, credential_id, public_key, username, display_name, wallet_address
            )

        logger.info(
            "Registered credential %d for %s (new identity: %s)",
            registration.credential.id,
            username,
            registration.created,
        )
        return registration

    def _register_once(
        self,
        identity_id: str,
        credential_id: str,
        public_key: str,
        username: str,
        display_name: str | None,
        wallet_address: str | None,
    ) -> Registration:
        with self._session_factory(expire_on_commit=False) as db:
            identity = self._identity_by_username(db, username)
            created = identity is None
            if identity is None:
                identity = Identity(
                    id=identity_id,
                    username=username,
                    display_name=display_name,
                    wallet_address=wallet_address,
                )
                db.add(identity)

            credential = Credential(
                subject_user_id=identity.id,
                credential_id=credential_id,
                public_key=public_key,
                username=username,
                display_name=display_name,
            )
            db.add(credential)
            try:
                db.commit()
            except IntegrityError as err:
                db.rollback()
                if self._credential_exists(db, username, credential_id):
                    logger.info("Duplicate credential registration for %s", username)
                    raise DuplicateCredential() from err
                raise
            db.expunge(identity)
            db.expunge(credential)

        return Registration(credential=credential, identity=identity, created=created)

    def find(self, username: str, credential_id: str) -> Credential:
        """Return the credential matching both fields exactly."""
        with self._session_factory(expire_on_commit=False) as db:
            credential = db.execute(
                select(Credential).where(
                    Credential.username == username,
                    Credential.credential_id == credential_id,
                )
            ).scalar_one_or_none()
            if credential is None:
                raise CredentialNotFound()
            db.expunge(credential)
        return credential

    def get_identity(self, username: str) -> Identity:
        with self._session_factory(expire_on_commit=False) as db:
            identity = self._identity_by_username(db, username)
            if identity is None:
                raise IdentityNotFound()
            db.expunge(identity)
        return identity

    @staticmethod
    def _identity_by_username(db: Session, username: str) -> Identity | None:
        return db.execute(
            select(Identity).where(Identity.username == username)
        ).scalar_one_or_none()

    @staticmethod
    def _credential_exists(db: Session, username: str, credential_id: str) -> bool:
        return (
            db.execute(
                select(Credential.id).where(
                    Credential.username == username,
                    Credential.credential_id == credential_id,
                )
            ).first()
            is not None
        )
