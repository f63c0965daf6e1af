# src/passvote/models/__init__.py
"""SQLAlchemy models for the PassVote application."""

from .auth_session import SESSION_KIND_AUTHENTICATE, SESSION_KIND_REGISTER, AuthSession
from .credential import Credential, Identity
from .survey import Candidate, Survey, SurveyCandidate
from .vote import Vote

__all__ = [
    "AuthSession", "SESSION_KIND_REGISTER", "SESSION_KIND_AUTHENTICATE",
    "Credential", "Identity",
    "Candidate", "Survey", "SurveyCandidate",
    "Vote",
]
