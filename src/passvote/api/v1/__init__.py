"""Version 1 API endpoints."""

from .endpoints import passkey_router, surveys_router, votes_router

__all__ = [
    "passkey_router",
    "surveys_router",
    "votes_router",
]
