# src/passvote/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .passkey import router as passkey_router
from .surveys import router as surveys_router
from .votes import router as votes_router

__all__ = [
    "passkey_router",
    "surveys_router",
    "votes_router",
]
