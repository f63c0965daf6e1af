"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .passkey import (
    AuthenticateOptionsRequest,
    AuthenticateOptionsResponse,
    AuthenticateVerifyRequest,
    AuthenticateVerifyResponse,
    RegisterOptionsRequest,
    RegisterOptionsResponse,
    RegisterVerifyRequest,
    RegisterVerifyResponse,
)
from .survey import (
    CandidateResult,
    CheckVoteRequest,
    CheckVoteResponse,
    SurveyResultsResponse,
    VoteRequest,
    VoteResponse,
)
from .vote import PaidVoteRequest, PaidVoteResponse

__all__ = [
    "AuthenticateOptionsRequest", "AuthenticateOptionsResponse",
    "AuthenticateVerifyRequest", "AuthenticateVerifyResponse",
    "RegisterOptionsRequest", "RegisterOptionsResponse",
    "RegisterVerifyRequest", "RegisterVerifyResponse",
    "CandidateResult", "CheckVoteRequest", "CheckVoteResponse",
    "SurveyResultsResponse", "VoteRequest", "VoteResponse",
    "PaidVoteRequest", "PaidVoteResponse",
]
