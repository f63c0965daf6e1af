"""Fee-bearing vote Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class PaidVoteRequest(BaseModel):
    """Schema for paying the vote fee and casting a vote."""

    survey_id: str = Field(..., min_length=1)
    candidate_id: str = Field(..., min_length=1)
    voter_address: str = Field(..., min_length=1)


class PaidVoteResponse(BaseModel):
    """Outcome of a fee-bearing vote.

    ``outcome`` tells apart nothing happening, a payment without a recorded
    vote, and a completed vote.
    """

    success: bool
    outcome: Literal["not_charged", "charged_not_recorded", "completed"]
    message: str
    transaction_hash: str | None = None
    total_votes: int | None = None
    error: str | None = Field(None, description="Machine-readable error name")
    reconciliation_required: bool = False
