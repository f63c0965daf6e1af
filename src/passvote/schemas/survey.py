"""Survey voting and results Pydantic schemas."""

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    """Schema for recording a vote in a survey."""

    candidate_id: str = Field(..., min_length=1)
    voter_address: str = Field(..., min_length=1)


class VoteResponse(BaseModel):
    success: bool = True
    message: str = "Vote registered successfully"
    total_votes: int


class CheckVoteRequest(BaseModel):
    voter_address: str = Field(..., min_length=1)


class CheckVoteResponse(BaseModel):
    has_voted: bool


class CandidateResult(BaseModel):
    candidate_id: str
    candidate_name: str
    votes: int
    percentage: float


class SurveyResultsResponse(BaseModel):
    """Tallied results, most votes first."""

    survey_id: str
    survey_name: str
    total_votes: int
    results: list[CandidateResult]
