# src/passvote/api/v1/endpoints/surveys.py
"""Survey voting and results endpoints."""

from fastapi import APIRouter, status

from passvote.api.v1.dependencies import ServicesDep, raise_http
from passvote.schemas.survey import (
    CandidateResult,
    CheckVoteRequest,
    CheckVoteResponse,
    SurveyResultsResponse,
    VoteRequest,
    VoteResponse,
)
from passvote.services.errors import VoteStageError

router = APIRouter(prefix="/surveys", tags=["surveys"])


@router.post(
    "/{survey_id}/vote",
    status_code=status.HTTP_201_CREATED,
    response_model=VoteResponse,
)
def cast_vote(survey_id: str, payload: VoteRequest, services: ServicesDep) -> VoteResponse:
    """Record a vote directly in the ledger."""
    try:
        receipt = services.ledger.cast_vote(survey_id, payload.candidate_id, payload.voter_address)
    except VoteStageError as err:
        raise_http(err)
    return VoteResponse(total_votes=receipt.total_votes)


@router.post("/{survey_id}/check-vote", response_model=CheckVoteResponse)
def check_vote(survey_id: str, payload: CheckVoteRequest, services: ServicesDep) -> CheckVoteResponse:
    """Report whether a voter already has a vote in this survey."""
    return CheckVoteResponse(has_voted=services.ledger.has_voted(survey_id, payload.voter_address))


@router.get("/{survey_id}/results", response_model=SurveyResultsResponse)
def get_results(survey_id: str, services: ServicesDep) -> SurveyResultsResponse:
    try:
        tally = services.tally.compute_results(survey_id)
    except VoteStageError as err:
        raise_http(err)

    return SurveyResultsResponse(
        survey_id=tally.survey_id,
        survey_name=tally.survey_title,
        total_votes=tally.total_votes,
        results=[
            CandidateResult(
                candidate_id=row.candidate_id,
                candidate_name=row.candidate_name,
                votes=row.votes,
                percentage=row.percentage,
            )
            for row in tally.per_candidate
        ],
    )
