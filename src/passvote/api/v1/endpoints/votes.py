# src/passvote/api/v1/endpoints/votes.py
"""Fee-bearing vote endpoints."""

from fastapi import APIRouter, HTTPException, Response, status

from passvote.api.v1.dependencies import CurrentIdentityDep, ServicesDep
from passvote.schemas.vote import PaidVoteRequest, PaidVoteResponse
from passvote.services.payment import PaidVoteResult

router = APIRouter(prefix="/votes", tags=["votes"])


def _to_response(result: PaidVoteResult) -> PaidVoteResponse:
    return PaidVoteResponse(
        success=result.success,
        outcome=result.outcome.value,
        message=result.message,
        transaction_hash=result.transaction_hash,
        total_votes=result.total_votes,
        error=result.error.code if result.error else None,
        reconciliation_required=result.reconciliation_required,
    )


@router.post("/paid", status_code=status.HTTP_201_CREATED, response_model=PaidVoteResponse)
async def cast_paid_vote(
    payload: PaidVoteRequest,
    current_identity: CurrentIdentityDep,
    services: ServicesDep,
    response: Response,
) -> PaidVoteResponse:
    """Pay the vote fee from the caller's wallet, then record the vote.

    A paid-but-unrecorded vote is answered with the error status of
    ``PostPaymentLedgerWriteFailed`` and carries the transaction hash.
    """
    if current_identity.wallet_address and current_identity.wallet_address != payload.voter_address:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Voter address does not belong to the authenticated identity",
        )

    result = await services.payments.vote(
        payload.survey_id,
        payload.candidate_id,
        payload.voter_address,
    )
    if result.error is not None:
        response.status_code = result.error.status_code
    return _to_response(result)
