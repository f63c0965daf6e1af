"""Domain errors raised by PassVote services.

Every error carries the HTTP status the API layer reports it with, so
endpoints can translate any ``VoteStageError`` uniformly.
"""

from __future__ import annotations

from fastapi import status


class VoteStageError(RuntimeError):
    """Base exception for all PassVote domain failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)

    @property
    def code(self) -> str:
        """Stable machine-readable error name."""
        return type(self).__name__


class SessionInvalidOrExpired(VoteStageError):
    """The challenge session cannot be used."""

    detail = "Session invalid or expired"


class SessionNotFound(SessionInvalidOrExpired):
    """No pending session exists under the given id."""

    detail = "Session invalid or expired"


class SessionExpired(SessionInvalidOrExpired):
    """The session outlived its TTL before being consumed."""

    detail = "Session expired"


class SessionKindMismatch(SessionInvalidOrExpired):
    """A registration session was presented to authentication, or vice versa."""

    detail = "Session was issued for a different ceremony"


class DuplicateCredential(VoteStageError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Credential already registered"


class CredentialNotFound(VoteStageError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Credential not found"


class IdentityNotFound(VoteStageError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "User not found"


class SurveyNotFound(VoteStageError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Survey not found"


class SurveyInactive(VoteStageError):
    detail = "Survey is not accepting votes"


class CandidateNotInSurvey(VoteStageError):
    detail = "Candidate not in this survey"


class AlreadyVoted(VoteStageError):
    status_code = status.HTTP_409_CONFLICT
    detail = "You have already voted in this survey"


class WalletNotConnected(VoteStageError):
    detail = "Wallet not connected"


class InsufficientBalance(VoteStageError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    detail = "Insufficient balance"


class PaymentFailed(VoteStageError):
    """The external transfer did not happen; retrying is safe."""

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Payment failed"


class PaymentUnconfirmed(VoteStageError):
    """The signer acknowledged the payment but its outcome is unknown.

    The fee may have been charged; retrying could charge it twice.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    detail = "Payment was submitted but could not be confirmed"


class PostPaymentLedgerWriteFailed(VoteStageError):
    """The fee was paid but the vote could not be recorded.

    Requires manual reconciliation against ``transaction_hash``.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail = "Payment succeeded but the vote was not recorded"

    def __init__(self, transaction_hash: str, cause: BaseException) -> None:
        self.transaction_hash = transaction_hash
        self.cause = cause
        super().__init__(
            f"{self.detail}: {cause}. Contact support with transaction hash {transaction_hash}"
        )
