"""Fee-bearing vote workflow spanning the wallet and the vote ledger.

The workflow pays first and records second. A transfer cannot be undone,
so a failed ledger write after a successful payment, or a payment the
signer acknowledged without a readable reply, is reported for manual
reconciliation. Payments are never retried.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from passvote.core.settings import settings
from passvote.services.errors import (
    AlreadyVoted,
    InsufficientBalance,
    PaymentFailed,
    PaymentUnconfirmed,
    PostPaymentLedgerWriteFailed,
    VoteStageError,
    WalletNotConnected,
)
from passvote.services.ledger import VoteLedger
from passvote.services.wallet import (
    PaymentNotConfirmed,
    PaymentReceipt,
    WalletError,
    WalletGateway,
)

logger = logging.getLogger(__name__)


def fee_idempotency_key(survey_id: str, voter_address: str) -> str:
    """Return the signer idempotency key for the fee of one vote.

    The key is stable per (survey, voter) so a retried request cannot make
    the signer submit a second transfer.
    """
    digest = hashlib.sha256(f"vote-fee:{survey_id}:{voter_address}".encode()).hexdigest()
    return f"vote-{digest[:32]}"


class VoteOutcome(str, Enum):
    """How far a fee-bearing vote progressed."""

    NOT_CHARGED = "not_charged"
    CHARGED_NOT_RECORDED = "charged_not_recorded"
    COMPLETED = "completed"


@dataclass(frozen=True)
class PaidVoteResult:
    """Result of a fee-bearing vote attempt."""

    outcome: VoteOutcome
    message: str
    transaction_hash: str | None = None
    total_votes: int | None = None
    error: VoteStageError | None = None

    @property
    def success(self) -> bool:
        return self.outcome is VoteOutcome.COMPLETED

    @property
    def reconciliation_required(self) -> bool:
        return self.outcome is VoteOutcome.CHARGED_NOT_RECORDED


class PaymentCoordinator:
    """Charges the vote fee, then records the vote."""

    def __init__(
        self,
        ledger: VoteLedger,
        wallet: WalletGateway,
        *,
        destination: str | None = None,
        fee: Decimal | None = None,
        reserve_margin: Decimal | None = None,
    ) -> None:
        self._ledger = ledger
        self._wallet = wallet
        self.destination = destination or settings.vote_payment_destination
        self.fee = settings.vote_fee if fee is None else fee
        self.reserve_margin = (
            settings.vote_reserve_margin if reserve_margin is None else reserve_margin
        )

    @property
    def minimum_balance(self) -> Decimal:
        return self.fee + self.reserve_margin

    async def vote(self, survey_id: str, candidate_id: str, voter_address: str) -> PaidVoteResult:
        """Pay the fee from ``voter_address`` and record its vote."""
        try:
            await self._check_preconditions(survey_id, candidate_id, voter_address)
            receipt = await self._pay(survey_id, voter_address)
        except PaymentUnconfirmed as err:
            logger.error(
                "Vote fee from %s for %s may have been charged but was not confirmed: %s",
                voter_address,
                survey_id,
                err,
            )
            return PaidVoteResult(
                outcome=VoteOutcome.CHARGED_NOT_RECORDED, message=str(err), error=err
            )
        except VoteStageError as err:
            return PaidVoteResult(outcome=VoteOutcome.NOT_CHARGED, message=str(err), error=err)

        tx_hash = receipt.transaction_hash
        try:
            cast = await asyncio.to_thread(
                self._ledger.cast_vote, survey_id, candidate_id, voter_address
            )
        except (VoteStageError, SQLAlchemyError) as err:
            failure = PostPaymentLedgerWriteFailed(tx_hash, err)
            logger.error(
                "Vote fee paid (%s) but vote in %s for %s was not recorded: %s",
                tx_hash,
                survey_id,
                voter_address,
                err,
            )
            return PaidVoteResult(
                outcome=VoteOutcome.CHARGED_NOT_RECORDED,
                message=str(failure),
                transaction_hash=tx_hash,
                error=failure,
            )

        return PaidVoteResult(
            outcome=VoteOutcome.COMPLETED,
            message=f"Vote recorded. Charged {self.fee} XLM",
            transaction_hash=tx_hash,
            total_votes=cast.total_votes,
        )

    async def _check_preconditions(
        self, survey_id: str, candidate_id: str, voter_address: str
    ) -> None:
        # Reject anything the ledger would refuse before money moves.
        await asyncio.to_thread(self._ledger.validate_ballot, survey_id, candidate_id)

        try:
            if not await self._wallet.is_session_active(voter_address):
                raise WalletNotConnected("Please connect your wallet first")
            balance = await self._wallet.get_balance(voter_address)
        except WalletError as err:
            raise PaymentFailed(f"Could not reach wallet: {err}") from err

        # A retried request after a dropped connection must not pay twice.
        if await asyncio.to_thread(self._ledger.has_voted, survey_id, voter_address):
            raise AlreadyVoted()

        if balance < self.minimum_balance:
            raise InsufficientBalance(
                f"Insufficient balance. At least {self.minimum_balance} XLM is required "
                f"({self.fee} XLM fee + {self.reserve_margin} XLM reserve); "
                f"current balance is {balance} XLM"
            )

    async def _pay(self, survey_id: str, voter_address: str) -> PaymentReceipt:
        key = fee_idempotency_key(survey_id, voter_address)
        try:
            return await self._wallet.pay(
                voter_address, self.destination, self.fee, idempotency_key=key
            )
        except PaymentNotConfirmed as err:
            raise PaymentUnconfirmed(
                f"Payment was submitted but could not be confirmed: {err}. "
                f"Contact support with payment reference {key}"
            ) from err
        except WalletError as err:
            logger.warning("Vote fee payment from %s failed: %s", voter_address, err)
            raise PaymentFailed(f"Payment failed: {err}") from err
