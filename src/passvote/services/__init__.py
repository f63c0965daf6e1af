"""Business logic services for the PassVote application."""

from .challenges import ChallengeSessionManager, SessionSweeper
from .credentials import CredentialStore
from .ledger import VoteLedger
from .payment import PaymentCoordinator
from .surveys import SurveyCatalog
from .tally import TallyEngine
from .wallet import HttpWalletGateway

__all__ = [
    "ChallengeSessionManager",
    "SessionSweeper",
    "CredentialStore",
    "SurveyCatalog",
    "VoteLedger",
    "TallyEngine",
    "HttpWalletGateway",
    "PaymentCoordinator",
]
