"""PassVote: passkey-gated, fee-bearing survey voting."""

__version__ = "0.1.0"
