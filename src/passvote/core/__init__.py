"""Core configuration for PassVote."""
