"""HTTP API for PassVote."""
