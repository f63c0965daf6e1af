"""Deterministic tallying of survey results."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from passvote.services.ledger import VoteLedger
from passvote.services.surveys import SurveyCatalog


@dataclass(frozen=True)
class CandidateTally:
    candidate_id: str
    candidate_name: str
    votes: int
    percentage: float


@dataclass(frozen=True)
class TallyResult:
    """Per-candidate results, most votes first."""

    survey_id: str
    survey_title: str
    total_votes: int
    per_candidate: list[CandidateTally] = field(default_factory=list)


PERCENT_UNITS = 10_000  # hundredths of a percent


def apportion_percentages(counts: list[int]) -> list[float]:
    """Split 100% across ``counts`` in hundredths using largest remainders.

    Each share is within 0.01 of its exact value and the shares sum to
    exactly 100.00 whenever any vote was cast. Ties in the remainder go
    to the earlier position.
    """
    total = sum(counts)
    if total <= 0:
        return [0.0] * len(counts)

    units = [count * PERCENT_UNITS // total for count in counts]
    remainders = [count * PERCENT_UNITS % total for count in counts]
    leftover = PERCENT_UNITS - sum(units)
    by_remainder = sorted(range(len(counts)), key=lambda i: (-remainders[i], i))
    for index in by_remainder[:leftover]:
        units[index] += 1

    return [unit / 100 for unit in units]


class TallyEngine:
    """Derives results from the ledger; holds no state of its own."""

    def __init__(self, ledger: VoteLedger, catalog: SurveyCatalog) -> None:
        self._ledger = ledger
        self._catalog = catalog

    def compute_results(self, survey_id: str) -> TallyResult:
        survey = self._catalog.get(survey_id)
        votes = self._ledger.votes_for(survey_id)
        counts = Counter(vote.candidate_id for vote in votes)
        total = len(votes)

        # Ballot order first, then ids voted for but no longer on the ballot.
        ordered_ids = list(survey.candidate_ids)
        seen = set(ordered_ids)
        for vote in votes:
            if vote.candidate_id not in seen:
                seen.add(vote.candidate_id)
                ordered_ids.append(vote.candidate_id)

        names = self._catalog.candidate_names(ordered_ids)
        percentages = apportion_percentages([counts[cid] for cid in ordered_ids])
        rows = [
            CandidateTally(
                candidate_id=cid,
                candidate_name=names[cid],
                votes=counts[cid],
                percentage=percentage,
            )
            for cid, percentage in zip(ordered_ids, percentages)
        ]
        # sorted() is stable, so ties keep ballot order.
        rows = sorted(rows, key=lambda row: row.votes, reverse=True)

        return TallyResult(
            survey_id=survey.id,
            survey_title=survey.title,
            total_votes=total,
            per_candidate=rows,
        )
