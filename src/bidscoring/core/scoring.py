"""Weighted score arithmetic and project rankings."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Literal, Mapping, Sequence

from ..schemas import ProposalScore, ScoringTemplate

ScoringStatus = Literal["not_scored", "partially_scored", "fully_scored"]

_CENT = Decimal("0.01")


def _to_decimal(value: float) -> Decimal:
    # repr() gives the shortest round-tripping form, so 0.1 stays 0.1.
    return Decimal(repr(float(value)))


def _round2(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def calculate_weighted_score(raw_score: float, weight: float) -> float:
    """Scale a raw score by a weight percentage, rounded half-up to cents.

    Inputs are not validated here; run the validators first.
    """
    return _round2(_to_decimal(raw_score) * _to_decimal(weight) / 100)


def calculate_total_score(weighted_scores: Iterable[float]) -> float:
    total = sum((_to_decimal(score) for score in weighted_scores), Decimal(0))
    return _round2(total)


@dataclass(slots=True)
class ScoreEntry:
    """One criterion line of a proposal score sheet."""

    criterion_id: str
    criterion_name: str
    weight: float
    raw_score: float
    weighted_score: float
    notes: str | None = None


@dataclass(slots=True)
class ProposalScoreSheet:
    """Final scores of a proposal against a template."""

    proposal_id: str
    entries: list[ScoreEntry] = field(default_factory=list)
    total_score: float = 0.0
    scored_criteria: int = 0
    total_criteria: int = 0

    @property
    def is_fully_scored(self) -> bool:
        return self.total_criteria > 0 and self.scored_criteria == self.total_criteria

    @property
    def scoring_status(self) -> ScoringStatus:
        if self.scored_criteria == 0:
            return "not_scored"
        if self.is_fully_scored:
            return "fully_scored"
        return "partially_scored"


@dataclass(slots=True)
class ProposalRanking:
    proposal_id: str
    total_score: float
    rank: int
    is_fully_scored: bool
    scoring_status: ScoringStatus


def score_proposal(
    template: ScoringTemplate,
    proposal_id: str,
    scores: Iterable[ProposalScore],
) -> ProposalScoreSheet:
    """Build the score sheet of ``proposal_id`` from its final scores.

    Scores reference criteria by id; templates without ids are matched by
    criterion name. Non-final scores and scores of other proposals are
    ignored.
    """
    criteria = template.ordered_criteria()
    by_key = {(criterion.id or criterion.name): criterion for criterion in criteria}

    final_scores: dict[str, ProposalScore] = {}
    for score in scores:
        if score.proposal_id != proposal_id or not score.is_final:
            continue
        if score.criterion_id in by_key:
            final_scores[score.criterion_id] = score

    entries: list[ScoreEntry] = []
    for criterion in criteria:
        key = criterion.id or criterion.name
        score = final_scores.get(key)
        if score is None:
            continue
        entries.append(
            ScoreEntry(
                criterion_id=key,
                criterion_name=criterion.name,
                weight=criterion.weight,
                raw_score=score.raw_score,
                weighted_score=calculate_weighted_score(score.raw_score, criterion.weight),
                notes=score.notes,
            )
        )

    return ProposalScoreSheet(
        proposal_id=proposal_id,
        entries=entries,
        total_score=calculate_total_score(entry.weighted_score for entry in entries),
        scored_criteria=len(entries),
        total_criteria=len(criteria),
    )


def rank_proposals(
    sheets: Sequence[ProposalScoreSheet],
    submitted_at: Mapping[str, str] | None = None,
) -> list[ProposalRanking]:
    """Rank sheets by total score, highest first.

    Ties fall back to the earlier submission timestamp (ISO strings compare
    chronologically) and then to input order. Ranks are consecutive.
    """
    submitted_at = submitted_at or {}

    def sort_key(item: tuple[int, ProposalScoreSheet]) -> tuple[float, bool, str, int]:
        index, sheet = item
        submitted = submitted_at.get(sheet.proposal_id)
        return (-sheet.total_score, submitted is None, submitted or "", index)

    ordered = sorted(enumerate(sheets), key=sort_key)
    return [
        ProposalRanking(
            proposal_id=sheet.proposal_id,
            total_score=sheet.total_score,
            rank=position,
            is_fully_scored=sheet.is_fully_scored,
            scoring_status=sheet.scoring_status,
        )
        for position, (_, sheet) in enumerate(ordered, start=1)
    ]
