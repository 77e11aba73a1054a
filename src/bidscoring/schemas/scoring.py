"""Scoring template and score records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ScoringCriterion(BaseModel):
    """Weighted evaluation dimension of a template."""

    id: str | None = None
    name: str
    description: str | None = None
    weight: float
    order_index: int = 0

    model_config = ConfigDict(extra="forbid")


class ScoringTemplate(BaseModel):
    """Set of criteria shared by every proposal of a project."""

    id: str | None = None
    name: str
    description: str | None = None
    criteria: list[ScoringCriterion] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def ordered_criteria(self) -> list[ScoringCriterion]:
        return sorted(self.criteria, key=lambda criterion: criterion.order_index)


class ProposalScore(BaseModel):
    """Evaluator score for one (proposal, criterion) pair."""

    proposal_id: str
    criterion_id: str
    raw_score: float
    notes: str | None = None
    is_final: bool = True

    model_config = ConfigDict(extra="forbid")


class ScoreRevision(BaseModel):
    """Audited correction of an existing score."""

    proposal_id: str
    criterion_id: str
    new_raw_score: float
    new_notes: str | None = None
    reason: str

    model_config = ConfigDict(extra="forbid")
