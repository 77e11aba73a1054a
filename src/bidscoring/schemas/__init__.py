"""Pydantic schema definitions for scoring and proposal records."""

from __future__ import annotations

from .proposal import (
    BiddingTeam,
    ComplianceItem,
    ProposalDetail,
    ProposalSection,
    ProposalSummary,
    TeamMember,
)
from .scoring import ProposalScore, ScoreRevision, ScoringCriterion, ScoringTemplate

__all__ = [
    "BiddingTeam",
    "ComplianceItem",
    "ProposalDetail",
    "ProposalSection",
    "ProposalSummary",
    "TeamMember",
    "ProposalScore",
    "ScoreRevision",
    "ScoringCriterion",
    "ScoringTemplate",
]
