from __future__ import annotations

import pytest
from pydantic import ValidationError

from bidscoring.core.comparison import coerce_proposal
from bidscoring.schemas import ProposalDetail, ProposalScore, ProposalSummary, ScoringTemplate


def test_template_orders_criteria():
    template = ScoringTemplate.model_validate(
        {
            "name": "Evaluation",
            "criteria": [
                {"name": "Price", "weight": 40, "order_index": 2},
                {"name": "Quality", "weight": 60, "order_index": 0},
            ],
        }
    )

    assert [criterion.name for criterion in template.ordered_criteria()] == ["Quality", "Price"]


def test_score_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        ProposalScore.model_validate(
            {"proposal_id": "P", "criterion_id": "C", "raw_score": 5, "grade": "A"}
        )


def test_score_defaults_to_final():
    score = ProposalScore(proposal_id="P", criterion_id="C", raw_score=5)

    assert score.is_final
    assert score.notes is None


def test_coerce_proposal_picks_shape():
    detail = coerce_proposal({"id": "D", "bidding_team": {"members": []}})
    summary = coerce_proposal({"id": "S", "team_size": 2, "unread_messages": 3})

    assert isinstance(detail, ProposalDetail)
    assert isinstance(summary, ProposalSummary)
    assert summary.model_extra == {"unread_messages": 3}
    assert coerce_proposal(summary) is summary
