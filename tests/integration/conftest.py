from __future__ import annotations

from typing import Any

import pytest


@pytest.fixture
def template_payload() -> dict[str, Any]:
    return {
        "name": "Website rebuild evaluation",
        "criteria": [
            {"id": "tech", "name": "Technical Approach", "weight": 50, "order_index": 0},
            {"id": "cost", "name": "Cost", "weight": 30, "order_index": 1},
            {"id": "team", "name": "Team Experience", "weight": 20, "order_index": 2},
        ],
    }


@pytest.fixture
def proposals_payload() -> list[dict[str, Any]]:
    return [
        {
            "id": "P-1",
            "title": "Agency One",
            "budget_estimate": 120_000,
            "timeline_estimate": "4 months",
            "team_size": 5,
            "compliance_score": 90,
            "status": "reviewing",
            "submission_date": "2024-05-02T09:00:00+02:00",
            "sections": [
                {"title": "Executive Summary", "order": 0, "content": "..."},
                {"title": "Pricing", "order": 1, "content": "..."},
            ],
        },
        {
            "id": "P-2",
            "title": "Agency Two",
            "budget_estimate": 95_000,
            "timeline_estimate": "5 months",
            "status": "submitted",
            "submission_date": "2024-05-01T12:00:00Z",
            "bidding_team": {"lead": {"name": "Lead"}, "members": [{"name": "Dev"}]},
            "compliance_checklist": [{"item": "NDA", "completed": True}],
            "sections": [
                {"title": "Pricing", "order": 0, "content": "..."},
                {"title": "Methodology", "order": 2, "content": "..."},
            ],
        },
        {
            "id": "P-3",
            "title": "Agency Three",
            "budget_estimate": None,
            "timeline_estimate": None,
            "team_size": 3,
            "compliance_score": 60,
            "status": "Rejected",
            "sections": [],
        },
    ]


@pytest.fixture
def score_records() -> list[dict[str, Any]]:
    return [
        {"proposal_id": "P-1", "criterion_id": "tech", "raw_score": 8},
        {"proposal_id": "P-1", "criterion_id": "cost", "raw_score": 6},
        {"proposal_id": "P-1", "criterion_id": "team", "raw_score": 9, "notes": "Strong references"},
        {"proposal_id": "P-2", "criterion_id": "tech", "raw_score": 9},
        {"proposal_id": "P-2", "criterion_id": "cost", "raw_score": 9},
        {"proposal_id": "P-2", "criterion_id": "team", "raw_score": 4, "is_final": False},
        {"proposal_id": "P-3", "criterion_id": "tech", "raw_score": 10},
        {"proposal_id": "P-2", "criterion_id": "risk", "raw_score": 5},
        {"proposal_id": "P-1", "criterion_id": "cost", "raw_score": 14},
    ]
