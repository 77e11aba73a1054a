"""Proposal records consumed by the comparison engine."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProposalSection(BaseModel):
    """Titled section of a proposal document."""

    id: str | None = None
    title: str
    order: int = 0
    content: str = ""

    model_config = ConfigDict(extra="allow")


class TeamMember(BaseModel):
    """Member of a bidding team."""

    id: str | None = None
    name: str = ""
    email: str | None = None
    role: str | None = None

    model_config = ConfigDict(extra="allow")


class BiddingTeam(BaseModel):
    """Lead plus members working on a proposal."""

    lead: TeamMember | None = None
    members: list[TeamMember] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class ComplianceItem(BaseModel):
    """Checklist entry tracked per proposal."""

    id: str | None = None
    category: str | None = None
    item: str = ""
    completed: bool = False

    model_config = ConfigDict(extra="allow")


class ProposalSummary(BaseModel):
    """Flattened proposal view used by listings and comparisons."""

    id: str
    title: str | None = None
    budget_estimate: float | None = None
    timeline_estimate: str | None = None
    team_size: int = 1
    compliance_score: float = 0.0
    status: str = "submitted"
    submission_date: str | None = None
    sections: list[ProposalSection] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class ProposalDetail(BaseModel):
    """Full proposal record including team and checklist."""

    id: str
    title: str | None = None
    budget_estimate: float | None = None
    timeline_estimate: str | None = None
    status: str = "submitted"
    submission_date: str | None = None
    bidding_team: BiddingTeam = Field(default_factory=BiddingTeam)
    sections: list[ProposalSection] = Field(default_factory=list)
    compliance_checklist: list[ComplianceItem] = Field(default_factory=list)
    compliance_score: float | None = None

    model_config = ConfigDict(extra="allow")
