"""Side-by-side proposal comparison.

Inputs are proposal summaries or details. Both shapes are first normalized by
:func:`to_comparison_input`, so the comparison functions never probe for
fields at runtime.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence, Union

from ..schemas import ComplianceItem, ProposalDetail, ProposalSection, ProposalSummary
from .validation import validate_comparison_selection

ProposalRecord = Union[ProposalSummary, ProposalDetail]

DifferenceValue = Union[float, int, str, None]


@dataclass(frozen=True, slots=True)
class ComparisonInput:
    """Canonical comparison fields of one proposal."""

    proposal_id: str
    budget_estimate: float | None
    timeline_estimate: str | None
    team_size: int
    compliance_score: float
    exposes_compliance: bool = True


@dataclass(slots=True)
class AlignedEntry:
    proposal_id: str
    section: ProposalSection | None


@dataclass(slots=True)
class AlignedSection:
    """Sections sharing a title, one slot per compared proposal."""

    title: str
    proposals: list[AlignedEntry] = field(default_factory=list)


@dataclass(slots=True)
class ProposalValue:
    proposal_id: str
    value: DifferenceValue


@dataclass(slots=True)
class ProposalDifference:
    field: str
    label: str
    values: list[ProposalValue]
    has_difference: bool


@dataclass(frozen=True, slots=True)
class ComparisonWeights:
    """Weights of the four ranked dimensions in the overall score."""

    budget: float = 0.3
    timeline: float = 0.3
    team_size: float = 0.2
    compliance: float = 0.2

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, float] | None) -> "ComparisonWeights":
        if not overrides:
            return cls()
        unknown = set(overrides) - {"budget", "timeline", "team_size", "compliance"}
        if unknown:
            raise ValueError(f"Unknown comparison weights: {sorted(unknown)}")
        return cls(**{key: float(value) for key, value in overrides.items()})


@dataclass(slots=True)
class ComparisonMetrics:
    """Per-dimension ranks (1 = best) and the composite score (lower = better)."""

    proposal_id: str
    budget_rank: int
    timeline_rank: int
    team_size_rank: int
    compliance_rank: int
    overall_score: float


@dataclass(slots=True)
class Range:
    min: float | None
    max: float | None
    avg: float | None


@dataclass(slots=True)
class ComparisonSummary:
    budget_range: Range
    team_size_range: Range
    compliance_range: Range


@dataclass(slots=True)
class ProposalHighlights:
    """Best/worst markers for one proposal among those compared."""

    proposal_id: str
    is_best_team_size: bool
    is_worst_team_size: bool
    is_best_compliance: bool
    is_worst_compliance: bool


def derive_compliance_score(checklist: Iterable[ComplianceItem]) -> int:
    """Percentage of completed checklist items, rounded half-up."""
    items = list(checklist)
    if not items:
        return 0
    completed = sum(1 for item in items if item.completed)
    ratio = Decimal(completed * 100) / Decimal(len(items))
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def summarize_proposal(detail: ProposalDetail) -> ProposalSummary:
    compliance = detail.compliance_score
    if compliance is None:
        compliance = derive_compliance_score(detail.compliance_checklist)
    return ProposalSummary(
        id=detail.id,
        title=detail.title,
        budget_estimate=detail.budget_estimate,
        timeline_estimate=detail.timeline_estimate,
        team_size=len(detail.bidding_team.members) + 1,
        compliance_score=compliance,
        status=detail.status,
        submission_date=detail.submission_date,
        sections=list(detail.sections),
    )


def coerce_proposal(record: ProposalRecord | Mapping[str, Any]) -> ProposalRecord:
    """Parse a raw mapping into the matching proposal model."""
    if isinstance(record, (ProposalSummary, ProposalDetail)):
        return record
    if "bidding_team" in record or "compliance_checklist" in record:
        return ProposalDetail.model_validate(record)
    return ProposalSummary.model_validate(record)


def to_comparison_input(record: ProposalRecord | Mapping[str, Any]) -> ComparisonInput:
    """Normalize a summary or detail record.

    A detail without an explicit compliance score gets one derived from its
    checklist and is marked as not exposing it, which keeps it out of the
    compliance difference row.
    """
    proposal = coerce_proposal(record)
    if isinstance(proposal, ProposalSummary):
        return ComparisonInput(
            proposal_id=proposal.id,
            budget_estimate=proposal.budget_estimate,
            timeline_estimate=proposal.timeline_estimate,
            team_size=proposal.team_size,
            compliance_score=proposal.compliance_score,
        )
    return ComparisonInput(
        proposal_id=proposal.id,
        budget_estimate=proposal.budget_estimate,
        timeline_estimate=proposal.timeline_estimate,
        team_size=len(proposal.bidding_team.members) + 1,
        compliance_score=(
            derive_compliance_score(proposal.compliance_checklist)
            if proposal.compliance_score is None
            else proposal.compliance_score
        ),
        exposes_compliance=proposal.compliance_score is not None,
    )


def _normalize(
    proposals: Iterable[ProposalRecord | Mapping[str, Any] | ComparisonInput],
) -> list[ComparisonInput]:
    return [
        item if isinstance(item, ComparisonInput) else to_comparison_input(item)
        for item in proposals
    ]


def align_proposal_sections(
    proposals: Sequence[ProposalRecord | Mapping[str, Any]],
) -> list[AlignedSection]:
    """Group sections by exact title for side-by-side display.

    Titles are ordered by the smallest ``order`` any proposal gives them;
    titles sharing that minimum keep the order in which they were first seen
    (proposals in input order, sections in listed order).
    """
    records = [coerce_proposal(record) for record in proposals]

    min_order: dict[str, int] = {}
    for record in records:
        for section in record.sections:
            current = min_order.get(section.title)
            if current is None or section.order < current:
                min_order[section.title] = section.order

    titles = sorted(min_order, key=min_order.__getitem__)

    aligned: list[AlignedSection] = []
    for title in titles:
        entries = [
            AlignedEntry(
                proposal_id=record.id,
                section=next(
                    (section for section in record.sections if section.title == title),
                    None,
                ),
            )
            for record in records
        ]
        aligned.append(AlignedSection(title=title, proposals=entries))
    return aligned


def _difference(
    field_name: str,
    label: str,
    inputs: Sequence[ComparisonInput],
    attribute: str,
) -> ProposalDifference:
    values = [
        ProposalValue(proposal_id=item.proposal_id, value=getattr(item, attribute))
        for item in inputs
    ]
    first = values[0].value
    return ProposalDifference(
        field=field_name,
        label=label,
        values=values,
        has_difference=any(value.value != first for value in values),
    )


def detect_proposal_differences(
    proposals: Sequence[ProposalRecord | Mapping[str, Any] | ComparisonInput],
) -> list[ProposalDifference]:
    inputs = _normalize(proposals)
    if len(inputs) < 2:
        return []

    differences = [
        _difference("budget", "Budget Estimate", inputs, "budget_estimate"),
        _difference("timeline", "Timeline Estimate", inputs, "timeline_estimate"),
        _difference("team_size", "Team Size", inputs, "team_size"),
    ]
    if all(item.exposes_compliance for item in inputs):
        differences.append(
            _difference("compliance_score", "Compliance Score", inputs, "compliance_score")
        )
    return differences


def _ranks(inputs: Sequence[ComparisonInput], key) -> dict[str, int]:
    # sorted() is stable: equal keys keep input order and get distinct ranks.
    ordered = sorted(inputs, key=key)
    ranks: dict[str, int] = {}
    for position, item in enumerate(ordered, start=1):
        ranks.setdefault(item.proposal_id, position)
    return ranks


def calculate_comparison_metrics(
    proposals: Sequence[ProposalRecord | Mapping[str, Any] | ComparisonInput],
    weights: ComparisonWeights | Mapping[str, float] | None = None,
) -> list[ComparisonMetrics]:
    """Rank proposals on budget, timeline, team size and compliance.

    Lower budget, shorter timeline, smaller team and higher compliance rank
    first. Missing budgets and timelines rank last.
    """
    if not isinstance(weights, ComparisonWeights):
        weights = ComparisonWeights.from_mapping(weights)

    inputs = _normalize(proposals)
    if not inputs:
        return []

    budget_ranks = _ranks(
        inputs,
        lambda item: (item.budget_estimate is None, item.budget_estimate or 0.0),
    )
    timeline_ranks = _ranks(
        inputs,
        lambda item: (not item.timeline_estimate, (item.timeline_estimate or "").casefold()),
    )
    team_size_ranks = _ranks(inputs, lambda item: item.team_size)
    compliance_ranks = _ranks(
        inputs,
        lambda item: -item.compliance_score,
    )

    count = len(inputs)
    metrics: list[ComparisonMetrics] = []
    for item in inputs:
        budget_rank = budget_ranks[item.proposal_id]
        timeline_rank = timeline_ranks[item.proposal_id]
        team_size_rank = team_size_ranks[item.proposal_id]
        compliance_rank = compliance_ranks[item.proposal_id]

        overall = (
            budget_rank / count * weights.budget
            + timeline_rank / count * weights.timeline
            + team_size_rank / count * weights.team_size
            + (count - compliance_rank + 1) / count * weights.compliance
        )
        metrics.append(
            ComparisonMetrics(
                proposal_id=item.proposal_id,
                budget_rank=budget_rank,
                timeline_rank=timeline_rank,
                team_size_rank=team_size_rank,
                compliance_rank=compliance_rank,
                overall_score=overall,
            )
        )
    return metrics


def _range(values: Iterable[float | None]) -> Range:
    present = [value for value in values if value is not None]
    if not present:
        return Range(min=None, max=None, avg=None)
    return Range(min=min(present), max=max(present), avg=sum(present) / len(present))


def get_comparison_summary(
    proposals: Sequence[ProposalRecord | Mapping[str, Any] | ComparisonInput],
) -> ComparisonSummary:
    inputs = _normalize(proposals)
    return ComparisonSummary(
        budget_range=_range(item.budget_estimate for item in inputs),
        team_size_range=_range(item.team_size for item in inputs),
        compliance_range=_range(item.compliance_score for item in inputs),
    )


def flag_best_worst(
    proposals: Sequence[ProposalRecord | Mapping[str, Any] | ComparisonInput],
) -> list[ProposalHighlights]:
    """Mark the smallest/largest team and the highest/lowest compliance.

    Every proposal sharing an extreme value gets the flag, so identical
    values are both best and worst.
    """
    inputs = _normalize(proposals)
    if not inputs:
        return []

    team_sizes = [item.team_size for item in inputs]
    compliance = [item.compliance_score for item in inputs]
    return [
        ProposalHighlights(
            proposal_id=item.proposal_id,
            is_best_team_size=item.team_size == min(team_sizes),
            is_worst_team_size=item.team_size == max(team_sizes),
            is_best_compliance=item.compliance_score == max(compliance),
            is_worst_compliance=item.compliance_score == min(compliance),
        )
        for item in inputs
    ]


__all__ = [
    "AlignedEntry",
    "AlignedSection",
    "ComparisonInput",
    "ComparisonMetrics",
    "ComparisonSummary",
    "ComparisonWeights",
    "ProposalDifference",
    "ProposalHighlights",
    "ProposalValue",
    "Range",
    "align_proposal_sections",
    "calculate_comparison_metrics",
    "coerce_proposal",
    "derive_compliance_score",
    "detect_proposal_differences",
    "flag_best_worst",
    "get_comparison_summary",
    "summarize_proposal",
    "to_comparison_input",
    "validate_comparison_selection",
]
