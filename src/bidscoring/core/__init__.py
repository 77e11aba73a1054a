"""Core scoring, validation and comparison functions."""

from __future__ import annotations

from .comparison import (
    AlignedSection,
    ComparisonInput,
    ComparisonMetrics,
    ComparisonSummary,
    ComparisonWeights,
    ProposalDifference,
    ProposalHighlights,
    align_proposal_sections,
    calculate_comparison_metrics,
    derive_compliance_score,
    detect_proposal_differences,
    flag_best_worst,
    get_comparison_summary,
    summarize_proposal,
    to_comparison_input,
)
from .scoring import (
    ProposalRanking,
    ProposalScoreSheet,
    calculate_total_score,
    calculate_weighted_score,
    rank_proposals,
    score_proposal,
)
from .validation import (
    DEFAULT_LIMITS,
    LOCKED_STATUSES,
    BatchValidationResult,
    ScoringLimits,
    ValidationResult,
    scoring_error_message,
    validate_comparison_selection,
    validate_multiple_scores,
    validate_proposal_not_locked,
    validate_proposal_score,
    validate_raw_score,
    validate_score_revision,
    validate_scoring_criterion,
    validate_scoring_template,
    validate_weight,
    validate_weight_sum,
)

__all__ = [
    "AlignedSection",
    "ComparisonInput",
    "ComparisonMetrics",
    "ComparisonSummary",
    "ComparisonWeights",
    "ProposalDifference",
    "ProposalHighlights",
    "align_proposal_sections",
    "calculate_comparison_metrics",
    "derive_compliance_score",
    "detect_proposal_differences",
    "flag_best_worst",
    "get_comparison_summary",
    "summarize_proposal",
    "to_comparison_input",
    "ProposalRanking",
    "ProposalScoreSheet",
    "calculate_total_score",
    "calculate_weighted_score",
    "rank_proposals",
    "score_proposal",
    "DEFAULT_LIMITS",
    "LOCKED_STATUSES",
    "BatchValidationResult",
    "ScoringLimits",
    "ValidationResult",
    "scoring_error_message",
    "validate_comparison_selection",
    "validate_multiple_scores",
    "validate_proposal_not_locked",
    "validate_proposal_score",
    "validate_raw_score",
    "validate_score_revision",
    "validate_scoring_criterion",
    "validate_scoring_template",
    "validate_weight",
    "validate_weight_sum",
]
