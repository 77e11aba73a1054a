"""Validation rules for scoring templates, scores, revisions and selections.

Every validator returns a :class:`ValidationResult` instead of raising so the
calling layer decides whether to relay, log or reject.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel

ErrorCode = Literal[
    "required",
    "invalid_input",
    "out_of_range",
    "too_long",
    "too_short",
    "empty_input",
    "sum_mismatch",
    "not_unique",
    "too_few",
    "too_many",
    "duplicate_selection",
    "invalid_id",
    "locked",
]

ErrorCategory = Literal["structural", "range", "consistency", "state"]

ERROR_CATEGORIES: dict[ErrorCode, ErrorCategory] = {
    "required": "structural",
    "invalid_input": "structural",
    "too_long": "structural",
    "too_short": "structural",
    "empty_input": "structural",
    "too_few": "structural",
    "too_many": "structural",
    "out_of_range": "range",
    "sum_mismatch": "consistency",
    "not_unique": "consistency",
    "duplicate_selection": "consistency",
    "invalid_id": "consistency",
    "locked": "state",
}

LOCKED_STATUSES: frozenset[str] = frozenset({"approved", "rejected", "accepted"})

DEFAULT_WEIGHT_TOLERANCE = 0.01


@dataclass(frozen=True, slots=True)
class ScoringLimits:
    """Numeric bounds applied by the validators."""

    min_score: float = 1
    max_score: float = 10
    total_weight_required: float = 100
    min_weight: float = 0.01
    max_weight: float = 100
    min_criteria: int = 1
    max_criteria: int = 20
    max_criterion_name_length: int = 100
    max_criterion_description_length: int = 500
    max_template_name_length: int = 100
    max_template_description_length: int = 500
    max_notes_length: int = 2000
    min_revision_reason_length: int = 10
    max_revision_reason_length: int = 500
    min_proposals_for_comparison: int = 2
    max_proposals_for_comparison: int = 4


DEFAULT_LIMITS = ScoringLimits()


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a single validation."""

    valid: bool
    error: str | None = None
    code: ErrorCode | None = None

    @property
    def category(self) -> ErrorCategory | None:
        if self.code is None:
            return None
        return ERROR_CATEGORIES[self.code]

    def __bool__(self) -> bool:
        return self.valid


@dataclass(slots=True)
class BatchValidationResult:
    """Aggregated outcome of validating many scores at once."""

    valid: bool
    errors: dict[str, str] = field(default_factory=dict)


_OK = ValidationResult(valid=True)


def _fail(code: ErrorCode, error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error, code=code)


def _fmt(value: float) -> str:
    return f"{value:g}"


def _as_mapping(payload: Any) -> Mapping[str, Any] | None:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="python")
    if isinstance(payload, Mapping):
        return payload
    return None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _too_long(value: Any, limit: int) -> bool:
    return isinstance(value, str) and len(value) > limit


def _validate_number(
    value: Any,
    field_name: str,
    minimum: float,
    maximum: float,
    unit: str = "",
) -> ValidationResult:
    if value is None or value == "":
        return _fail("invalid_input", f"{field_name} is required")

    if isinstance(value, bool):
        return _fail("invalid_input", f"{field_name} must be a valid number")

    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return _fail("invalid_input", f"{field_name} must be a valid number")
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        return _fail("invalid_input", f"{field_name} must be a valid number")

    if math.isnan(number):
        return _fail("invalid_input", f"{field_name} must be a valid number")
    if math.isinf(number):
        return _fail("invalid_input", f"{field_name} must be a finite number")

    if number < minimum or number > maximum:
        return _fail(
            "out_of_range",
            f"{field_name} must be between {_fmt(minimum)}{unit} and {_fmt(maximum)}{unit}",
        )
    return _OK


def validate_raw_score(
    value: Any,
    field_name: str = "Score",
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Check a raw evaluator score against the inclusive 1-10 range."""
    return _validate_number(value, field_name, limits.min_score, limits.max_score)


def validate_weight(
    value: Any,
    field_name: str = "Weight",
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Check a criterion weight percentage."""
    return _validate_number(value, field_name, limits.min_weight, limits.max_weight, unit="%")


def validate_weight_sum(
    weights: Iterable[float] | None,
    tolerance: float = DEFAULT_WEIGHT_TOLERANCE,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Check that weights add up to the required total within ``tolerance``."""
    if weights is None:
        return _fail("empty_input", "At least one criterion with a weight is required")
    if isinstance(weights, (str, bytes, Mapping)) or not isinstance(weights, Iterable):
        return _fail("invalid_input", "Weights must be a list of numbers")

    values = list(weights)
    if not values:
        return _fail("empty_input", "At least one criterion with a weight is required")

    try:
        total = math.fsum(float(weight) for weight in values)
    except (TypeError, ValueError):
        return _fail("invalid_input", "Weights must be valid numbers")
    if not math.isfinite(total):
        return _fail("invalid_input", "Weights must be valid numbers")

    if abs(total - limits.total_weight_required) > tolerance:
        return _fail(
            "sum_mismatch",
            f"Total weight must equal {_fmt(limits.total_weight_required)}% "
            f"(current: {total:.2f}%)",
        )
    return _OK


def validate_scoring_criterion(
    criterion: Any,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    data = _as_mapping(criterion)
    if data is None:
        return _fail("invalid_input", "Criterion must be an object")

    name = data.get("name")
    if _is_blank(name):
        return _fail("required", "Criterion name is required")
    if len(name) > limits.max_criterion_name_length:
        return _fail(
            "too_long",
            f"Criterion name must be {limits.max_criterion_name_length} characters or less",
        )

    if _too_long(data.get("description"), limits.max_criterion_description_length):
        return _fail(
            "too_long",
            "Criterion description must be "
            f"{limits.max_criterion_description_length} characters or less",
        )

    weight_result = validate_weight(data.get("weight"), "Criterion weight", limits=limits)
    if not weight_result.valid:
        return weight_result

    order_index = data.get("order_index")
    if order_index is not None:
        integral = isinstance(order_index, int) or (
            isinstance(order_index, float) and order_index.is_integer()
        )
        if isinstance(order_index, bool) or not integral or order_index < 0:
            return _fail("invalid_input", "Order index must be a non-negative integer")

    return _OK


def validate_scoring_template(
    template: Any,
    tolerance: float = DEFAULT_WEIGHT_TOLERANCE,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Validate a template and all of its criteria.

    Checks run in order (name, description, criteria count, each criterion,
    name uniqueness, weight sum) and the first failure is returned.
    """
    data = _as_mapping(template)
    if data is None:
        return _fail("invalid_input", "Template must be an object")

    name = data.get("name")
    if _is_blank(name):
        return _fail("required", "Template name is required")
    if len(name) > limits.max_template_name_length:
        return _fail(
            "too_long",
            f"Template name must be {limits.max_template_name_length} characters or less",
        )

    if _too_long(data.get("description"), limits.max_template_description_length):
        return _fail(
            "too_long",
            "Template description must be "
            f"{limits.max_template_description_length} characters or less",
        )

    criteria = data.get("criteria")
    if not isinstance(criteria, (list, tuple)):
        return _fail("required", "Template must have criteria")
    if len(criteria) < limits.min_criteria:
        return _fail(
            "too_few",
            f"Template must have at least {limits.min_criteria} criterion",
        )
    if len(criteria) > limits.max_criteria:
        return _fail(
            "too_many",
            f"Template cannot have more than {limits.max_criteria} criteria",
        )

    normalized: list[Mapping[str, Any]] = []
    for index, criterion in enumerate(criteria, start=1):
        result = validate_scoring_criterion(criterion, limits=limits)
        if not result.valid:
            return _fail(result.code or "invalid_input", f"Criterion {index}: {result.error}")
        normalized.append(_as_mapping(criterion))

    names = [item["name"].strip().casefold() for item in normalized]
    if len(set(names)) != len(names):
        return _fail("not_unique", "Criterion names must be unique")

    return validate_weight_sum(
        [float(item["weight"]) for item in normalized],
        tolerance,
        limits=limits,
    )


def _validate_score_fields(
    data: Mapping[str, Any],
    *,
    score_key: str,
    notes_key: str,
    score_label: str,
    limits: ScoringLimits,
) -> ValidationResult:
    if _is_blank(data.get("proposal_id")):
        return _fail("required", "Proposal ID is required")
    if _is_blank(data.get("criterion_id")):
        return _fail("required", "Criterion ID is required")

    score_result = validate_raw_score(data.get(score_key), score_label, limits=limits)
    if not score_result.valid:
        return score_result

    if _too_long(data.get(notes_key), limits.max_notes_length):
        return _fail("too_long", f"Notes must be {limits.max_notes_length} characters or less")
    return _OK


def validate_proposal_score(
    score: Any,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    data = _as_mapping(score)
    if data is None:
        return _fail("invalid_input", "Score must be an object")
    return _validate_score_fields(
        data,
        score_key="raw_score",
        notes_key="notes",
        score_label="Raw score",
        limits=limits,
    )


def validate_score_revision(
    revision: Any,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Validate a score revision; unlike a first score it needs a reason."""
    data = _as_mapping(revision)
    if data is None:
        return _fail("invalid_input", "Revision must be an object")

    result = _validate_score_fields(
        data,
        score_key="new_raw_score",
        notes_key="new_notes",
        score_label="New score",
        limits=limits,
    )
    if not result.valid:
        return result

    reason = data.get("reason")
    if _is_blank(reason):
        return _fail("required", "Revision reason is required")
    if len(reason) < limits.min_revision_reason_length:
        return _fail(
            "too_short",
            f"Revision reason must be at least {limits.min_revision_reason_length} characters",
        )
    if len(reason) > limits.max_revision_reason_length:
        return _fail(
            "too_long",
            f"Revision reason must be {limits.max_revision_reason_length} characters or less",
        )
    return _OK


def validate_comparison_selection(
    proposal_ids: Any,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> ValidationResult:
    """Gate entry into a side-by-side comparison: 2-4 distinct, valid ids."""
    if not isinstance(proposal_ids, (list, tuple)):
        return _fail("invalid_input", "Proposal IDs must be an array")

    if len(proposal_ids) < limits.min_proposals_for_comparison:
        return _fail(
            "too_few",
            f"Select at least {limits.min_proposals_for_comparison} proposals to compare",
        )
    if len(proposal_ids) > limits.max_proposals_for_comparison:
        return _fail(
            "too_many",
            "Cannot compare more than "
            f"{limits.max_proposals_for_comparison} proposals at once",
        )

    seen: list[Any] = []
    for proposal_id in proposal_ids:
        if proposal_id in seen:
            return _fail(
                "duplicate_selection",
                "Cannot compare the same proposal multiple times",
            )
        seen.append(proposal_id)

    if any(_is_blank(proposal_id) for proposal_id in proposal_ids):
        return _fail("invalid_id", "All proposal IDs must be valid")
    return _OK


def validate_proposal_not_locked(
    status: Any,
    *,
    locked_statuses: Iterable[str] = LOCKED_STATUSES,
) -> ValidationResult:
    """Reject score edits once the proposal has reached a decision status."""
    if not isinstance(status, str):
        return _fail("invalid_input", "Proposal status is required")

    locked = {item.casefold() for item in locked_statuses}
    if status.casefold() in locked:
        return _fail(
            "locked",
            f"Cannot modify scores for {status} proposals. "
            "Scoring is locked once a proposal is accepted or rejected.",
        )
    return _OK


def validate_multiple_scores(
    scores: Iterable[Any],
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> BatchValidationResult:
    errors: dict[str, str] = {}
    for index, score in enumerate(scores):
        result = validate_proposal_score(score, limits=limits)
        if not result.valid and result.error:
            errors[f"score_{index}"] = result.error
    return BatchValidationResult(valid=not errors, errors=errors)


def scoring_error_message(
    error: BaseException | str | None,
    *,
    limits: ScoringLimits = DEFAULT_LIMITS,
) -> str:
    """Translate a scoring failure into a sentence suitable for end users."""
    if error is None:
        return "An unknown error occurred"

    message = error if isinstance(error, str) else str(error)
    lowered = message.lower()

    if "weight" in lowered and ("sum" in lowered or "total" in lowered):
        return (
            f"The total weight of all criteria must equal "
            f"{_fmt(limits.total_weight_required)}%. Please adjust the weights."
        )
    if "score" in lowered and ("range" in lowered or "between" in lowered):
        return (
            f"Scores must be between {_fmt(limits.min_score)} "
            f"and {_fmt(limits.max_score)}."
        )
    if "locked" in lowered or "accepted" in lowered or "rejected" in lowered:
        return "Cannot modify scores for accepted or rejected proposals."
    if ("duplicate" in lowered or "unique" in lowered) and "criterion" in lowered:
        return "Criterion names must be unique within a template."
    if "not found" in lowered:
        return "The requested resource was not found. It may have been deleted."
    if "permission" in lowered or "forbidden" in lowered:
        return "You do not have permission to perform this action."

    return message or "An error occurred while processing your request."
