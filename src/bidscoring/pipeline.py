"""Scoring and comparison pipelines over JSON documents."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterable

import pendulum
import structlog
from pydantic import BaseModel, ValidationError

from . import __version__
from .core import (
    DEFAULT_LIMITS,
    LOCKED_STATUSES,
    ComparisonWeights,
    ProposalScoreSheet,
    ScoringLimits,
    ValidationResult,
    align_proposal_sections,
    calculate_comparison_metrics,
    detect_proposal_differences,
    flag_best_worst,
    get_comparison_summary,
    rank_proposals,
    score_proposal,
    validate_comparison_selection,
    validate_proposal_not_locked,
    validate_proposal_score,
    validate_scoring_template,
)
from .core.comparison import ProposalRecord, coerce_proposal
from .core.validation import DEFAULT_WEIGHT_TOLERANCE
from .schemas import ProposalScore, ScoringTemplate


class TemplateValidationError(ValueError):
    """Raised when a scoring template fails validation."""

    def __init__(self, result: ValidationResult):
        super().__init__(result.error or "Invalid scoring template")
        self.result = result


class ComparisonSelectionError(ValueError):
    """Raised when the proposals selected for comparison are not usable."""

    def __init__(self, result: ValidationResult):
        super().__init__(result.error or "Invalid comparison selection")
        self.result = result


class ScoreLoadError(ValueError):
    """Raised when score loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[ProposalScore]):
        super().__init__("Score loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Score loading failed: {self.errors}"


def _read_json(path: Path, what: str) -> Any:
    with path.open("r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid {what} JSON: {exc}") from exc


class TemplateLoader:
    """Load raw scoring template documents."""

    def load(self, path: Path) -> dict[str, Any]:
        data = _read_json(path, "template")
        if not isinstance(data, dict):
            raise ValueError("Template JSON must be an object")
        return data


class ScoreLoader:
    """Load proposal scores from JSON lines, validating each record."""

    def __init__(self, limits: ScoringLimits = DEFAULT_LIMITS):
        self._limits = limits

    def load(self, path: Path) -> list[ProposalScore]:
        scores: list[ProposalScore] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                result = validate_proposal_score(record, limits=self._limits)
                if not result.valid:
                    errors.append(f"line {idx}: {result.error}")
                    continue
                try:
                    scores.append(ProposalScore.model_validate(record))
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc}")
        if errors:
            raise ScoreLoadError(errors, scores)
        return scores


class ProposalLoader:
    """Load proposal summaries or details from a JSON array."""

    def load(self, path: Path) -> list[ProposalRecord]:
        data = _read_json(path, "proposals")
        if isinstance(data, dict):
            data = data.get("proposals")
        if not isinstance(data, list):
            raise ValueError("Proposals JSON must be a list or an object with 'proposals'")
        records: list[ProposalRecord] = []
        for idx, item in enumerate(data, start=1):
            if not isinstance(item, dict):
                raise ValueError(f"proposal {idx}: record must be an object")
            try:
                records.append(coerce_proposal(item))
            except ValidationError as exc:
                raise ValueError(f"proposal {idx}: {exc}") from exc
        return records


class OutputWriter:
    """Persist pipeline results."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, default=_json_default),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False, default=_json_default))
            handle.write("\n")


class ScoringPipeline:
    """Validate a template and score submissions, then rank the proposals."""

    def __init__(
        self,
        *,
        limits: ScoringLimits | None = None,
        weight_tolerance: float | None = None,
        locked_statuses: Iterable[str] | None = None,
        template_loader: TemplateLoader | None = None,
        score_loader: ScoreLoader | None = None,
        proposal_loader: ProposalLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._limits = limits or DEFAULT_LIMITS
        self._tolerance = (
            DEFAULT_WEIGHT_TOLERANCE if weight_tolerance is None else weight_tolerance
        )
        self._locked_statuses = frozenset(locked_statuses or LOCKED_STATUSES)
        self._templates = template_loader or TemplateLoader()
        self._scores = score_loader or ScoreLoader(self._limits)
        self._proposals = proposal_loader or ProposalLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def check_template(self, template_path: Path) -> ValidationResult:
        raw = self._templates.load(template_path)
        return validate_scoring_template(raw, self._tolerance, limits=self._limits)

    def load_template(self, template_path: Path) -> ScoringTemplate:
        raw = self._templates.load(template_path)
        result = validate_scoring_template(raw, self._tolerance, limits=self._limits)
        if not result.valid:
            self._logger.warning(
                "scoring.template_invalid",
                path=str(template_path),
                error=result.error,
                code=result.code,
            )
            raise TemplateValidationError(result)
        return ScoringTemplate.model_validate(raw)

    def run(
        self,
        *,
        template_path: Path,
        scores_path: Path,
        output_path: Path,
        proposals_path: Path | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> dict[str, Any]:
        template = self.load_template(template_path)
        criterion_keys = {criterion.id or criterion.name for criterion in template.criteria}

        errors: list[str] = []
        try:
            scores = self._scores.load(scores_path)
        except ScoreLoadError as exc:
            scores = exc.partial
            errors.extend(exc.errors)
            self._logger.warning("scoring.partial_load", errors=exc.errors)

        proposals = self._proposals.load(proposals_path) if proposals_path else []
        statuses = {proposal.id: proposal.status for proposal in proposals}
        submitted_at = self._submission_times(proposals)

        proposal_ids = [proposal.id for proposal in proposals]
        accepted: list[ProposalScore] = []
        for score in scores:
            label = f"{score.proposal_id}/{score.criterion_id}"
            if score.criterion_id not in criterion_keys:
                errors.append(f"{label}: unknown criterion")
                self._logger.warning(
                    "scoring.score_rejected",
                    proposal_id=score.proposal_id,
                    criterion_id=score.criterion_id,
                    reason="unknown_criterion",
                )
                continue
            status = statuses.get(score.proposal_id)
            if status is not None:
                lock = validate_proposal_not_locked(
                    status, locked_statuses=self._locked_statuses
                )
                if not lock.valid:
                    errors.append(f"{label}: {lock.error}")
                    self._logger.warning(
                        "scoring.proposal_locked",
                        proposal_id=score.proposal_id,
                        status=status,
                    )
                    continue
            if score.proposal_id not in proposal_ids:
                proposal_ids.append(score.proposal_id)
            accepted.append(score)

        sheets = [score_proposal(template, proposal_id, accepted) for proposal_id in proposal_ids]
        rankings = rank_proposals(sheets, submitted_at)

        for ranking in rankings:
            self._logger.info(
                "scoring.ranked",
                proposal_id=ranking.proposal_id,
                total_score=ranking.total_score,
                rank=ranking.rank,
                scoring_status=ranking.scoring_status,
            )
            if audit_logger:
                audit_logger.append(
                    {
                        "template": template.name,
                        **asdict(ranking),
                        "calculated_at": pendulum.now("UTC").to_iso8601_string(),
                    }
                )

        payload = {
            "metadata": {
                "template": template.name,
                "proposal_count": len(sheets),
                "score_count": len(accepted),
                "errors": errors,
                "timestamp": pendulum.now("UTC").to_iso8601_string(),
                "app_version": __version__,
            },
            "rankings": [asdict(ranking) for ranking in rankings],
            "sheets": [_sheet_payload(sheet) for sheet in sheets],
        }
        self._writer.write(output_path, payload)
        return payload

    def _submission_times(self, proposals: list[ProposalRecord]) -> dict[str, str]:
        times: dict[str, str] = {}
        for proposal in proposals:
            if not proposal.submission_date:
                continue
            try:
                parsed = pendulum.parse(proposal.submission_date)
            except ValueError:
                self._logger.warning(
                    "scoring.bad_submission_date",
                    proposal_id=proposal.id,
                    value=proposal.submission_date,
                )
                continue
            times[proposal.id] = parsed.in_timezone("UTC").to_iso8601_string()
        return times


class ComparisonPipeline:
    """Build the side-by-side comparison view of 2-4 proposals."""

    def __init__(
        self,
        *,
        limits: ScoringLimits | None = None,
        weights: ComparisonWeights | dict[str, float] | None = None,
        proposal_loader: ProposalLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._limits = limits or DEFAULT_LIMITS
        self._weights = (
            weights
            if isinstance(weights, ComparisonWeights)
            else ComparisonWeights.from_mapping(weights)
        )
        self._proposals = proposal_loader or ProposalLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        proposals_path: Path,
        output_path: Path,
        selection: list[str] | None = None,
    ) -> dict[str, Any]:
        records = self._proposals.load(proposals_path)
        by_id = {record.id: record for record in records}
        selected_ids = list(selection) if selection else [record.id for record in records]

        result = validate_comparison_selection(selected_ids, limits=self._limits)
        if result.valid:
            missing = [proposal_id for proposal_id in selected_ids if proposal_id not in by_id]
            if missing:
                result = ValidationResult(
                    valid=False,
                    error=f"Unknown proposal IDs: {', '.join(missing)}",
                    code="invalid_id",
                )
        if not result.valid:
            self._logger.warning("comparison.invalid_selection", error=result.error)
            raise ComparisonSelectionError(result)

        selected = [by_id[proposal_id] for proposal_id in selected_ids]
        payload = {
            "metadata": {
                "proposal_ids": selected_ids,
                "weights": asdict(self._weights),
                "timestamp": pendulum.now("UTC").to_iso8601_string(),
                "app_version": __version__,
            },
            "aligned_sections": [
                asdict(section) for section in align_proposal_sections(selected)
            ],
            "differences": [
                asdict(difference) for difference in detect_proposal_differences(selected)
            ],
            "metrics": [
                asdict(metrics)
                for metrics in calculate_comparison_metrics(selected, self._weights)
            ],
            "summary": asdict(get_comparison_summary(selected)),
            "highlights": [asdict(flags) for flags in flag_best_worst(selected)],
        }
        self._writer.write(output_path, payload)
        self._logger.info(
            "comparison.completed",
            proposal_ids=selected_ids,
            sections=len(payload["aligned_sections"]),
        )
        return payload


def _sheet_payload(sheet: ProposalScoreSheet) -> dict[str, Any]:
    payload = asdict(sheet)
    payload["is_fully_scored"] = sheet.is_fully_scored
    payload["scoring_status"] = sheet.scoring_status
    return payload


def _json_default(value):  # type: ignore[override]
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, pendulum.DateTime):
        return value.to_iso8601_string()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
