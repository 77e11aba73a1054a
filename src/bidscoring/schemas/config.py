"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from dataclasses import fields
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.validation import ScoringLimits


class ScoringSection(BaseModel):
    weight_tolerance: float | None = Field(default=None, ge=0)
    limits: dict[str, int | float] | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("limits")
    @classmethod
    def _known_limits(cls, value: dict[str, int | float] | None):
        if value:
            known = {item.name for item in fields(ScoringLimits)}
            unknown = sorted(set(value) - known)
            if unknown:
                raise ValueError(f"Unknown scoring limits: {unknown}")
        return value


class ComparisonSection(BaseModel):
    weights: dict[Literal["budget", "timeline", "team_size", "compliance"], float] | None = None

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    scoring: ScoringSection = Field(default_factory=ScoringSection)
    comparison: ComparisonSection = Field(default_factory=ComparisonSection)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        scoring = self.scoring.model_dump(exclude_none=True)
        if scoring:
            settings["scoring"] = scoring
        comparison = self.comparison.model_dump(exclude_none=True)
        if comparison:
            settings["comparison"] = comparison
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
