"""Dependency injection container for the scoring engine."""

from __future__ import annotations

from dependency_injector import containers, providers

from .core import ComparisonWeights, ScoringLimits
from .pipeline import (
    ComparisonPipeline,
    OutputWriter,
    ProposalLoader,
    ScoreLoader,
    ScoringPipeline,
    TemplateLoader,
)


class ScoringContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    limits = providers.Singleton(ScoringLimits)
    comparison_weights = providers.Singleton(ComparisonWeights)

    template_loader = providers.Singleton(TemplateLoader)
    score_loader = providers.Singleton(ScoreLoader, limits=limits)
    proposal_loader = providers.Singleton(ProposalLoader)
    writer = providers.Singleton(OutputWriter)

    scoring_pipeline = providers.Factory(
        ScoringPipeline,
        limits=limits,
        weight_tolerance=config.scoring.weight_tolerance,
        template_loader=template_loader,
        score_loader=score_loader,
        proposal_loader=proposal_loader,
        writer=writer,
    )

    comparison_pipeline = providers.Factory(
        ComparisonPipeline,
        limits=limits,
        weights=comparison_weights,
        proposal_loader=proposal_loader,
        writer=writer,
    )


def create_container(*, settings: dict | None = None) -> ScoringContainer:
    """Instantiate container with optional overrides."""

    container = ScoringContainer()

    if not settings:
        return container

    container.config.override(settings)

    scoring_settings = settings.get("scoring", {}) if isinstance(settings, dict) else {}
    if scoring_settings.get("limits"):
        limits = ScoringLimits(**scoring_settings["limits"])
        container.limits.override(providers.Object(limits))

    comparison_settings = settings.get("comparison", {}) if isinstance(settings, dict) else {}
    if comparison_settings.get("weights"):
        weights = ComparisonWeights.from_mapping(comparison_settings["weights"])
        container.comparison_weights.override(providers.Object(weights))

    return container
