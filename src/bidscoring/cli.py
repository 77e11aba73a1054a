"""Typer CLI entrypoint for the scoring engine."""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
import yaml
from pydantic import ValidationError

from .config import load_app_config
from .container import ScoringContainer, create_container
from .core import scoring_error_message
from .logging import bind_run_context, configure_logging
from .pipeline import AuditLogger, ComparisonSelectionError, TemplateValidationError

app = typer.Typer(help="Proposal scoring and comparison CLI.")


def _build_container(config: Optional[Path]) -> ScoringContainer:
    try:
        app_config = load_app_config(config)
    except (ValidationError, yaml.YAMLError) as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc
    return create_container(settings=app_config.to_settings())


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


@app.command()
def score(
    template: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Scoring template JSON path."),
    scores: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Proposal scores JSONL path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    proposals: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Proposals JSON path (statuses, submission dates)."
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Score proposals against a template and rank them."""
    configure_logging(log_level)
    bind_run_context(run_id=uuid.uuid4().hex, command="score")

    container = _build_container(config)
    pipeline = container.scoring_pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None

    try:
        payload = pipeline.run(
            template_path=template,
            scores_path=scores,
            output_path=output,
            proposals_path=proposals,
            audit_logger=audit_logger,
        )
    except TemplateValidationError as exc:
        _fail(f"Invalid template: {exc}")
    except ValueError as exc:
        _fail(scoring_error_message(exc))

    typer.echo(
        f"Ranked {len(payload['rankings'])} proposals "
        f"({len(payload['metadata']['errors'])} errors). Results saved to {output}."
    )


@app.command()
def compare(
    proposals: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Proposals JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    select: Optional[List[str]] = typer.Option(None, "--select", help="Proposal id to compare (repeatable)."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Build a side-by-side comparison of 2-4 proposals."""
    configure_logging(log_level)
    bind_run_context(run_id=uuid.uuid4().hex, command="compare")

    container = _build_container(config)
    pipeline = container.comparison_pipeline()

    try:
        payload = pipeline.run(
            proposals_path=proposals,
            output_path=output,
            selection=list(select) if select else None,
        )
    except ComparisonSelectionError as exc:
        _fail(str(exc))
    except ValueError as exc:
        _fail(scoring_error_message(exc))

    typer.echo(
        f"Compared {len(payload['metadata']['proposal_ids'])} proposals. Results saved to {output}."
    )


@app.command("validate-template")
def validate_template(
    template: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Scoring template JSON path."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
) -> None:
    """Check a scoring template without scoring anything."""
    container = _build_container(config)
    pipeline = container.scoring_pipeline()

    try:
        result = pipeline.check_template(template)
    except ValueError as exc:
        _fail(str(exc))

    if not result.valid:
        _fail(f"Invalid template ({result.category}): {result.error}")
    typer.echo("Template is valid.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
