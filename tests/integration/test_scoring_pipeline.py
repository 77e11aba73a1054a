from __future__ import annotations

import json
from pathlib import Path

import pytest

from bidscoring.pipeline import (
    AuditLogger,
    ComparisonPipeline,
    ComparisonSelectionError,
    ScoreLoader,
    ScoreLoadError,
    ScoringPipeline,
    TemplateValidationError,
)


def write_json(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


def write_jsonl(path: Path, records: list[dict]) -> Path:
    path.write_text(
        "\n".join(json.dumps(item, ensure_ascii=False) for item in records),
        encoding="utf-8",
    )
    return path


def test_scoring_pipeline_ranks_and_reports_errors(
    tmp_path: Path, template_payload, proposals_payload, score_records
) -> None:
    output_path = tmp_path / "out" / "rankings.json"
    audit_path = tmp_path / "audit.jsonl"

    payload = ScoringPipeline().run(
        template_path=write_json(tmp_path / "template.json", template_payload),
        scores_path=write_jsonl(tmp_path / "scores.jsonl", score_records),
        output_path=output_path,
        proposals_path=write_json(tmp_path / "proposals.json", proposals_payload),
        audit_logger=AuditLogger(audit_path),
    )

    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    assert rendered == json.loads(json.dumps(payload))

    rankings = {item["proposal_id"]: item for item in rendered["rankings"]}
    # P-1: 4.0 + 1.8 + 1.8; P-2: 4.5 + 2.7 (draft team score ignored)
    assert rankings["P-1"]["total_score"] == 7.6
    assert rankings["P-1"]["rank"] == 1
    assert rankings["P-1"]["is_fully_scored"] is True
    assert rankings["P-2"]["total_score"] == 7.2
    assert rankings["P-2"]["scoring_status"] == "partially_scored"
    assert rankings["P-3"]["scoring_status"] == "not_scored"
    assert rankings["P-3"]["rank"] == 3

    errors = rendered["metadata"]["errors"]
    assert any(error.startswith("line 9:") for error in errors)
    assert "P-2/risk: unknown criterion" in errors
    assert any(error.startswith("P-3/tech: Cannot modify scores for Rejected") for error in errors)
    assert rendered["metadata"]["template"] == "Website rebuild evaluation"
    assert rendered["metadata"]["app_version"]

    sheet = next(item for item in rendered["sheets"] if item["proposal_id"] == "P-1")
    assert [entry["weighted_score"] for entry in sheet["entries"]] == [4.0, 1.8, 1.8]
    assert sheet["entries"][2]["notes"] == "Strong references"

    audit_lines = audit_path.read_text(encoding="utf-8").splitlines()
    assert len(audit_lines) == 3
    assert json.loads(audit_lines[0])["proposal_id"] == "P-1"


def test_scoring_pipeline_breaks_ties_by_submission_time(tmp_path: Path, template_payload) -> None:
    proposals = [
        {"id": "late", "team_size": 1, "submission_date": "2024-05-02T00:30:00+02:00"},
        {"id": "early", "team_size": 1, "submission_date": "2024-05-01T23:00:00Z"},
    ]
    scores = [
        {"proposal_id": "late", "criterion_id": "tech", "raw_score": 5},
        {"proposal_id": "early", "criterion_id": "tech", "raw_score": 5},
    ]

    payload = ScoringPipeline().run(
        template_path=write_json(tmp_path / "template.json", template_payload),
        scores_path=write_jsonl(tmp_path / "scores.jsonl", scores),
        output_path=tmp_path / "out.json",
        proposals_path=write_json(tmp_path / "proposals.json", proposals),
    )

    # 2024-05-02T00:30+02:00 is 2024-05-01T22:30Z, earlier than "early".
    assert [item["proposal_id"] for item in payload["rankings"]] == ["late", "early"]


def test_scoring_pipeline_rejects_invalid_template(tmp_path: Path, template_payload) -> None:
    template_payload["criteria"][0]["weight"] = 60

    with pytest.raises(TemplateValidationError) as excinfo:
        ScoringPipeline().run(
            template_path=write_json(tmp_path / "template.json", template_payload),
            scores_path=write_jsonl(tmp_path / "scores.jsonl", []),
            output_path=tmp_path / "out.json",
        )

    assert excinfo.value.result.code == "sum_mismatch"
    assert "110.00" in str(excinfo.value)
    assert not (tmp_path / "out.json").exists()


def test_scoring_pipeline_honours_tolerance(tmp_path: Path, template_payload) -> None:
    template_payload["criteria"][0]["weight"] = 50.5
    pipeline = ScoringPipeline(weight_tolerance=1.0)

    result = pipeline.check_template(write_json(tmp_path / "template.json", template_payload))

    assert result.valid


def test_score_loader_keeps_partial_results(tmp_path: Path) -> None:
    path = tmp_path / "scores.jsonl"
    path.write_text(
        '{"proposal_id": "P", "criterion_id": "C", "raw_score": 5}\n'
        "\n"
        "{not json}\n"
        '{"proposal_id": "P", "criterion_id": "C", "raw_score": 5, "extra": 1}\n',
        encoding="utf-8",
    )

    with pytest.raises(ScoreLoadError) as excinfo:
        ScoreLoader().load(path)

    assert len(excinfo.value.partial) == 1
    assert excinfo.value.errors[0].startswith("line 3: invalid JSON")
    assert excinfo.value.errors[1].startswith("line 4:")


def test_comparison_pipeline_builds_view(tmp_path: Path, proposals_payload) -> None:
    output_path = tmp_path / "comparison.json"

    payload = ComparisonPipeline().run(
        proposals_path=write_json(tmp_path / "proposals.json", {"proposals": proposals_payload}),
        output_path=output_path,
        selection=["P-2", "P-1"],
    )

    rendered = json.loads(output_path.read_text(encoding="utf-8"))
    assert rendered["metadata"]["proposal_ids"] == ["P-2", "P-1"]
    assert [section["title"] for section in rendered["aligned_sections"]] == [
        "Pricing",
        "Executive Summary",
        "Methodology",
    ]
    methodology = rendered["aligned_sections"][2]
    assert methodology["proposals"][1] == {"proposal_id": "P-1", "section": None}

    fields = [item["field"] for item in rendered["differences"]]
    assert fields == ["budget", "timeline", "team_size"]
    team = rendered["differences"][2]
    assert [value["value"] for value in team["values"]] == [2, 5]

    metrics = {item["proposal_id"]: item for item in rendered["metrics"]}
    assert metrics["P-2"]["budget_rank"] == 1
    assert metrics["P-2"]["team_size_rank"] == 1
    assert metrics["P-2"]["compliance_rank"] == 1
    assert rendered["summary"]["budget_range"]["avg"] == 107_500
    assert rendered["summary"]["compliance_range"] == {"min": 90, "max": 100, "avg": 95}
    assert rendered["highlights"] == [
        {
            "proposal_id": "P-2",
            "is_best_team_size": True,
            "is_worst_team_size": False,
            "is_best_compliance": True,
            "is_worst_compliance": False,
        },
        {
            "proposal_id": "P-1",
            "is_best_team_size": False,
            "is_worst_team_size": True,
            "is_best_compliance": False,
            "is_worst_compliance": True,
        },
    ]
    assert payload["metadata"]["weights"]["budget"] == 0.3


def test_comparison_pipeline_rejects_bad_selection(tmp_path: Path, proposals_payload) -> None:
    proposals_path = write_json(tmp_path / "proposals.json", proposals_payload)
    pipeline = ComparisonPipeline()

    with pytest.raises(ComparisonSelectionError) as excinfo:
        pipeline.run(proposals_path=proposals_path, output_path=tmp_path / "o.json", selection=["P-1"])
    assert excinfo.value.result.code == "too_few"

    with pytest.raises(ComparisonSelectionError) as excinfo:
        pipeline.run(
            proposals_path=proposals_path,
            output_path=tmp_path / "o.json",
            selection=["P-1", "P-9"],
        )
    assert excinfo.value.result.code == "invalid_id"
    assert "P-9" in str(excinfo.value)
