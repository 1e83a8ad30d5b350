from buildsmith.agent.quality_validator import QualityValidator
from buildsmith.agent.report import render_quality_report, summarize_generation
from buildsmith.agent.state import ComponentOutcome, GenerationReport, GenerationResult
from buildsmith.artifacts import ArtifactSet

from conftest import complete_project


def test_markdown_report_lists_score_and_every_category() -> None:
    report = QualityValidator(extended_categories=["lint"]).validate(complete_project())

    markdown = render_quality_report(report, title="Demo")

    assert markdown.startswith("# Demo\n")
    assert f"**Overall score:** {report.overall_score}/100" in markdown
    for name in report.categories:
        assert f"| {name} |" in markdown
        assert f"### {name}" in markdown
    assert "## Recommendations" in markdown


def test_markdown_report_lists_issues_for_broken_project() -> None:
    report = QualityValidator().validate({"index.html": "<html></html>"})

    markdown = render_quality_report(report)

    assert "## Issues" in markdown
    assert "Missing required file package.json" in markdown
    assert "FAIL" in markdown


def _result(tokens_used: int) -> GenerationResult:
    artifacts = ArtifactSet(complete_project())
    validation = QualityValidator().validate(artifacts)
    outcome = ComponentOutcome(name="Hero", path="src/components/Hero.tsx", attempts=2, score=100, used_fallback=True)
    report = GenerationReport(validation=validation, components=(outcome,), fallback_files=("src/components/Hero.tsx",))
    return GenerationResult(artifacts=artifacts, report=report, tokens_used=tokens_used)


def test_summary_reports_actual_tokens() -> None:
    summary = summarize_generation(_result(1234))

    assert summary["tokens_used"] == 1234
    assert "tokens_estimated" not in summary
    assert summary["fallback_files"] == ["src/components/Hero.tsx"]
    assert summary["components"][0]["used_fallback"] is True


def test_summary_estimates_tokens_when_usage_is_missing() -> None:
    result = _result(0)

    summary = summarize_generation(result)

    assert summary["tokens_used"] == 0
    assert summary["tokens_estimated"] == max(1000, len(result.artifacts) * 200)


def test_result_to_dict_is_json_friendly() -> None:
    data = _result(5).to_dict()

    assert data["files"]["package.json"]
    assert data["report"]["validation"]["overall_score"] >= 0
    assert data["errors"] == []
