from __future__ import annotations

from typing import Any, Dict, List

from buildsmith.agent.quality_validator import ValidationReport


def _status(passed: bool) -> str:
    return "PASS" if passed else "FAIL"


def render_quality_report(report: ValidationReport, *, title: str = "Quality Report") -> str:
    """Render ``report`` as a Markdown document."""

    lines: List[str] = [
        f"# {title}",
        "",
        f"**Overall score:** {report.overall_score}/100 ({_status(report.passed)}, minimum {report.minimum_score})",
        "",
        "| Category | Score | Weight | Status |",
        "| --- | --- | --- | --- |",
    ]
    for name, result in report.categories.items():
        lines.append(f"| {name} | {result.score} | {result.weight} | {_status(result.passed)} |")

    if report.issues:
        lines.extend(["", "## Issues", ""])
        for issue in report.issues:
            lines.append(f"- **{issue.type}** [{issue.category}] {issue.message}. Fix: {issue.fix}")

    lines.extend(["", "## Recommendations", ""])
    lines.extend(f"- {item}" for item in report.recommendations)

    lines.extend(["", "## Checks", ""])
    for name, result in report.categories.items():
        lines.append(f"### {name}")
        for check in result.checks:
            mark = "x" if check.passed else " "
            lines.append(f"- [{mark}] {check.name} ({check.severity}): {check.message}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def summarize_generation(result: Any) -> Dict[str, Any]:
    """Compact JSON-friendly summary of a :class:`GenerationResult`."""

    summary: Dict[str, Any] = {
        "file_count": len(result.artifacts),
        "tokens_used": result.tokens_used,
        "errors": list(result.errors),
    }
    if not result.tokens_used:
        summary["tokens_estimated"] = result.tokens_estimated
    report = result.report
    if report is not None:
        summary["overall_score"] = report.validation.overall_score
        summary["passed"] = report.validation.passed
        summary["fallback_files"] = list(report.fallback_files)
        summary["components"] = [outcome.to_dict() for outcome in report.components]
    return summary
