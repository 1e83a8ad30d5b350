"""Command-line entry point: ``buildsmith generate | validate | build``."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from buildsmith.agent.orchestrator import GenerationOrchestrator
from buildsmith.agent.planner import ProjectPlanner
from buildsmith.agent.quality_validator import QualityValidator, ValidationContext
from buildsmith.agent.report import render_quality_report, summarize_generation
from buildsmith.agent.stacks import available_stacks
from buildsmith.artifacts import ArtifactSet
from buildsmith.config.settings import Settings, get_settings
from buildsmith.llm.base import AIService
from buildsmith.llm.client import ChatModelService
from buildsmith.llm.retry import RetryingAIService
from buildsmith.sandbox.local import LocalProcessSandbox
from buildsmith.sandbox.registry import ValidationSessionRegistry
from buildsmith.sandbox.validator import SandboxBuildValidator
from buildsmith.utils.fileops import write_tree
from buildsmith.utils.parsing import Failed, Recovered, parse_artifact_payload

logger = logging.getLogger("buildsmith")

_SKIP_DIRS = {"node_modules", ".git", "dist", "build", ".vite"}
_MAX_FILE_BYTES = 512 * 1024


class CLIError(RuntimeError):
    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def build_ai_service(settings: Settings) -> AIService:
    return RetryingAIService.from_settings(ChatModelService(), settings)


def load_artifacts(source: Path) -> ArtifactSet:
    """Read a project directory or a JSON file bundle into an :class:`ArtifactSet`."""

    if source.is_dir():
        files = {}
        for path in sorted(source.rglob("*")):
            relative = path.relative_to(source)
            if not path.is_file() or _SKIP_DIRS.intersection(relative.parts):
                continue
            if path.stat().st_size > _MAX_FILE_BYTES:
                continue
            try:
                files[relative.as_posix()] = path.read_text(encoding="utf-8")
            except UnicodeDecodeError:
                logger.debug("Skipping binary file %s", relative)
        return ArtifactSet(files)

    if not source.is_file():
        raise CLIError(f"{source} does not exist", exit_code=2)
    outcome = parse_artifact_payload(source.read_text(encoding="utf-8"))
    if isinstance(outcome, Failed):
        raise CLIError(f"{source} is not a file bundle: {outcome.reason}", exit_code=2)
    if isinstance(outcome, Recovered):
        logger.warning("Recovered file bundle: %s", "; ".join(outcome.warnings))
    return outcome.value


def _print_progress(component: str, percent: int) -> None:
    print(f"[{percent:3d}%] {component}", file=sys.stderr)


async def _generate(args: argparse.Namespace, settings: Settings) -> int:
    ai = build_ai_service(settings)
    planner = ProjectPlanner(ai)
    plan = await planner.plan(args.name, args.description, args.stack or settings.default_stack)
    logger.info("Planned %d components for %s", len(plan.required_components), plan.project_name)

    orchestrator = GenerationOrchestrator(ai, timeout=args.timeout)
    result = await orchestrator.generate(plan, progress=None if args.quiet else _print_progress)

    output = Path(args.output)
    write_tree(output, result.artifacts.to_dict())
    summary = summarize_generation(result)
    summary["tokens_used"] += planner.tokens_used
    if result.report is not None:
        (output / "QUALITY_REPORT.md").write_text(
            render_quality_report(result.report.validation, title=f"{plan.project_name} quality report"),
            encoding="utf-8",
        )
    print(json.dumps(summary, indent=2))
    return 0 if result.ok else 1


def _validate(args: argparse.Namespace, settings: Settings) -> int:
    artifacts = load_artifacts(Path(args.source))
    validator = QualityValidator.from_settings(settings)
    context = ValidationContext(extended_categories=tuple(args.extended or ()), minimum_score=args.minimum_score)
    try:
        report = validator.validate(artifacts, context)
    except ValueError as exc:
        raise CLIError(str(exc), exit_code=2) from exc
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(render_quality_report(report), end="")
    return 0 if report.passed else 1


async def _build(args: argparse.Namespace, settings: Settings) -> int:
    artifacts = load_artifacts(Path(args.source))
    validator = SandboxBuildValidator(
        LocalProcessSandbox(npm=args.npm),
        build_ai_service(settings),
        ValidationSessionRegistry(),
    )
    session_id = await validator.start(artifacts)
    try:
        session = await validator.wait(session_id)
        if session is None:
            raise CLIError(f"session {session_id} disappeared", exit_code=1)
        print(session.model_dump_json(indent=2))
        if args.keep_serving and session.preview_url:
            print(f"Serving {session.preview_url}; press Ctrl+C to stop", file=sys.stderr)
            await asyncio.Event().wait()
        return 0 if session.status == "completed" else 1
    finally:
        await validator.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="buildsmith", description="Generate and verify web projects with an AI model.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a project from a description")
    generate.add_argument("name", help="Project name")
    generate.add_argument("description", help="What the site should contain")
    generate.add_argument("--output", "-o", default="generated", help="Directory to write the project into")
    generate.add_argument("--stack", choices=available_stacks(), default=None)
    generate.add_argument("--timeout", type=float, default=None, help="Overall generation timeout in seconds")
    generate.add_argument("--quiet", "-q", action="store_true", help="Do not print per-component progress")

    validate = subparsers.add_parser("validate", help="Score an existing project")
    validate.add_argument("source", help="Project directory or JSON file bundle")
    validate.add_argument("--extended", action="append", choices=("lint", "imports", "dead_code", "type_safety"))
    validate.add_argument("--minimum-score", type=int, default=None)
    validate.add_argument("--json", action="store_true", help="Emit the report as JSON")

    build = subparsers.add_parser("build", help="Install, build and serve a project in a local sandbox")
    build.add_argument("source", help="Project directory or JSON file bundle")
    build.add_argument("--npm", default="npm", help="npm executable to use")
    build.add_argument("--keep-serving", action="store_true", help="Keep the preview server running")
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = get_settings()
    try:
        if args.command == "generate":
            return asyncio.run(_generate(args, settings))
        if args.command == "validate":
            return _validate(args, settings)
        return asyncio.run(_build(args, settings))
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    except KeyboardInterrupt:
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
