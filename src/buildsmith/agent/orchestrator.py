"""Multi-file project generation as a LangGraph state machine.

``scaffold -> files -> component* -> finalize``

The component node handles one component or page per visit and loops back on
itself until the queue is empty, so the graph stays linear apart from that
bounded loop. Every component and page gets at most two AI attempts before a
fallback template takes its place.
"""
from __future__ import annotations

import asyncio
import contextvars
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from langgraph.graph import END, START, StateGraph

from buildsmith.agent.blueprints import PromptBlueprint, TemplateBlueprint
from buildsmith.agent.prompts import component_prompt, file_prompt, page_prompt
from buildsmith.agent.quality_validator import QualityValidator, ValidationReport
from buildsmith.agent.stacks import (
    StackConfig,
    fallback_component,
    fallback_file,
    fallback_page,
    get_stack,
    merge_dependencies,
    plan_variables,
    render_scaffold,
    required_content,
    scan_dependencies,
)
from buildsmith.agent.state import ComponentOutcome, GenerationPlan, GenerationReport, GenerationResult, GenerationState
from buildsmith.artifacts import ArtifactSet
from buildsmith.config.settings import get_settings
from buildsmith.errors import ContentQualityFailure, FatalGenerationError, ServiceError
from buildsmith.llm.base import AIResponse, AIService
from buildsmith.utils.callbacks import fire_and_forget
from buildsmith.utils.parsing import clean_code_response

logger = logging.getLogger(__name__)

MAX_COMPONENT_ATTEMPTS = 2

ProgressCallback = Callable[[str, int], Union[None, Awaitable[None]]]

_progress: contextvars.ContextVar[Optional[ProgressCallback]] = contextvars.ContextVar("progress", default=None)


def route_after_files(state: GenerationState) -> str:
    return "component" if state.get("pending_units") else "finalize"


def queued_units(plan: GenerationPlan) -> List[Tuple[str, str]]:
    """``(kind, name)`` pairs handled by the component node, in order."""

    return [("component", name) for name in plan.required_components] + [("page", name) for name in plan.pages]


def unit_path(stack: StackConfig, kind: str, name: str) -> str:
    return stack.page_path(name) if kind == "page" else stack.component_path(name)


class GenerationOrchestrator:
    def __init__(
        self,
        ai: AIService,
        validator: QualityValidator | None = None,
        *,
        timeout: float | None = None,
        max_file_tokens: int | None = None,
        max_component_tokens: int | None = None,
    ) -> None:
        settings = get_settings()
        self.ai = ai
        self.validator = validator or QualityValidator.from_settings(settings)
        self.timeout = settings.generation_timeout if timeout is None else timeout
        self.max_file_tokens = max_file_tokens or settings.max_file_tokens
        self.max_component_tokens = max_component_tokens or settings.max_component_tokens
        self.graph = self._make_graph()

    def _make_graph(self):
        g = StateGraph(GenerationState)
        g.add_node("scaffold", self.scaffold)
        g.add_node("files", self.generate_files)
        g.add_node("component", self.generate_component)
        g.add_node("finalize", self.finalize)

        g.add_edge(START, "scaffold")
        g.add_edge("scaffold", "files")
        g.add_conditional_edges("files", route_after_files, {"component": "component", "finalize": "finalize"})
        g.add_conditional_edges("component", route_after_files, {"component": "component", "finalize": "finalize"})
        g.add_edge("finalize", END)
        return g.compile()

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------
    async def generate(self, plan: GenerationPlan, progress: ProgressCallback | None = None) -> GenerationResult:
        initial: GenerationState = {
            "plan": plan,
            "variables": plan_variables(plan.project_name, plan.description),
            "artifacts": {},
            "dependencies": {},
            "pending_units": [],
            "components": [],
            "fallback_files": [],
            "tokens_used": 0,
        }
        latest: Dict[str, Any] = dict(initial)
        config = {"recursion_limit": len(queued_units(plan)) + 10}

        async def _drive() -> None:
            async for snapshot in self.graph.astream(initial, config=config, stream_mode="values"):
                latest.update(snapshot)

        error: Optional[str] = None
        token = _progress.set(progress)
        try:
            await asyncio.wait_for(_drive(), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = f"Generation timed out after {self.timeout:.0f}s"
        except FatalGenerationError as exc:
            error = str(exc)
        except ServiceError as exc:
            error = f"AI service failure: {exc}"
        except Exception as exc:
            logger.exception("Generation of %s raised", plan.project_name)
            error = f"Generation failed: {type(exc).__name__}: {exc}"
        finally:
            _progress.reset(token)

        if error is None and "validation" in latest:
            return self._result(latest, latest["validation"], ())

        logger.error("Generation of %s aborted: %s", plan.project_name, error)
        return self._abort(plan, latest, error or "Generation stopped before finalizing")

    # ------------------------------------------------------------------
    # Graph nodes
    # ------------------------------------------------------------------
    async def scaffold(self, state: GenerationState) -> Dict[str, Any]:
        plan = state["plan"]
        try:
            stack = get_stack(plan.stack_id)
            files = render_scaffold(stack, state["variables"])
        except (KeyError, ValueError) as exc:
            raise FatalGenerationError(f"Scaffold failed for stack {plan.stack_id!r}: {exc}") from exc
        if not files:
            raise FatalGenerationError(f"Stack {plan.stack_id!r} produced no scaffold files")
        logger.info("Scaffolded %d files for %s", len(files), plan.project_name)
        return {"artifacts": files, "pending_units": queued_units(plan)}

    async def generate_files(self, state: GenerationState) -> Dict[str, Any]:
        plan = state["plan"]
        stack = get_stack(plan.stack_id)
        variables = state["variables"]
        files: Dict[str, str] = {}
        dependencies: Dict[str, str] = {}
        fallbacks: List[str] = []
        tokens = 0

        # Plan files outside the stack's blueprints are prompted for generically.
        queued = {unit_path(stack, kind, name) for kind, name in queued_units(plan)}
        blueprints = list(stack.blueprints)
        for path in plan.required_files:
            if path not in stack.blueprints and path not in queued and path not in state.get("artifacts", {}):
                blueprints.append(PromptBlueprint(path=path, purpose=f"Supporting file {path} required by the project"))

        for blueprint in blueprints:
            if blueprint.path in state.get("artifacts", {}) or blueprint.path in files:
                continue
            if isinstance(blueprint, TemplateBlueprint):
                files[blueprint.path] = fallback_file(stack, blueprint.path, variables, plan.required_components) or ""
                continue
            response = await self._ask(
                file_prompt(blueprint, plan.project_name, plan.description, plan.required_components),
                blueprint.max_output_tokens or self.max_file_tokens,
            )
            tokens += response.tokens_used
            content = clean_code_response(response.text)
            if not content.strip():
                logger.warning("AI returned nothing for %s; using fallback", blueprint.path)
                content = required_content(stack, blueprint.path, variables, plan.required_components)
                fallbacks.append(blueprint.path)
            files[blueprint.path] = content
            dependencies.update(scan_dependencies(content, stack.known_dependencies))

        return {"artifacts": files, "dependencies": dependencies, "fallback_files": fallbacks, "tokens_used": tokens}

    async def generate_component(self, state: GenerationState) -> Dict[str, Any]:
        plan = state["plan"]
        stack = get_stack(plan.stack_id)
        pending = list(state.get("pending_units", []))
        kind, name = pending.pop(0)
        path = unit_path(stack, kind, name)

        content, outcome, tokens = await self._component_with_retry(plan, stack, kind, name, path, state["variables"])

        total = len(queued_units(plan))
        self._notify(name, round((total - len(pending)) * 100 / max(1, total)))
        return {
            "artifacts": {path: content},
            "pending_units": pending,
            "components": [outcome],
            "dependencies": scan_dependencies(content, stack.known_dependencies),
            "fallback_files": [path] if outcome.used_fallback else [],
            "tokens_used": tokens,
        }

    async def finalize(self, state: GenerationState) -> Dict[str, Any]:
        plan = state["plan"]
        stack = get_stack(plan.stack_id)
        artifacts = dict(state.get("artifacts", {}))
        updates, fallbacks = self._complete_artifacts(plan, stack, artifacts, state.get("dependencies", {}), state["variables"])
        artifacts.update(updates)
        return {
            "artifacts": updates,
            "fallback_files": fallbacks,
            "validation": self.validator.validate(ArtifactSet(artifacts)),
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _ask(self, prompt: str, max_output_tokens: int) -> AIResponse:
        try:
            return await self.ai.ask(prompt, max_output_tokens)
        except ServiceError as exc:
            raise FatalGenerationError(f"AI service failure: {exc}") from exc

    def _accept_component(self, path: str, content: str) -> int:
        result = self.validator.validate_component(path, content)
        if not result.passed:
            raise ContentQualityFailure(path, result.score, [f"{check.name}: {check.message}" for check in result.failed_checks])
        return result.score

    async def _component_with_retry(
        self,
        plan: GenerationPlan,
        stack: StackConfig,
        kind: str,
        name: str,
        path: str,
        variables: Mapping[str, str],
    ) -> Tuple[str, ComponentOutcome, int]:
        issues: List[str] = []
        tokens = 0
        for attempt in range(1, MAX_COMPONENT_ATTEMPTS + 1):
            if kind == "page":
                prompt = page_prompt(name, path, plan.project_name, plan.description, plan.required_components, issues)
            else:
                prompt = component_prompt(name, path, plan.project_name, plan.description, issues)
            response = await self._ask(prompt, self.max_component_tokens)
            tokens += response.tokens_used
            content = clean_code_response(response.text)
            try:
                score = self._accept_component(path, content)
            except ContentQualityFailure as failure:
                logger.info("Component %s attempt %d rejected: %s", name, attempt, failure)
                issues = failure.failed_checks
                continue
            return content, ComponentOutcome(name=name, path=path, attempts=attempt, score=score), tokens

        fallback = fallback_page(stack, name, variables) if kind == "page" else fallback_component(stack, name, variables)
        score = self.validator.validate_component(path, fallback).score
        logger.warning("%s %s replaced by fallback template after %d attempts", kind.capitalize(), name, MAX_COMPONENT_ATTEMPTS)
        outcome = ComponentOutcome(
            name=name,
            path=path,
            attempts=MAX_COMPONENT_ATTEMPTS,
            score=score,
            used_fallback=True,
            failed_checks=tuple(issues),
        )
        return fallback, outcome, tokens

    def _complete_artifacts(
        self,
        plan: GenerationPlan,
        stack: StackConfig,
        artifacts: Mapping[str, str],
        dependencies: Mapping[str, str],
        variables: Mapping[str, str],
    ) -> Tuple[Dict[str, str], List[str]]:
        """Fill missing required files and merge dependencies into package.json."""

        updates: Dict[str, str] = {}
        fallbacks: List[str] = []
        for path in plan.required_files or stack.required_files:
            if path in artifacts and artifacts[path].strip():
                continue
            updates[path] = required_content(stack, path, variables, plan.required_components)
            fallbacks.append(path)

        manifest_path = "package.json"
        manifest = updates.get(manifest_path, artifacts.get(manifest_path))
        if manifest is not None and dependencies:
            merged = merge_dependencies(manifest, dependencies)
            if merged is None:
                logger.warning("package.json does not parse; regenerating from template")
                merged = merge_dependencies(fallback_file(stack, manifest_path, variables, ()) or "{}", dependencies)
                fallbacks.append(manifest_path)
            if merged is not None:
                updates[manifest_path] = merged
        return updates, fallbacks

    def _result(self, state: Mapping[str, Any], validation: ValidationReport, errors: Tuple[str, ...]) -> GenerationResult:
        report = GenerationReport(
            validation=validation,
            components=tuple(state.get("components", [])),
            dependencies=dict(state.get("dependencies", {})),
            fallback_files=tuple(dict.fromkeys(state.get("fallback_files", []))),
        )
        return GenerationResult(
            artifacts=ArtifactSet(state.get("artifacts", {})),
            report=report,
            tokens_used=int(state.get("tokens_used", 0)),
            errors=errors,
        )

    def _abort(self, plan: GenerationPlan, latest: Mapping[str, Any], error: str) -> GenerationResult:
        artifacts = dict(latest.get("artifacts", {}))
        fallbacks = list(latest.get("fallback_files", []))
        try:
            stack = get_stack(plan.stack_id)
        except KeyError:
            stack = None
        if stack is not None:
            variables = plan_variables(plan.project_name, plan.description)
            updates, filled = self._complete_artifacts(plan, stack, artifacts, latest.get("dependencies", {}), variables)
            artifacts.update(updates)
            fallbacks.extend(filled)
        state = {**latest, "artifacts": artifacts, "fallback_files": fallbacks}
        return self._result(state, self.validator.validate(ArtifactSet(artifacts)), (error,))

    def _notify(self, name: str, percent: int) -> None:
        fire_and_forget(_progress.get(), name, percent)
