from __future__ import annotations

import logging
import re
from typing import List

from pydantic import BaseModel, ValidationError

from buildsmith.agent.prompts import analysis_prompt
from buildsmith.agent.stacks import DEFAULT_STACK_ID, get_stack
from buildsmith.agent.state import GenerationPlan
from buildsmith.errors import ServiceError
from buildsmith.llm.base import AIService
from buildsmith.utils.parsing import Failed, Recovered, parse_json_object

logger = logging.getLogger(__name__)

MAX_EXTRA_COMPONENTS = 6
MAX_PAGES = 6


class ProjectAnalysis(BaseModel):
    pages: List[str] = []
    components: List[str] = []
    features: List[str] = []


def to_component_name(raw: str) -> str:
    """``"pricing table"`` -> ``"PricingTable"``; empty when nothing usable remains."""

    words = re.findall(r"[A-Za-z0-9]+", raw or "")
    name = "".join(word[:1].upper() + word[1:] for word in words)
    name = name.removesuffix("Tsx").removesuffix("Jsx")
    if not name or not name[0].isalpha():
        return ""
    return name


class ProjectPlanner:
    """Turn a free-text request into a :class:`GenerationPlan`.

    The AI service is asked for pages, extra components and features. Whatever
    it says is only ever additive: the stack's own components are always kept,
    and any failure (transport or parsing) falls back to the stack defaults.
    """

    def __init__(self, ai: AIService, *, max_output_tokens: int = 1024) -> None:
        self.ai = ai
        self.max_output_tokens = max_output_tokens
        self.tokens_used = 0

    async def plan(self, project_name: str, description: str, stack_id: str = DEFAULT_STACK_ID) -> GenerationPlan:
        stack = get_stack(stack_id)
        defaults = GenerationPlan.for_stack(project_name, description, stack.id)
        prompt = analysis_prompt(project_name, description, stack.name, stack.required_components)

        try:
            response = await self.ai.ask(prompt, self.max_output_tokens)
        except ServiceError as exc:
            logger.warning("Project analysis failed, using stack defaults: %s", exc)
            return defaults
        self.tokens_used += response.tokens_used

        outcome = parse_json_object(response.text)
        if isinstance(outcome, Failed):
            logger.warning("Could not parse project analysis (%s); using stack defaults", outcome.reason)
            return defaults
        if isinstance(outcome, Recovered):
            logger.info("Recovered project analysis: %s", "; ".join(outcome.warnings))

        try:
            analysis = ProjectAnalysis.model_validate(outcome.value)
        except ValidationError as exc:
            logger.warning("Project analysis has the wrong shape: %s", exc.errors()[:1])
            return defaults

        extras: List[str] = []
        for raw in analysis.components:
            name = to_component_name(raw)
            if name and name not in stack.required_components and name not in extras:
                extras.append(name)
        pages: List[str] = []
        for raw in analysis.pages:
            name = to_component_name(raw)
            if name and name not in pages:
                pages.append(name)
        return GenerationPlan.for_stack(
            project_name,
            description,
            stack.id,
            extra_components=extras[:MAX_EXTRA_COMPONENTS],
            pages=pages[:MAX_PAGES],
            features=[feature for feature in analysis.features if isinstance(feature, str)],
        )
