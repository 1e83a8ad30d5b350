from __future__ import annotations

import operator
import re
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional, Tuple, TypedDict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buildsmith.agent.quality_validator import ValidationReport
from buildsmith.agent.stacks import DEFAULT_STACK_ID, get_stack
from buildsmith.artifacts import ArtifactSet

_COMPONENT_NAME = re.compile(r"^[A-Z][A-Za-z0-9]*$")


class GenerationPlan(BaseModel):
    """What to generate for one request. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(min_length=1)
    description: str = ""
    stack_id: str = DEFAULT_STACK_ID
    required_files: Tuple[str, ...] = ()
    required_components: Tuple[str, ...] = ()
    pages: Tuple[str, ...] = ()
    features: Tuple[str, ...] = ()

    @field_validator("required_components", "pages")
    @classmethod
    def _pascal_case(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for name in value:
            if not _COMPONENT_NAME.match(name):
                raise ValueError(f"component and page names must be PascalCase identifiers, got {name!r}")
        return tuple(dict.fromkeys(value))

    @classmethod
    def for_stack(
        cls,
        project_name: str,
        description: str = "",
        stack_id: str = DEFAULT_STACK_ID,
        *,
        extra_components: Tuple[str, ...] | List[str] = (),
        features: Tuple[str, ...] | List[str] = (),
        pages: Tuple[str, ...] | List[str] = (),
    ) -> "GenerationPlan":
        stack = get_stack(stack_id)
        page_paths = tuple(stack.page_path(name) for name in dict.fromkeys(pages))
        return cls(
            project_name=project_name,
            description=description,
            stack_id=stack.id,
            required_files=stack.required_files + page_paths,
            required_components=tuple(stack.required_components) + tuple(extra_components),
            pages=tuple(pages),
            features=tuple(features),
        )


@dataclass(frozen=True)
class ComponentOutcome:
    name: str
    path: str
    attempts: int
    score: int
    used_fallback: bool = False
    failed_checks: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "attempts": self.attempts,
            "score": self.score,
            "used_fallback": self.used_fallback,
            "failed_checks": list(self.failed_checks),
        }


@dataclass(frozen=True)
class GenerationReport:
    validation: ValidationReport
    components: Tuple[ComponentOutcome, ...] = ()
    dependencies: Dict[str, str] = field(default_factory=dict)
    fallback_files: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "validation": self.validation.to_dict(),
            "components": [outcome.to_dict() for outcome in self.components],
            "dependencies": dict(self.dependencies),
            "fallback_files": list(self.fallback_files),
        }


def estimate_tokens(file_count: int) -> int:
    """Rough token figure for transports that report no usage."""

    return max(1000, file_count * 200)


@dataclass(frozen=True)
class GenerationResult:
    artifacts: ArtifactSet
    report: Optional[GenerationReport]
    tokens_used: int = 0
    errors: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def tokens_estimated(self) -> int:
        return self.tokens_used or estimate_tokens(len(self.artifacts))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": self.artifacts.to_dict(),
            "report": self.report.to_dict() if self.report else None,
            "tokens_used": self.tokens_used,
            "errors": list(self.errors),
        }


class GenerationState(TypedDict, total=False):
    plan: GenerationPlan
    variables: Dict[str, str]
    artifacts: Annotated[Dict[str, str], operator.or_]
    dependencies: Annotated[Dict[str, str], operator.or_]
    pending_units: List[Tuple[str, str]]
    components: Annotated[List[ComponentOutcome], operator.add]
    fallback_files: Annotated[List[str], operator.add]
    tokens_used: Annotated[int, operator.add]
    validation: ValidationReport
