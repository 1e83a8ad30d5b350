"""Declared generation blueprints.

A blueprint tells the orchestrator how a single file comes into being: either
by rendering a static template or by prompting the AI service. The kinds are a
closed set looked up through :class:`BlueprintRegistry`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Literal, Optional, Tuple, Union


@dataclass(frozen=True)
class TemplateBlueprint:
    path: str
    template: str
    kind: Literal["template"] = "template"


@dataclass(frozen=True)
class PromptBlueprint:
    path: str
    purpose: str
    guidelines: Tuple[str, ...] = ()
    max_output_tokens: Optional[int] = None
    minimum_score: Optional[int] = None
    kind: Literal["prompt"] = "prompt"


Blueprint = Union[TemplateBlueprint, PromptBlueprint]


@dataclass
class BlueprintRegistry:
    _blueprints: Dict[str, Blueprint] = field(default_factory=dict)

    def register(self, blueprint: Blueprint, *, overwrite: bool = False) -> None:
        if blueprint.path in self._blueprints and not overwrite:
            raise ValueError(f"blueprint already registered for {blueprint.path}")
        self._blueprints[blueprint.path] = blueprint

    def get(self, path: str) -> Optional[Blueprint]:
        return self._blueprints.get(path)

    def paths(self) -> Tuple[str, ...]:
        return tuple(self._blueprints)

    def __iter__(self) -> Iterator[Blueprint]:
        return iter(self._blueprints.values())

    def __contains__(self, path: object) -> bool:
        return path in self._blueprints

    @classmethod
    def of(cls, blueprints: Iterable[Blueprint]) -> "BlueprintRegistry":
        registry = cls()
        for blueprint in blueprints:
            registry.register(blueprint)
        return registry


__all__ = ["Blueprint", "BlueprintRegistry", "PromptBlueprint", "TemplateBlueprint"]
