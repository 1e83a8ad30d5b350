"""Prompt builders. Callers treat the returned strings as opaque."""
from __future__ import annotations

from typing import Iterable, Sequence

from buildsmith.agent.blueprints import PromptBlueprint


def _bullets(items: Iterable[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def analysis_prompt(project_name: str, description: str, stack_name: str, components: Sequence[str]) -> str:
    return f"""You are planning a production website built with {stack_name}.

Project: {project_name}
Request: {description}

The stack always ships these components:
{_bullets(components)}

Reply with JSON only, using this shape:
{{"pages": ["..."], "components": ["PascalCaseName", ...], "features": ["..."]}}
List only components that are not already shipped."""


def file_prompt(blueprint: PromptBlueprint, project_name: str, description: str, components: Sequence[str]) -> str:
    return f"""Write the file `{blueprint.path}` for the project "{project_name}".

Project description: {description}
Purpose: {blueprint.purpose}

Available components (default exports from ./components/<Name>):
{_bullets(components)}

Requirements:
{_bullets(blueprint.guidelines)}

Return only the file contents, with no explanation and no markdown fences."""


def component_prompt(
    name: str,
    path: str,
    project_name: str,
    description: str,
    previous_issues: Sequence[str] = (),
) -> str:
    prompt = f"""Write the React + TypeScript component `{name}` for the project "{project_name}".

Project description: {description}
File: {path}

Requirements:
- Default-export a function component named {name}
- Declare a {name}Props interface for its props
- Style with Tailwind CSS, including sm:/md:/lg: responsive variants
- Use semantic elements and aria attributes
- Write realistic copy; never use lorem ipsum or placeholder text

Return only the file contents, with no explanation and no markdown fences."""
    if previous_issues:
        prompt += f"""

A previous attempt failed these checks; fix every one of them:
{_bullets(previous_issues)}"""
    return prompt


def page_prompt(
    name: str,
    path: str,
    project_name: str,
    description: str,
    components: Sequence[str],
    previous_issues: Sequence[str] = (),
) -> str:
    prompt = f"""Write the React + TypeScript page `{name}` for the project "{project_name}".

Project description: {description}
File: {path}

Available components (default exports from ../components/<Name>):
{_bullets(components)}

Requirements:
- Default-export a function component named {name}
- Declare a {name}Props interface for its props
- Compose the page from the available components where they fit
- Style with Tailwind CSS, including sm:/md:/lg: responsive variants
- Wrap the content in a <main> or <section> with an accessible heading

Return only the file contents, with no explanation and no markdown fences."""
    if previous_issues:
        prompt += f"""

A previous attempt failed these checks; fix every one of them:
{_bullets(previous_issues)}"""
    return prompt


def repair_prompt(
    path: str,
    content: str,
    message: str,
    kind: str,
    line: int | None = None,
    column: int | None = None,
) -> str:
    location = path
    if line is not None:
        location += f", line {line}"
        if column is not None:
            location += f", column {column}"
    return f"""The production build failed with a {kind} error.

Location: {location}
Error: {message}

Current contents of {path}:
{content}

Return the complete corrected file. Keep everything that is not related to the error unchanged.
Return only the file contents, with no explanation and no markdown fences."""
