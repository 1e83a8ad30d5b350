from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from buildsmith.agent.blueprints import BlueprintRegistry, PromptBlueprint, TemplateBlueprint
from buildsmith.scaffold import react_vite
from buildsmith.scaffold.templates import render_template, slugify

logger = logging.getLogger(__name__)

DEFAULT_STACK_ID = "react-vite-tailwind"

# Packages generated code commonly imports, pinned to known-good ranges.
KNOWN_DEPENDENCIES: Dict[str, str] = {
    "react-router-dom": "^6.26.0",
    "react-error-boundary": "^4.0.11",
    "@heroicons/react": "^2.1.1",
    "framer-motion": "^11.3.19",
    "lucide-react": "^0.428.0",
    "react-hook-form": "^7.52.1",
    "zod": "^3.23.8",
    "zustand": "^4.5.4",
    "recharts": "^2.12.0",
    "date-fns": "^3.6.0",
    "clsx": "^2.1.1",
    "tailwind-merge": "^2.4.0",
}

_IMPORT_SPECIFIER = re.compile(r"""(?:from\s+|import\s*\(\s*|require\(\s*)['"]([^'"]+)['"]""")


@dataclass(frozen=True)
class StackConfig:
    id: str
    name: str
    framework: str
    scaffold: Mapping[str, str]
    blueprints: BlueprintRegistry
    required_components: Tuple[str, ...]
    component_dir: str = "src/components"
    page_dir: str = "src/pages"
    component_extension: str = ".tsx"
    known_dependencies: Mapping[str, str] = field(default_factory=lambda: dict(KNOWN_DEPENDENCIES))

    @property
    def required_files(self) -> Tuple[str, ...]:
        return tuple(self.scaffold) + tuple(path for path in self.blueprints.paths() if path not in self.scaffold)

    def component_path(self, name: str) -> str:
        return f"{self.component_dir}/{name}{self.component_extension}"

    def page_path(self, name: str) -> str:
        return f"{self.page_dir}/{name}{self.component_extension}"


def plan_variables(project_name: str, description: str) -> Dict[str, str]:
    return {
        "projectName": project_name,
        "description": description,
        "packageName": slugify(project_name),
    }


def render_scaffold(stack: StackConfig, variables: Mapping[str, str]) -> Dict[str, str]:
    """Render every scaffold template of ``stack``; no AI involvement."""

    return {path: render_template(template, variables, path=path) for path, template in stack.scaffold.items()}


def fallback_component(stack: StackConfig, name: str, variables: Mapping[str, str]) -> str:
    template, extra = react_vite.component_template(name)
    merged = {**variables, **extra}
    return render_template(template, merged, path=stack.component_path(name))


def fallback_file(stack: StackConfig, path: str, variables: Mapping[str, str], components: Iterable[str]) -> Optional[str]:
    """Guaranteed-valid content for a required file, or ``None`` if unknown."""

    if path in stack.scaffold:
        return render_template(stack.scaffold[path], variables, path=path)
    blueprint = stack.blueprints.get(path)
    if isinstance(blueprint, TemplateBlueprint):
        return render_template(blueprint.template, variables, path=path)
    if path.endswith(("App.tsx", "App.jsx")):
        layout = react_vite.app_layout(components)
        body = render_template(react_vite.APP, layout, raw=layout.keys())
        return render_template(body, variables, path=path)
    return None


def fallback_page(stack: StackConfig, name: str, variables: Mapping[str, str]) -> str:
    template, extra = react_vite.page_template(name)
    return render_template(template, {**variables, **extra}, path=stack.page_path(name))


_STUBS: Dict[str, str] = {
    ".ts": "export {};\n",
    ".js": "export {};\n",
    ".css": "/* {projectName} */\n",
    ".json": "{}\n",
    ".md": "# {projectName}\n\n{description}\n",
}


def name_from_path(path: str) -> str:
    """``"src/pages/about-us.tsx"`` -> ``"AboutUs"``."""

    words = re.findall(r"[A-Za-z0-9]+", PurePosixPath(path).stem)
    name = "".join(word[:1].upper() + word[1:] for word in words)
    return name if name[:1].isalpha() else f"Section{name}"


def stub_file(path: str, variables: Mapping[str, str]) -> str:
    """Minimal valid content for a required file that no template covers."""

    suffix = PurePosixPath(path).suffix
    if suffix in (".tsx", ".jsx"):
        template, extra = react_vite.page_template(name_from_path(path))
        return render_template(template, {**variables, **extra}, path=path)
    return render_template(_STUBS.get(suffix, "{projectName}\n"), variables, path=path)


def required_content(stack: StackConfig, path: str, variables: Mapping[str, str], components: Iterable[str]) -> str:
    """Like :func:`fallback_file`, but never empty."""

    content = fallback_file(stack, path, variables, components)
    return content if content is not None else stub_file(path, variables)


def scan_dependencies(content: str, known: Mapping[str, str] = KNOWN_DEPENDENCIES) -> Dict[str, str]:
    """Known packages imported by ``content``, with their pinned versions."""

    found: Dict[str, str] = {}
    for specifier in _IMPORT_SPECIFIER.findall(content or ""):
        if specifier.startswith("."):
            continue
        parts = specifier.split("/")
        name = "/".join(parts[:2]) if specifier.startswith("@") else parts[0]
        if name in known:
            found[name] = known[name]
    return found


def merge_dependencies(manifest: str, dependencies: Mapping[str, str]) -> Optional[str]:
    """Add ``dependencies`` to a package.json text; ``None`` if it does not parse."""

    try:
        data: Any = json.loads(manifest)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    declared = data.get("dependencies")
    if not isinstance(declared, dict):
        declared = {}
    dev = data.get("devDependencies") if isinstance(data.get("devDependencies"), dict) else {}
    for name, version in sorted(dependencies.items()):
        if name not in declared and name not in dev:
            declared[name] = version
    data["dependencies"] = declared
    return json.dumps(data, indent=2) + "\n"


REACT_VITE_TAILWIND = StackConfig(
    id=DEFAULT_STACK_ID,
    name="React + Vite + Tailwind CSS",
    framework="react",
    scaffold=react_vite.SCAFFOLD_FILES,
    blueprints=BlueprintRegistry.of(
        [
            TemplateBlueprint(path="src/main.tsx", template=react_vite.MAIN_TSX),
            PromptBlueprint(
                path="src/App.tsx",
                purpose="Root component that lays out every page section",
                guidelines=(
                    "Import each component from ./components/<Name>",
                    "Wrap lazily loaded sections in Suspense with LoadingSpinner as fallback",
                    "Use semantic landmarks and responsive Tailwind classes",
                ),
            ),
        ]
    ),
    required_components=(
        "Navbar",
        "Hero",
        "Products",
        "Gallery",
        "Testimonials",
        "Contact",
        "Footer",
        "SEO",
        "ErrorFallback",
        "LoadingSpinner",
        "Button",
        "Card",
        "Sidebar",
    ),
)

_STACKS: Dict[str, StackConfig] = {REACT_VITE_TAILWIND.id: REACT_VITE_TAILWIND}


def register_stack(stack: StackConfig, *, overwrite: bool = False) -> None:
    if stack.id in _STACKS and not overwrite:
        raise ValueError(f"stack already registered: {stack.id}")
    _STACKS[stack.id] = stack


def get_stack(stack_id: str) -> StackConfig:
    try:
        return _STACKS[stack_id]
    except KeyError:
        raise KeyError(f"Unknown stack '{stack_id}'. Available: {', '.join(sorted(_STACKS))}") from None


def available_stacks() -> Tuple[str, ...]:
    return tuple(sorted(_STACKS))
