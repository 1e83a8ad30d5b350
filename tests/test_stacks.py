import json

import pytest

from buildsmith.agent.blueprints import BlueprintRegistry, PromptBlueprint, TemplateBlueprint
from buildsmith.agent.stacks import (
    DEFAULT_STACK_ID,
    REACT_VITE_TAILWIND,
    available_stacks,
    fallback_file,
    get_stack,
    merge_dependencies,
    name_from_path,
    plan_variables,
    required_content,
    scan_dependencies,
    stub_file,
)


def test_default_stack_is_registered() -> None:
    assert DEFAULT_STACK_ID in available_stacks()
    assert get_stack(DEFAULT_STACK_ID) is REACT_VITE_TAILWIND


def test_unknown_stack_lists_available() -> None:
    with pytest.raises(KeyError) as excinfo:
        get_stack("django")

    assert DEFAULT_STACK_ID in str(excinfo.value)


def test_required_files_cover_scaffold_and_blueprints() -> None:
    required = REACT_VITE_TAILWIND.required_files

    assert "package.json" in required
    assert "src/main.tsx" in required
    assert "src/App.tsx" in required
    assert len(required) == len(set(required))


def test_every_required_file_has_a_fallback() -> None:
    variables = plan_variables("Demo", "Demo site")
    stack = REACT_VITE_TAILWIND

    for path in stack.required_files:
        assert fallback_file(stack, path, variables, stack.required_components), path


def test_fallback_app_imports_every_rendered_component() -> None:
    app = fallback_file(REACT_VITE_TAILWIND, "src/App.tsx", plan_variables("Demo", "Demo"), ["Navbar", "Hero", "LoadingSpinner", "Footer"])

    assert "import Hero from './components/Hero';" in app
    assert "<Hero />" in app
    assert "fallback={<LoadingSpinner />}" in app
    assert "<Footer />" in app


def test_fallback_file_unknown_path_is_none() -> None:
    assert fallback_file(REACT_VITE_TAILWIND, "src/pages/About.tsx", plan_variables("Demo", "Demo"), ()) is None


@pytest.mark.parametrize("path, name", [("src/pages/About.tsx", "About"), ("src/pages/about-us.jsx", "AboutUs"), ("src/404.tsx", "Section404")])
def test_name_from_path(path: str, name: str) -> None:
    assert name_from_path(path) == name


def test_stub_files_are_never_empty() -> None:
    variables = plan_variables("Lisbon Bakery", "Fresh bread")

    assert "export default function About(" in stub_file("src/pages/About.tsx", variables)
    assert json.loads(stub_file("public/manifest.json", variables)) == {}
    assert stub_file("src/styles/theme.css", variables) == "/* Lisbon Bakery */\n"
    assert stub_file("robots.txt", variables).strip()


def test_required_content_prefers_templates() -> None:
    variables = plan_variables("Demo", "Demo")

    assert required_content(REACT_VITE_TAILWIND, "index.html", variables, ()) == fallback_file(REACT_VITE_TAILWIND, "index.html", variables, ())
    assert required_content(REACT_VITE_TAILWIND, "src/lib/util.ts", variables, ()) == "export {};\n"


def test_scan_dependencies_finds_known_packages_only() -> None:
    content = """
import { motion } from 'framer-motion';
import { ArrowRightIcon } from '@heroicons/react/24/solid';
import Local from './Local';
import something from 'left-pad';
const Chart = lazy(() => import('recharts'));
"""

    found = scan_dependencies(content)

    assert set(found) == {"framer-motion", "@heroicons/react", "recharts"}


def test_merge_dependencies_keeps_declared_versions() -> None:
    manifest = json.dumps({"dependencies": {"react": "^18.3.1", "zod": "^3.0.0"}, "devDependencies": {"clsx": "^1"}})

    merged = json.loads(merge_dependencies(manifest, {"zod": "^3.23.8", "clsx": "^2.1.1", "zustand": "^4.5.4"}))

    assert merged["dependencies"] == {"react": "^18.3.1", "zod": "^3.0.0", "zustand": "^4.5.4"}
    assert merged["devDependencies"] == {"clsx": "^1"}


def test_merge_dependencies_rejects_invalid_manifest() -> None:
    assert merge_dependencies("{not json", {"zod": "^3"}) is None
    assert merge_dependencies("[]", {"zod": "^3"}) is None


def test_blueprint_registry_rejects_duplicates() -> None:
    registry = BlueprintRegistry.of([TemplateBlueprint(path="a.ts", template="x")])

    with pytest.raises(ValueError):
        registry.register(PromptBlueprint(path="a.ts", purpose="y"))

    registry.register(PromptBlueprint(path="a.ts", purpose="y"), overwrite=True)
    assert registry.get("a.ts").kind == "prompt"
    assert "a.ts" in registry
