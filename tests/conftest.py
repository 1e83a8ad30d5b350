import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from buildsmith.agent.stacks import REACT_VITE_TAILWIND, fallback_component, fallback_file, plan_variables, render_scaffold
from buildsmith.config.settings import get_settings
from buildsmith.llm.base import AIResponse
from buildsmith.sandbox.base import BuildOutput

Scripted = Union[str, Exception, Callable[[str], str]]

GOOD_COMPONENT = """import { useState } from 'react';

interface {name}Props {
  title?: string;
}

export default function {name}({ title = 'Our services' }: {name}Props) {
  const [open, setOpen] = useState(false);
  return (
    <section aria-label="{name}" className="px-4 py-10 md:px-8">
      <h2 className="text-2xl md:text-3xl">{title}</h2>
      <button type="button" onClick={() => setOpen(!open)}>Toggle details</button>
    </section>
  );
}
"""

BAD_COMPONENT = "Sorry, I cannot help with that."


def good_component(name: str) -> str:
    return GOOD_COMPONENT.replace("{name}", name)


class FakeAIService:
    """Scripted :class:`AIService`.

    ``script`` entries are consumed in order: strings become responses,
    exceptions are raised and callables receive the prompt. When the script is
    exhausted ``default`` is used the same way.
    """

    def __init__(self, script: Sequence[Scripted] = (), default: Optional[Scripted] = None, tokens: int = 10) -> None:
        self.script: List[Scripted] = list(script)
        self.default = default
        self.tokens = tokens
        self.prompts: List[str] = []

    async def ask(self, prompt: str, max_output_tokens: int) -> AIResponse:
        self.prompts.append(prompt)
        entry = self.script.pop(0) if self.script else self.default
        if entry is None:
            raise AssertionError(f"unexpected prompt: {prompt[:80]}")
        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            entry = entry(prompt)
        return AIResponse(text=entry, tokens_used=self.tokens)


def component_responder(prompt: str) -> str:
    """Answer component and page prompts with a valid component, anything else with an App."""

    for marker in ("Write the React + TypeScript component `", "Write the React + TypeScript page `"):
        if marker in prompt:
            name = prompt.split(marker, 1)[1].split("`", 1)[0]
            return good_component(name)
    return fallback_file(REACT_VITE_TAILWIND, "src/App.tsx", plan_variables("Demo", "Demo site"), REACT_VITE_TAILWIND.required_components)


class FakeSandbox:
    def __init__(
        self,
        builds: Sequence[BuildOutput] = (),
        *,
        delay: float = 0.0,
        hang_on: Optional[str] = None,
        preview_url: str = "http://127.0.0.1:5173",
        teardown_delay: float = 0.0,
    ) -> None:
        self.builds: List[BuildOutput] = list(builds)
        self.delay = delay
        self.hang_on = hang_on
        self.preview_url = preview_url
        self.teardown_delay = teardown_delay
        self.build_calls = 0
        self.mounts: List[Dict[str, str]] = []
        self.torn_down: List[Any] = []
        self.calls: List[str] = []

    async def _step(self, name: str) -> None:
        self.calls.append(name)
        if self.hang_on == name:
            await asyncio.Event().wait()
        if self.delay:
            await asyncio.sleep(self.delay)

    async def boot(self) -> str:
        await self._step("boot")
        return "handle-1"

    async def mount(self, handle: Any, files: Dict[str, str]) -> None:
        await self._step("mount")
        self.mounts.append(dict(files))

    async def install_dependencies(self, handle: Any) -> str:
        await self._step("install")
        return "added 120 packages"

    async def build(self, handle: Any) -> BuildOutput:
        await self._step("build")
        self.build_calls += 1
        if self.builds:
            return self.builds.pop(0)
        return BuildOutput(success=True, logs="built in 1.2s")

    async def start_server(self, handle: Any) -> str:
        await self._step("serve")
        return self.preview_url

    async def teardown(self, handle: Any) -> None:
        self.calls.append("teardown")
        if self.teardown_delay:
            await asyncio.sleep(self.teardown_delay)
        self.torn_down.append(handle)


def complete_project(name: str = "Demo") -> Dict[str, str]:
    """A full artifact set built only from fallback templates."""

    variables = plan_variables(name, "A bakery in Lisbon offering fresh bread and pastry services")
    stack = REACT_VITE_TAILWIND
    files = render_scaffold(stack, variables)
    files["src/main.tsx"] = fallback_file(stack, "src/main.tsx", variables, ()) or ""
    files["src/App.tsx"] = fallback_file(stack, "src/App.tsx", variables, stack.required_components) or ""
    for component in stack.required_components:
        files[stack.component_path(component)] = fallback_component(stack, component, variables)
    return files


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    for key in ("BUILDSMITH_LANGFUSE_PUBLIC_KEY", "BUILDSMITH_LANGFUSE_SECRET_KEY", "BUILDSMITH_MINIMUM_SCORE"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


async def drain_callbacks(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)
