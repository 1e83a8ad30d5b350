from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, runtime_checkable


@dataclass(frozen=True)
class BuildOutput:
    success: bool
    logs: str = ""
    raw_output: str = ""


@runtime_checkable
class SandboxProvider(Protocol):
    """Ephemeral execution environment used to build generated projects.

    A provider may be shared by many sessions; every session boots its own
    handle and only ever awaits one operation at a time against it.
    """

    async def boot(self) -> Any:
        ...

    async def mount(self, handle: Any, files: Mapping[str, str]) -> None:
        ...

    async def install_dependencies(self, handle: Any) -> str:
        ...

    async def build(self, handle: Any) -> BuildOutput:
        ...

    async def start_server(self, handle: Any) -> str:
        ...

    async def teardown(self, handle: Any) -> None:
        ...
