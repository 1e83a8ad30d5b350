from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class AIResponse:
    text: str
    tokens_used: int = 0


@runtime_checkable
class AIService(Protocol):
    """Text-in, text-out code generation collaborator.

    Implementations raise :class:`~buildsmith.errors.TransientServiceError` for
    failures worth retrying and :class:`~buildsmith.errors.FatalServiceError`
    for everything else.
    """

    async def ask(self, prompt: str, max_output_tokens: int) -> AIResponse:
        ...
