"""Bounded exponential backoff around an :class:`AIService`."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from buildsmith.errors import FatalServiceError, ServiceError
from buildsmith.llm.base import AIResponse, AIService

logger = logging.getLogger(__name__)

T = TypeVar("T")
SleepFn = Callable[[float], Awaitable[None]]
RetryCallback = Callable[[int, ServiceError, float], None]


@dataclass(frozen=True)
class BackoffConfig:
    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    multiplier: float = 2.0
    max_delay_seconds: float = 8.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay_seconds < 0 or self.max_delay_seconds < 0:
            raise ValueError("delays must be >= 0")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")


def compute_backoff_delay(retry_number: int, config: BackoffConfig) -> float:
    """Return the capped delay before retry ``retry_number`` (1-based)."""

    if retry_number <= 0:
        raise ValueError("retry_number must be > 0")
    delay = config.initial_delay_seconds * (config.multiplier ** (retry_number - 1))
    return min(delay, config.max_delay_seconds)


def _as_service_error(exc: Exception) -> ServiceError:
    if isinstance(exc, ServiceError):
        return exc
    return FatalServiceError(f"{type(exc).__name__}: {exc}")


async def run_with_retries(
    operation: Callable[[], Awaitable[T]],
    *,
    backoff: BackoffConfig,
    sleep: SleepFn = asyncio.sleep,
    on_retry: Optional[RetryCallback] = None,
) -> T:
    """Run ``operation`` retrying only retryable :class:`ServiceError` failures."""

    attempt = 1
    while True:
        try:
            return await operation()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            mapped = _as_service_error(exc)
            if not mapped.retryable or attempt >= backoff.max_attempts:
                if mapped is exc:
                    raise
                raise mapped from exc
            delay = compute_backoff_delay(attempt, backoff)
            if on_retry is not None:
                on_retry(attempt, mapped, delay)
            attempt += 1
            await sleep(delay)


class RetryingAIService:
    """Wrap an :class:`AIService` so transient failures are retried."""

    def __init__(
        self,
        inner: AIService,
        backoff: BackoffConfig | None = None,
        *,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.inner = inner
        self.backoff = backoff or BackoffConfig()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, inner: AIService, settings) -> "RetryingAIService":
        return cls(
            inner,
            BackoffConfig(
                max_attempts=settings.ai_max_attempts,
                initial_delay_seconds=settings.ai_backoff_initial,
                max_delay_seconds=settings.ai_backoff_max,
            ),
        )

    async def ask(self, prompt: str, max_output_tokens: int) -> AIResponse:
        def _log_retry(attempt: int, error: ServiceError, delay: float) -> None:
            logger.warning(
                "AI request failed (attempt %d/%d): %s; retrying in %.1fs",
                attempt,
                self.backoff.max_attempts,
                error,
                delay,
            )

        return await run_with_retries(
            lambda: self.inner.ask(prompt, max_output_tokens),
            backoff=self.backoff,
            sleep=self._sleep,
            on_retry=_log_retry,
        )


__all__ = [
    "BackoffConfig",
    "compute_backoff_delay",
    "run_with_retries",
    "RetryingAIService",
]
