from typing import List

import pytest

from buildsmith.errors import FatalServiceError, TransientServiceError
from buildsmith.llm.retry import BackoffConfig, RetryingAIService, compute_backoff_delay, run_with_retries

from conftest import FakeAIService


class _Sleeps:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def test_backoff_delays_are_capped() -> None:
    config = BackoffConfig(max_attempts=6, initial_delay_seconds=1.0, multiplier=2.0, max_delay_seconds=8.0)

    assert [compute_backoff_delay(n, config) for n in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 8.0]


@pytest.mark.parametrize(
    "kwargs",
    [{"max_attempts": 0}, {"initial_delay_seconds": -1}, {"multiplier": 0.5}],
)
def test_backoff_config_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        BackoffConfig(**kwargs)


@pytest.mark.asyncio
async def test_transient_errors_are_retried_until_success() -> None:
    sleeps = _Sleeps()
    ai = FakeAIService([TransientServiceError("503"), TransientServiceError("429"), "ok"])
    service = RetryingAIService(ai, BackoffConfig(max_attempts=3), sleep=sleeps)

    response = await service.ask("prompt", 100)

    assert response.text == "ok"
    assert len(ai.prompts) == 3
    assert sleeps.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_transient_errors_stop_after_max_attempts() -> None:
    sleeps = _Sleeps()
    ai = FakeAIService(default=TransientServiceError("503"))
    service = RetryingAIService(ai, BackoffConfig(max_attempts=3), sleep=sleeps)

    with pytest.raises(TransientServiceError):
        await service.ask("prompt", 100)

    assert len(ai.prompts) == 3
    assert len(sleeps.delays) == 2


@pytest.mark.asyncio
async def test_fatal_errors_are_not_retried() -> None:
    sleeps = _Sleeps()
    ai = FakeAIService([FatalServiceError("400 bad request"), "never"])

    with pytest.raises(FatalServiceError):
        await RetryingAIService(ai, sleep=sleeps).ask("prompt", 100)

    assert len(ai.prompts) == 1
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_unexpected_exceptions_become_fatal() -> None:
    async def operation():
        raise RuntimeError("bug")

    with pytest.raises(FatalServiceError) as excinfo:
        await run_with_retries(operation, backoff=BackoffConfig(), sleep=_Sleeps())

    assert "RuntimeError" in str(excinfo.value)


def test_from_settings_uses_configured_attempts(fresh_settings) -> None:
    service = RetryingAIService.from_settings(FakeAIService(), fresh_settings)

    assert service.backoff.max_attempts == fresh_settings.ai_max_attempts == 3
    assert service.backoff.max_delay_seconds == 8.0
