import asyncio

import httpx
import openai
import pytest
from langchain_core.messages import AIMessage, HumanMessage

from buildsmith.config.settings import get_settings
from buildsmith.errors import FatalServiceError, TransientServiceError
from buildsmith.llm import client
from buildsmith.llm.base import AIService
from buildsmith.llm.client import ChatModelService, get_chat_model, map_transport_error

_REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _status_error(status: int) -> openai.APIStatusError:
    return openai.APIStatusError("failure", response=httpx.Response(status, request=_REQUEST), body=None)


class FakeChatModel:
    def __init__(self, response=None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.bound = {}
        self.messages = None
        self.config = None

    def bind(self, **kwargs):
        self.bound = kwargs
        return self

    async def ainvoke(self, messages, config=None):
        self.messages = messages
        self.config = config
        if self.error is not None:
            raise self.error
        return self.response


@pytest.mark.asyncio
async def test_ask_returns_text_and_output_tokens() -> None:
    model = FakeChatModel(
        AIMessage(content="export default 1;", usage_metadata={"input_tokens": 30, "output_tokens": 7, "total_tokens": 37})
    )
    service = ChatModelService(model, callbacks=[])

    response = await service.ask("write it", 512)

    assert isinstance(service, AIService)
    assert response.text == "export default 1;"
    assert response.tokens_used == 7
    assert model.bound == {"max_tokens": 512}
    assert isinstance(model.messages[0], HumanMessage)
    assert model.config is None


@pytest.mark.asyncio
async def test_missing_usage_reports_zero_tokens() -> None:
    service = ChatModelService(FakeChatModel(AIMessage(content=[{"type": "text", "text": "a"}, "b"])), callbacks=[])

    response = await service.ask("prompt", 10)

    assert response.text == "ab"
    assert response.tokens_used == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, expected",
    [
        (openai.APIConnectionError(request=_REQUEST), TransientServiceError),
        (_status_error(503), TransientServiceError),
        (_status_error(429), TransientServiceError),
        (_status_error(401), FatalServiceError),
        (ValueError("bad"), FatalServiceError),
    ],
)
async def test_transport_errors_are_classified(error, expected) -> None:
    service = ChatModelService(FakeChatModel(error=error), callbacks=[])

    with pytest.raises(expected):
        await service.ask("prompt", 10)


def test_map_transport_error_keeps_status_code() -> None:
    mapped = map_transport_error(_status_error(502))

    assert mapped.retryable
    assert mapped.status_code == 502
    assert isinstance(map_transport_error(asyncio.TimeoutError()), TransientServiceError)


def test_get_chat_model_reads_settings(monkeypatch) -> None:
    monkeypatch.setenv("BUILDSMITH_LLM_MODEL", "gpt-test")
    monkeypatch.setenv("BUILDSMITH_LLM_API_KEY", "sk-test")
    get_settings.cache_clear()

    model = get_chat_model(temperature=0.5)

    assert model.model_name == "gpt-test"
    assert model.max_retries == 0
    assert model.temperature == 0.5


def test_tracing_disabled_without_langfuse_keys() -> None:
    assert client._tracing_callbacks() == []
