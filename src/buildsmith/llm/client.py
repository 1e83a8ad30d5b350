from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import openai
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI

from buildsmith.config.settings import get_settings
from buildsmith.errors import FatalServiceError, ServiceError, TransientServiceError
from buildsmith.llm.base import AIResponse

logger = logging.getLogger(__name__)


def get_chat_model(**overrides: Any) -> ChatOpenAI:
    cfg = get_settings()
    params: Dict[str, Any] = {
        "model": cfg.llm_model,
        "api_key": cfg.llm_api_key or "dummy",
        "temperature": cfg.temperature,
        "timeout": cfg.llm_timeout,
        # retries are owned by RetryingAIService
        "max_retries": 0,
    }

    if cfg.llm_base_url:
        params["base_url"] = cfg.llm_base_url

    params.update(overrides)
    return ChatOpenAI(**params)


def _tracing_callbacks() -> List[Any]:
    cfg = get_settings()
    if not cfg.tracing_enabled:
        return []
    from langfuse import Langfuse
    from langfuse.langchain import CallbackHandler

    Langfuse(
        public_key=cfg.langfuse_public_key,
        secret_key=cfg.langfuse_secret_key,
        host=cfg.langfuse_host,
    )
    return [CallbackHandler(public_key=cfg.langfuse_public_key)]


def map_transport_error(exc: Exception) -> ServiceError:
    """Classify an OpenAI client failure as transient or fatal."""

    if isinstance(exc, ServiceError):
        return exc
    if isinstance(exc, (openai.APIConnectionError, asyncio.TimeoutError)):
        return TransientServiceError(f"AI service unreachable: {exc}")
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        if status == 429 or status >= 500:
            return TransientServiceError(f"AI service returned {status}: {exc}", status_code=status)
        return FatalServiceError(f"AI service rejected the request ({status}): {exc}", status_code=status)
    return FatalServiceError(f"{type(exc).__name__}: {exc}")


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(str(block.get("text", "")))
            else:
                parts.append(str(block))
        return "".join(parts)
    return str(content)


class ChatModelService:
    """:class:`AIService` backed by a LangChain chat model."""

    def __init__(self, model: Any | None = None, *, callbacks: List[Any] | None = None) -> None:
        self.model = model if model is not None else get_chat_model()
        self.callbacks = callbacks if callbacks is not None else _tracing_callbacks()

    async def ask(self, prompt: str, max_output_tokens: int) -> AIResponse:
        runnable = self.model.bind(max_tokens=max_output_tokens)
        config = {"callbacks": self.callbacks} if self.callbacks else None
        try:
            response = await runnable.ainvoke([HumanMessage(prompt)], config=config)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            mapped = map_transport_error(exc)
            logger.debug("Chat model call failed: %s", mapped)
            raise mapped from exc

        text = _content_text(getattr(response, "content", response))
        usage = getattr(response, "usage_metadata", None) or {}
        tokens = int(usage.get("output_tokens") or 0)
        return AIResponse(text=text, tokens_used=tokens)
