from buildsmith.llm.base import AIResponse, AIService
from buildsmith.llm.retry import BackoffConfig, RetryingAIService, run_with_retries

__all__ = ["AIResponse", "AIService", "BackoffConfig", "RetryingAIService", "run_with_retries"]
