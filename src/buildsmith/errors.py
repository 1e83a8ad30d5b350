"""Exception taxonomy shared by the generation and sandbox stages."""
from __future__ import annotations

from typing import List, Optional


class BuildsmithError(Exception):
    """Base class for every error raised by buildsmith."""


class ServiceError(BuildsmithError):
    """Failure reported by an external collaborator (AI service or sandbox)."""

    retryable: bool = False

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientServiceError(ServiceError):
    """Temporary outage: 5xx, rate limiting, timeouts or dropped connections."""

    retryable = True


class FatalServiceError(ServiceError):
    """Non-retryable collaborator failure such as a rejected request."""


class ContentQualityFailure(BuildsmithError):
    """A generated artifact scored below the configured minimum."""

    def __init__(self, path: str, score: int, failed_checks: List[str]) -> None:
        super().__init__(f"{path} scored {score} (failed: {', '.join(failed_checks) or 'none'})")
        self.path = path
        self.score = score
        self.failed_checks = list(failed_checks)


class BuildFailure(BuildsmithError):
    """Terminal build failure for a single sandbox session."""


class FatalGenerationError(BuildsmithError):
    """Scaffold, transport or timeout failure that ends a generation request."""


__all__ = [
    "BuildsmithError",
    "ServiceError",
    "TransientServiceError",
    "FatalServiceError",
    "ContentQualityFailure",
    "BuildFailure",
    "FatalGenerationError",
]
