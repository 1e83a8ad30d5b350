from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

logger = logging.getLogger(__name__)

_pending: Set[asyncio.Future] = set()


def _settle(future: asyncio.Future) -> None:
    _pending.discard(future)
    if not future.cancelled() and future.exception() is not None:
        logger.error("Callback failed: %s", future.exception())


def fire_and_forget(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Schedule ``callback(*args)`` on the running loop and return immediately.

    Coroutine results are run as background tasks. Failures are logged and
    never reach the caller.
    """

    if callback is None:
        return

    def _invoke() -> None:
        try:
            result = callback(*args)
        except Exception:
            logger.exception("Callback %r failed", callback)
            return
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            _pending.add(future)
            future.add_done_callback(_settle)

    asyncio.get_running_loop().call_soon(_invoke)
