from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from buildsmith.artifacts import ArtifactSet
from buildsmith.sandbox.models import BuildSession


@dataclass
class SessionRecord:
    """Registry entry: the session plus what its task needs to run or stop."""

    session: BuildSession
    artifacts: ArtifactSet
    task: Optional[asyncio.Task] = None
    handle: Any = None
    teardown_task: Optional[asyncio.Task] = None
    torn_down: bool = False


class ValidationSessionRegistry:
    """Lock-guarded directory of in-flight build sessions."""

    def __init__(self) -> None:
        self._records: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def add(self, record: SessionRecord) -> None:
        with self._lock:
            if record.session.id in self._records:
                raise KeyError(f"session {record.session.id} already registered")
            self._records[record.session.id] = record

    def get(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._records.get(session_id)

    def remove(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._records.pop(session_id, None)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._records)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
