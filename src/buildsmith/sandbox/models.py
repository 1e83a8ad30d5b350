from __future__ import annotations

import secrets
import time
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

StepStatus = Literal["pending", "running", "success", "error"]
SessionStatus = Literal["initializing", "running", "completed", "failed"]
ErrorKind = Literal["syntax", "dependency", "runtime", "build"]

STEP_INITIALIZE = "Initialize sandbox"
STEP_MOUNT = "Mount artifacts"
STEP_INSTALL = "Install dependencies"
STEP_BUILD = "Build"
STEP_SERVE = "Start preview server"

STEP_NAMES = (STEP_INITIALIZE, STEP_MOUNT, STEP_INSTALL, STEP_BUILD, STEP_SERVE)


def new_validation_id() -> str:
    return f"validation_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class BuildError(BaseModel):
    file: str = "unknown"
    line: Optional[int] = None
    column: Optional[int] = None
    message: str
    kind: ErrorKind = "build"


class BuildStep(BaseModel):
    name: str
    status: StepStatus = "pending"
    logs: List[str] = Field(default_factory=list)
    errors: List[BuildError] = Field(default_factory=list)
    started_at: Optional[float] = None
    ended_at: Optional[float] = None


class RepairOutcome(BaseModel):
    success: bool
    fixed_files: List[str] = Field(default_factory=list)
    explanation: str = ""
    attempted_errors: List[BuildError] = Field(default_factory=list)


class BuildSession(BaseModel):
    """Progress of one sandbox build. Only the session's own task writes it."""

    id: str = Field(default_factory=new_validation_id)
    status: SessionStatus = "initializing"
    steps: List[BuildStep] = Field(default_factory=lambda: [BuildStep(name=name) for name in STEP_NAMES])
    current_step_label: str = ""
    preview_url: Optional[str] = None
    repair_result: Optional[RepairOutcome] = None
    started_at: float = Field(default_factory=time.time)
    ended_at: Optional[float] = None
    cancelled: bool = False
    build_attempts: int = 0

    def step(self, name: str) -> BuildStep:
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(name)

    @property
    def finished(self) -> bool:
        return self.status in ("completed", "failed")

    def snapshot(self) -> "BuildSession":
        return self.model_copy(deep=True)
