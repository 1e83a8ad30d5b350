from buildsmith.sandbox.base import BuildOutput, SandboxProvider
from buildsmith.sandbox.events import EventType, SessionEvent, SessionEventBus
from buildsmith.sandbox.models import BuildError, BuildSession, BuildStep, RepairOutcome
from buildsmith.sandbox.registry import ValidationSessionRegistry
from buildsmith.sandbox.validator import SandboxBuildValidator

__all__ = [
    "BuildError",
    "BuildOutput",
    "BuildSession",
    "BuildStep",
    "EventType",
    "RepairOutcome",
    "SandboxBuildValidator",
    "SandboxProvider",
    "SessionEvent",
    "SessionEventBus",
    "ValidationSessionRegistry",
]
