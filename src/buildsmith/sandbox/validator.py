"""Ground-truth build verification inside a sandbox, with one repair round.

Each session runs as its own asyncio task and is the only writer of its
:class:`BuildSession`; everyone else reads deep-copied snapshots. Steps run
strictly in order:

    Initialize sandbox -> Mount artifacts -> Install dependencies -> Build -> Start preview server

A failed build gets exactly one repair round (AI whole-file fixes, remount,
rebuild). A second failure ends the session as ``failed``.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from buildsmith.agent.prompts import repair_prompt
from buildsmith.agent.stacks import (
    REACT_VITE_TAILWIND,
    fallback_file,
    merge_dependencies,
    plan_variables,
    scan_dependencies,
)
from buildsmith.artifacts import ArtifactSet
from buildsmith.config.settings import get_settings
from buildsmith.errors import BuildFailure, ServiceError
from buildsmith.llm.base import AIService
from buildsmith.sandbox.base import BuildOutput, SandboxProvider
from buildsmith.sandbox.error_parser import parse_build_errors, summarize_failure
from buildsmith.sandbox.events import EventType, SessionEvent, SessionEventBus
from buildsmith.sandbox.models import (
    STEP_BUILD,
    STEP_INITIALIZE,
    STEP_INSTALL,
    STEP_MOUNT,
    STEP_NAMES,
    STEP_SERVE,
    BuildError,
    BuildSession,
    BuildStep,
    RepairOutcome,
)
from buildsmith.sandbox.registry import SessionRecord, ValidationSessionRegistry
from buildsmith.utils.callbacks import fire_and_forget
from buildsmith.utils.parsing import clean_code_response

logger = logging.getLogger(__name__)

MAX_BUILD_ATTEMPTS = 2

UpdateCallback = Callable[[BuildSession], Any]


class _StepFailed(Exception):
    """Internal signal: a step ended in ``error`` and the session must stop."""


class SandboxBuildValidator:
    def __init__(
        self,
        sandbox: SandboxProvider,
        ai: AIService,
        registry: ValidationSessionRegistry,
        *,
        events: SessionEventBus | None = None,
        operation_timeout: float | None = None,
        max_repair_tokens: int | None = None,
    ) -> None:
        settings = get_settings()
        self.sandbox = sandbox
        self.ai = ai
        self.registry = registry
        self.events = events
        self.operation_timeout = operation_timeout or settings.sandbox_operation_timeout
        self.max_repair_tokens = max_repair_tokens or settings.max_file_tokens

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def start(self, artifacts: Mapping[str, str], on_update: UpdateCallback | None = None) -> str:
        """Register a session, launch its task and return the session id."""

        record = SessionRecord(session=BuildSession(), artifacts=ArtifactSet(artifacts))
        self.registry.add(record)
        record.task = asyncio.get_running_loop().create_task(
            self._run(record, on_update), name=f"build-{record.session.id}"
        )
        logger.info("Started build session %s with %d files", record.session.id, len(record.artifacts))
        return record.session.id

    def get_status(self, session_id: str) -> Optional[BuildSession]:
        record = self.registry.get(session_id)
        if record is None:
            return None
        return record.session.snapshot()

    async def wait(self, session_id: str) -> Optional[BuildSession]:
        """Wait for a session's task to finish and return its final snapshot."""

        record = self.registry.get(session_id)
        if record is None:
            return None
        if record.task is not None and not record.task.done():
            await asyncio.wait([record.task])
        return self.get_status(session_id)

    def artifacts(self, session_id: str) -> Optional[ArtifactSet]:
        """Files as last mounted, including any repairs."""

        record = self.registry.get(session_id)
        return record.artifacts if record is not None else None

    async def cancel(self, session_id: str) -> bool:
        """Stop a session, release its sandbox and forget it.

        Returns ``False`` for unknown ids. Once this returns, :meth:`get_status`
        reports the session as not found.
        """

        record = self.registry.get(session_id)
        if record is None:
            return False
        record.session.cancelled = True
        task = record.task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait([task])
        await self._teardown(record)
        self.registry.remove(session_id)
        logger.info("Cancelled build session %s", session_id)
        return True

    async def cleanup(self, session_id: str) -> bool:
        """Release a finished session's sandbox (ending its preview) and forget it.

        Sessions that are still running are cancelled instead.
        """

        record = self.registry.get(session_id)
        if record is None:
            return False
        if record.task is not None and not record.task.done():
            return await self.cancel(session_id)
        await self._teardown(record)
        self.registry.remove(session_id)
        logger.info("Cleaned up build session %s", session_id)
        return True

    async def close(self) -> None:
        for session_id in self.registry.ids():
            await self.cleanup(session_id)

    # ------------------------------------------------------------------
    # Session task
    # ------------------------------------------------------------------
    async def _run(self, record: SessionRecord, on_update: UpdateCallback | None) -> None:
        session = record.session
        try:
            session.status = "running"
            self._publish(session, EventType.STARTED)
            self._emit(record, on_update)

            record.handle = await self._operate(record, STEP_INITIALIZE, self.sandbox.boot, on_update)
            self._succeed(record, STEP_INITIALIZE, on_update, "Sandbox ready")

            mount_notes = self._complete_manifest(record)
            await self._operate(record, STEP_MOUNT, lambda: self.sandbox.mount(record.handle, record.artifacts.to_dict()), on_update)
            self._succeed(record, STEP_MOUNT, on_update, *mount_notes, f"Mounted {len(record.artifacts)} files")

            install_logs = await self._operate(record, STEP_INSTALL, lambda: self.sandbox.install_dependencies(record.handle), on_update)
            self._succeed(record, STEP_INSTALL, on_update, install_logs or "Dependencies installed")

            errors = await self._attempt_build(record, on_update)
            if errors:
                outcome = await self._repair(record, errors)
                session.repair_result = outcome
                if not outcome.success:
                    raise BuildFailure(f"Build failed and no repair could be applied: {outcome.explanation}")
                await self._operate(record, STEP_BUILD, lambda: self.sandbox.mount(record.handle, record.artifacts.to_dict()), on_update)
                self._log(session.step(STEP_BUILD), f"Remounted {len(outcome.fixed_files)} repaired files")
                errors = await self._attempt_build(record, on_update)
                if errors:
                    raise BuildFailure(f"Build failed again after repairing {', '.join(outcome.fixed_files)}")

            session.preview_url = await self._operate(record, STEP_SERVE, lambda: self.sandbox.start_server(record.handle), on_update)
            self._succeed(record, STEP_SERVE, on_update, f"Preview available at {session.preview_url}")

            session.status = "completed"
            session.current_step_label = "Completed"
            self._publish(session, EventType.COMPLETE, file_count=len(record.artifacts))
            logger.info("Build session %s completed: %s", session.id, session.preview_url)
        except (_StepFailed, BuildFailure) as exc:
            session.status = "failed"
            session.current_step_label = "Failed"
            logger.warning("Build session %s failed: %s", session.id, exc)
            self._publish(session, EventType.ERROR, message=str(exc))
            await self._teardown(record)
        except asyncio.CancelledError:
            self._mark_interrupted(session, "Cancelled")
            session.status = "failed"
            session.current_step_label = "Cancelled"
            self._publish(session, EventType.CANCELLED)
            await self._teardown(record)
            raise
        except Exception as exc:
            logger.exception("Build session %s raised", session.id)
            message = f"Unexpected error: {type(exc).__name__}: {exc}"
            self._mark_interrupted(session, message)
            session.status = "failed"
            session.current_step_label = "Failed"
            self._publish(session, EventType.ERROR, message=message)
            await self._teardown(record)
        finally:
            session.ended_at = time.time()
            self._emit(record, on_update)

    async def _operate(
        self,
        record: SessionRecord,
        name: str,
        operation: Callable[[], Awaitable[Any]],
        on_update: UpdateCallback | None,
    ) -> Any:
        """Run one sandbox operation as step ``name``; errors end the step."""

        session = record.session
        if session.cancelled:
            raise asyncio.CancelledError()
        step = session.step(name)
        step.status = "running"
        step.started_at = step.started_at or time.time()
        session.current_step_label = name
        self._publish(session, EventType.PROGRESS, step=name, percent=self._percent(session))
        self._emit(record, on_update)

        try:
            return await asyncio.wait_for(operation(), timeout=self.operation_timeout)
        except asyncio.TimeoutError:
            message = f"{name} timed out after {self.operation_timeout:.0f}s"
        except ServiceError as exc:
            message = f"{name} failed: {exc}"
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("Sandbox operation %s raised", name)
            message = f"{name} failed: {type(exc).__name__}: {exc}"
        self._fail(record, name, [BuildError(message=message, kind="build")], on_update)
        raise _StepFailed(message)

    async def _attempt_build(self, record: SessionRecord, on_update: UpdateCallback | None) -> List[BuildError]:
        """Run the Build step once; return the parsed errors (empty on success)."""

        session = record.session
        if session.build_attempts >= MAX_BUILD_ATTEMPTS:
            raise BuildFailure(f"Build attempted {session.build_attempts} times")
        session.build_attempts += 1
        output: BuildOutput = await self._operate(record, STEP_BUILD, lambda: self.sandbox.build(record.handle), on_update)
        step = session.step(STEP_BUILD)
        self._log(step, output.logs)
        if output.success:
            self._succeed(record, STEP_BUILD, on_update, f"Build attempt {session.build_attempts} succeeded")
            return []
        raw = output.raw_output or output.logs
        errors = parse_build_errors(raw) or [summarize_failure(raw)]
        self._fail(record, STEP_BUILD, errors, on_update)
        logger.info("Build attempt %d for %s failed with %d errors", session.build_attempts, session.id, len(errors))
        return errors

    async def _repair(self, record: SessionRecord, errors: List[BuildError]) -> RepairOutcome:
        session = record.session
        replacements: Dict[str, str] = {}
        attempted: List[BuildError] = []
        notes: List[str] = []

        for error in errors:
            path = record.artifacts.resolve(error.file) if error.file != "unknown" else None
            if path is None:
                continue
            if session.cancelled:
                raise asyncio.CancelledError()
            attempted.append(error)
            current = replacements.get(path, record.artifacts[path])
            prompt = repair_prompt(path, current, error.message, error.kind, error.line, error.column)
            try:
                response = await self.ai.ask(prompt, self.max_repair_tokens)
            except ServiceError as exc:
                notes.append(f"{path}: AI service failed ({exc})")
                continue
            except Exception as exc:
                logger.exception("Repair request for %s raised", path)
                notes.append(f"{path}: repair request failed ({type(exc).__name__}: {exc})")
                continue
            fixed = clean_code_response(response.text)
            if not fixed.strip() or fixed == current:
                notes.append(f"{path}: no change proposed")
                continue
            replacements[path] = fixed
            notes.append(f"{path}: replaced to fix {error.kind} error")

        if replacements:
            record.artifacts = record.artifacts.with_files(replacements)
        if not attempted:
            notes.append("no error could be mapped to a generated file")
        return RepairOutcome(
            success=bool(replacements),
            fixed_files=sorted(replacements),
            explanation="; ".join(notes),
            attempted_errors=attempted,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _complete_manifest(self, record: SessionRecord) -> List[str]:
        """Add package.json and index.html when the artifact set lacks them."""

        notes: List[str] = []
        additions: Dict[str, str] = {}
        variables = plan_variables("generated-app", "Generated application")
        if "package.json" not in record.artifacts:
            base = fallback_file(REACT_VITE_TAILWIND, "package.json", variables, ()) or "{}"
            dependencies: Dict[str, str] = {}
            for content in record.artifacts.values():
                dependencies.update(scan_dependencies(content))
            additions["package.json"] = merge_dependencies(base, dependencies) or base
            notes.append("Generated package.json")
        if "index.html" not in record.artifacts:
            additions["index.html"] = fallback_file(REACT_VITE_TAILWIND, "index.html", variables, ()) or ""
            notes.append("Generated default index.html")
        if additions:
            record.artifacts = record.artifacts.with_files(additions)
        return notes

    def _succeed(self, record: SessionRecord, name: str, on_update: UpdateCallback | None, *logs: str) -> None:
        step = record.session.step(name)
        step.status = "success"
        step.ended_at = time.time()
        for line in logs:
            self._log(step, line)
        self._publish(record.session, EventType.PROGRESS, step=name, percent=self._percent(record.session))
        self._emit(record, on_update)

    def _fail(self, record: SessionRecord, name: str, errors: List[BuildError], on_update: UpdateCallback | None) -> None:
        step = record.session.step(name)
        step.status = "error"
        step.ended_at = time.time()
        step.errors = list(errors)
        for error in errors:
            self._log(step, f"{error.kind} error in {error.file}: {error.message}")
        self._emit(record, on_update)

    @staticmethod
    def _mark_interrupted(session: BuildSession, message: str) -> None:
        """End running steps as errors.

        With none running, the error goes on the current step unless it already
        succeeded, and otherwise on the next pending one.
        """

        targets = [step for step in session.steps if step.status == "running"]
        if not targets:
            current = next(
                (step for step in session.steps if step.name == session.current_step_label and step.status != "success"),
                None,
            )
            targets = [current] if current is not None else [step for step in session.steps if step.status == "pending"][:1]
        for step in targets:
            step.status = "error"
            step.ended_at = time.time()
            step.errors.append(BuildError(message=message, kind="build"))

    @staticmethod
    def _log(step: BuildStep, text: Optional[str]) -> None:
        if text and text.strip():
            step.logs.append(text.rstrip())

    @staticmethod
    def _percent(session: BuildSession) -> int:
        done = sum(1 for step in session.steps if step.status == "success")
        return round(done * 100 / len(STEP_NAMES))

    def _publish(self, session: BuildSession, kind: EventType, **fields: Any) -> None:
        if self.events is not None:
            self.events.publish(SessionEvent(session_id=session.id, type=kind, **fields))

    def _emit(self, record: SessionRecord, on_update: UpdateCallback | None) -> None:
        if on_update is not None:
            fire_and_forget(on_update, record.session.snapshot())

    async def _teardown(self, record: SessionRecord) -> None:
        """Release the sandbox once; later callers wait on the same release.

        The release runs as its own task under :func:`asyncio.shield`, so
        cancelling the session task mid-teardown does not interrupt it.
        """

        if record.handle is None:
            return
        if record.teardown_task is None:
            record.teardown_task = asyncio.get_running_loop().create_task(
                self._release(record), name=f"teardown-{record.session.id}"
            )
        await asyncio.shield(record.teardown_task)

    async def _release(self, record: SessionRecord) -> None:
        try:
            await asyncio.wait_for(self.sandbox.teardown(record.handle), timeout=self.operation_timeout)
        except Exception as exc:
            logger.warning("Teardown of session %s failed: %s", record.session.id, exc)
        record.torn_down = True
