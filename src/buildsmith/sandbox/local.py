"""Sandbox provider that builds projects with the local npm toolchain.

Every handle is a fresh temporary directory; teardown stops the preview
server and deletes the directory.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import aiohttp

from buildsmith.errors import FatalServiceError, TransientServiceError
from buildsmith.sandbox.base import BuildOutput
from buildsmith.utils.fileops import write_tree

logger = logging.getLogger(__name__)

_SERVER_URL = re.compile(r"(https?://(?:localhost|127\.0\.0\.1|\[::1\]):\d+)")
_ANSI = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")


@dataclass
class CommandResult:
    argv: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    duration: float

    @property
    def combined(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


@dataclass
class LocalSandboxHandle:
    root: Path
    server: Optional[asyncio.subprocess.Process] = None
    history: List[CommandResult] = field(default_factory=list)


class LocalProcessSandbox:
    def __init__(
        self,
        npm: str = "npm",
        *,
        base_dir: Path | None = None,
        server_start_timeout: float = 60.0,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.npm = npm
        self.base_dir = base_dir
        self.server_start_timeout = server_start_timeout
        self.env: Dict[str, str] = {**os.environ, "CI": "true", "NO_COLOR": "1", **(env or {})}

    async def boot(self) -> LocalSandboxHandle:
        if shutil.which(self.npm) is None:
            raise FatalServiceError(f"{self.npm} executable not found on PATH")
        root = Path(tempfile.mkdtemp(prefix="buildsmith-", dir=self.base_dir))
        logger.debug("Booted local sandbox at %s", root)
        return LocalSandboxHandle(root=root)

    async def mount(self, handle: LocalSandboxHandle, files: Mapping[str, str]) -> None:
        count = await asyncio.to_thread(write_tree, handle.root, files)
        logger.debug("Mounted %d files into %s", count, handle.root)

    async def install_dependencies(self, handle: LocalSandboxHandle) -> str:
        result = await self._run_command(handle, [self.npm, "install", "--no-audit", "--no-fund"])
        if result.returncode != 0:
            raise FatalServiceError(f"npm install exited with {result.returncode}: {_tail(result.combined)}")
        return result.combined

    async def build(self, handle: LocalSandboxHandle) -> BuildOutput:
        result = await self._run_command(handle, [self.npm, "run", "build"])
        return BuildOutput(success=result.returncode == 0, logs=result.stdout, raw_output=result.combined)

    async def start_server(self, handle: LocalSandboxHandle) -> str:
        process = await asyncio.create_subprocess_exec(
            self.npm,
            "run",
            "dev",
            "--",
            "--host",
            "127.0.0.1",
            cwd=str(handle.root),
            env=self.env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        handle.server = process

        start_time = time.time()
        server_url: Optional[str] = None
        while time.time() - start_time < self.server_start_timeout:
            if process.returncode is not None:
                raise FatalServiceError(f"Preview server exited with {process.returncode}")
            try:
                line = await asyncio.wait_for(process.stdout.readline(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            if not line:
                await asyncio.sleep(0.1)
                continue
            match = _SERVER_URL.search(_ANSI.sub("", line.decode(errors="replace")))
            if match:
                server_url = match.group(1)
                break

        if server_url is None:
            raise TransientServiceError("Preview server did not report a URL in time")
        if not await self.verify_server_health(server_url):
            raise TransientServiceError(f"Preview server at {server_url} is not responding")
        return server_url

    async def verify_server_health(self, server_url: str, attempts: int = 5) -> bool:
        async with aiohttp.ClientSession() as session:
            for _ in range(attempts):
                try:
                    async with session.get(server_url, timeout=aiohttp.ClientTimeout(total=5)) as response:
                        if response.status < 500:
                            return True
                except (aiohttp.ClientError, asyncio.TimeoutError):
                    pass
                await asyncio.sleep(0.5)
        return False

    async def teardown(self, handle: LocalSandboxHandle) -> None:
        process = handle.server
        if process is not None and process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=5)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
        handle.server = None
        await asyncio.to_thread(shutil.rmtree, handle.root, True)

    async def _run_command(self, handle: LocalSandboxHandle, argv: Sequence[str]) -> CommandResult:
        start = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(handle.root),
                env=self.env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise FatalServiceError(f"{argv[0]} not found: {exc}") from exc
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        result = CommandResult(
            argv=list(argv),
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
            duration=time.perf_counter() - start,
        )
        handle.history.append(result)
        logger.debug("$ %s -> %d in %.2fs", " ".join(argv), result.returncode, result.duration)
        return result


def _tail(text: str, lines: int = 20) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])
