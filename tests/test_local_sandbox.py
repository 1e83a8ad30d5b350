import shutil
from pathlib import Path

import pytest

from buildsmith.errors import FatalServiceError
from buildsmith.sandbox.base import SandboxProvider
from buildsmith.sandbox.local import _SERVER_URL, LocalProcessSandbox, LocalSandboxHandle

from conftest import complete_project


def test_local_sandbox_is_a_provider() -> None:
    assert isinstance(LocalProcessSandbox(), SandboxProvider)


@pytest.mark.asyncio
async def test_mount_writes_files_and_teardown_removes_them(tmp_path: Path) -> None:
    sandbox = LocalProcessSandbox()
    handle = LocalSandboxHandle(root=tmp_path / "project")
    handle.root.mkdir()

    await sandbox.mount(handle, {"src/components/Hero.tsx": "export {};\n", "package.json": "{}"})

    assert (handle.root / "src" / "components" / "Hero.tsx").read_text(encoding="utf-8") == "export {};\n"
    await sandbox.teardown(handle)
    assert not handle.root.exists()


@pytest.mark.asyncio
async def test_boot_without_npm_is_fatal() -> None:
    with pytest.raises(FatalServiceError):
        await LocalProcessSandbox(npm="definitely-not-npm-xyz").boot()


@pytest.mark.asyncio
async def test_run_command_captures_output(tmp_path: Path) -> None:
    sandbox = LocalProcessSandbox()
    handle = LocalSandboxHandle(root=tmp_path)

    result = await sandbox._run_command(handle, ["sh", "-c", "echo built; echo warn >&2; exit 3"])

    assert result.returncode == 3
    assert result.stdout.strip() == "built"
    assert "warn" in result.combined
    assert handle.history == [result]


@pytest.mark.asyncio
async def test_missing_executable_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FatalServiceError):
        await LocalProcessSandbox()._run_command(LocalSandboxHandle(root=tmp_path), ["definitely-not-a-command-xyz"])


@pytest.mark.parametrize(
    "line, url",
    [
        ("  ➜  Local:   http://127.0.0.1:5173/", "http://127.0.0.1:5173"),
        ("Local: http://localhost:4000", "http://localhost:4000"),
    ],
)
def test_server_url_pattern(line: str, url: str) -> None:
    assert _SERVER_URL.search(line).group(1) == url


@pytest.mark.asyncio
@pytest.mark.slow
@pytest.mark.skipif(shutil.which("npm") is None, reason="npm not installed")
async def test_real_build_of_fallback_project() -> None:
    sandbox = LocalProcessSandbox()
    handle = await sandbox.boot()
    try:
        await sandbox.mount(handle, complete_project())
        await sandbox.install_dependencies(handle)
        output = await sandbox.build(handle)
        assert output.success, output.raw_output
    finally:
        await sandbox.teardown(handle)
