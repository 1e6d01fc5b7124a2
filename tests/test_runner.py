from __future__ import annotations

import asyncio
import os
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

from git_history_mcp.errors import ErrorCode, HistoryError
from git_history_mcp.runner import GitCommandRunner, GitRemoteResolver

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


class _ScriptedRunner:
    def __init__(self, output: str = "", error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.calls: list[list[str]] = []

    async def run(self, args: Sequence[str]) -> str:
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        return self.output


def test_missing_executable_raises_git_not_found(tmp_path: Path) -> None:
    runner = GitCommandRunner(tmp_path)

    with pytest.raises(HistoryError) as exc_info:
        asyncio.run(runner.run(["definitely-not-a-real-git-binary", "log"]))

    assert exc_info.value.code == ErrorCode.GIT_NOT_FOUND


def test_missing_directory_raises_invalid_directory(tmp_path: Path) -> None:
    runner = GitCommandRunner(tmp_path / "missing")

    with pytest.raises(HistoryError) as exc_info:
        asyncio.run(runner.run(["git", "log"]))

    assert exc_info.value.code == ErrorCode.INVALID_DIRECTORY


@requires_git
def test_nonzero_exit_raises_command_failed_with_stderr(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    plain = tmp_path / "plain"
    plain.mkdir()

    with pytest.raises(HistoryError) as exc_info:
        asyncio.run(GitCommandRunner(plain).run(["git", "log"]))

    error = exc_info.value
    assert error.code == ErrorCode.COMMAND_FAILED
    assert error.details["exit_code"] != 0
    assert "not a git repository" in error.details["stderr"].lower()
    assert error.to_payload()["error_code"] == "COMMAND_FAILED"


def test_timeout_kills_process(tmp_path: Path) -> None:
    runner = GitCommandRunner(tmp_path, timeout_seconds=0.2)

    with pytest.raises(HistoryError) as exc_info:
        asyncio.run(runner.run([sys.executable, "-c", "import time; time.sleep(10)"]))

    assert exc_info.value.code == ErrorCode.TIMEOUT


@pytest.mark.skipif(os.name == "nt", reason="signal 0 probing is POSIX-only")
def test_cancellation_kills_and_reaps_child(tmp_path: Path) -> None:
    runner = GitCommandRunner(tmp_path, timeout_seconds=None)
    pid_file = tmp_path / "child.pid"
    script = (
        "import os, pathlib, time; "
        f"pathlib.Path({str(pid_file)!r}).write_text(str(os.getpid())); "
        "time.sleep(30)"
    )

    async def _cancel_once_started() -> None:
        task = asyncio.create_task(runner.run([sys.executable, "-c", script]))
        for _ in range(100):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        task.cancel()
        await task

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(_cancel_once_started())

    child_pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(child_pid, 0)


def test_stdout_is_returned_verbatim(tmp_path: Path) -> None:
    runner = GitCommandRunner(tmp_path)

    output = asyncio.run(
        runner.run([sys.executable, "-c", "import sys; sys.stdout.write('a\\x00b\\n')"])
    )

    assert output == "a\x00b\n"


def test_remote_resolver_strips_output() -> None:
    runner = _ScriptedRunner(output="https://example.com/demo.git\n")
    resolver = GitRemoteResolver(runner, remote_name="upstream", git_binary="git")

    assert asyncio.run(resolver.get_remote_url()) == "https://example.com/demo.git"
    assert runner.calls == [["git", "remote", "get-url", "upstream"]]


def test_remote_resolver_returns_none_for_missing_remote() -> None:
    runner = _ScriptedRunner(
        error=HistoryError(ErrorCode.COMMAND_FAILED, "git exited with status 2.", details={"stderr": "No such remote"})
    )

    assert asyncio.run(GitRemoteResolver(runner).get_remote_url()) is None


def test_remote_resolver_returns_none_for_blank_output() -> None:
    assert asyncio.run(GitRemoteResolver(_ScriptedRunner(output="\n")).get_remote_url()) is None


def test_remote_resolver_propagates_launch_failures() -> None:
    runner = _ScriptedRunner(error=HistoryError(ErrorCode.GIT_NOT_FOUND, "Executable not found: git"))

    with pytest.raises(HistoryError) as exc_info:
        asyncio.run(GitRemoteResolver(runner).get_remote_url())

    assert exc_info.value.code == ErrorCode.GIT_NOT_FOUND
