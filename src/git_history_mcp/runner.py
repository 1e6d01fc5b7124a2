"""Process-execution collaborators: running git and resolving the remote URL."""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from .constants import DEFAULT_GIT_BINARY, DEFAULT_REMOTE_NAME, DEFAULT_TIMEOUT_SECONDS
from .errors import ErrorCode, HistoryError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Runs one external command and returns its standard output."""

    async def run(self, args: Sequence[str]) -> str:
        ...


class RemoteResolver(Protocol):
    """Resolves the URL of the repository's remote, if any."""

    async def get_remote_url(self) -> str | None:
        ...


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass


class GitCommandRunner:
    """Run git subcommands inside one working tree via asyncio subprocesses."""

    def __init__(
        self,
        directory: str | Path = ".",
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.directory = Path(directory).expanduser()
        self.timeout_seconds = timeout_seconds

    async def run(self, args: Sequence[str]) -> str:
        argv = [str(arg) for arg in args]
        if not argv:
            raise ValueError("args must contain the executable")
        if not self.directory.is_dir():
            raise HistoryError(
                ErrorCode.INVALID_DIRECTORY,
                f"Directory does not exist: {self.directory}",
                "Pass a directory inside an existing git working tree.",
            )

        logger.debug("Running %s in %s", shlex.join(argv), self.directory)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(self.directory),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise HistoryError(
                ErrorCode.GIT_NOT_FOUND,
                f"Executable not found: {argv[0]}",
                "Install git or set GIT_HISTORY_MCP_GIT_BINARY.",
            ) from exc
        except OSError as exc:
            raise HistoryError(
                ErrorCode.COMMAND_FAILED,
                f"Unable to launch {argv[0]}: {exc}",
                "Check the git binary path and its permissions.",
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            _kill(process)
            await process.wait()
            raise HistoryError(
                ErrorCode.TIMEOUT,
                f"git timed out after {self.timeout_seconds} seconds.",
                "Narrow the query with max_count or raise GIT_HISTORY_MCP_TIMEOUT_SECONDS.",
                {"args": argv[1:]},
            ) from exc
        except asyncio.CancelledError:
            _kill(process)
            await asyncio.shield(process.wait())
            raise

        if process.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace").strip()
            raise HistoryError(
                ErrorCode.COMMAND_FAILED,
                f"git exited with status {process.returncode}.",
                "Check that the directory is a git repository and the branch exists.",
                {"exit_code": process.returncode, "stderr": stderr_text, "args": argv[1:]},
            )
        return stdout.decode("utf-8", errors="replace")


class GitRemoteResolver:
    """Resolve a named remote's URL with `git remote get-url`."""

    def __init__(
        self,
        runner: CommandRunner,
        remote_name: str = DEFAULT_REMOTE_NAME,
        git_binary: str = DEFAULT_GIT_BINARY,
    ) -> None:
        self.runner = runner
        self.remote_name = remote_name
        self.git_binary = git_binary

    async def get_remote_url(self) -> str | None:
        try:
            output = await self.runner.run([self.git_binary, "remote", "get-url", self.remote_name])
        except HistoryError as exc:
            if exc.code != ErrorCode.COMMAND_FAILED:
                raise
            logger.debug("Remote %r not resolvable: %s", self.remote_name, exc.details.get("stderr", ""))
            return None
        return output.strip() or None
