"""History orchestration: build the query, run git, decode the records."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Callable

from .command import build_log_arguments
from .constants import DEFAULT_GIT_BINARY, DEFAULT_REMOTE_NAME
from .models import Commit, HistoryRequest, HistoryResponse
from .parser import parse_log_output
from .refs import DEFAULT_SENTINEL_REMOTES
from .runner import CommandRunner, GitCommandRunner, GitRemoteResolver, RemoteResolver
from .runtime import HistorySettings

logger = logging.getLogger(__name__)


class HistoryFetcher:
    """Fetch decoded commit history through injected process collaborators.

    The fetcher holds no per-call state, so one instance may serve repeated
    and concurrent calls.
    """

    def __init__(
        self,
        runner: CommandRunner,
        remote_resolver: RemoteResolver,
        git_binary: str = DEFAULT_GIT_BINARY,
        default_max_count: int = 0,
        now_fn: Callable[[], datetime] | None = None,
        remote_names: Sequence[str] = DEFAULT_SENTINEL_REMOTES,
    ) -> None:
        self.runner = runner
        self.remote_resolver = remote_resolver
        self.git_binary = git_binary
        self.default_max_count = default_max_count
        self.now_fn = now_fn
        self.remote_names = tuple(remote_names)

    @classmethod
    def for_directory(
        cls,
        directory: str | Path,
        settings: HistorySettings | None = None,
    ) -> HistoryFetcher:
        """Build a fetcher backed by the git binary for one working tree."""
        settings = settings or HistorySettings()
        runner = GitCommandRunner(directory, timeout_seconds=settings.timeout_seconds)
        resolver = GitRemoteResolver(
            runner,
            remote_name=settings.remote_name,
            git_binary=settings.git_binary,
        )
        return cls(
            runner,
            resolver,
            git_binary=settings.git_binary,
            default_max_count=settings.default_max_count,
            remote_names=tuple(dict.fromkeys((settings.remote_name, DEFAULT_REMOTE_NAME))),
        )

    async def fetch_history(
        self,
        branch: str | None = None,
        max_count: int | None = None,
        file_path: str | None = None,
        include_merge_commits: bool = False,
    ) -> list[Commit]:
        """Return commits in the order git emitted them.

        Transport failures from the runner or resolver propagate unchanged.
        Malformed records are decoded with empty defaults instead of failing.
        """
        commits, _ = await self._fetch(
            branch=branch,
            max_count=max_count,
            file_path=file_path,
            include_merge_commits=include_merge_commits,
        )
        return commits

    async def fetch(self, request: HistoryRequest) -> HistoryResponse:
        commits, remote_url = await self._fetch(
            branch=request.branch,
            max_count=request.max_count,
            file_path=request.file_path,
            include_merge_commits=request.include_merge_commits,
        )
        return HistoryResponse(
            status="success",
            message=f"Retrieved {len(commits)} commits",
            remote_url=remote_url,
            count=len(commits),
            commits=commits,
        )

    async def _fetch(
        self,
        branch: str | None,
        max_count: int | None,
        file_path: str | None,
        include_merge_commits: bool,
    ) -> tuple[list[Commit], str | None]:
        if max_count is None and self.default_max_count > 0:
            max_count = self.default_max_count

        args = build_log_arguments(
            branch=branch,
            max_count=max_count,
            file_path=file_path,
            include_merge_commits=include_merge_commits,
            git_binary=self.git_binary,
        )
        output = await self.runner.run(args)
        remote_url = await self.remote_resolver.get_remote_url()

        commits = parse_log_output(
            output,
            remote_url=remote_url,
            now_fn=self.now_fn,
            remote_names=self.remote_names,
        )
        fallback_dates = sum(1 for commit in commits if not commit.date_parsed)
        if fallback_dates:
            logger.warning(
                "%d of %d commits had an unparseable author date; using current time.",
                fallback_dates,
                len(commits),
            )
        logger.debug("Decoded %d commits (remote_url=%s)", len(commits), remote_url)
        return commits, remote_url
