"""Argument construction for the `git log` history query."""

from __future__ import annotations

from .constants import DEFAULT_GIT_BINARY, LOG_PRETTY_FORMAT


def build_log_arguments(
    branch: str | None = None,
    max_count: int | None = None,
    file_path: str | None = None,
    include_merge_commits: bool = False,
    git_binary: str = DEFAULT_GIT_BINARY,
) -> list[str]:
    """Return the argv for a `git log` call emitting NUL-terminated records.

    Caller values are passed as discrete arguments, never through a shell,
    and a branch starting with `-` is refused so git cannot read it as an option.
    The `--` separator is always present so a path filter cannot be read as
    a revision.
    """
    if max_count is not None and (isinstance(max_count, bool) or max_count < 1):
        raise ValueError("max_count must be a positive integer")
    if branch is not None:
        if branch.startswith("-"):
            raise ValueError("branch must not start with '-'")
        if "\x00" in branch:
            raise ValueError("branch must not contain NUL bytes")
    if file_path is not None and "\x00" in file_path:
        raise ValueError("file_path must not contain NUL bytes")

    args = [git_binary, "log"]
    if not include_merge_commits:
        args.append("--no-merges")
    args.extend(["-z", f"--pretty={LOG_PRETTY_FORMAT}"])
    if max_count is not None:
        args.append(f"--max-count={int(max_count)}")
    if branch:
        args.append(branch)
    args.append("--")
    if file_path:
        args.append(file_path)
    return args
