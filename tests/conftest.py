from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

INITIAL_DATE = "Mon, 16 Oct 2023 09:00:00 +0000"
NOTES_DATE = "Fri, 20 Oct 2023 12:34:56 +0200"
REMOTE_URL = "https://example.com/demo.git"


def run_git(repo: Path, *args: str, date: str = INITIAL_DATE) -> str:
    env = dict(os.environ)
    env.update(
        {
            "GIT_AUTHOR_NAME": "Ada Lovelace",
            "GIT_AUTHOR_EMAIL": "ada@example.com",
            "GIT_COMMITTER_NAME": "Grace Hopper",
            "GIT_COMMITTER_EMAIL": "grace@example.com",
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_DATE": date,
            "GIT_CONFIG_NOSYSTEM": "1",
        }
    )
    result = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", "-c", "tag.gpgsign=false", *args],
        cwd=repo,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


@pytest.fixture(autouse=True)
def _clean_history_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("GIT_HISTORY_MCP_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Repository with a tagged root commit and a multi-line second commit on main."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

    repo = tmp_path / "repo"
    repo.mkdir()
    run_git(repo, "init", "-q")
    run_git(repo, "symbolic-ref", "HEAD", "refs/heads/main")

    (repo / "README.md").write_text("hello\n", encoding="utf-8")
    run_git(repo, "add", "README.md")
    run_git(repo, "commit", "-q", "-m", "Initial commit")
    run_git(repo, "tag", "v0.1.0")

    (repo / "notes.txt").write_text("notes\n", encoding="utf-8")
    run_git(repo, "add", "notes.txt")
    run_git(
        repo,
        "commit",
        "-q",
        "-m",
        "Add notes\n\nFirst body line\nSecond body line",
        date=NOTES_DATE,
    )
    run_git(repo, "remote", "add", "origin", REMOTE_URL)
    return repo
