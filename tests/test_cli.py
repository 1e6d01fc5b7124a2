from __future__ import annotations

import json
from pathlib import Path

from conftest import REMOTE_URL

from git_history_mcp.cli import main


def _run_cli_json(args: list[str], capsys) -> dict:
    exit_code = main(args + ["--json"])
    assert exit_code in (0, 1)
    output = capsys.readouterr().out
    return {"exit_code": exit_code, "payload": json.loads(output)}


def test_cli_log_json(git_repo: Path, capsys) -> None:
    result = _run_cli_json(["log", "--directory", str(git_repo)], capsys)

    assert result["exit_code"] == 0
    payload = result["payload"]
    assert payload["status"] == "success"
    assert payload["count"] == 2
    assert payload["remote_url"] == REMOTE_URL
    assert payload["commits"][0]["refs"] == ["main"]
    assert payload["commits"][1]["tag"] == "v0.1.0"


def test_cli_log_limits_and_path(git_repo: Path, capsys) -> None:
    limited = _run_cli_json(["log", "-d", str(git_repo), "-n", "1"], capsys)
    by_path = _run_cli_json(["log", "-d", str(git_repo), "--path", "README.md"], capsys)

    assert limited["payload"]["count"] == 1
    assert [commit["subject"] for commit in by_path["payload"]["commits"]] == ["Initial commit"]


def test_cli_log_oneline(git_repo: Path, capsys) -> None:
    exit_code = main(["log", "-d", str(git_repo), "--oneline"])
    lines = capsys.readouterr().out.splitlines()

    assert exit_code == 0
    assert len(lines) == 2
    assert lines[0].endswith("(main) Add notes")
    assert lines[1].endswith("(tag: v0.1.0) Initial commit")


def test_cli_log_human_output(git_repo: Path, capsys) -> None:
    exit_code = main(["log", "-d", str(git_repo)])
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "[SUCCESS] Retrieved 2 commits" in output
    assert "Author: Ada Lovelace <ada@example.com>" in output
    assert "    First body line" in output


def test_cli_rejects_invalid_max_count(capsys) -> None:
    result = _run_cli_json(["log", "-n", "0"], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "INVALID_INPUT"


def test_cli_rejects_blank_branch(capsys) -> None:
    result = _run_cli_json(["log", "   "], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "INVALID_INPUT"


def test_cli_reports_missing_directory(tmp_path: Path, capsys) -> None:
    result = _run_cli_json(["log", "-d", str(tmp_path / "missing")], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "INVALID_DIRECTORY"


def test_cli_reports_non_repository(git_repo: Path, tmp_path: Path, capsys) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()

    result = _run_cli_json(["log", "-d", str(plain)], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "COMMAND_FAILED"


def test_cli_config_reports_effective_settings(monkeypatch, capsys) -> None:
    monkeypatch.setenv("GIT_HISTORY_MCP_REMOTE", "upstream")

    result = _run_cli_json(["config"], capsys)

    assert result["exit_code"] == 0
    assert result["payload"]["settings"]["remote_name"] == "upstream"
    assert result["payload"]["settings"]["git_binary"] == "git"


def test_cli_config_invalid_env(monkeypatch, capsys) -> None:
    monkeypatch.setenv("GIT_HISTORY_MCP_TIMEOUT_SECONDS", "never")

    result = _run_cli_json(["config"], capsys)

    assert result["exit_code"] == 1
    assert result["payload"]["error_code"] == "INVALID_INPUT"
