"""Command line interface for git history retrieval with parity to the MCP tool."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from pydantic import ValidationError

from .errors import ErrorCode, HistoryError
from .fetcher import HistoryFetcher
from .models import HistoryRequest
from .runtime import get_history_settings


def _decoration_label(commit: dict[str, Any]) -> str:
    if commit.get("tag"):
        return f"(tag: {commit['tag']})"
    if commit.get("refs"):
        return "(" + ", ".join(commit["refs"]) + ")"
    return ""


def _print_payload(payload: dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2))
        return

    status = payload.get("status", "unknown").upper()
    message = payload.get("message", "")
    print(f"[{status}] {message}")

    if payload.get("status") == "error":
        error_code = payload.get("error_code", "")
        suggestion = payload.get("suggestion", "")
        if error_code:
            print(f"error_code: {error_code}")
        if suggestion:
            print(f"suggestion: {suggestion}")
        stderr = payload.get("details", {}).get("stderr", "")
        if stderr:
            print(f"stderr: {stderr}")
        return

    for key in ("remote_url", "count"):
        if key in payload and payload[key] not in ("", None):
            print(f"{key}: {payload[key]}")

    if "settings" in payload and isinstance(payload["settings"], dict):
        print("settings:")
        for settings_key, settings_value in payload["settings"].items():
            print(f"  {settings_key}: {settings_value}")

    for commit in payload.get("commits", []):
        print()
        label = _decoration_label(commit)
        print(f"commit {commit.get('full_hash', '')} {label}".rstrip())
        print(f"Author: {commit.get('author_name', '')} <{commit.get('author_email', '')}>")
        date_marker = "" if commit.get("date_parsed", True) else " (unparsed)"
        print(f"Date:   {commit.get('date', '')}{date_marker}")
        print()
        print(f"    {commit.get('subject', '')}")
        body = str(commit.get("body", "")).rstrip("\n")
        if body:
            print()
            for line in body.splitlines():
                print(f"    {line}")


def _error_payload(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, HistoryError):
        return exc.to_payload()
    if isinstance(exc, ValidationError):
        errors: Any
        try:
            errors = exc.errors(include_context=False, include_input=False)
        except TypeError:
            errors = exc.errors()
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": "Input validation failed",
            "suggestion": "Check command arguments and constraints.",
            "details": {"errors": errors},
        }
    if isinstance(exc, ValueError):
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": str(exc),
            "suggestion": "Check GIT_HISTORY_MCP_* environment variables and the config file.",
            "details": {},
        }
    return {
        "status": "error",
        "error_code": ErrorCode.INTERNAL_ERROR.value,
        "message": str(exc),
        "suggestion": "Retry with --json for diagnostics and inspect logs.",
        "details": {},
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="git-history-cli", description="Git commit history CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    log = subparsers.add_parser("log", help="Show decoded commit history")
    log.add_argument("branch", nargs="?", help="Branch or revision (defaults to HEAD)")
    log.add_argument("-d", "--directory", default=".", help="Directory inside the git working tree")
    log.add_argument("-n", "--max-count", type=int, default=None, help="Limit number of commits")
    log.add_argument("--path", default=None, help="Only commits touching this file path")
    log.add_argument(
        "--include-merges",
        action="store_true",
        help="Include merge commits (excluded by default)",
    )
    log.add_argument("--oneline", action="store_true", help="One line output format")
    log.add_argument("--json", action="store_true", help="Output machine-readable JSON")

    config = subparsers.add_parser("config", help="Show effective git history settings")
    config.add_argument("--json", action="store_true", help="Output machine-readable JSON")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    as_json = bool(getattr(args, "json", False))

    try:
        settings = get_history_settings()
        if args.command == "config":
            response = {
                "status": "success",
                "message": "Effective settings",
                "settings": settings.to_payload(),
            }
        else:
            request = HistoryRequest(
                directory=args.directory,
                branch=args.branch,
                max_count=args.max_count,
                file_path=args.path,
                include_merge_commits=args.include_merges,
            )
            fetcher = HistoryFetcher.for_directory(request.directory, settings)
            response = asyncio.run(fetcher.fetch(request)).model_dump(mode="json")
            if args.oneline and not as_json:
                for commit in response.get("commits", []):
                    label = _decoration_label(commit)
                    parts = [commit.get("short_hash", ""), label, commit.get("subject", "")]
                    print(" ".join(part for part in parts if part))
                return 0

        _print_payload(response, as_json=as_json)
        return 0
    except Exception as exc:  # noqa: BLE001
        payload = _error_payload(exc)
        _print_payload(payload, as_json=as_json)
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
