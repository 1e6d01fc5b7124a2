"""MCP server entrypoint and tool definitions for git history retrieval."""

from __future__ import annotations

import argparse
import json
import logging
import time
import uuid
from collections.abc import Awaitable
from typing import Annotated, Any, Callable

from mcp.server.fastmcp import FastMCP
from pydantic import Field, ValidationError

from .errors import ErrorCode, HistoryError
from .fetcher import HistoryFetcher
from .models import HistoryRequest
from .runtime import (
    HistorySettings,
    TRANSPORTS,
    get_history_settings,
    get_runtime_defaults,
    validate_streamable_http_binding,
)

logger = logging.getLogger(__name__)


def _build_fastmcp() -> FastMCP:
    instructions = (
        "Read decoded git commit history. Use git_history with a repository "
        "directory and optional branch, max_count, file_path and "
        "include_merge_commits filters."
    )
    try:
        return FastMCP(name="git-history", instructions=instructions, json_response=True)
    except TypeError as exc:
        if "json_response" not in str(exc):
            raise
        logger.debug("FastMCP has no json_response option; history payloads use its default encoding.")
        return FastMCP(name="git-history", instructions=instructions)


mcp = _build_fastmcp()

history_settings = HistorySettings()

READ_ONLY_TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "idempotentHint": True,
    "destructiveHint": False,
    "openWorldHint": False,
}


def _register_tool(annotations: dict[str, bool]):
    """Register a read-only tool; SDKs without tool annotations get a plain registration."""

    def decorator(func):
        try:
            return mcp.tool(annotations=annotations)(func)
        except TypeError as exc:
            if "annotations" not in str(exc):
                raise
            logger.debug("Registering %s without read-only annotations.", func.__name__)
            return mcp.tool()(func)

    return decorator


def _error_payload_from_exception(exc: Exception) -> dict[str, Any]:
    """Map a failed history request onto the payload shape shared with the CLI."""
    if isinstance(exc, HistoryError):
        return exc.to_payload()
    if isinstance(exc, ValidationError):
        errors: Any
        try:
            errors = exc.errors(include_context=False, include_input=False, include_url=False)
        except TypeError:
            errors = exc.errors()
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": "Invalid git_history arguments",
            "suggestion": "Fix the directory, branch, max_count or file_path argument.",
            "details": {"errors": errors},
        }
    logger.exception("git_history failed unexpectedly", exc_info=exc)
    return {
        "status": "error",
        "error_code": ErrorCode.INTERNAL_ERROR.value,
        "message": str(exc),
        "suggestion": "Look up the correlation_id in the server log.",
        "details": {},
    }


def _log_history_call(
    *,
    correlation_id: str,
    tool_name: str,
    status: str,
    elapsed_seconds: float,
    details: dict[str, Any] | None = None,
) -> None:
    payload: dict[str, Any] = {
        "event": "history_tool_call",
        "correlation_id": correlation_id,
        "tool": tool_name,
        "status": status,
        "elapsed_ms": round(elapsed_seconds * 1000, 3),
    }
    if details:
        payload.update(details)
    logger.info("history_tool_call %s", json.dumps(payload, ensure_ascii=True, sort_keys=True))


async def _run_tool(
    tool_name: str,
    operation: Callable[[], Awaitable[dict[str, Any]]],
) -> dict[str, Any]:
    """Await `operation` and tag the result, success or error, with a correlation_id."""
    started = time.perf_counter()
    correlation_id = uuid.uuid4().hex[:12]
    try:
        payload = dict(await operation())
        details = {"count": payload.get("count", 0)}
    except Exception as exc:  # noqa: BLE001
        payload = _error_payload_from_exception(exc)
        details = {"error_code": payload.get("error_code"), "exception": type(exc).__name__}

    payload["correlation_id"] = correlation_id
    _log_history_call(
        correlation_id=correlation_id,
        tool_name=tool_name,
        status=payload.get("status", "success"),
        elapsed_seconds=time.perf_counter() - started,
        details=details,
    )
    return payload


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
async def git_history(
    directory: Annotated[str, Field(description="Path inside the git working tree")],
    branch: Annotated[
        str | None,
        Field(description="Branch or revision to read (defaults to HEAD)"),
    ] = None,
    max_count: Annotated[
        int | None,
        Field(description="Maximum number of commits (omit for all)"),
    ] = None,
    file_path: Annotated[
        str | None,
        Field(description="Only return commits touching this path"),
    ] = None,
    include_merge_commits: Annotated[
        bool,
        Field(description="Include merge commits (excluded by default)"),
    ] = False,
) -> dict[str, Any]:
    """Retrieve decoded commit history with tag/ref classification."""

    async def _operation() -> dict[str, Any]:
        request = HistoryRequest(
            directory=directory,
            branch=branch,
            max_count=max_count,
            file_path=file_path,
            include_merge_commits=include_merge_commits,
        )
        fetcher = HistoryFetcher.for_directory(request.directory, history_settings)
        response = await fetcher.fetch(request)
        return response.model_dump(mode="json")

    return await _run_tool("git_history", operation=_operation)


def _effective_runtime_config_payload(
    transport: str,
    host: str,
    port: int,
    allow_public_http: bool,
    settings: HistorySettings,
) -> dict[str, Any]:
    return {
        "transport": transport,
        "host": host,
        "port": port,
        "allow_public_http": allow_public_http,
        "history": settings.to_payload(),
    }


def main() -> None:
    """Run the git history MCP server in stdio or streamable HTTP mode."""
    parser = argparse.ArgumentParser(description="Git history MCP server")
    try:
        transport_default, host_default, port_default, allow_public_http_default = (
            get_runtime_defaults()
        )
        settings = get_history_settings()
    except ValueError as exc:
        parser.error(str(exc))
    parser.add_argument(
        "--transport",
        choices=sorted(TRANSPORTS),
        default=transport_default,
        help="MCP transport; stdio unless GIT_HISTORY_MCP_TRANSPORT says otherwise.",
    )
    parser.add_argument("--host", default=host_default, help="Interface to bind when serving over HTTP.")
    parser.add_argument(
        "--port",
        type=int,
        default=port_default,
        help="TCP port to bind when serving over HTTP.",
    )
    parser.add_argument(
        "--allow-public-http",
        action=argparse.BooleanOptionalAction,
        default=allow_public_http_default,
        help="Permit binding the HTTP transport to a public interface.",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Verbosity of the stderr log.",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Load the history and transport settings, report errors, then exit.",
    )
    parser.add_argument(
        "--print-effective-config",
        action="store_true",
        help="Print the settings the server would run with as JSON, then exit.",
    )
    args = parser.parse_args()

    try:
        validate_streamable_http_binding(
            transport=args.transport,
            host=args.host,
            allow_public_http=bool(args.allow_public_http),
        )
        if not (1 <= int(args.port) <= 65535):
            raise ValueError("port must be between 1 and 65535.")
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(level=getattr(logging, args.log_level))

    global history_settings
    history_settings = settings
    mcp.settings.host = args.host
    mcp.settings.port = int(args.port)

    if args.print_effective_config:
        print(
            json.dumps(
                _effective_runtime_config_payload(
                    transport=str(args.transport),
                    host=str(args.host),
                    port=int(args.port),
                    allow_public_http=bool(args.allow_public_http),
                    settings=settings,
                ),
                indent=2,
                sort_keys=True,
            )
        )

    if args.check_config or args.print_effective_config:
        if not args.print_effective_config:
            print("git-history settings OK.")
        return

    if args.transport == "stdio":
        mcp.run()
        return

    mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
