"""Settings for git invocation and the MCP server transport."""

from __future__ import annotations

import ipaddress
import math
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, TypeVar

import yaml

from .constants import DEFAULT_GIT_BINARY, DEFAULT_REMOTE_NAME, DEFAULT_TIMEOUT_SECONDS

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}
TRANSPORTS = {"stdio", "streamable-http"}

NumberT = TypeVar("NumberT", int, float)

CONFIG_FILE_ENV = "GIT_HISTORY_MCP_CONFIG"
CONFIG_FILE_KEYS = {
    "git_binary": "GIT_HISTORY_MCP_GIT_BINARY",
    "timeout_seconds": "GIT_HISTORY_MCP_TIMEOUT_SECONDS",
    "remote_name": "GIT_HISTORY_MCP_REMOTE",
    "default_max_count": "GIT_HISTORY_MCP_DEFAULT_MAX_COUNT",
}


@dataclass(frozen=True)
class HistorySettings:
    """Settings for git invocation, sourced from a YAML file and environment."""

    git_binary: str = DEFAULT_GIT_BINARY
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    remote_name: str = DEFAULT_REMOTE_NAME
    default_max_count: int = 0

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


def load_config_file(path: str | Path) -> dict[str, str]:
    """Read a YAML settings file and map its keys onto environment variable names."""
    config_path = Path(path).expanduser()
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle)
    except OSError as exc:
        raise ValueError(f"{CONFIG_FILE_ENV} is not readable: {config_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"{CONFIG_FILE_ENV} must contain valid YAML: {config_path}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{CONFIG_FILE_ENV} must contain a YAML mapping.")

    mapped: dict[str, str] = {}
    for key, value in loaded.items():
        env_key = CONFIG_FILE_KEYS.get(str(key))
        if env_key is None:
            allowed_keys = ", ".join(sorted(CONFIG_FILE_KEYS))
            raise ValueError(f"Unknown config key '{key}'. Allowed keys: {allowed_keys}.")
        if value is None:
            continue
        mapped[env_key] = str(value)
    return mapped


def get_history_settings(env: Mapping[str, str] | None = None) -> HistorySettings:
    """Return validated git settings; environment variables override the YAML file."""
    source = os.environ if env is None else env
    merged: dict[str, str] = {}
    config_file = source.get(CONFIG_FILE_ENV, "").strip()
    if config_file:
        merged.update(load_config_file(config_file))
    merged.update({key: value for key, value in source.items() if key in CONFIG_FILE_KEYS.values()})

    git_binary = merged.get("GIT_HISTORY_MCP_GIT_BINARY", "").strip() or DEFAULT_GIT_BINARY
    remote_name = merged.get("GIT_HISTORY_MCP_REMOTE", "").strip() or DEFAULT_REMOTE_NAME
    if remote_name.startswith("-"):
        raise ValueError("GIT_HISTORY_MCP_REMOTE must not start with '-'.")

    return HistorySettings(
        git_binary=git_binary,
        timeout_seconds=_parse_number_env(
            source=merged,
            key="GIT_HISTORY_MCP_TIMEOUT_SECONDS",
            default=DEFAULT_TIMEOUT_SECONDS,
            kind=float,
            min_value=0.1,
        ),
        remote_name=remote_name,
        default_max_count=_parse_number_env(
            source=merged,
            key="GIT_HISTORY_MCP_DEFAULT_MAX_COUNT",
            default=0,
            kind=int,
            min_value=0,
        ),
    )


def get_runtime_defaults(env: Mapping[str, str] | None = None) -> tuple[str, str, int, bool]:
    """Return `(transport, host, port, allow_public_http)` for the MCP server."""
    source = os.environ if env is None else env

    transport_default = source.get("GIT_HISTORY_MCP_TRANSPORT", "stdio")
    if transport_default not in TRANSPORTS:
        raise ValueError("GIT_HISTORY_MCP_TRANSPORT must be 'stdio' or 'streamable-http'.")

    host_default = source.get("GIT_HISTORY_MCP_HOST", "127.0.0.1")
    port_default = _parse_number_env(
        source=source, key="GIT_HISTORY_MCP_PORT", default=8000, kind=int
    )
    if not (1 <= port_default <= 65535):
        raise ValueError("GIT_HISTORY_MCP_PORT must be between 1 and 65535.")

    allow_public_http_default = _parse_bool_env(
        source=source,
        key="GIT_HISTORY_MCP_ALLOW_PUBLIC_HTTP",
        default=False,
    )
    validate_streamable_http_binding(
        transport=transport_default,
        host=host_default,
        allow_public_http=allow_public_http_default,
    )
    return transport_default, host_default, port_default, allow_public_http_default


def validate_streamable_http_binding(transport: str, host: str, allow_public_http: bool) -> None:
    """Refuse to expose the history tool on a public interface unless opted in."""
    if transport != "streamable-http":
        return
    if not host.strip():
        raise ValueError("A host is required for the streamable-http transport.")
    if not is_loopback_host(host) and not allow_public_http:
        raise ValueError(
            f"Host {host!r} is not a loopback address; pass --allow-public-http "
            "or set GIT_HISTORY_MCP_ALLOW_PUBLIC_HTTP=true to bind it anyway."
        )


def is_loopback_host(host: str) -> bool:
    candidate = host.strip().lower().strip("[]")
    if candidate == "localhost":
        return True
    try:
        return ipaddress.ip_address(candidate).is_loopback
    except ValueError:
        return False


def _raw_setting(source: Mapping[str, str], key: str) -> str | None:
    raw = source.get(key)
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _parse_bool_env(source: Mapping[str, str], key: str, default: bool) -> bool:
    text = _raw_setting(source, key)
    if text is None:
        return default
    if text.lower() in TRUE_VALUES:
        return True
    if text.lower() in FALSE_VALUES:
        return False
    choices = "/".join(sorted(TRUE_VALUES | FALSE_VALUES))
    raise ValueError(f"{key}={text!r} is not a boolean ({choices}).")


def _parse_number_env(
    source: Mapping[str, str],
    key: str,
    default: NumberT,
    kind: Callable[[str], NumberT],
    min_value: NumberT | None = None,
) -> NumberT:
    text = _raw_setting(source, key)
    if text is None:
        return default
    try:
        value = kind(text)
    except ValueError as exc:
        raise ValueError(f"{key}={text!r} is not a valid {kind.__name__}.") from exc
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"{key}={text!r} must be finite.")
    if min_value is not None and value < min_value:
        raise ValueError(f"{key}={text!r} is below the minimum of {min_value}.")
    return value
