from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from platformdirs import user_config_dir

from .models import ServerConfig
from ..errors import ConfigError

APP_NAME = "ibmcloud-mcp"

logger = logging.getLogger(__name__)


def _candidate_paths(cwd: Path) -> list[Path]:
    # project-level (higher priority)
    return [
        cwd / ".ibmcloud-mcp.yaml",
        cwd / "ibmcloud-mcp.yaml",
    ]


def _global_candidate_paths() -> list[Path]:
    cfg_dir = Path(user_config_dir(APP_NAME))
    return [cfg_dir / "ibmcloud-mcp.yaml"]


def _load_yaml(p: Path) -> dict[str, Any]:
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {p}: {e}") from e
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ConfigError(f"Config {p} must contain a mapping at the top level.")
    return obj


def _merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge_dicts(out[k], v)
        else:
            out[k] = v
    return out


def _as_path(cwd: Path, v: str) -> Path:
    p = Path(v).expanduser()
    return p if p.is_absolute() else (cwd / p)


def _apply(cfg: ServerConfig, merged: dict[str, Any], cwd: Path) -> list[str]:
    rejected: list[str] = []

    for key in ("cli_binary", "api_key_env", "log_level"):
        if key in merged:
            v = merged[key]
            if isinstance(v, str) and v.strip():
                setattr(cfg, key, v.strip())
            else:
                rejected.append(key)

    for key in ("region", "resource_group"):
        if key in merged:
            v = merged[key]
            if v is None or (isinstance(v, str) and v.strip()):
                setattr(cfg, key, v.strip() if isinstance(v, str) else None)
            else:
                rejected.append(key)

    for key in ("timeout", "session_cache_seconds"):
        if key in merged:
            v = merged[key]
            if isinstance(v, (int, float)) and not isinstance(v, bool) and v >= 0:
                setattr(cfg, key, float(v))
            else:
                rejected.append(key)

    for key in ("tools_manifest", "dotenv_path", "log_file"):
        if key in merged:
            v = merged[key]
            if isinstance(v, str) and v.strip():
                setattr(cfg, key, _as_path(cwd, v.strip()))
            else:
                rejected.append(key)

    if "env" in merged:
        env = merged["env"]
        if isinstance(env, dict):
            cfg.env.update({str(k): str(v) for k, v in env.items()})
        else:
            rejected.append("env")

    if "safe_mode_allowlist" in merged:
        al = merged["safe_mode_allowlist"]
        if isinstance(al, list) and al and all(isinstance(x, str) and x for x in al):
            cfg.safe_mode_allowlist = list(al)
        else:
            rejected.append("safe_mode_allowlist")

    if "events" in merged:
        if isinstance(merged["events"], bool):
            cfg.events = merged["events"]
        else:
            rejected.append("events")

    if "server" in merged:
        rejected.extend(cfg.server.apply(merged["server"]))

    return rejected


def _apply_env(cfg: ServerConfig, environ: Mapping[str, str], cwd: Path) -> None:
    if environ.get("IBMCLOUD_MCP_BINARY"):
        cfg.cli_binary = environ["IBMCLOUD_MCP_BINARY"]
    if environ.get("IBMCLOUD_MCP_TIMEOUT"):
        try:
            cfg.timeout = float(environ["IBMCLOUD_MCP_TIMEOUT"])
        except ValueError:
            logger.warning("Ignoring invalid IBMCLOUD_MCP_TIMEOUT=%r", environ["IBMCLOUD_MCP_TIMEOUT"])
    if environ.get("IBMCLOUD_MCP_TOOLS"):
        cfg.tools_manifest = _as_path(cwd, environ["IBMCLOUD_MCP_TOOLS"])
    if environ.get("IBMCLOUD_MCP_LOG_FILE"):
        cfg.log_file = _as_path(cwd, environ["IBMCLOUD_MCP_LOG_FILE"])
    if environ.get("IBMCLOUD_MCP_LOG_LEVEL"):
        cfg.log_level = environ["IBMCLOUD_MCP_LOG_LEVEL"]
    if environ.get("MCP_DEBUG", "").lower() == "true":
        cfg.log_level = "DEBUG"
    if environ.get("IBMCLOUD_REGION") and not cfg.region:
        cfg.region = environ["IBMCLOUD_REGION"]
    if environ.get("IBMCLOUD_RESOURCE_GROUP") and not cfg.resource_group:
        cfg.resource_group = environ["IBMCLOUD_RESOURCE_GROUP"]


def load_server_config(
    *,
    cwd: Path,
    explicit_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Load server config.

    Merge order: global < project < explicit_path, then environment overrides.
    Relative paths in the config are resolved against cwd.
    """
    merged: dict[str, Any] = {}
    loaded_from: list[Path] = []

    for p in _global_candidate_paths():
        if p.is_file():
            merged = _merge_dicts(merged, _load_yaml(p))
            loaded_from.append(p)

    for p in _candidate_paths(cwd):
        if p.is_file():
            merged = _merge_dicts(merged, _load_yaml(p))
            loaded_from.append(p)
            break  # first match wins for project-level

    if explicit_path is not None:
        p = explicit_path.expanduser().resolve()
        if not p.is_file():
            raise ConfigError(f"Config file not found: {p}")
        merged = _merge_dicts(merged, _load_yaml(p))
        loaded_from.append(p)

    cfg = ServerConfig()
    cfg.dotenv_path = cwd / cfg.dotenv_path
    cfg.loaded_from = loaded_from

    for key in _apply(cfg, merged, cwd):
        logger.warning("Ignoring invalid config value for %r", key)

    _apply_env(cfg, os.environ if environ is None else environ, cwd)
    return cfg
