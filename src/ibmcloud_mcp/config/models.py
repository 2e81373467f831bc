from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_ALLOWLIST: tuple[str, ...] = (
    "list",
    "show",
    "get",
    "target",
    "regions",
    "zones",
    "plugins",
    "help",
    "version",
    "service-instances",
)

DEFAULT_INSTRUCTIONS = (
    "This server provides access to IBM Cloud CLI operations including resource management, "
    "VPC operations, and account information. Requires IBM Cloud CLI to be installed and authenticated."
)


@dataclass
class ServerInfo:
    """Static metadata returned by `initialize`."""

    name: str = "IBMCloudServer"
    version: str = "1.0.0"
    description: str = "MCP Server for IBM Cloud CLI operations"
    protocol_version: str = "2024-11-05"
    instructions: str = DEFAULT_INSTRUCTIONS
    list_changed: bool = True
    required_tools: list[str] = field(default_factory=lambda: ["ibmcloud"])
    optional_plugins: list[str] = field(
        default_factory=lambda: ["vpc-infrastructure", "cloud-functions", "kubernetes-service"]
    )

    def apply(self, obj: Any) -> list[str]:
        """Overlay values from a config mapping; returns the keys that were rejected."""
        rejected: list[str] = []
        if not isinstance(obj, dict):
            return ["server"]
        for key in ("name", "version", "description", "protocol_version", "instructions"):
            if key not in obj:
                continue
            v = obj[key]
            if isinstance(v, str) and v.strip():
                setattr(self, key, v.strip())
            else:
                rejected.append(f"server.{key}")
        if "list_changed" in obj:
            if isinstance(obj["list_changed"], bool):
                self.list_changed = obj["list_changed"]
            else:
                rejected.append("server.list_changed")
        for key in ("required_tools", "optional_plugins"):
            if key not in obj:
                continue
            v = obj[key]
            if isinstance(v, list) and all(isinstance(x, str) for x in v):
                setattr(self, key, list(v))
            else:
                rejected.append(f"server.{key}")
        return rejected


@dataclass
class ServerConfig:
    cli_binary: str = "ibmcloud"
    timeout: float = 30.0
    tools_manifest: Path | None = None  # None -> packaged assets/ibmcloud_tools.json
    dotenv_path: Path = Path(".env")
    api_key_env: str = "IBMCLOUD_API_KEY"
    region: str | None = None
    resource_group: str | None = None
    env: dict[str, str] = field(
        default_factory=lambda: {"IBMCLOUD_VERSION_CHECK": "false", "IBMCLOUD_COLOR": "false"}
    )
    safe_mode_allowlist: list[str] = field(default_factory=lambda: list(DEFAULT_ALLOWLIST))
    session_cache_seconds: float = 0.0
    log_file: Path | None = None  # None -> user_log_dir
    log_level: str = "INFO"
    events: bool = True
    server: ServerInfo = field(default_factory=ServerInfo)

    loaded_from: list[Path] = field(default_factory=list)
