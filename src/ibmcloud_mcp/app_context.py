from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .backend.credentials import CredentialResolver
from .backend.invoker import BackendInvoker, Invoker
from .backend.session import SessionGate
from .config.models import ServerConfig
from .events.store import EventStore
from .rpc.dispatcher import Dispatcher
from .tools.base import ToolContext
from .tools.builtin import register_builtin_tools
from .tools.manifest import load_manifest
from .tools.registry import ToolRegistry
from .tools.safe_mode import SafeModeFilter

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything one server process holds in memory for its lifetime."""

    cwd: Path
    config: ServerConfig
    invoker: Invoker
    tools: ToolRegistry
    gate: SessionGate
    tool_ctx: ToolContext
    events: EventStore

    def dispatcher(self) -> Dispatcher:
        return Dispatcher(
            registry=self.tools,
            tool_ctx=self.tool_ctx,
            gate=self.gate,
            server=self.config.server,
            events=self.events,
        )

    @staticmethod
    def build(
        config: ServerConfig,
        *,
        cwd: Path,
        invoker: Optional[Invoker] = None,
        environ: Optional[Mapping[str, str]] = None,
        events: Optional[EventStore] = None,
    ) -> "AppContext":
        """Load the manifest, pair it with the handlers and wire the session gate.

        Raises ManifestError/RegistryError; both are fatal at startup.
        """
        if invoker is None:
            invoker = BackendInvoker(binary=config.cli_binary, timeout=config.timeout, env_overrides=dict(config.env))

        tools = ToolRegistry()
        tools.add_specs(load_manifest(config.tools_manifest))
        register_builtin_tools(tools)
        tools.validate()

        gate = SessionGate(
            invoker=invoker,
            credentials=CredentialResolver(
                key_name=config.api_key_env,
                dotenv_path=config.dotenv_path,
                environ=environ,
            ),
            region=config.region,
            resource_group=config.resource_group,
            cache_seconds=config.session_cache_seconds,
        )
        tool_ctx = ToolContext(invoker=invoker, safe_mode=SafeModeFilter(tuple(config.safe_mode_allowlist)))
        if events is None:
            events = EventStore.open(enabled=config.events)

        logger.debug("Loaded %d tools: %s", len(tools.names()), ", ".join(tools.names()))
        return AppContext(
            cwd=cwd,
            config=config,
            invoker=invoker,
            tools=tools,
            gate=gate,
            tool_ctx=tool_ctx,
            events=events,
        )
