from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from ..base import ToolContext, ToolResult
from .common import query, str_arg

@dataclass
class ListResourcesTool:
    name: str = "list_resources"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        # resource_type is accepted for schema compatibility; service instances are always listed.
        region = str_arg(args, "region")
        argv = ["resource", "service-instances"]
        if region:
            argv += ["--location", region]
        argv += ["--output", "json"]
        return query(ctx, argv, "listing resources")

@dataclass
class ListResourceGroupsTool:
    name: str = "list_resource_groups"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return query(ctx, ["resource", "groups", "--output", "json"], "listing resource groups")
