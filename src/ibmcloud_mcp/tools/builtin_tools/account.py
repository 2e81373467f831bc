from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from ..base import ToolContext, ToolResult
from .common import query

@dataclass
class GetTargetTool:
    name: str = "get_target"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return query(ctx, ["target", "--output", "json"], "getting target information")

@dataclass
class ListRegionsTool:
    name: str = "list_regions"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return query(ctx, ["regions", "--output", "json"], "listing regions")

@dataclass
class GetAccountInfoTool:
    name: str = "get_account_info"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return query(ctx, ["account", "show", "--output", "json"], "getting account info")
