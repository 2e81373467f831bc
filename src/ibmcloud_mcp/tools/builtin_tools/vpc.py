from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from ..base import ToolContext, ToolResult
from .common import query, require_plugin, retarget, str_arg

VPC_PLUGIN = "vpc-infrastructure"

def _vpc_query(ctx: ToolContext, args: dict[str, Any], what: str, doing: str) -> ToolResult:
    missing = require_plugin(ctx, VPC_PLUGIN, hint="VPC")
    if missing is not None:
        return missing
    region = str_arg(args, "region")
    if region:
        retarget(ctx, ["-r", region])
    return query(ctx, ["is", what, "--output", "json"], doing)

@dataclass
class ListVpcInstancesTool:
    name: str = "list_vpc_instances"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return _vpc_query(ctx, args, "instances", "listing VPC instances")

@dataclass
class ListVpcsTool:
    name: str = "list_vpcs"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        return _vpc_query(ctx, args, "vpcs", "listing VPCs")
