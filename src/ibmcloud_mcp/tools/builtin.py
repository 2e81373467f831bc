from __future__ import annotations

from .registry import ToolRegistry

from .builtin_tools.resources import ListResourcesTool, ListResourceGroupsTool
from .builtin_tools.account import GetTargetTool, ListRegionsTool, GetAccountInfoTool
from .builtin_tools.vpc import ListVpcInstancesTool, ListVpcsTool
from .builtin_tools.cf_apps import ListCfAppsTool
from .builtin_tools.execute_command import ExecuteCommandTool

def register_builtin_tools(registry: ToolRegistry) -> None:
    registry.register(ListResourcesTool())
    registry.register(GetTargetTool())
    registry.register(ListVpcInstancesTool())
    registry.register(ListVpcsTool())
    registry.register(ListResourceGroupsTool())
    registry.register(ListRegionsTool())
    registry.register(GetAccountInfoTool())
    registry.register(ListCfAppsTool())
    registry.register(ExecuteCommandTool())
