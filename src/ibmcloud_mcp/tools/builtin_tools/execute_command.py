from __future__ import annotations
from dataclasses import dataclass
from typing import Any
import shlex

from ..base import ToolContext, ToolResult
from .common import query

def _safe_mode_arg(v: Any) -> bool:
    if v is None:
        return True
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return v.strip().lower() not in {"false", "0", "no"}
    return bool(v)

@dataclass
class ExecuteCommandTool:
    name: str = "execute_command"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        raw = args.get("command")
        command = raw.strip() if isinstance(raw, str) else ""
        if not command or command == "null":
            return ToolResult("Error: No command provided", is_error=True)

        safe_mode = _safe_mode_arg(args.get("safe_mode"))
        if not ctx.safe_mode.is_allowed(command, safe_mode):
            return ToolResult(ctx.safe_mode.denial_message(command), is_error=True)

        try:
            argv = shlex.split(command)
        except ValueError as e:
            return ToolResult(f"Error executing command: cannot parse '{command}': {e}", is_error=True)
        # tolerate a leading binary name
        if argv and argv[0] == "ibmcloud":
            argv = argv[1:]
        if not argv:
            return ToolResult("Error: No command provided", is_error=True)
        return query(ctx, argv, "executing command")
