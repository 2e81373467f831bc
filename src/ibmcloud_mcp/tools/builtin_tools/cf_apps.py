from __future__ import annotations
from dataclasses import dataclass
from typing import Any
import json

from ..base import ToolContext, ToolResult
from .common import retarget, str_arg

@dataclass
class ListCfAppsTool:
    name: str = "list_cf_apps"
    requires_session: bool = True

    def execute(self, ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
        org = str_arg(args, "org")
        space = str_arg(args, "space")
        # space alone is not enough to retarget
        if org:
            argv = ["-o", org]
            if space:
                argv += ["-s", space]
            retarget(ctx, argv)

        res = ctx.invoker.invoke(["cf", "apps"])
        if not res.ok:
            return ToolResult(f"Error listing CF apps: {res.output}", is_error=True)
        # `cf apps` has no JSON output mode
        return ToolResult(json.dumps({"apps": res.output}, ensure_ascii=False))
