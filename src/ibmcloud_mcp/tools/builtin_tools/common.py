from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..base import ToolContext, ToolResult

logger = logging.getLogger(__name__)


def str_arg(args: dict[str, Any], key: str) -> Optional[str]:
    """Optional string argument; missing, null, empty and the literal "null" all mean omitted."""
    v = args.get(key)
    if v is None:
        return None
    s = str(v).strip()
    if not s or s == "null":
        return None
    return s


def query(ctx: ToolContext, argv: Sequence[str], doing: str) -> ToolResult:
    """Run the main query; on failure the combined output becomes the error detail."""
    res = ctx.invoker.invoke(argv)
    if res.ok:
        return ToolResult(res.output)
    return ToolResult(f"Error {doing}: {res.output}", is_error=True)


def retarget(ctx: ToolContext, argv: Sequence[str]) -> None:
    """Best-effort `target ...` call; its failure never aborts the tool."""
    res = ctx.invoker.invoke(["target", *argv])
    if not res.ok:
        logger.info("Retarget %s failed (exit %s), continuing", " ".join(argv), res.returncode)


def require_plugin(ctx: ToolContext, plugin: str, hint: str = "") -> Optional[ToolResult]:
    res = ctx.invoker.invoke(["plugin", "list"])
    if res.ok and plugin in res.output:
        return None
    msg = f"Error: IBM Cloud {hint or plugin} plugin is not installed. Install with: ibmcloud plugin install {plugin}"
    return ToolResult(msg, is_error=True)
