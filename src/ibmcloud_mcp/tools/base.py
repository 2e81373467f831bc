from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..backend.invoker import Invoker
from .safe_mode import SafeModeFilter

@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: dict[str, Any]   # JSONSchema
    # The manifest entry exactly as loaded; `tools/list` returns this.
    raw: dict[str, Any] = field(default_factory=dict, compare=False)

class Tool(Protocol):
    name: str
    requires_session: bool
    def execute(self, ctx: "ToolContext", args: dict[str, Any]) -> "ToolResult": ...

@dataclass
class ToolResult:
    content: str
    is_error: bool = False

@dataclass
class ToolContext:
    invoker: Invoker
    safe_mode: SafeModeFilter = field(default_factory=SafeModeFilter)
