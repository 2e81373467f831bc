from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from .base import Tool, ToolSpec
from ..errors import RegistryError

@dataclass
class ToolRegistry:
    """Descriptors (from the manifest) paired 1:1 with handlers."""

    _specs: Dict[str, ToolSpec] = field(default_factory=dict)
    _tools: Dict[str, Tool] = field(default_factory=dict)

    def register(self, tool: Tool) -> None:
        name = tool.name
        if name in self._tools:
            raise RegistryError(f"Tool already registered: {name}")
        self._tools[name] = tool

    def add_specs(self, specs: Iterable[ToolSpec]) -> None:
        for spec in specs:
            if spec.name in self._specs:
                raise RegistryError(f"Tool descriptor already loaded: {spec.name}")
            self._specs[spec.name] = spec

    def validate(self) -> None:
        """Fail unless every descriptor has a handler and every handler a descriptor."""
        orphaned = sorted(set(self._specs) - set(self._tools))
        unlisted = sorted(set(self._tools) - set(self._specs))
        problems = []
        if orphaned:
            problems.append(f"descriptors without handler: {', '.join(orphaned)}")
        if unlisted:
            problems.append(f"handlers without descriptor: {', '.join(unlisted)}")
        if problems:
            raise RegistryError("Tool registry mismatch; " + "; ".join(problems))

    def get(self, name: str) -> Tool:
        if name not in self._tools:
            raise KeyError(f"Unknown tool: {name}")
        return self._tools[name]

    def get_optional(self, name: str) -> Optional[Tool]:
        """Return a tool if registered, otherwise None."""
        return self._tools.get(name)

    def list_specs(self) -> list[ToolSpec]:
        return list(self._specs.values())

    def list_descriptors(self) -> list[dict[str, Any]]:
        return [s.raw or {"name": s.name, "description": s.description, "parameters": s.parameters}
                for s in self._specs.values()]

    def names(self) -> list[str]:
        return list(self._specs.keys())
