from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .base import ToolSpec
from ..errors import ManifestError

PACKAGED_MANIFEST = Path(__file__).resolve().parent.parent / "assets" / "ibmcloud_tools.json"


def _spec_from_obj(obj: Any, index: int) -> ToolSpec:
    if not isinstance(obj, dict):
        raise ManifestError(f"tools[{index}] must be an object")
    name = obj.get("name")
    desc = obj.get("description", "")
    params = obj.get("parameters")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError(f"tools[{index}] is missing a name")
    if not isinstance(desc, str):
        raise ManifestError(f"tools[{index}] ({name}) description must be a string")
    if params is None:
        params = {"type": "object", "properties": {}}
    if not isinstance(params, dict) or params.get("type") != "object":
        raise ManifestError(f"tools[{index}] ({name}) parameters must be a JSON Schema object")
    if not isinstance(params.get("properties", {}), dict):
        raise ManifestError(f"tools[{index}] ({name}) parameters.properties must be an object")
    # defaults are filled into the listed descriptor too
    raw = {**obj, "description": desc, "parameters": params}
    return ToolSpec(name=name, description=desc, parameters=params, raw=raw)


def parse_manifest(text: str, *, source: str = "<manifest>") -> list[ToolSpec]:
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"Tools manifest {source} is not valid JSON: {e}") from e
    # both {"tools": [...]} and a bare array are accepted
    tools = doc.get("tools") if isinstance(doc, dict) else doc
    if not isinstance(tools, list):
        raise ManifestError(f"Tools manifest {source} must contain a 'tools' array")

    specs: list[ToolSpec] = []
    seen: set[str] = set()
    for i, obj in enumerate(tools):
        spec = _spec_from_obj(obj, i)
        if spec.name in seen:
            raise ManifestError(f"Duplicate tool name in manifest: {spec.name}")
        seen.add(spec.name)
        specs.append(spec)
    return specs


def load_manifest(path: Path | None = None) -> list[ToolSpec]:
    """Load tool descriptors from `path`, or from the packaged manifest when None."""
    p = (path or PACKAGED_MANIFEST).expanduser()
    if not p.is_file():
        raise ManifestError(f"Tools manifest not found: {p}")
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot read tools manifest {p}: {e}") from e
    return parse_manifest(text, source=str(p))
