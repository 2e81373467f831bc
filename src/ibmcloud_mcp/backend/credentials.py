"""Locating the API key used for non-interactive login.

Lookup order: the process environment, then a dotenv-style file. The dotenv
file is only read, never exported into os.environ.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..util.redact import describe_secret

logger = logging.getLogger(__name__)

# Placeholder the original shell launcher exported when no key was configured.
PLACEHOLDER_VALUES = {"default_key"}


def _strip_quotes(v: str) -> str:
    if len(v) >= 2 and v[0] == v[-1] and v[0] in {'"', "'"}:
        return v[1:-1]
    return v


def parse_dotenv(text: str) -> dict[str, str]:
    """Parse simple KEY=VALUE lines. Blank lines and `#` comments are skipped."""
    out: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export "):].strip()
        if not key:
            continue
        out[key] = _strip_quotes(value.strip())
    return out


def read_dotenv(path: Path) -> dict[str, str]:
    if not path.is_file():
        return {}
    try:
        return parse_dotenv(path.read_text(encoding="utf-8", errors="replace"))
    except OSError as e:
        logger.warning("Cannot read dotenv file %s: %s", path, e)
        return {}


@dataclass(frozen=True)
class Credential:
    value: str
    source: str  # "env" | "dotenv:<path>"

    def describe(self) -> str:
        return f"{self.source} ({describe_secret(self.value)})"


@dataclass
class CredentialResolver:
    key_name: str = "IBMCLOUD_API_KEY"
    dotenv_path: Optional[Path] = None
    environ: Optional[Mapping[str, str]] = None

    def _usable(self, v: Optional[str]) -> bool:
        return bool(v) and v not in PLACEHOLDER_VALUES

    def resolve(self) -> Optional[Credential]:
        env = os.environ if self.environ is None else self.environ
        v = (env.get(self.key_name) or "").strip()
        if self._usable(v):
            return Credential(v, "env")
        if self.dotenv_path is not None:
            v = (read_dotenv(self.dotenv_path).get(self.key_name) or "").strip()
            if self._usable(v):
                return Credential(v, f"dotenv:{self.dotenv_path}")
        return None
