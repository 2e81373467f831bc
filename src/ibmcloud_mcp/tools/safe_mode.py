from __future__ import annotations

from dataclasses import dataclass, field

from ..config.models import DEFAULT_ALLOWLIST


@dataclass(frozen=True)
class SafeModeFilter:
    """Read-only allowlist for free-form CLI commands.

    A command passes when any allowlist entry occurs in it as a plain,
    case-sensitive substring. No tokenizing and no word boundaries: `get`
    matches inside `target-get-x` as well.
    """

    allowlist: tuple[str, ...] = field(default=DEFAULT_ALLOWLIST)

    def is_allowed(self, raw_command: str, safe_mode: bool = True) -> bool:
        if not safe_mode:
            return True
        return any(word in raw_command for word in self.allowlist)

    def denial_message(self, raw_command: str) -> str:
        return (
            f"Error: Command '{raw_command}' is not allowed in safe mode. "
            "Only read-only operations are permitted."
        )


def is_allowed(raw_command: str, safe_mode: bool = True) -> bool:
    return SafeModeFilter().is_allowed(raw_command, safe_mode)
