from __future__ import annotations

from typing import Sequence

SECRET_FLAGS = {"--apikey", "--api-key", "-p", "--password"}


def describe_secret(value: str | None, prefix: int = 4) -> str:
    """Length and a short prefix only; never the full value."""
    if not value:
        return "[NOT SET]"
    return f"{len(value)} chars, prefix '{value[:prefix]}...'"


def redact_argv(argv: Sequence[str]) -> list[str]:
    out: list[str] = []
    hide_next = False
    for a in argv:
        if hide_next:
            out.append("[REDACTED]")
            hide_next = False
            continue
        if a in SECRET_FLAGS:
            hide_next = True
        elif "=" in a and a.split("=", 1)[0] in SECRET_FLAGS:
            a = a.split("=", 1)[0] + "=[REDACTED]"
        out.append(a)
    return out
