from __future__ import annotations
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

TIMEOUT_EXIT_CODE = 124
CANNOT_EXECUTE_EXIT_CODE = 126
NOT_FOUND_EXIT_CODE = 127

@dataclass
class CmdResult:
    returncode: int
    output: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

def run_cmd(
    cmd: Sequence[str],
    *,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[str] = None,
    timeout: Optional[float] = 30,
) -> CmdResult:
    """Run a command without a shell, stdout and stderr merged into one stream.

    stdin is closed so a command that wants to prompt fails instead of hanging.
    """
    try:
        p = subprocess.run(
            list(cmd),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
            shell=False,
        )
    except subprocess.TimeoutExpired:
        return CmdResult(TIMEOUT_EXIT_CODE, f"Command timed out after {timeout} seconds", timed_out=True)
    except FileNotFoundError:
        return CmdResult(NOT_FOUND_EXIT_CODE, f"Command not found: {cmd[0]}")
    except OSError as e:
        return CmdResult(CANNOT_EXECUTE_EXIT_CODE, f"Cannot execute {cmd[0]}: {e}")
    # $(...) semantics: trailing newlines are not part of the value
    return CmdResult(p.returncode, (p.stdout or "").rstrip("\n"))
