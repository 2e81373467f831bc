from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, Sequence

from ..util.redact import redact_argv
from ..util.subprocess import CmdResult, run_cmd

logger = logging.getLogger(__name__)


class Invoker(Protocol):
    def invoke(self, args: Sequence[str], timeout: Optional[float] = None) -> CmdResult: ...


@dataclass
class BackendInvoker:
    """Runs the IBM Cloud CLI with discrete arguments; never through a shell.

    There is no retry: a failed invocation is returned as-is.
    """

    binary: str = "ibmcloud"
    timeout: float = 30.0
    env_overrides: dict[str, str] = field(default_factory=dict)

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def _env(self) -> Mapping[str, str]:
        return {**os.environ, **self.env_overrides}

    def invoke(self, args: Sequence[str], timeout: Optional[float] = None) -> CmdResult:
        argv = [self.binary, *args]
        limit = self.timeout if timeout is None else timeout
        logger.debug("exec: %s (timeout=%ss)", " ".join(redact_argv(argv)), limit)
        res = run_cmd(argv, env=self._env(), timeout=limit)
        if res.timed_out:
            logger.warning("Backend call timed out after %ss: %s", limit, " ".join(redact_argv(argv[:3])))
        elif not res.ok:
            logger.debug("exit %s from %s", res.returncode, " ".join(redact_argv(argv[:3])))
        return res
