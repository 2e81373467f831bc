"""Authentication gate run before every backend-touching tool call.

Sequence: probe `target`; if that fails, find an API key (environment, then
dotenv file), log in with it non-interactively, and probe again. If the second
probe still fails the gate fails closed with AuthError.

Positive results may be reused for `cache_seconds`; negative results never are.
The probe/login section is serialized so concurrent callers cannot race two
logins against the same backend.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .credentials import CredentialResolver
from .invoker import Invoker
from ..errors import AuthError

logger = logging.getLogger(__name__)

NOT_LOGGED_IN = "Error: Not logged in to IBM Cloud. Please run 'ibmcloud login' or set IBMCLOUD_API_KEY."

STATUS_ARGS = ["target", "--output", "json"]


@dataclass
class SessionState:
    authenticated: bool = False
    last_checked: float | None = None


@dataclass
class SessionGate:
    invoker: Invoker
    credentials: CredentialResolver
    region: Optional[str] = None
    resource_group: Optional[str] = None
    cache_seconds: float = 0.0
    clock: Callable[[], float] = time.monotonic
    state: SessionState = field(default_factory=SessionState)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def probe(self) -> bool:
        res = self.invoker.invoke(STATUS_ARGS)
        return res.ok

    def _fresh(self) -> bool:
        if not self.state.authenticated or self.state.last_checked is None:
            return False
        return (self.clock() - self.state.last_checked) < self.cache_seconds

    def _mark(self, ok: bool) -> bool:
        self.state.authenticated = ok
        self.state.last_checked = self.clock()
        return ok

    def login_args(self, api_key: str) -> list[str]:
        args = ["login", "--apikey", api_key]
        if self.region:
            args += ["-r", self.region]
        if self.resource_group:
            args += ["-g", self.resource_group]
        return args

    def ensure(self) -> None:
        """Raise AuthError unless the backend is (or could be made) authenticated."""
        with self._lock:
            if self.cache_seconds > 0 and self._fresh():
                return

            if self._mark(self.probe()):
                return

            cred = self.credentials.resolve()
            if cred is None:
                logger.warning("Not authenticated and no %s found", self.credentials.key_name)
                raise AuthError(NOT_LOGGED_IN)

            logger.info("Not authenticated; attempting API key login using %s", cred.describe())
            res = self.invoker.invoke(self.login_args(cred.value))
            if not res.ok:
                # scrub the key in case the CLI echoes it back
                logger.warning("API key login failed (exit %s)", res.returncode)
                self._mark(False)
                raise AuthError(f"{NOT_LOGGED_IN} API key login failed: {res.output.replace(cred.value, '[REDACTED]')}")

            if not self._mark(self.probe()):
                logger.warning("Login reported success but target probe still fails")
                raise AuthError(NOT_LOGGED_IN)
            logger.info("Logged in to IBM Cloud")

    def status(self) -> SessionState:
        """Probe without attempting login."""
        with self._lock:
            self._mark(self.probe())
            return SessionState(self.state.authenticated, self.state.last_checked)
