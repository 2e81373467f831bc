from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Sequence, Union

import pytest

from ibmcloud_mcp.app_context import AppContext
from ibmcloud_mcp.config.models import ServerConfig
from ibmcloud_mcp.events.store import EventStore
from ibmcloud_mcp.util.subprocess import CmdResult

Responder = Union[CmdResult, Callable[[list[str]], CmdResult]]


class FakeInvoker:
    """Stands in for the IBM Cloud CLI.

    Responses are keyed by the argument tuple; the first key that is a prefix of
    the invoked arguments wins. Unmatched calls fail with exit code 1.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._responses: list[tuple[tuple[str, ...], Responder]] = []

    def on(self, args: Sequence[str], output: str = "", returncode: int = 0) -> "FakeInvoker":
        self._responses.insert(0, (tuple(args), CmdResult(returncode, output)))
        return self

    def on_call(self, args: Sequence[str], fn: Callable[[list[str]], CmdResult]) -> "FakeInvoker":
        self._responses.insert(0, (tuple(args), fn))
        return self

    def invoke(self, args: Sequence[str], timeout: float | None = None) -> CmdResult:
        argv = list(args)
        self.calls.append(argv)
        for key, resp in self._responses:
            if tuple(argv[: len(key)]) == key:
                return resp(argv) if callable(resp) else resp
        return CmdResult(1, f"FAILED: unexpected call {' '.join(argv)}")

    def called(self, *prefix: str) -> bool:
        return any(tuple(c[: len(prefix)]) == prefix for c in self.calls)


@pytest.fixture
def fake_invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def logged_in(fake_invoker: FakeInvoker) -> FakeInvoker:
    fake_invoker.on(["target", "--output", "json"], '{"account":"acct1","region":"us-south"}')
    return fake_invoker


@pytest.fixture
def server_config(tmp_path: Path) -> ServerConfig:
    cfg = ServerConfig()
    cfg.dotenv_path = tmp_path / ".env"
    cfg.log_file = tmp_path / "ibmcloud.log"
    return cfg


@pytest.fixture
def make_ctx(tmp_path: Path, server_config: ServerConfig) -> Callable[..., AppContext]:
    def _make(invoker: Any, environ: dict[str, str] | None = None, config: ServerConfig | None = None) -> AppContext:
        return AppContext.build(
            config or server_config,
            cwd=tmp_path,
            invoker=invoker,
            environ=environ if environ is not None else {},
            events=EventStore.open(tmp_path / "events.jsonl"),
        )

    return _make
