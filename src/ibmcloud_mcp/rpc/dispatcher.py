"""Request loop and method routing for the stdio MCP server.

One request is read, handled and answered before the next line is read.
Supported methods: initialize, ping, tools/list, tools/call. Requests without
an `id` member are notifications and get no reply.
"""

from __future__ import annotations

import copy
import logging
import signal
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TextIO

from .protocol import Request, decode, encode, error_response, parse_request, recover_id, result_response
from ..backend.session import SessionGate
from ..config.models import ServerInfo
from ..errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    AuthError,
    JsonRpcError,
)
from ..events.store import EventStore
from ..tools.base import ToolContext
from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_JSON = dict[str, Any]


def _preview(text: str, limit: int = 100) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


@dataclass
class Dispatcher:
    registry: ToolRegistry
    tool_ctx: ToolContext
    gate: Optional[SessionGate]
    server: ServerInfo = field(default_factory=ServerInfo)
    events: Optional[EventStore] = None

    def __post_init__(self) -> None:
        self._methods: dict[str, Callable[[_JSON], Any]] = {
            "initialize": self._initialize,
            "ping": lambda params: {},
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    # ---- methods ----

    def _initialize(self, params: _JSON) -> _JSON:
        s = self.server
        return {
            "protocolVersion": s.protocol_version,
            "serverInfo": {"name": s.name, "version": s.version, "description": s.description},
            "capabilities": {"tools": {"listChanged": s.list_changed}},
            "instructions": s.instructions,
            "environment": {
                "required_tools": list(s.required_tools),
                "optional_plugins": list(s.optional_plugins),
            },
        }

    def _tools_list(self, params: _JSON) -> _JSON:
        # copies, so a caller mutating the result cannot change later listings
        return {"tools": copy.deepcopy(self.registry.list_descriptors())}

    def _tools_call(self, params: _JSON) -> str:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: name is required")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        elif not isinstance(arguments, dict):
            raise JsonRpcError(INVALID_PARAMS, "Invalid params: arguments must be an object")

        tool = self.registry.get_optional(name)
        if tool is None:
            raise JsonRpcError(METHOD_NOT_FOUND, f"Tool not found: {name}")

        if tool.requires_session and self.gate is not None:
            try:
                self.gate.ensure()
            except AuthError as e:
                raise JsonRpcError(INTERNAL_ERROR, "Tool execution error", data=str(e)) from e

        logger.info("Calling tool %s", name)
        res = tool.execute(self.tool_ctx, arguments)
        if res.is_error:
            logger.info("Tool %s failed: %s", name, _preview(res.content))
            raise JsonRpcError(INTERNAL_ERROR, "Tool execution error", data=res.content)
        return res.content

    # ---- dispatch ----

    def dispatch(self, req: Request) -> Any:
        handler = self._methods.get(req.method)
        if handler is None:
            raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {req.method}")
        return handler(req.params)

    def _record(self, event_type: str, data: _JSON) -> None:
        if self.events is not None:
            self.events.append(event_type, data)

    def handle_message(self, obj: Any) -> Optional[_JSON]:
        """Handle one decoded message; returns the reply, or None for notifications."""
        started = time.monotonic()
        try:
            req = parse_request(obj)
        except JsonRpcError as e:
            logger.warning("Rejected request: %s", e.message)
            self._record("rpc.invalid", {"code": e.code, "message": e.message})
            return error_response(recover_id(obj), e)

        logger.info("Received %s (id=%s)", req.method, req.reply_id if not req.is_notification else "-")
        self._record("rpc.request", {"method": req.method, "id": req.reply_id, "notification": req.is_notification})

        reply: _JSON
        try:
            reply = result_response(req.reply_id, self.dispatch(req))
        except JsonRpcError as e:
            reply = error_response(req.reply_id, e)
        except Exception as e:  # noqa: BLE001
            logger.exception("Unhandled error in %s", req.method)
            reply = error_response(req.reply_id, JsonRpcError(INTERNAL_ERROR, "Internal error", data=str(e)))

        elapsed_ms = int((time.monotonic() - started) * 1000)
        err = reply.get("error")
        self._record(
            "rpc.response",
            {
                "method": req.method,
                "id": req.reply_id,
                "ok": err is None,
                "code": err["code"] if err else None,
                "elapsed_ms": elapsed_ms,
            },
        )
        logger.info("Completed %s in %sms (%s)", req.method, elapsed_ms, "ok" if err is None else err["code"])

        if req.is_notification:
            return None
        return reply

    def handle_line(self, line: str) -> Optional[_JSON]:
        line = line.strip()
        if not line:
            return None
        try:
            obj = decode(line)
        except (ValueError, RecursionError) as e:
            logger.warning("Parse error on input: %s", _preview(line))
            self._record("rpc.invalid", {"code": PARSE_ERROR, "message": str(e)})
            return error_response(None, JsonRpcError(PARSE_ERROR, "Parse error", data=str(e)))
        return self.handle_message(obj)

    def serve(self, stdin: TextIO, stdout: TextIO) -> None:
        """Blocking read-dispatch-write loop; returns at end of input."""
        logger.info("Entering request loop")
        for line in stdin:
            reply = self.handle_line(line)
            if reply is None:
                continue
            stdout.write(encode(reply) + "\n")
            stdout.flush()
        logger.info("End of input; request loop ended")


def install_signal_handlers() -> None:
    """Log SIGTERM/SIGINT and exit with status 0."""
    if threading.current_thread() is not threading.main_thread():
        return

    def _handler(signum: int, frame: Any) -> None:
        logger.info("Server interrupted by signal %s", signal.Signals(signum).name)
        raise SystemExit(0)

    signal.signal(signal.SIGTERM, _handler)
    signal.signal(signal.SIGINT, _handler)
