"""JSON-RPC 2.0 envelopes for the line-delimited stdio transport."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

from ..errors import INVALID_PARAMS, INVALID_REQUEST, JsonRpcError

_JSON = dict[str, Any]

# Marker for "the request carried no id member at all" (a notification).
NO_ID = object()


@dataclass
class Request:
    method: str
    id: Any  # str | int | float | None, or NO_ID
    params: _JSON

    @property
    def is_notification(self) -> bool:
        return self.id is NO_ID

    @property
    def reply_id(self) -> Any:
        return None if self.id is NO_ID else self.id


def valid_id(v: Any) -> bool:
    if v is None or isinstance(v, str):
        return True
    if isinstance(v, float):
        return math.isfinite(v)
    return isinstance(v, int) and not isinstance(v, bool)


def recover_id(obj: Any) -> Any:
    """Best-effort id for an error reply to a malformed request."""
    if isinstance(obj, dict) and valid_id(obj.get("id")):
        return obj.get("id")
    return None


def parse_request(obj: Any) -> Request:
    """Validate a decoded envelope; raises JsonRpcError(-32600/-32602)."""
    if not isinstance(obj, dict):
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: expected a JSON object")
    if obj.get("jsonrpc") != "2.0":
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: jsonrpc must be \"2.0\"")
    method = obj.get("method")
    if not isinstance(method, str) or not method:
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: method must be a non-empty string")
    if "id" in obj and not valid_id(obj["id"]):
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: id must be a string, number or null")
    params = obj.get("params")
    if params is None:
        params = {}
    elif not isinstance(params, dict):
        raise JsonRpcError(INVALID_PARAMS, "Invalid params: params must be an object")
    return Request(method=method, id=obj["id"] if "id" in obj else NO_ID, params=params)


def result_response(req_id: Any, result: Any) -> _JSON:
    return {"jsonrpc": "2.0", "result": result, "id": req_id}


def error_response(req_id: Any, err: JsonRpcError) -> _JSON:
    return {"jsonrpc": "2.0", "error": err.to_obj(), "id": req_id}


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not valid JSON")


def decode(line: str) -> Any:
    """Strict JSON: the NaN and Infinity extensions are rejected."""
    return json.loads(line, parse_constant=_reject_constant)


def encode(msg: _JSON) -> str:
    return json.dumps(msg, ensure_ascii=False, allow_nan=False, separators=(",", ":"))
