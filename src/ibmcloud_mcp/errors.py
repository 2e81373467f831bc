from __future__ import annotations

from typing import Any

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcError(RuntimeError):
    """A protocol-level failure that maps onto a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_obj(self) -> dict[str, Any]:
        err: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            err["data"] = self.data
        return err


class ConfigError(RuntimeError):
    pass


class ManifestError(RuntimeError):
    pass


class RegistryError(RuntimeError):
    pass


class AuthError(RuntimeError):
    pass


# Startup failures; the CLI exits 1 on any of these.
StartupError = (ConfigError, ManifestError, RegistryError)
