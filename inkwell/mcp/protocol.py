"""
Inkwell MCP Protocol Constants
"""

from typing import Optional

JSONRPC_VERSION = "2.0"

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
DEFAULT_PROTOCOL_VERSION = "2024-11-05"

# Standard JSON-RPC error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

SERVER_CAPABILITIES = {"tools": {"listChanged": False}}


def negotiate_protocol_version(version: Optional[str]) -> str:
    """Echo a supported version; anything else gets the default instead of an error."""
    if isinstance(version, str) and version in SUPPORTED_PROTOCOL_VERSIONS:
        return version
    return DEFAULT_PROTOCOL_VERSION


def make_result(msg_id, result):
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}


def make_error(msg_id, code: int, message: str, data=None):
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "error": error}
