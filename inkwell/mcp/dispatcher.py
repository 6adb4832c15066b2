"""
Inkwell JSON-RPC Dispatcher
---------------------------
Routes one parsed JSON-RPC message to its method and builds the response.

Notifications (no id, or a null id) still run their method, but the
response is discarded and ``handle`` returns None.
"""

import json
import logging
from typing import Any, Dict, Optional

from inkwell.core.errors import InkwellError, ProtocolError
from inkwell.core.types import AuthContext
from inkwell.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    SERVER_CAPABILITIES,
    make_error,
    make_result,
    negotiate_protocol_version,
)
from inkwell.mcp.registry import Env, ToolRegistry
from inkwell.version import __version__

logger = logging.getLogger("Inkwell.mcp.dispatcher")


class Dispatcher:
    def __init__(self, registry: ToolRegistry, env: Env, auth_context: Optional[AuthContext]):
        self.registry = registry
        self.env = env
        self.auth_context = auth_context

    def handle(self, msg: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        msg_id = msg.get("id")
        try:
            response = make_result(msg_id, self._route(msg))
        except InkwellError as e:
            response = make_error(msg_id, e.code, e.message, e.data)
        except Exception as e:
            logger.exception("Unexpected error routing %r", msg.get("method"))
            response = make_error(msg_id, INTERNAL_ERROR, f"Internal error: {e}")

        if msg_id is None:
            if "error" in response:
                logger.debug("Discarding error for notification %r: %s", msg.get("method"), response["error"])
            return None
        return response

    def _route(self, msg: Dict[str, Any]) -> Any:
        method = msg.get("method")
        params = msg.get("params")

        if not isinstance(method, str):
            raise ProtocolError("Invalid Request: missing method", code=INVALID_REQUEST)

        if method == "initialize":
            return self._initialize(params if isinstance(params, dict) else {})
        if method == "tools/list":
            return {"tools": self.registry.definitions()}
        if method == "tools/call":
            return self._call_tool(params)
        if method in ("ping", "notifications/initialized"):
            if method == "notifications/initialized":
                logger.info("Client initialized connection")
            return {}

        raise ProtocolError(f"Method not found: {method}", code=METHOD_NOT_FOUND)

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        config = self.env.config
        return {
            "protocolVersion": negotiate_protocol_version(params.get("protocolVersion")),
            "capabilities": SERVER_CAPABILITIES,
            "serverInfo": {
                "name": config.name,
                "version": __version__,
                "description": config.description,
            },
        }

    def _call_tool(self, params: Any) -> Dict[str, Any]:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise ProtocolError("Invalid params: tools/call params must be an object", code=INVALID_PARAMS)

        name = params.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ProtocolError("Missing tool name", code=INVALID_PARAMS)

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ProtocolError("Invalid params: arguments must be an object", code=INVALID_PARAMS)

        tool = self.registry.get(name)
        if tool is None:
            raise ProtocolError(f"Unknown tool: {name}", code=METHOD_NOT_FOUND)

        self._track_usage(name)

        try:
            result = tool.handler(arguments, self.auth_context, self.env)
        except InkwellError:
            raise
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e, exc_info=True)
            raise InkwellError(f"Tool error: {e}", code=INTERNAL_ERROR)

        return {"content": [{"type": "text", "text": json.dumps(result, indent=2, ensure_ascii=False, default=str)}]}

    def _track_usage(self, tool_name: str) -> None:
        if not self.env.config.track_usage:
            return
        try:
            self.env.store.insert("usage_stats", {"tool_name": tool_name})
        except Exception as e:
            logger.warning("Failed to record usage for %s: %s", tool_name, e)
