from inkwell.mcp.dispatcher import Dispatcher
from inkwell.mcp.framing import StdioFramer, encode_frame
from inkwell.mcp.registry import Env, Tool, ToolRegistry
from inkwell.mcp.server import StdioServer

__all__ = ["Dispatcher", "Env", "StdioFramer", "StdioServer", "Tool", "ToolRegistry", "encode_frame"]
