"""
Inkwell: editorial intelligence for newsletters, served over MCP.
"""

from inkwell.core.config import InkwellConfig, load_config
from inkwell.core.errors import InkwellError, ToolError
from inkwell.version import __version__

__all__ = [
    "__version__",
    "InkwellConfig",
    "InkwellError",
    "ToolError",
    "load_config",
]
